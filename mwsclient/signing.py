# -*- coding: utf-8 -*-
"""
Signature Version 2 request signing.

The service recomputes the signature from the exact query it receives, so
the parameters have to be serialized the same way every time: sorted
byte-wise by key and percent-encoded with only the RFC 3986 unreserved
characters left alone.
"""
import base64
import hashlib
import hmac
import re
from datetime import datetime, timezone
from urllib.parse import quote

SIGNATURE_METHOD = 'HmacSHA256'
SIGNATURE_VERSION = '2'

# Milliseconds are always sent as a literal ".000".
TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.000Z'

MULTI_MARKETPLACE_KEY = re.compile(r'^MarketplaceId\.Id\.\d+$')


def get_timestamp(now=None):
    """
        Returns the timestamp in proper format.
        :param now: aware or UTC ``datetime``, defaults to the current time
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime(TIMESTAMP_FORMAT)


def remove_empty(d):
    """
        Helper function that removes all keys from a dictionary (d),
        that have an empty value.
        :param d
    """
    for key in list(d.keys()):
        if d[key] is None or d[key] == '':
            del d[key]
    return d


def build_parameters(descriptor, extra, access_key, account_id, marketplace_ids=(),
                     auth_token=None, timestamp=None, identity_in_body=False):
    """Merge the caller's parameters over the defaults every call carries.

    :param descriptor: :class:`~mwsclient.endpoints.EndpointDescriptor`
    :param extra: caller parameters, these win over the defaults
    :param access_key
    :param account_id: seller id, sent as ``SellerId``
    :param marketplace_ids: marketplaces addressed through ``MarketplaceId.Id.N``
    :param auth_token: optional ``MWSAuthToken``
    :param timestamp: preformatted timestamp, defaults to now
    :param identity_in_body: drop the seller/marketplace keys, the feed body carries them
    """
    params = {
        'Timestamp': timestamp or get_timestamp(),
        'AWSAccessKeyId': access_key,
        'Action': descriptor.action,
        'SellerId': account_id,
        'SignatureMethod': SIGNATURE_METHOD,
        'SignatureVersion': SIGNATURE_VERSION,
        'Version': descriptor.version,
    }
    extra = dict((k, str(v)) for k, v in (extra or {}).items() if v is not None)
    # Marketplaces given by the caller replace the configured list.
    if not any(MULTI_MARKETPLACE_KEY.match(k) for k in extra):
        for num, marketplace_id in enumerate(marketplace_ids):
            params['MarketplaceId.Id.%d' % (num + 1)] = marketplace_id
    params.update(extra)
    remove_empty(params)

    if auth_token:
        params['MWSAuthToken'] = auth_token

    # A call addresses marketplaces one way or the other, never both.
    if 'MarketplaceId' in params or identity_in_body:
        for key in [k for k in params if MULTI_MARKETPLACE_KEY.match(k)]:
            del params[key]
    if identity_in_body:
        params.pop('SellerId', None)
    return params


def encode(value):
    return quote(str(value), safe='-_.~')


def canonical_query(params):
    """Serialize ``params`` sorted by key, as the signature expects.

    Keys are compared as UTF-8 bytes, which is the order the service uses.
    """
    keys = sorted(params, key=lambda k: k.encode('utf-8'))
    return '&'.join('%s=%s' % (encode(k), encode(params[k])) for k in keys)


def string_to_sign(method, host, path, params):
    return '\n'.join([method, host.lower(), path, canonical_query(params)])


def calc_signature(secret_key, data):
    """Calculate MWS signature to interface with Amazon
       :param secret_key
       :param data: the string to sign
    """
    digest = hmac.new(secret_key.encode('utf-8'), data.encode('utf-8'), hashlib.sha256).digest()
    return base64.b64encode(digest).decode('ascii')


def sign(descriptor, params, secret_key, host):
    """Return the base64 ``Signature`` for a request to ``descriptor`` on ``host``."""
    return calc_signature(secret_key, string_to_sign(descriptor.method, host, descriptor.path, params))

