# -*- coding: utf-8 -*-
"""
XML feed documents for SubmitFeed.

A feed is an ``AmazonEnvelope`` holding a header, the message type and one
``Message`` per change::

    <AmazonEnvelope>
      <Header>
        <DocumentVersion>1.01</DocumentVersion>
        <MerchantIdentifier>...</MerchantIdentifier>
      </Header>
      <MessageType>Inventory</MessageType>
      <Message>
        <MessageID>1</MessageID>
        <OperationType>Update</OperationType>
        <Inventory>...</Inventory>
      </Message>
    </AmazonEnvelope>

Payloads use the same conventions as the normalized responses:
``'@attributes'`` for attributes and ``'#text'`` for the element text.
"""
import base64
import hashlib
import itertools

import xmltodict

from .xmlparse import ATTRIBUTES

__all__ = ['DOCUMENT_VERSION', 'FeedEnvelope', 'FeedMessage', 'calc_md5', 'encode']

DOCUMENT_VERSION = '1.01'
DEFAULT_ROOT = 'AmazonEnvelope'
FEED_ENCODING = 'iso-8859-1'


def calc_md5(data):
    """Calculates the base64 encoded MD5 digest of ``data``, as sent in Content-MD5.
    :param data: bytes
    """
    return base64.b64encode(hashlib.md5(data).digest()).decode('ascii')


class FeedMessage(object):
    """One ``<Message>`` of a feed.

    :param payload: structure placed under the message type element
    :param operation_type: ``'Update'``, ``'Delete'``, ``'PartialUpdate'`` or None
    :param message_id: assigned by the envelope when not given
    """

    def __init__(self, payload, operation_type='Update', message_id=None):
        self.payload = payload
        self.operation_type = operation_type
        self.message_id = message_id

    def __repr__(self):
        return '<FeedMessage %s %s>' % (self.message_id, self.operation_type)


class FeedEnvelope(object):
    """A batch of messages of a single type.

    Message ids are unique within the envelope when left to the envelope;
    ids passed explicitly are not checked for collisions.

    ``header`` is accepted for symmetry with the wire format but is never
    serialized, the encoder always writes its own header.
    """

    def __init__(self, message_type, messages=(), header=None):
        self.message_type = message_type
        self.header = header or {}
        self.messages = []
        self._ids = itertools.count(1)
        for message in messages:
            self.add(message)

    def add(self, message, operation_type='Update'):
        """Append ``message`` (a :class:`FeedMessage` or a bare payload)."""
        if not isinstance(message, FeedMessage):
            message = FeedMessage(message, operation_type)
        if message.message_id is None:
            message.message_id = next(self._ids)
        self.messages.append(message)
        return message

    def __len__(self):
        return len(self.messages)


def _to_xmltodict(value):
    """Translate ``'@attributes'`` into the ``'@name'`` keys xmltodict expects."""
    if isinstance(value, dict):
        result = {}
        for key, child in value.items():
            if key == ATTRIBUTES:
                for name, attr in child.items():
                    result['@' + name] = str(attr)
            else:
                result[key] = _to_xmltodict(child)
        return result
    if isinstance(value, (list, tuple)):
        return [_to_xmltodict(v) for v in value]
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return value


def encode(envelope, merchant_id, root=DEFAULT_ROOT):
    """Serialize ``envelope`` to XML bytes.

    :param envelope: :class:`FeedEnvelope`
    :param merchant_id: written as ``MerchantIdentifier`` in the header
    :param root: name of the document element
    """
    messages = []
    for message in envelope.messages:
        body = {'MessageID': str(message.message_id)}
        if message.operation_type:
            body['OperationType'] = message.operation_type
        body[envelope.message_type] = _to_xmltodict(message.payload)
        messages.append(body)

    document = {
        root: {
            'Header': {
                'DocumentVersion': DOCUMENT_VERSION,
                'MerchantIdentifier': merchant_id,
            },
            'MessageType': envelope.message_type,
            'Message': messages,
        }
    }
    xml = xmltodict.unparse(document, encoding=FEED_ENCODING)
    return xml.encode(FEED_ENCODING, 'xmlcharrefreplace')
