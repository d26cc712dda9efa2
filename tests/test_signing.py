import base64
import hashlib
import hmac
import random
from datetime import datetime, timedelta, timezone

from mwsclient import endpoints, signing

LIST_ORDERS = endpoints.resolve('ListOrders')
TIMESTAMP = '2024-01-01T00:00:00.000Z'


def params_for(extra=None, **kwargs):
    options = dict(access_key='AKIDEXAMPLE', account_id='A3SELLER',
                   marketplace_ids=('A1F83G8C2ARO7P',), timestamp=TIMESTAMP)
    options.update(kwargs)
    return signing.build_parameters(LIST_ORDERS, extra, **options)


def test_timestamp_has_literal_milliseconds():
    now = datetime(2024, 3, 5, 7, 8, 9, 987654, tzinfo=timezone.utc)
    assert signing.get_timestamp(now) == '2024-03-05T07:08:09.000Z'


def test_timestamp_is_converted_to_utc():
    now = datetime(2024, 3, 5, 9, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert signing.get_timestamp(now) == '2024-03-05T07:00:00.000Z'


def test_defaults():
    params = params_for()
    assert params == {
        'AWSAccessKeyId': 'AKIDEXAMPLE',
        'Action': 'ListOrders',
        'MarketplaceId.Id.1': 'A1F83G8C2ARO7P',
        'SellerId': 'A3SELLER',
        'SignatureMethod': 'HmacSHA256',
        'SignatureVersion': '2',
        'Timestamp': TIMESTAMP,
        'Version': '2013-09-01',
    }


def test_empty_values_are_dropped():
    params = params_for({'CreatedBefore': None, 'BuyerEmail': '', 'MaxResultsPerPage': 10})
    assert 'CreatedBefore' not in params
    assert 'BuyerEmail' not in params
    assert params['MaxResultsPerPage'] == '10'


def test_auth_token_injected():
    assert params_for(auth_token='amzn.mws.token')['MWSAuthToken'] == 'amzn.mws.token'
    assert 'MWSAuthToken' not in params_for()


def test_single_marketplace_excludes_list():
    params = params_for({'MarketplaceId': 'ATVPDKIKX0DER'},
                        marketplace_ids=('A1F83G8C2ARO7P', 'A1PA6795UKMFR9'))
    assert params['MarketplaceId'] == 'ATVPDKIKX0DER'
    assert not [k for k in params if k.startswith('MarketplaceId.Id.')]


def test_caller_marketplaces_replace_configured_ones():
    params = params_for({'MarketplaceId.Id.1': 'ATVPDKIKX0DER'},
                        marketplace_ids=('A1F83G8C2ARO7P', 'A1PA6795UKMFR9'))
    assert params['MarketplaceId.Id.1'] == 'ATVPDKIKX0DER'
    assert 'MarketplaceId.Id.2' not in params


def test_identity_in_body_drops_seller_and_marketplaces():
    params = params_for({'Merchant': 'A3SELLER', 'MarketplaceIdList.Id.1': 'A1F83G8C2ARO7P'},
                        identity_in_body=True)
    assert 'SellerId' not in params
    assert 'MarketplaceId.Id.1' not in params
    assert params['Merchant'] == 'A3SELLER'
    assert params['MarketplaceIdList.Id.1'] == 'A1F83G8C2ARO7P'


def test_canonical_query_encoding():
    query = signing.canonical_query({'b': 'a b', 'a': 'x/y:z~', 'c': u'\xe9'})
    assert query == 'a=x%2Fy%3Az~&b=a%20b&c=%C3%A9'


def test_canonical_query_sorts_bytewise():
    # uppercase sorts before lowercase
    query = signing.canonical_query({'Action': '1', 'AWSAccessKeyId': '2', 'aaa': '3'})
    assert query == 'AWSAccessKeyId=2&Action=1&aaa=3'


def test_signing_is_insertion_order_independent():
    params = params_for({'CreatedAfter': TIMESTAMP, 'OrderStatus.Status.1': 'Unshipped',
                         'OrderStatus.Status.2': 'PartiallyShipped'})
    items = list(params.items())
    random.Random(4).shuffle(items)
    shuffled = dict(items)
    host = 'mws-eu.amazonservices.com'

    assert signing.canonical_query(shuffled) == signing.canonical_query(params)
    assert signing.sign(LIST_ORDERS, shuffled, 'secret', host) == signing.sign(LIST_ORDERS, params, 'secret', host)


def test_list_orders_signature():
    params = params_for({'CreatedAfter': '2024-01-01T00:00:00.000Z'})
    expected_string = (
        'POST\n'
        'mws-eu.amazonservices.com\n'
        '/Orders/2013-09-01\n'
        'AWSAccessKeyId=AKIDEXAMPLE'
        '&Action=ListOrders'
        '&CreatedAfter=2024-01-01T00%3A00%3A00.000Z'
        '&MarketplaceId.Id.1=A1F83G8C2ARO7P'
        '&SellerId=A3SELLER'
        '&SignatureMethod=HmacSHA256'
        '&SignatureVersion=2'
        '&Timestamp=2024-01-01T00%3A00%3A00.000Z'
        '&Version=2013-09-01'
    )
    assert signing.string_to_sign('POST', 'mws-eu.amazonservices.com', '/Orders/2013-09-01', params) == expected_string

    expected = base64.b64encode(
        hmac.new(b'secret', expected_string.encode('ascii'), hashlib.sha256).digest()).decode('ascii')
    signature = signing.sign(LIST_ORDERS, params, 'secret', 'mws-eu.amazonservices.com')
    assert signature == expected
    # same input, same signature
    assert signing.sign(LIST_ORDERS, dict(params), 'secret', 'mws-eu.amazonservices.com') == signature
