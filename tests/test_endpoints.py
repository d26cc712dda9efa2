import pytest

from mwsclient import UnknownOperation, endpoints


def test_resolve_list_orders():
    descriptor = endpoints.resolve('ListOrders')
    assert descriptor.method == 'POST'
    assert descriptor.path == '/Orders/2013-09-01'
    assert descriptor.version == '2013-09-01'
    assert descriptor.action == 'ListOrders'


@pytest.mark.parametrize('operation, path, version', [
    ('GetMyPriceForSKU', '/Products/2011-10-01', '2011-10-01'),
    ('SubmitFeed', '/', '2009-01-01'),
    ('GetReportRequestList', '/', '2009-01-01'),
    ('ListMarketplaceParticipations', '/Sellers/2011-07-01', '2011-07-01'),
    ('ListRecommendations', '/Recommendations/2013-04-01', '2013-04-01'),
])
def test_sections(operation, path, version):
    descriptor = endpoints.resolve(operation)
    assert (descriptor.path, descriptor.version) == (path, version)


def test_unknown_operation():
    with pytest.raises(UnknownOperation, match='ItemSearch'):
        endpoints.resolve('ItemSearch')


def test_table_is_read_only():
    with pytest.raises(TypeError):
        endpoints.ENDPOINTS['Foo'] = endpoints.ENDPOINTS['ListOrders']
    assert 20 <= len(endpoints.ENDPOINTS) <= 30
