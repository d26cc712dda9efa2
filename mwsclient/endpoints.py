# -*- coding: utf-8 -*-
"""
Registry of the MWS operations this client knows how to call.

Each operation lives under an API section with its own path and version,
ie. ``ListOrders`` is served from ``/Orders/2013-09-01``.
"""
from collections import namedtuple
from types import MappingProxyType

from .errors import UnknownOperation

__all__ = ['EndpointDescriptor', 'ENDPOINTS', 'resolve']

EndpointDescriptor = namedtuple('EndpointDescriptor', 'operation method path version action')

# section name -> (path, version)
SECTIONS = {
    'Orders': ('/Orders/2013-09-01', '2013-09-01'),
    'Products': ('/Products/2011-10-01', '2011-10-01'),
    'Feeds': ('/', '2009-01-01'),
    'Reports': ('/', '2009-01-01'),
    'Sellers': ('/Sellers/2011-07-01', '2011-07-01'),
    'Recommendations': ('/Recommendations/2013-04-01', '2013-04-01'),
}

_OPERATIONS = {
    'Orders': (
        'GetServiceStatus',
        'ListOrders',
        'ListOrdersByNextToken',
        'GetOrder',
        'ListOrderItems',
        'ListOrderItemsByNextToken',
    ),
    'Products': (
        'ListMatchingProducts',
        'GetMatchingProduct',
        'GetMatchingProductForId',
        'GetCompetitivePricingForSKU',
        'GetCompetitivePricingForASIN',
        'GetLowestOfferListingsForSKU',
        'GetLowestOfferListingsForASIN',
        'GetLowestPricedOffersForSKU',
        'GetLowestPricedOffersForASIN',
        'GetMyPriceForSKU',
        'GetMyPriceForASIN',
        'GetProductCategoriesForSKU',
        'GetProductCategoriesForASIN',
    ),
    'Feeds': (
        'SubmitFeed',
        'GetFeedSubmissionList',
        'GetFeedSubmissionResult',
    ),
    'Reports': (
        'RequestReport',
        'GetReportRequestList',
        'GetReportList',
        'GetReport',
    ),
    'Sellers': (
        'ListMarketplaceParticipations',
    ),
    'Recommendations': (
        'ListRecommendations',
    ),
}


def _build_table():
    table = {}
    for section, operations in _OPERATIONS.items():
        path, version = SECTIONS[section]
        for operation in operations:
            # MWS accepts the query string on POST for every section
            table[operation] = EndpointDescriptor(operation, 'POST', path, version, operation)
    return MappingProxyType(table)


ENDPOINTS = _build_table()


def resolve(operation):
    """Look up the descriptor of ``operation``.

    :param operation: MWS action name, ie. ``'ListOrders'``
    :raises UnknownOperation: when the operation is not registered
    """
    try:
        return ENDPOINTS[operation]
    except KeyError:
        raise UnknownOperation("Unknown MWS operation '%s'" % operation) from None
