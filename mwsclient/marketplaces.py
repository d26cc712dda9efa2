# -*- coding: utf-8 -*-
"""
Marketplace ids and the MWS host serving each of them.

See https://images-na.ssl-images-amazon.com/images/G/01/mwsportal/doc/en_US/bde/MWSDeveloperGuide._V357736853_.pdf
page 8 for a list of the end points and marketplace IDs
"""
from types import MappingProxyType

from .errors import ConfigurationError

MARKETPLACE_HOSTS = MappingProxyType({
    'A2EUQ1WTGCTBG2': 'mws.amazonservices.ca',
    'ATVPDKIKX0DER': 'mws.amazonservices.com',
    'A1AM78C64UM0Y8': 'mws.amazonservices.com.mx',
    'A1PA6795UKMFR9': 'mws-eu.amazonservices.com',
    'A1RKKUPIHCS9HS': 'mws-eu.amazonservices.com',
    'A13V1IB3VIYZZH': 'mws-eu.amazonservices.com',
    'A21TJRUUN4KGV': 'mws.amazonservices.in',
    'APJ6JRA9NG5V4': 'mws-eu.amazonservices.com',
    'A1F83G8C2ARO7P': 'mws-eu.amazonservices.com',
    'A1VC38T7YXB528': 'mws.amazonservices.jp',
    'AAHKV2X7AFYLW': 'mws.amazonservices.com.cn',
})

# Region codes, kept for callers used to the short names.
REGIONS = MappingProxyType({
    'CA': 'A2EUQ1WTGCTBG2',
    'US': 'ATVPDKIKX0DER',
    'MX': 'A1AM78C64UM0Y8',
    'DE': 'A1PA6795UKMFR9',
    'ES': 'A1RKKUPIHCS9HS',
    'FR': 'A13V1IB3VIYZZH',
    'IN': 'A21TJRUUN4KGV',
    'IT': 'APJ6JRA9NG5V4',
    'UK': 'A1F83G8C2ARO7P',
    'JP': 'A1VC38T7YXB528',
    'CN': 'AAHKV2X7AFYLW',
})


def host_for(marketplace_id):
    """Return the MWS host for ``marketplace_id``.

    :param marketplace_id
    """
    try:
        return MARKETPLACE_HOSTS[marketplace_id]
    except KeyError:
        raise ConfigurationError("Invalid Marketplace Id ('%s')" % marketplace_id) from None


def marketplace_for_region(region):
    """Translate a region code (``'UK'``) into its marketplace id."""
    try:
        return REGIONS[region.upper()]
    except (KeyError, AttributeError):
        error_msg = "Incorrect region supplied ('%(region)s'). Must be one of the following: %(regions)s" % {
            "regions": ', '.join(REGIONS),
            "region": region,
        }
        raise ConfigurationError(error_msg) from None
