# -*- coding: utf-8 -*-
"""
Turns MWS XML documents into plain dicts, lists and strings.

XML cannot tell a list of one element apart from a single element, so every
element the service may send more than once is declared in
:data:`REPEATABLE` and always comes back as a list, even when exactly one
instance was on the wire.

Conventions of the normalized tree:

* element text is a ``str``, empty elements are ``''``;
* attributes are grouped in a dict under the ``'@attributes'`` key;
* text of an element that also has attributes is stored under ``'#text'``.
"""
import re
from xml.parsers.expat import ExpatError

import xmltodict

from .errors import MalformedResponse

__all__ = [
    'ATTRIBUTES',
    'REPEATABLE',
    'TEXT',
    'as_list',
    'get_path',
    'normalize',
    'remove_namespace',
    'unwrap',
]

ATTRIBUTES = '@attributes'
TEXT = '#text'

# Entries are element names, or (parent, name) pairs for names that only
# repeat below a given parent: an error's Message is a single string.
REPEATABLE = frozenset([
    # orders
    'Order',
    'OrderItem',
    # products and pricing
    'Product',
    'Offer',
    'LowestOfferListing',
    'CompetitivePrice',
    'ItemAttributes',
    'Self',
    'GetMatchingProductResult',
    'GetMatchingProductForIdResult',
    'GetCompetitivePricingForSKUResult',
    'GetCompetitivePricingForASINResult',
    'GetLowestOfferListingsForSKUResult',
    'GetLowestOfferListingsForASINResult',
    'GetMyPriceForSKUResult',
    'GetMyPriceForASINResult',
    # feeds and reports
    ('AmazonEnvelope', 'Message'),
    ('ProcessingReport', 'Result'),
    'FeedSubmissionInfo',
    'ReportRequestInfo',
    'ReportInfo',
    # sellers
    'Participation',
    'Marketplace',
    # errors
    'Error',
])

# Multi-locale product responses qualify ItemAttributes with xml:lang, the
# language is kept as a nested element instead.
LANGUAGES = ('de-DE', 'en-EN', 'es-ES', 'fr-FR', 'it-IT', 'en-US')

_LOCALE_TAG = re.compile(
    rb'<(?:ns2:)?ItemAttributes xml:lang="(' +
    b'|'.join(re.escape(lang.encode('ascii')) for lang in LANGUAGES) +
    rb')"\s*>'
)
_NS_DECLARATION = re.compile(rb'\s+xmlns(?::[\w.-]+)?="[^"]*"')
_TAG_PREFIX = re.compile(rb'(</?)[A-Za-z_][\w.-]*:')
_ATTR_PREFIX = re.compile(rb'(\s)(?:xml|ns\d+):(?=[\w.-]+=)')


def remove_namespace(xml):
    """Strip namespace declarations and prefixes from ``xml`` (bytes)."""
    xml = _LOCALE_TAG.sub(rb'<ItemAttributes><Language>\1</Language>', xml)
    xml = _NS_DECLARATION.sub(b'', xml)
    xml = _TAG_PREFIX.sub(rb'\1', xml)
    return _ATTR_PREFIX.sub(rb'\1', xml)


def _normalize_node(value):
    if value is None:
        return ''
    if isinstance(value, list):
        return [_normalize_node(v) for v in value]
    if isinstance(value, dict):
        node = {}
        attributes = {}
        for key, child in value.items():
            if key.startswith('@'):
                attributes[key[1:]] = child or ''
            else:
                node[key] = _normalize_node(child)
        if attributes:
            node[ATTRIBUTES] = attributes
        return node
    return value


def normalize(xml, force_list=REPEATABLE):
    """Parse ``xml`` into the normalized tree, root element included.

    :param xml: document as ``bytes`` or ``str``
    :param force_list: element names, or ``(parent, name)`` pairs, that are
        always returned as lists
    :raises MalformedResponse: when the document is not well-formed XML
    """
    if isinstance(xml, str):
        xml = xml.encode('utf-8')
    names = frozenset(force_list)

    def repeatable(path, key, value):
        # path holds the (name, attributes) pairs of the ancestors
        parent = path[-1][0] if path else None
        return key in names or (parent, key) in names

    try:
        parsed = xmltodict.parse(remove_namespace(xml), force_list=repeatable)
    except ExpatError as e:
        raise MalformedResponse('Could not parse XML response: %s' % e) from e
    return _normalize_node(parsed)


def unwrap(tree):
    """Return the content of the single root element of ``tree``."""
    if not isinstance(tree, dict) or len(tree) != 1:
        raise MalformedResponse('Expected a document with a single root element')
    return next(iter(tree.values()))


def as_list(value):
    """``None`` becomes ``[]``, lists are returned as is, anything else is wrapped."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def get_path(node, *keys, default=None):
    """Walk ``keys`` into ``node``, returning ``default`` on the first miss.

    ie. ``get_path(tree, 'ListOrdersResult', 'Orders', 'Order', default=[])``
    """
    for key in keys:
        if isinstance(node, dict) and key in node:
            node = node[key]
        elif isinstance(node, list) and isinstance(key, int) and -len(node) <= key < len(node):
            node = node[key]
        else:
            return default
    return node
