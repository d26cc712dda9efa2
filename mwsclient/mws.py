#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Basic interface to Amazon MWS
#
import asyncio
import logging
from collections import namedtuple
from datetime import datetime

import aiohttp
from yarl import URL

from ._version import __version__
from .endpoints import resolve
from .errors import (ConfigurationError, MalformedReport, MalformedResponse, ReportRequestRejected,
                     RemoteServiceError, TransportFailure)
from .feeds import FEED_ENCODING, FeedEnvelope, FeedMessage, calc_md5, encode as encode_feed
from .marketplaces import MARKETPLACE_HOSTS, host_for, marketplace_for_region
from .reports import NOT_FOUND, NOT_READY, ReportStatus, parse_report
from .signing import build_parameters, canonical_query, encode, get_timestamp, sign
from .xmlparse import ATTRIBUTES, as_list, get_path, normalize, unwrap

__all__ = [
    'Feeds',
    'MWS',
    'MWSClient',
    'Orders',
    'Products',
    'Recommendations',
    'Reports',
    'Sellers',
    'SignedRequest',
]

log = logging.getLogger(__name__)

SignedRequest = namedtuple('SignedRequest', 'method url parameters headers body')

APPLICATION_NAME = 'python-mws-client'

FEED_CONTENT_TYPE = 'text/xml; charset=%s' % FEED_ENCODING


def format_date(value):
    """datetimes are sent in the MWS timestamp format, strings as given."""
    if isinstance(value, datetime):
        return get_timestamp(value)
    return value


class MWS(object):
    """ Base Amazon API class

    :param access_key: AWS access key id
    :param secret_key: secret used to sign every request
    :param account_id: seller / merchant id
    :param marketplace_id: marketplace the client works on, ie. ``'A1F83G8C2ARO7P'``
    :param region: region code (``'UK'``) used when ``marketplace_id`` is not given
    :param domain: overrides the host derived from the marketplace
    :param auth_token: ``MWSAuthToken`` for calls made on behalf of a seller
    :param marketplace_ids: marketplaces sent as ``MarketplaceId.Id.N`` on every
        call, defaults to ``marketplace_id`` alone
    :param application_version: reported in the User-Agent
    :param timeout: seconds before a request is abandoned
    """

    # Config keys understood by ``from_config``.
    CONFIG_KEYS = {
        'Access_Key_ID': 'access_key',
        'Secret_Access_Key': 'secret_key',
        'Seller_Id': 'account_id',
        'Marketplace_Id': 'marketplace_id',
        'MWSAuthToken': 'auth_token',
        'Application_Version': 'application_version',
    }

    def __init__(self, access_key, secret_key, account_id, marketplace_id=None, region=None, domain='',
                 auth_token='', marketplace_ids=None, application_version=__version__, timeout=30):
        for name, value in (('access_key', access_key), ('secret_key', secret_key), ('account_id', account_id)):
            if not value:
                raise ConfigurationError('Required field %s is not set' % name)

        if not marketplace_id:
            if not region:
                raise ConfigurationError('Required field marketplace_id is not set')
            marketplace_id = marketplace_for_region(region)

        self.access_key = access_key
        self.secret_key = secret_key
        self.account_id = account_id
        self.auth_token = auth_token
        self.marketplace_id = marketplace_id
        if not domain:
            self.host = host_for(marketplace_id)
        elif '://' in domain:
            self.host = (URL(domain).host or '').lower()
        else:
            self.host = domain.strip('/').lower()
        if not self.host:
            raise ConfigurationError("Invalid domain ('%s')" % domain)

        if marketplace_ids is None:
            marketplace_ids = (marketplace_id,)
        for other in marketplace_ids:
            if other not in MARKETPLACE_HOSTS:
                raise ConfigurationError("Invalid Marketplace Id ('%s')" % other)
        self.marketplace_ids = tuple(marketplace_ids)

        self.user_agent = '%s/%s (Language=Python)' % (APPLICATION_NAME, application_version)
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @classmethod
    def from_config(cls, config, **kwargs):
        """Build a client from a mapping such as ``{'Seller_Id': ..., 'Marketplace_Id': ...}``.

        Unknown keys are ignored, ``kwargs`` are passed to the constructor as is.
        """
        options = dict((cls.CONFIG_KEYS[k], v) for k, v in config.items() if k in cls.CONFIG_KEYS)
        options.update(kwargs)
        for name in ('access_key', 'secret_key', 'account_id'):
            options.setdefault(name, None)
        return cls(**options)

    def build_request(self, operation, extra_data=None, body=None, extra_headers=None):
        """Build the signed request for ``operation`` without sending it.

        A body means a feed upload: the seller and marketplace identities
        travel inside the document, so they are left out of the query.
        """
        descriptor = resolve(operation)
        params = build_parameters(
            descriptor,
            extra_data,
            access_key=self.access_key,
            account_id=self.account_id,
            marketplace_ids=self.marketplace_ids,
            auth_token=self.auth_token,
            identity_in_body=body is not None,
        )
        signature = sign(descriptor, params, self.secret_key, self.host)
        url = 'https://%s%s?%s&Signature=%s' % (self.host, descriptor.path, canonical_query(params), encode(signature))

        headers = {
            'Accept': 'application/xml',
            'User-Agent': self.user_agent,
        }
        if body is not None:
            headers['Content-MD5'] = calc_md5(body)
            headers['Content-Type'] = FEED_CONTENT_TYPE
            headers['Host'] = self.host
        headers.update(extra_headers or {})

        params['Signature'] = signature
        return SignedRequest(descriptor.method, url, params, headers, body)

    async def make_request(self, operation, extra_data=None, body=None, raw=False, extra_headers=None):
        """Make request to Amazon MWS API with these parameters

        Returns the normalized XML tree, the raw bytes when ``raw`` is set,
        or the decoded text for other content types.

        :param operation: action name, ie. ``'ListOrders'``
        :param extra_data: query parameters of the call
        :param body: bytes sent as the request body
        :param raw: skip parsing and return the body verbatim
        :param extra_headers
        """
        request = self.build_request(operation, extra_data, body, extra_headers)
        log.debug('%s %s to %s', request.method, operation, self.host)

        try:
            # The url is already encoded, re-quoting it would break the signature.
            async with aiohttp.request(request.method, URL(request.url, encoded=True), data=request.body,
                                       headers=request.headers, timeout=self.timeout) as response:
                data = await response.read()
                status = response.status
                content_type = response.headers.get('Content-Type', '')
                content_md5 = response.headers.get('Content-MD5')
                charset = response.charset or 'utf-8'
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportFailure('%s request failed: %s' % (operation, str(e) or type(e).__name__)) from e

        log.debug('%s answered %d (%s, %d bytes)', operation, status, content_type, len(data))
        if status >= 400:
            raise self._error_for(status, data)

        if not raw and 'xml' in content_type.lower():
            return normalize(data)

        if content_md5 and content_md5 != calc_md5(data):
            error = MalformedResponse('Content-MD5 of the %s response does not match its body' % operation)
            error.response = data
            raise error
        if raw:
            return data
        return data.decode(charset, 'replace')

    @staticmethod
    def _error_for(status, data):
        text = data.decode('utf-8', 'replace')
        if '<ErrorResponse' in text:
            try:
                error = get_path(normalize(data), 'ErrorResponse', 'Error', 0)
            except MalformedResponse:
                error = None
            if isinstance(error, dict) and error.get('Message'):
                exc = RemoteServiceError(error['Message'], code=error.get('Code'), status=status)
                exc.response = text
                return exc
        exc = TransportFailure('An error occured (HTTP %d)' % status, status=status)
        exc.response = text
        return exc

    @staticmethod
    def _result(tree, operation):
        """The ``<Operation>Result`` element of a ``<Operation>Response`` document."""
        return get_path(unwrap(tree), operation + 'Result')

    async def get_service_status(self):
        """
            Returns a GREEN, GREEN_I, YELLOW or RED status.
            Depending on the status/availability of the API its being called from.
        """
        tree = await self.make_request('GetServiceStatus')
        return get_path(self._result(tree, 'GetServiceStatus'), 'Status')

    def enumerate_param(self, param, values):
        """
            Builds a dictionary of an enumerated parameter.
            Takes any iterable and returns a dictionary.

            :param param
            :param values

            ie.
            enumerate_param('MarketplaceIdList.Id', (123, 345, 4343))
            returns
            {
                MarketplaceIdList.Id.1: 123,
                MarketplaceIdList.Id.2: 345,
                MarketplaceIdList.Id.3: 4343
            }
        """
        params = {}
        if values is not None:
            if not param.endswith('.'):
                param = "%s." % param
            for num, value in enumerate(values):
                params['%s%d' % (param, (num + 1))] = value
        return params

    @staticmethod
    def check_count(values, maximum, what):
        if len(values) > maximum:
            raise ValueError("Maximum amount of %s's for this call is %d" % (what, maximum))


class Orders(MWS):
    """ Amazon Orders API """

    async def list_orders(self, created_after=None, created_before=None, last_updated_after=None,
                          last_updated_before=None, order_statuses=(), fulfillment_channels=(),
                          marketplace_ids=None, max_results=None):
        """Returns orders created or updated during a time frame that you specify.

        Always a list, one entry per ``Order``.
        """
        data = dict(CreatedAfter=format_date(created_after),
                    CreatedBefore=format_date(created_before),
                    LastUpdatedAfter=format_date(last_updated_after),
                    LastUpdatedBefore=format_date(last_updated_before),
                    MaxResultsPerPage=max_results)
        data.update(self.enumerate_param('OrderStatus.Status.', order_statuses))
        data.update(self.enumerate_param('FulfillmentChannel.Channel.', fulfillment_channels))
        data.update(self.enumerate_param('MarketplaceId.Id.', marketplace_ids))
        tree = await self.make_request('ListOrders', data)
        return as_list(get_path(self._result(tree, 'ListOrders'), 'Orders', 'Order'))

    async def list_unshipped_orders(self, created_after):
        """Unshipped and partially shipped orders fulfilled by the merchant."""
        return await self.list_orders(created_after=created_after,
                                      order_statuses=('Unshipped', 'PartiallyShipped'),
                                      fulfillment_channels=('MFN',))

    async def list_shipped_orders(self, created_after):
        return await self.list_orders(created_after=created_after,
                                      order_statuses=('Shipped',),
                                      fulfillment_channels=('MFN',))

    async def list_orders_by_next_token(self, token):
        tree = await self.make_request('ListOrdersByNextToken', dict(NextToken=token))
        return self._result(tree, 'ListOrdersByNextToken')

    async def get_order(self, amazon_order_id):
        """Returns the order, or None if Amazon does not know it."""
        tree = await self.make_request('GetOrder', {'AmazonOrderId.Id.1': amazon_order_id})
        orders = as_list(get_path(self._result(tree, 'GetOrder'), 'Orders', 'Order'))
        return orders[0] if orders else None

    async def list_order_items(self, amazon_order_id):
        tree = await self.make_request('ListOrderItems', dict(AmazonOrderId=amazon_order_id))
        return as_list(get_path(self._result(tree, 'ListOrderItems'), 'OrderItems', 'OrderItem'))

    async def list_order_items_by_next_token(self, token):
        tree = await self.make_request('ListOrderItemsByNextToken', dict(NextToken=token))
        return self._result(tree, 'ListOrderItemsByNextToken')

    async def validate_credentials(self):
        """Quickly check if the supplied credentials are valid.

        Asks for the items of a nonexistent order: valid credentials get an
        "invalid order id" error, anything else means the keys were refused.
        Transport failures propagate.
        """
        try:
            await self.list_order_items('validate')
        except RemoteServiceError as e:
            return str(e) == 'Invalid AmazonOrderId: validate'
        return True


class Products(MWS):
    """ Amazon MWS Products API """

    MAX_IDS = 20
    MAX_MATCHING_IDS = 5

    async def _batch(self, operation, list_param, values, **extra):
        values = list(values)
        self.check_count(values, self.MAX_IDS, list_param.split('.')[-1])
        data = dict(MarketplaceId=self.marketplace_id, **extra)
        data.update(self.enumerate_param(list_param, values))
        tree = await self.make_request(operation, data)
        return as_list(get_path(unwrap(tree), operation + 'Result'))

    async def get_competitive_pricing_for_asin(self, asins):
        """Returns the current competitive price of each product, keyed by ASIN.

        Products without a competitive price are left out.
        """
        results = await self._batch('GetCompetitivePricingForASIN', 'ASINList.ASIN', asins)
        prices = {}
        for result in results:
            product = get_path(result, 'Product', 0, default={})
            asin = get_path(product, 'Identifiers', 'MarketplaceASIN', 'ASIN')
            price = get_path(product, 'CompetitivePricing', 'CompetitivePrices', 'CompetitivePrice', 0, 'Price')
            if asin and price is not None:
                prices[asin] = price
        return prices

    async def get_lowest_priced_offers_for_asin(self, asin, condition='New'):
        """Returns lowest priced offers for a single product, based on ASIN.

        :param condition: New, Used, Collectible, Refurbished or Club
        """
        data = dict(ASIN=asin, MarketplaceId=self.marketplace_id, ItemCondition=condition)
        tree = await self.make_request('GetLowestPricedOffersForASIN', data)
        return self._result(tree, 'GetLowestPricedOffersForASIN')

    async def _my_price(self, operation, list_param, key, values, condition):
        results = await self._batch(operation, list_param, values, ItemCondition=condition)
        prices = {}
        for result in results:
            attributes = result.get(ATTRIBUTES, {})
            if attributes.get('status') == 'Success':
                prices[attributes.get(key)] = as_list(get_path(result, 'Product', 0, 'Offers', 'Offer'))
            else:
                prices[attributes.get(key)] = None
        return prices

    async def get_my_price_for_sku(self, skus, condition=None):
        """Pricing of your own offers keyed by SKU; None for SKUs Amazon rejected."""
        return await self._my_price('GetMyPriceForSKU', 'SellerSKUList.SellerSKU', 'SellerSKU', skus, condition)

    async def get_my_price_for_asin(self, asins, condition=None):
        return await self._my_price('GetMyPriceForASIN', 'ASINList.ASIN', 'ASIN', asins, condition)

    async def get_lowest_offer_listings_for_asin(self, asins, condition=None):
        """Lowest-price active offer listings keyed by ASIN, None when there are none."""
        results = await self._batch('GetLowestOfferListingsForASIN', 'ASINList.ASIN', asins,
                                    ItemCondition=condition)
        listings = {}
        for result in results:
            product = get_path(result, 'Product', 0, default={})
            asin = get_path(product, 'Identifiers', 'MarketplaceASIN', 'ASIN')
            offers = get_path(product, 'LowestOfferListings', 'LowestOfferListing')
            listings[asin] = as_list(offers) if offers else None
        return listings

    async def _categories(self, operation, **data):
        tree = await self.make_request(operation, dict(MarketplaceId=self.marketplace_id, **data))
        categories = get_path(self._result(tree, operation), 'Self')
        return as_list(categories) if categories else None

    async def get_product_categories_for_sku(self, sku):
        """Parent categories of a product, None if not found."""
        return await self._categories('GetProductCategoriesForSKU', SellerSKU=sku)

    async def get_product_categories_for_asin(self, asin):
        return await self._categories('GetProductCategoriesForASIN', ASIN=asin)

    async def get_matching_product_for_id(self, ids, id_type='ASIN'):
        """ Returns the attributes of the products matching ``ids``.

            :param ids: up to five ASIN, GCID, SellerSKU, UPC, EAN, ISBN or JAN values
            :param id_type: the identifier name, case sensitive
            :return: ``{'found': {id: attributes}, 'not_found': [id, ...]}``
        """
        ids = list(dict.fromkeys(ids))
        if len(ids) > self.MAX_MATCHING_IDS:
            raise ValueError("Maximum number of id's = %d" % self.MAX_MATCHING_IDS)

        data = dict(MarketplaceId=self.marketplace_id, IdType=id_type)
        data.update(self.enumerate_param('IdList.Id.', ids))
        tree = await self.make_request('GetMatchingProductForId', data)

        found = {}
        not_found = []
        for result in as_list(get_path(unwrap(tree), 'GetMatchingProductForIdResult')):
            attributes = result.get(ATTRIBUTES, {})
            product_id = attributes.get('Id')
            if attributes.get('status') != 'Success':
                not_found.append(product_id)
                continue
            item = get_path(result, 'Products', 'Product', 0, 'AttributeSets', 'ItemAttributes', 0, default={})
            product = dict((k, v) for k, v in item.items() if isinstance(v, str))
            image = get_path(item, 'SmallImage', 'URL')
            if image:
                product['medium_image'] = image
                product['small_image'] = image.replace('._SL75_', '._SL50_')
                product['large_image'] = image.replace('._SL75_', '')
            found[product_id] = product

        return {'found': found, 'not_found': not_found}


class Feeds(MWS):
    """ Amazon MWS Feeds API """

    async def submit_feed(self, feed_type, feed, debug=False, purge=False, content_type=None):
        """
        Uploads a feed for processing by Amazon MWS.

        :param feed_type: ie. ``_POST_INVENTORY_AVAILABILITY_DATA_``
        :param feed: a :class:`FeedEnvelope`, which is encoded with this account as
            merchant, or the feed content as str / bytes, sent unmodified
        :param debug: return the document instead of sending it
        :param purge: PurgeAndReplace
        :param content_type: overrides the XML Content-Type, ie. for flat files
        :return: the FeedSubmissionInfo of the new submission
        """
        if isinstance(feed, FeedEnvelope):
            content = encode_feed(feed, self.account_id)
        elif isinstance(feed, str):
            content = feed.encode(FEED_ENCODING)
        else:
            content = feed

        if debug:
            return content

        data = dict(FeedType=feed_type,
                    PurgeAndReplace='true' if purge else 'false',
                    Merchant=self.account_id)
        if feed_type == '_POST_PRODUCT_PRICING_DATA_':
            data['MarketplaceIdList.Id.1'] = self.marketplace_id

        extra_headers = {'Content-Type': content_type} if content_type else None
        log.debug('Submitting %s feed of %d bytes', feed_type, len(content))
        tree = await self.make_request('SubmitFeed', data, body=content, extra_headers=extra_headers)
        info = as_list(get_path(self._result(tree, 'SubmitFeed'), 'FeedSubmissionInfo'))
        if not info:
            raise MalformedResponse('SubmitFeed response has no FeedSubmissionInfo')
        return info[0]

    async def update_stock(self, quantities, debug=False):
        """Update stock quantities.

        :param quantities: mapping of SKU to quantity
        """
        envelope = FeedEnvelope('Inventory')
        for sku, quantity in quantities.items():
            envelope.add({'SKU': sku, 'Quantity': int(quantity)})
        return await self.submit_feed('_POST_INVENTORY_AVAILABILITY_DATA_', envelope, debug=debug)

    async def update_price(self, prices, currency='DEFAULT', debug=False):
        """Update standard prices.

        :param prices: mapping of SKU to price, formatted as an XSD decimal
        """
        envelope = FeedEnvelope('Price')
        for sku, price in prices.items():
            envelope.add(FeedMessage({
                'SKU': sku,
                'StandardPrice': {ATTRIBUTES: {'currency': currency}, '#text': str(price)},
            }, operation_type=None))
        return await self.submit_feed('_POST_PRODUCT_PRICING_DATA_', envelope, debug=debug)

    async def get_feed_submission_list(self, feed_ids=(), feed_types=(), processing_statuses=(),
                                       from_date=None, to_date=None, max_count=None):
        data = dict(MaxCount=max_count,
                    SubmittedFromDate=format_date(from_date),
                    SubmittedToDate=format_date(to_date))
        data.update(self.enumerate_param('FeedSubmissionIdList.Id.', feed_ids))
        data.update(self.enumerate_param('FeedTypeList.Type.', feed_types))
        data.update(self.enumerate_param('FeedProcessingStatusList.Status.', processing_statuses))
        tree = await self.make_request('GetFeedSubmissionList', data)
        return as_list(get_path(self._result(tree, 'GetFeedSubmissionList'), 'FeedSubmissionInfo'))

    async def get_feed_submission_result(self, feed_id):
        """Returns the processing report of a feed.

        Falls back to the whole document when it holds no ProcessingReport,
        and to the text when Amazon did not answer with XML.
        """
        result = await self.make_request('GetFeedSubmissionResult', dict(FeedSubmissionId=feed_id))
        if isinstance(result, str):
            return result
        envelope = unwrap(result)
        report = get_path(envelope, 'Message', 0, 'ProcessingReport')
        return report if report is not None else envelope


class Reports(MWS):
    """ Amazon MWS Reports API

    A report goes through ``request_report``, then ``get_report_request_status``
    until the request is done, then ``fetch_report``. Polling is left to the
    caller; ``get_report`` does one status check and one fetch.
    """

    async def request_report(self, report_type, start_date=None, end_date=None):
        """Creates a report request.

        :param report_type: ie. ``_GET_MERCHANT_LISTINGS_DATA_``
        :param start_date: datetime
        :param end_date: datetime
        :return: the ReportRequestId
        """
        data = dict(ReportType=report_type)
        for name, value in (('StartDate', start_date), ('EndDate', end_date)):
            if value is not None:
                if not isinstance(value, datetime):
                    raise TypeError('%s should be a datetime object' % name)
                data[name] = get_timestamp(value)

        tree = await self.make_request('RequestReport', data)
        request_id = get_path(self._result(tree, 'RequestReport'), 'ReportRequestInfo', 0, 'ReportRequestId')
        if not request_id:
            raise ReportRequestRejected('Error trying to request report %s' % report_type)
        return request_id

    async def get_report_request_status(self, request_id):
        """Processing status of a report request.

        :return: a :class:`ReportStatus`, or ``NOT_FOUND`` when Amazon has no
            record of the request
        """
        tree = await self.make_request('GetReportRequestList', {'ReportRequestIdList.Id.1': request_id})
        infos = as_list(get_path(self._result(tree, 'GetReportRequestList'), 'ReportRequestInfo'))
        if not infos:
            log.debug('Report request %s not found', request_id)
            return NOT_FOUND
        status = ReportStatus.from_info(infos[0])
        log.debug('Report request %s is %s', request_id, status.processing_status)
        return status

    async def fetch_report(self, report_id, encoding='utf-8'):
        """Download a generated report and parse it into rows.

        :param report_id: the GeneratedReportId, not the request id
        :param encoding: of the report content
        """
        content = await self.make_request('GetReport', dict(ReportId=report_id), raw=True)
        try:
            text = content.decode(encoding)
        except UnicodeDecodeError as e:
            error = MalformedReport('Report %s is not valid %s: %s' % (report_id, encoding, e))
            error.response = content
            raise error from e
        return parse_report(text)

    async def get_report(self, request_id, encoding='utf-8'):
        """Get a report's content.

        :return: the rows, ``[]`` when the report was done without data, or
            ``NOT_READY`` when it is not done (yet)
        """
        status = await self.get_report_request_status(request_id)
        if status is NOT_FOUND:
            return NOT_READY
        if status.has_no_data:
            return []
        if status.is_done:
            if not status.generated_report_id:
                raise MalformedResponse('Report request %s is done but has no GeneratedReportId' % request_id)
            return await self.fetch_report(status.generated_report_id, encoding)
        return NOT_READY

    async def get_report_list(self, report_types=()):
        """Returns the reports that were created in the previous 90 days."""
        data = self.enumerate_param('ReportTypeList.Type.', report_types)
        tree = await self.make_request('GetReportList', data)
        return as_list(get_path(self._result(tree, 'GetReportList'), 'ReportInfo'))


class Sellers(MWS):
    """ Amazon MWS Sellers API """

    async def list_marketplace_participations(self):
        """
            Returns a list of marketplaces a seller can participate in and
            a list of participations that include seller-specific information in that marketplace.
        """
        tree = await self.make_request('ListMarketplaceParticipations')
        result = self._result(tree, 'ListMarketplaceParticipations')
        return result if result is not None else unwrap(tree)


class Recommendations(MWS):
    """ Amazon MWS Recommendations API """

    async def list_recommendations(self, category=None):
        """
        Returns your active recommendations for a specific category or for all categories.
        :param category: Inventory, Selection, Pricing, Fulfillment, ListingQuality,
            GlobalSelling or Advertising
        """
        data = dict(MarketplaceId=self.marketplace_id, RecommendationCategory=category)
        tree = await self.make_request('ListRecommendations', data)
        return self._result(tree, 'ListRecommendations')


class MWSClient(Orders, Products, Feeds, Reports, Sellers, Recommendations):
    """Every API section on a single client."""
