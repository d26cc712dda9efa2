"""Asynchronous client for Amazon Marketplace Web Service."""
from ._version import __version__
from .endpoints import EndpointDescriptor, resolve
from .errors import (ConfigurationError, MalformedReport, MalformedResponse, MWSError, RemoteServiceError,
                     ReportRequestRejected, TransportFailure, UnknownOperation)
from .feeds import FeedEnvelope, FeedMessage
from .mws import (MWS, Feeds, MWSClient, Orders, Products, Recommendations, Reports, Sellers,
                  SignedRequest)
from .reports import NOT_FOUND, NOT_READY, ReportProcessingStatus, ReportStatus, parse_report
from .xmlparse import normalize

__all__ = [
    'ConfigurationError',
    'EndpointDescriptor',
    'FeedEnvelope',
    'FeedMessage',
    'Feeds',
    'MWS',
    'MWSClient',
    'MWSError',
    'MalformedReport',
    'MalformedResponse',
    'NOT_FOUND',
    'NOT_READY',
    'Orders',
    'Products',
    'Recommendations',
    'RemoteServiceError',
    'ReportProcessingStatus',
    'ReportRequestRejected',
    'ReportStatus',
    'Reports',
    'Sellers',
    'SignedRequest',
    'TransportFailure',
    'UnknownOperation',
    '__version__',
    'normalize',
    'parse_report',
    'resolve',
]
