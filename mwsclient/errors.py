# -*- coding: utf-8 -*-
"""
Exceptions raised by the MWS client.

Every error derives from :class:`MWSError`, so callers that do not care
about the cause can catch a single type.
"""

__all__ = [
    'MWSError',
    'ConfigurationError',
    'UnknownOperation',
    'TransportFailure',
    'RemoteServiceError',
    'MalformedResponse',
    'MalformedReport',
    'ReportRequestRejected',
]


class MWSError(Exception):
    """
        Main MWS Exception class
    """
    # Allows quick access to the response object.
    # Do not rely on this attribute, always check if its not None.
    response = None


class ConfigurationError(MWSError):
    """Missing credential or unknown marketplace, raised at construction."""


class UnknownOperation(MWSError):
    """The requested operation is not in the endpoint registry."""


class TransportFailure(MWSError):
    """HTTP or network failure without a usable service error body."""

    def __init__(self, message, status=None):
        super(TransportFailure, self).__init__(message)
        self.status = status


class RemoteServiceError(MWSError):
    """
        The service answered with an ``ErrorResponse`` document.

        ``code`` holds the service error code (e.g. ``InvalidParameterValue``)
        so callers can decide whether a retry makes sense.
    """

    def __init__(self, message, code=None, status=None):
        super(RemoteServiceError, self).__init__(message)
        self.code = code
        self.status = status


class MalformedResponse(MWSError):
    """A success response whose payload could not be parsed."""


class MalformedReport(MalformedResponse):
    """Report content whose rows do not line up with the header row."""


class ReportRequestRejected(MWSError):
    """RequestReport answered without a ReportRequestId."""
