# -*- coding: utf-8 -*-
"""
Report status records and flat-file report parsing.

Reports are produced asynchronously: RequestReport returns a request id,
GetReportRequestList tells how far the request got and, once it is
``_DONE_``, which report id to fetch with GetReport.
"""
import csv
import io
from collections import namedtuple
from enum import Enum

from .errors import MalformedReport

__all__ = [
    'NOT_FOUND',
    'NOT_READY',
    'ReportProcessingStatus',
    'ReportStatus',
    'parse_report',
]


class ReportProcessingStatus(Enum):
    SUBMITTED = '_SUBMITTED_'
    IN_PROGRESS = '_IN_PROGRESS_'
    CANCELLED = '_CANCELLED_'
    DONE = '_DONE_'
    DONE_NO_DATA = '_DONE_NO_DATA_'

    @property
    def is_terminal(self):
        return self in (ReportProcessingStatus.DONE,
                        ReportProcessingStatus.DONE_NO_DATA,
                        ReportProcessingStatus.CANCELLED)


class _Sentinel(object):

    def __init__(self, name):
        self._name = name

    def __repr__(self):
        return self._name


# The service has no record of the report request (yet).
NOT_FOUND = _Sentinel('NOT_FOUND')

# The report exists but is not done; poll again later.
NOT_READY = _Sentinel('NOT_READY')


class ReportStatus(namedtuple('ReportStatus', 'request_id processing_status generated_report_id info')):
    """State of one report request.

    ``processing_status`` is a :class:`ReportProcessingStatus` when the
    service sent a known value and the raw string otherwise. ``info`` holds
    the whole normalized ``ReportRequestInfo`` element.
    """
    __slots__ = ()

    @classmethod
    def from_info(cls, info):
        raw_status = info.get('ReportProcessingStatus', '')
        try:
            status = ReportProcessingStatus(raw_status)
        except ValueError:
            status = raw_status
        return cls(
            request_id=info.get('ReportRequestId'),
            processing_status=status,
            generated_report_id=info.get('GeneratedReportId') or None,
            info=info,
        )

    @property
    def is_done(self):
        return self.processing_status is ReportProcessingStatus.DONE

    @property
    def has_no_data(self):
        return self.processing_status is ReportProcessingStatus.DONE_NO_DATA


def parse_report(content):
    """Parse a tab-delimited report into a list of dicts keyed by the header row.

    :param content: report text
    :raises MalformedReport: when a row has more or fewer fields than the header,
        the header repeats a column or a line cannot be read
    """
    reader = csv.reader(io.StringIO(content), delimiter='\t', quoting=csv.QUOTE_NONE)
    try:
        rows = [row for row in reader if row]
    except csv.Error as e:
        raise MalformedReport('Report line %d could not be read: %s' % (reader.line_num, e)) from e
    if not rows:
        return []

    headers = rows[0]
    duplicates = sorted(set(h for h in headers if headers.count(h) > 1))
    if duplicates:
        raise MalformedReport('Report header repeats %s' % ', '.join(duplicates))
    result = []
    for line, row in enumerate(rows[1:], start=2):
        if len(row) != len(headers):
            raise MalformedReport(
                'Report row %d has %d fields, header has %d' % (line, len(row), len(headers)))
        result.append(dict(zip(headers, row)))
    return result
