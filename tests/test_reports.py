import csv

import pytest

from mwsclient import NOT_FOUND, NOT_READY, MalformedReport, ReportProcessingStatus, ReportStatus, parse_report


def test_parse_report():
    assert parse_report('SKU\tQty\nABC\t5\n') == [{'SKU': 'ABC', 'Qty': '5'}]


def test_parse_report_crlf_and_blank_lines():
    content = 'sku\tprice\tquantity\r\nA-1\t9.99\t3\r\n\r\nB-2\t\t0\r\n'
    assert parse_report(content) == [
        {'sku': 'A-1', 'price': '9.99', 'quantity': '3'},
        {'sku': 'B-2', 'price': '', 'quantity': '0'},
    ]


def test_parse_report_keeps_quotes():
    rows = parse_report('title\tqty\n12" vinyl\t1\n')
    assert rows == [{'title': '12" vinyl', 'qty': '1'}]


def test_parse_report_header_only():
    assert parse_report('SKU\tQty\n') == []
    assert parse_report('') == []


@pytest.mark.parametrize('content', ['SKU\tQty\nABC\n', 'SKU\tQty\nABC\t5\textra\n'])
def test_row_length_mismatch(content):
    with pytest.raises(MalformedReport):
        parse_report(content)


def test_status_from_info():
    status = ReportStatus.from_info({
        'ReportRequestId': '2291326454',
        'ReportProcessingStatus': '_DONE_',
        'GeneratedReportId': '3538561173',
    })
    assert status.processing_status is ReportProcessingStatus.DONE
    assert status.is_done
    assert status.generated_report_id == '3538561173'
    assert status.processing_status.is_terminal


def test_status_unknown_value():
    status = ReportStatus.from_info({'ReportRequestId': '1', 'ReportProcessingStatus': '_SOMETHING_NEW_'})
    assert status.processing_status == '_SOMETHING_NEW_'
    assert not status.is_done
    assert status.generated_report_id is None


def test_sentinels_are_distinct():
    assert NOT_READY != []
    assert NOT_READY is not NOT_FOUND
    assert repr(NOT_READY) == 'NOT_READY'
    assert not ReportProcessingStatus.IN_PROGRESS.is_terminal


def test_duplicate_header_column():
    with pytest.raises(MalformedReport, match='sku'):
        parse_report('sku\tqty\tsku\nA\t1\tB\n')


def test_oversized_field():
    with pytest.raises(MalformedReport):
        parse_report('sku\tdescription\nA\t%s\n' % ('x' * (csv.field_size_limit() + 1)))
