"""Fiscal year and date helpers"""
import pytest

from fiscal import (
    check_date_order, date_sort_key, fiscal_year_bounds, is_within_fiscal_year, next_serial,
    normalize_date, previous_document, serial_number, validate_document_date,
)


def test_normalize_date():
    assert normalize_date('2081-1-5') == '2081/01/05'
    assert normalize_date(' 2081.04.15 ') == '2081/04/15'
    assert normalize_date('next week') == 'next week'
    assert normalize_date(None) == ''


def test_date_sort_key_orders_mixed_formats():
    dates = ['2081/10/01', '2081-2-15', 'n/a', '2081.02.03']
    assert sorted(dates, key=date_sort_key) == ['2081.02.03', '2081-2-15', '2081/10/01', 'n/a']


def test_fiscal_year_range():
    assert fiscal_year_bounds('2081/082') == ('2081/04/01', '2082/03/32')
    assert is_within_fiscal_year('2081/04/01', '2081/082')
    assert is_within_fiscal_year('2082-3-32', '2081/082')
    assert not is_within_fiscal_year('2081/03/32', '2081/082')
    assert not is_within_fiscal_year('2082/04/01', '2081/082')


def test_validate_document_date():
    validate_document_date('2081/05/01', '2081/082')
    with pytest.raises(ValueError):
        validate_document_date('', '2081/082')
    with pytest.raises(ValueError):
        validate_document_date('2081/13/01', '2081/082')
    with pytest.raises(ValueError):
        validate_document_date('2080/05/01', '2081/082')


def test_check_date_order():
    check_date_order('2081/05/02', '2081/05/01', '1', '2')
    check_date_order('2081/05/02', '', None, '1')
    with pytest.raises(ValueError):
        check_date_order('2081/04/30', '2081/05/01', '1', '2')


def test_serials():
    records = [
        {'fiscal_year': '2081/082', 'form_no': '3'},
        {'fiscal_year': '2081/082', 'form_no': 'D-081-007'},
        {'fiscal_year': '2080/081', 'form_no': '40'},
    ]
    assert serial_number('12') == 12
    assert serial_number('x') == 0
    assert next_serial(records, '2081/082', 'form_no') == '8'
    assert next_serial([], '2081/082', 'form_no') == '1'
    assert previous_document(records, '2081/082', 'form_no', '4')['form_no'] == '3'
    assert previous_document(records, '2081/082', 'form_no', '1') is None
