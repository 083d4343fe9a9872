"""Item ledger (Jinshi Khata) reconstruction"""
import pytest

from ledger import EXPENSE, INCOME, OPENING, build_ledger, ledger_summary

FY = '2081/082'


def dakhila(report_id, date, name, qty, rate, source='खरिद', fiscal_year=FY):
    return {
        'id': report_id, 'fiscal_year': fiscal_year, 'dakhila_no': report_id, 'date': date,
        'items': [{'id': 1, 'name': name, 'quantity': qty, 'rate': rate, 'source': source}],
    }


def issue(report_id, date, name, qty, rate, status='Issued', fiscal_year=FY):
    return {
        'id': report_id, 'fiscal_year': fiscal_year, 'issue_no': report_id, 'issue_date': date,
        'status': status, 'demand_by': {'name': 'Hari Thapa'},
        'items': [{'id': 1, 'name': name, 'quantity': qty, 'rate': rate}],
    }


def returned(entry_id, date, name, qty, rate, status='Approved'):
    return {
        'id': entry_id, 'fiscal_year': FY, 'form_no': entry_id, 'date': date, 'status': status,
        'returned_by': {'name': 'Hari Thapa'},
        'items': [{'id': 1, 'name': name, 'quantity': qty, 'rate': rate}],
    }


def test_single_opening_entry():
    rows = build_ledger('Gloves', FY, [dakhila('1', '2081/04/01', 'Gloves', 10, 5, source='Opening')], [], [])
    assert len(rows) == 1
    assert rows[0]['type'] == OPENING
    assert rows[0]['bal_qty'] == 10
    assert rows[0]['bal_rate'] == 5
    assert rows[0]['bal_total'] == 50


def test_paracetamol_scenario():
    rows = build_ledger(
        'Paracetamol', FY,
        [dakhila('1', '2081/01/05', 'Paracetamol', 100, 2.5)],
        [issue('1', '2081/02/01', 'Paracetamol', 40, 2.5)],
        [],
    )
    assert len(rows) == 2
    assert [r['type'] for r in rows] == [INCOME, EXPENSE]
    assert rows[1]['bal_qty'] == 60
    assert rows[1]['bal_rate'] == pytest.approx(2.5)
    assert '%.2f' % rows[1]['bal_total'] == '150.00'


def test_name_match_ignores_case_and_spaces():
    rows = build_ledger('  paracetamol ', FY, [dakhila('1', '2081/04/05', 'PARACETAMOL', 5, 1)], [], [])
    assert len(rows) == 1


def test_balance_is_clamped_at_zero():
    rows = build_ledger(
        'Mask', FY,
        [dakhila('1', '2081/04/05', 'Mask', 5, 10)],
        [issue('1', '2081/04/06', 'Mask', 8, 10), issue('2', '2081/04/07', 'Mask', 1, 10)],
        [],
    )
    assert [r['bal_qty'] for r in rows] == [5, 0, 0]
    assert all(r['bal_total'] >= 0 for r in rows)
    assert rows[-1]['bal_rate'] == 0


def test_mixed_date_formats_sort_chronologically():
    rows = build_ledger(
        'Mask', FY,
        [dakhila('1', '2081-4-5', 'Mask', 10, 1), dakhila('2', '2081/04/03', 'Mask', 10, 1)],
        [issue('1', '2081.04.04', 'Mask', 3, 1)],
        [],
    )
    assert [r['ref_no'] for r in rows] == ['2', '1', '1']
    assert [r['type'] for r in rows] == [INCOME, EXPENSE, INCOME]


def test_unparseable_dates_sort_last_in_input_order():
    rows = build_ledger(
        'Mask', FY,
        [dakhila('a', 'unknown', 'Mask', 1, 1), dakhila('b', '', 'Mask', 1, 1), dakhila('c', '2081/05/01', 'Mask', 1, 1)],
        [],
        [],
    )
    assert [r['ref_no'] for r in rows] == ['c', 'a', 'b']


def test_only_issued_reports_and_approved_returns_count():
    rows = build_ledger(
        'Mask', FY,
        [dakhila('1', '2081/04/01', 'Mask', 10, 2)],
        [issue('1', '2081/04/02', 'Mask', 4, 2, status='Pending Approval')],
        [returned('1', '2081/04/03', 'Mask', 2, 2), returned('2', '2081/04/04', 'Mask', 5, 2, status='Pending')],
    )
    assert len(rows) == 2
    assert rows[1]['remarks'] == 'Returned by Hari Thapa'
    assert rows[1]['source'] == 'Return'
    assert rows[1]['bal_qty'] == 12


def test_other_fiscal_years_are_ignored():
    rows = build_ledger('Mask', FY, [dakhila('1', '2080/05/01', 'Mask', 10, 2, fiscal_year='2080/081')], [], [])
    assert rows == []


def test_blank_or_unknown_item_gives_empty_ledger():
    records = [dakhila('1', '2081/04/01', 'Mask', 10, 2)]
    assert build_ledger('', FY, records, [], []) == []
    assert build_ledger('Syringe', FY, records, [], []) == []


def test_malformed_numbers_count_as_zero():
    report = dakhila('1', '2081/04/01', 'Mask', 'ten', None)
    rows = build_ledger('Mask', FY, [report], [], [])
    assert rows[0]['qty'] == 0
    assert rows[0]['bal_total'] == 0


def test_build_ledger_is_idempotent():
    args = (
        'Mask', FY,
        [dakhila('1', '2081/04/01', 'Mask', 10, 2)],
        [issue('1', '2081/04/02', 'Mask', 4, 2)],
        [returned('1', '2081/04/03', 'Mask', 1, 2)],
    )
    assert build_ledger(*args) == build_ledger(*args)


def test_summary():
    rows = build_ledger(
        'Mask', FY,
        [dakhila('1', '2081/04/01', 'Mask', 10, 2)],
        [issue('1', '2081/04/02', 'Mask', 4, 2)],
        [],
    )
    summary = ledger_summary(rows)
    assert summary['income_qty'] == 10
    assert summary['expense_qty'] == 4
    assert summary['closing_qty'] == 6
    assert summary['closing_total'] == 12
    assert ledger_summary([])['closing_qty'] == 0
