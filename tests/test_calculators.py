"""Form line arithmetic and footer totals"""
import pytest

from calculators import (
    dakhila_items_from_request, dakhila_line, document_totals, format_amount, format_quantity,
    recalculate, return_line, stock_request_line, to_number,
)


@pytest.mark.parametrize('value, expected', [
    ('12', 12.0), (' 3.5 ', 3.5), ('1,250', 1250.0), (7, 7.0),
    ('', 0.0), (None, 0.0), ('abc', 0.0), ('nan', 0.0), ('inf', 0.0), (True, 0.0),
])
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_purchase_order_footer():
    items = recalculate('purchase_order', [
        {'name': 'Chair', 'quantity': '10', 'rate': '50'},
        {'name': 'Table', 'quantity': '3', 'rate': '200'},
    ])
    assert [i['total_amount'] for i in items] == [500, 600]
    assert format_amount(document_totals('purchase_order', items)['total_amount']) == '1100.00'


def test_dakhila_line_adds_absolute_vat_and_other_expenses():
    line = dakhila_line({'quantity': 4, 'rate': 25, 'vat_amount': 13, 'other_expenses': 7})
    assert line['total_amount'] == 100
    assert line['grand_total'] == 113
    assert line['final_total'] == 120


def test_return_line():
    line = return_line({'quantity': '2', 'rate': '150', 'vat_amount': '39'})
    assert line['total_amount'] == 300
    assert line['grand_total'] == 339


def test_stock_request_line_uses_tax_percentage():
    line = stock_request_line({'current_quantity': 10, 'rate': 100, 'tax': 13})
    assert line['total_amount'] == 1000
    assert line['vat_amount'] == pytest.approx(130)
    assert line['grand_total'] == pytest.approx(1130)


def test_recalculate_does_not_mutate_input():
    item = {'quantity': '2', 'rate': '3'}
    recalculate('issue_report', [item])
    assert item == {'quantity': '2', 'rate': '3'}


def test_demand_form_footer_sums_quantity():
    items = recalculate('demand_form', [{'name': 'A', 'quantity': '2'}, {'name': 'B', 'quantity': 'x'}])
    assert document_totals('demand_form', items) == {'quantity': 2}


def test_dakhila_items_from_request():
    lines = dakhila_items_from_request({
        'receipt_source': 'खरिद',
        'items': [{'item_name': 'Syringe', 'sanket_no': 'S-1', 'current_quantity': '100', 'rate': '5', 'tax': '13', 'unit': 'pcs'}],
    })
    assert len(lines) == 1
    line = lines[0]
    assert line['name'] == 'Syringe'
    assert line['code_no'] == 'S-1'
    assert line['source'] == 'खरिद'
    assert line['total_amount'] == 500
    assert line['final_total'] == pytest.approx(565)
    assert line['other_expenses'] == 0


def test_formatting():
    assert format_amount('1100') == '1100.00'
    assert format_quantity(5.0) == '5'
    assert format_quantity('2.5') == '2.50'
