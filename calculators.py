# calculators.py
"""
Line-item arithmetic for the printable forms.

Every form recomputes its derived columns from quantity and rate whenever a
line is saved. Two tax patterns exist and are kept per form: an absolute VAT
amount added to the total (Dakhila, Jinshi Firta) and a tax percentage applied
to the total (stock entry requests). Internal arithmetic is plain float;
rounding happens only at display time through format_amount.
"""


def to_number(value):
    """Parse with fallback: anything non-numeric becomes 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip().replace(',', ''))
    except ValueError:
        return 0.0
    # NaN / inf from user input are treated like garbage
    if number != number or number in (float('inf'), float('-inf')):
        return 0.0
    return number


def format_amount(value):
    return '%.2f' % to_number(value)


def format_quantity(value):
    number = to_number(value)
    return str(int(number)) if number.is_integer() else '%.2f' % number


def _line_total(item):
    return to_number(item.get('quantity')) * to_number(item.get('rate'))


def dakhila_line(item):
    updated = dict(item)
    updated['quantity'] = to_number(item.get('quantity'))
    updated['rate'] = to_number(item.get('rate'))
    updated['vat_amount'] = to_number(item.get('vat_amount'))
    updated['other_expenses'] = to_number(item.get('other_expenses'))
    updated['total_amount'] = _line_total(item)
    updated['grand_total'] = updated['total_amount'] + updated['vat_amount']
    updated['final_total'] = updated['grand_total'] + updated['other_expenses']
    return updated


def return_line(item):
    updated = dict(item)
    updated['quantity'] = to_number(item.get('quantity'))
    updated['rate'] = to_number(item.get('rate'))
    updated['vat_amount'] = to_number(item.get('vat_amount'))
    updated['total_amount'] = _line_total(item)
    updated['grand_total'] = updated['total_amount'] + updated['vat_amount']
    return updated


def priced_line(item):
    """Purchase order, issue report and disposal lines: total = quantity * rate."""
    updated = dict(item)
    updated['quantity'] = to_number(item.get('quantity'))
    updated['rate'] = to_number(item.get('rate'))
    updated['total_amount'] = _line_total(item)
    return updated


def quantity_line(item):
    """Demand form and maintenance lines carry no money columns."""
    updated = dict(item)
    updated['quantity'] = to_number(item.get('quantity'))
    return updated


def stock_request_line(item):
    """Tax is a percentage here, not an absolute amount."""
    updated = dict(item)
    quantity = to_number(item.get('current_quantity', item.get('quantity')))
    rate = to_number(item.get('rate'))
    tax = to_number(item.get('tax'))
    total = quantity * rate
    updated['current_quantity'] = quantity
    updated['rate'] = rate
    updated['tax'] = tax
    updated['total_amount'] = total
    updated['vat_amount'] = total * (tax / 100)
    updated['grand_total'] = total * (1 + tax / 100)
    return updated


LINE_CALCULATORS = {
    'dakhila': dakhila_line,
    'return': return_line,
    'purchase_order': priced_line,
    'issue_report': priced_line,
    'disposal': priced_line,
    'demand_form': quantity_line,
    'maintenance': quantity_line,
    'stock_entry': stock_request_line,
}

FOOTER_COLUMNS = {
    'dakhila': ('total_amount', 'vat_amount', 'grand_total', 'other_expenses', 'final_total'),
    'return': ('total_amount', 'vat_amount', 'grand_total'),
    'purchase_order': ('total_amount',),
    'issue_report': ('total_amount',),
    'disposal': ('total_amount',),
    'demand_form': ('quantity',),
    'maintenance': ('quantity',),
    'stock_entry': ('total_amount', 'vat_amount', 'grand_total'),
}


def recalculate(document_type, items):
    calculate = LINE_CALCULATORS[document_type]
    return [calculate(item) for item in items]


def footer_totals(items, columns):
    totals = {column: 0.0 for column in columns}
    for item in items:
        for column in columns:
            totals[column] += to_number(item.get(column))
    return totals


def document_totals(document_type, items):
    return footer_totals(items, FOOTER_COLUMNS[document_type])


def dakhila_items_from_request(request):
    """Map a stock entry request onto Dakhila lines (percentage tax, no other expenses)."""
    lines = []
    for index, item in enumerate(request.get('items') or [], start=1):
        priced = stock_request_line(item)
        lines.append({
            'id': index,
            'name': item.get('item_name', ''),
            'code_no': item.get('sanket_no') or item.get('unique_code') or '',
            'specification': item.get('specification', ''),
            'source': request.get('receipt_source', ''),
            'unit': item.get('unit', ''),
            'quantity': priced['current_quantity'],
            'rate': priced['rate'],
            'total_amount': priced['total_amount'],
            'vat_amount': priced['vat_amount'],
            'grand_total': priced['grand_total'],
            'other_expenses': 0.0,
            'final_total': priced['grand_total'],
            'remarks': item.get('remarks', ''),
        })
    return lines
