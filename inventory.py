# inventory.py
"""
Stock views built from the inventory collection.

monthly_report is the periodic store report for expendable items (opening,
received, issued and closing per item, with how much to order against the
approved stock level). expired_items feeds the disposal form, and
clean_item_edit validates the storekeeper's corrections to an inventory row.
"""

import re

from calculators import to_number
from fiscal import date_sort_key, parse_date, normalize_date
from ledger import period_movements

EXPENDABLE = 'Expendable'
ITEM_TYPES = [EXPENDABLE, 'Non-Expendable']

RESTOCK_PURPOSE = 'मासिक प्रतिवेदन अनुसार स्टक पूर्ति गर्न'
EXPIRED_REMARK = 'Expired (म्याद सकिएको)'

# Fields the edit form may change; the rest of the row is kept as it is
TEXT_FIELDS = [
    'item_name', 'unique_code', 'sanket_no', 'ledger_page_no', 'item_type', 'unit', 'specification',
    'batch_no', 'expiry_date_bs', 'store_id', 'remarks',
]
NUMBER_FIELDS = ['current_quantity', 'rate', 'approved_stock_level', 'emergency_order_point']

_DIGITS = re.compile(r'\d+')


def page_number(value):
    """'P-12' -> 12; ledger pages without a number sort first."""
    match = _DIGITS.search(str(value or ''))
    return int(match.group()) if match else 0


def _in_page_range(item, from_page, to_page):
    page = page_number(item.get('ledger_page_no'))
    if from_page is not None and page < from_page:
        return False
    if to_page is not None and page > to_page:
        return False
    return True


def _page_bound(value):
    text = str(value or '').strip()
    return int(text) if text.isdigit() else None


def monthly_report(inventory_items, fiscal_year, dakhila_records, issue_records, return_records,
                   from_date='', to_date='', from_page='', to_page=''):
    """
    One row per expendable item (grouped by name and unit, quantities summed
    across stores). Received and issued come from the ledger within the date
    range; the closing balance is the quantity in stock now, and the opening
    balance is worked back from it.
    """
    from_page, to_page = _page_bound(from_page), _page_bound(to_page)
    grouped = {}
    for item in inventory_items:
        if item.get('fiscal_year') != fiscal_year or item.get('item_type') != EXPENDABLE:
            continue
        if not _in_page_range(item, from_page, to_page):
            continue
        key = (str(item.get('item_name') or '').strip().lower(), str(item.get('unit') or '').strip().lower())
        row = grouped.get(key)
        if row is None:
            grouped[key] = dict(item, current_quantity=to_number(item.get('current_quantity')),
                                approved_stock_level=to_number(item.get('approved_stock_level')),
                                emergency_order_point=to_number(item.get('emergency_order_point')))
            continue
        row['current_quantity'] += to_number(item.get('current_quantity'))
        row['approved_stock_level'] = max(row['approved_stock_level'], to_number(item.get('approved_stock_level')))
        row['emergency_order_point'] = max(row['emergency_order_point'], to_number(item.get('emergency_order_point')))

    rows = []
    for item in grouped.values():
        received, issued = period_movements(item.get('item_name'), fiscal_year, from_date, to_date,
                                            dakhila_records, issue_records, return_records)
        balance = item['current_quantity']
        previous = max(balance - received + issued, 0.0)
        asl = item['approved_stock_level']
        rows.append({
            'item_name': item.get('item_name', ''),
            'ledger_page_no': item.get('ledger_page_no', ''),
            'sanket_no': item.get('sanket_no') or item.get('unique_code') or '',
            'unit': item.get('unit', ''),
            'specification': item.get('specification', ''),
            'previous_balance': previous,
            'received': received,
            'issued': issued,
            'total': previous + received,
            'balance': balance,
            'approved_stock_level': asl,
            'emergency_order_point': item['emergency_order_point'],
            'quantity_to_order': max(asl - balance, 0.0) if asl > 0 else 0.0,
            'remarks': item.get('remarks', ''),
        })
    rows.sort(key=lambda r: (page_number(r['ledger_page_no']), r['item_name'].lower()))
    return rows


def restock_lines(rows):
    """Demand form lines for every report row that needs ordering."""
    return [
        {'name': r['item_name'], 'specification': r['specification'], 'unit': r['unit'],
         'quantity': r['quantity_to_order'], 'remarks': ''}
        for r in rows if r['quantity_to_order'] > 0
    ]


def expired_items(inventory_items, as_of, store_id=''):
    """Items still in stock whose BS expiry date is before `as_of`."""
    if parse_date(as_of) is None:
        raise ValueError(f'Invalid date "{as_of}". Use YYYY/MM/DD.')
    expired = []
    for item in inventory_items:
        if store_id and item.get('store_id') != store_id:
            continue
        if parse_date(item.get('expiry_date_bs')) is None:
            continue
        if to_number(item.get('current_quantity')) <= 0:
            continue
        if date_sort_key(item['expiry_date_bs']) < date_sort_key(as_of):
            expired.append(item)
    expired.sort(key=lambda i: date_sort_key(i.get('expiry_date_bs')))
    return expired


def disposal_lines(items):
    """Disposal form lines for expired stock: the whole remaining quantity goes."""
    return [
        {
            'name': item.get('item_name', ''),
            'code_no': item.get('unique_code') or item.get('sanket_no') or '',
            'specification': item.get('specification', ''),
            'unit': item.get('unit', ''),
            'quantity': to_number(item.get('current_quantity')),
            'rate': to_number(item.get('rate')),
            'remarks': f"{EXPIRED_REMARK}. Batch: {item.get('batch_no') or '-'}, Exp: {item.get('expiry_date_bs') or '-'}",
        }
        for item in items
    ]


def clean_item_edit(values):
    """
    Validate posted inventory fields and return the changes to store.
    Raises ValueError with a message for the form.
    """
    changes = {field: str(values.get(field) or '').strip() for field in TEXT_FIELDS if field in values}
    if not changes.get('item_name'):
        raise ValueError('सामानको नाम आवश्यक छ (Item name is required)')
    if changes.get('item_type') not in ITEM_TYPES:
        changes['item_type'] = EXPENDABLE
    if changes.get('expiry_date_bs'):
        if parse_date(changes['expiry_date_bs']) is None:
            raise ValueError(f"Invalid expiry date \"{changes['expiry_date_bs']}\". Use YYYY/MM/DD.")
        changes['expiry_date_bs'] = normalize_date(changes['expiry_date_bs'])
    for field in NUMBER_FIELDS:
        if field not in values:
            continue
        number = to_number(values.get(field))
        if number < 0:
            raise ValueError(f'{field.replace("_", " ").capitalize()} cannot be negative.')
        changes[field] = number
    return changes
