# ledger.py
"""
Ledger reconstruction.

build_ledger replays entry (Dakhila), return and issue records for one item in
date order and folds them into running balances (Jinshi Khata).
build_custody_ledger matches a person's non-expendable issues against their
approved returns (Sahayak Jinshi Khata).

Both are pure: they take record lists (a snapshot) and never touch the
database, so routes can recompute them on every request.
"""

from calculators import to_number
from fiscal import date_sort_key

OPENING = 'Opening'
INCOME = 'Income'
EXPENSE = 'Expense'

NON_EXPENDABLE = 'Non-Expendable'


def _clean(name):
    return str(name or '').strip().lower()


def _person(signature):
    if not isinstance(signature, dict):
        return ''
    return _clean(signature.get('name'))


def _issue_date(report):
    return report.get('issue_date') or report.get('request_date') or ''


def _ledger_transactions(item_name, fiscal_year, dakhila_records, issue_records, return_records):
    wanted = _clean(item_name)
    transactions = []

    for report in dakhila_records:
        if report.get('fiscal_year') != fiscal_year:
            continue
        for item in report.get('items') or []:
            if _clean(item.get('name')) != wanted:
                continue
            transactions.append({
                'id': f"DAKHILA-{report.get('id')}-{item.get('id')}",
                'date': report.get('date', ''),
                'ref_no': report.get('dakhila_no', ''),
                'type': OPENING if item.get('source') == OPENING else INCOME,
                'qty': to_number(item.get('quantity')),
                'rate': to_number(item.get('rate')),
                'remarks': item.get('remarks') or report.get('order_no') or '',
                'specification': item.get('specification', ''),
                'source': item.get('source', ''),
            })

    for entry in return_records:
        if entry.get('fiscal_year') != fiscal_year:
            continue
        if entry.get('status') not in ('Approved', 'Verified'):
            continue
        returned_by = (entry.get('returned_by') or {}).get('name', '')
        for item in entry.get('items') or []:
            if _clean(item.get('name')) != wanted:
                continue
            transactions.append({
                'id': f"RETURN-{entry.get('id')}-{item.get('id')}",
                'date': entry.get('date', ''),
                'ref_no': entry.get('form_no', ''),
                'type': INCOME,
                'qty': to_number(item.get('quantity')),
                'rate': to_number(item.get('rate')),
                'remarks': f'Returned by {returned_by}',
                'specification': item.get('specification', ''),
                'source': 'Return',
            })

    for report in issue_records:
        if report.get('fiscal_year') != fiscal_year:
            continue
        if report.get('status') != 'Issued':
            continue
        for item in report.get('items') or []:
            if _clean(item.get('name')) != wanted:
                continue
            transactions.append({
                'id': f"ISSUE-{report.get('id')}-{item.get('id')}",
                'date': _issue_date(report),
                'ref_no': report.get('issue_no') or report.get('mag_form_no') or '',
                'type': EXPENSE,
                'qty': to_number(item.get('quantity')),
                'rate': to_number(item.get('rate')),
                'remarks': (report.get('demand_by') or {}).get('name', ''),
                'specification': item.get('specification', ''),
                'source': '',
            })

    # sorted() is stable, so same-day rows keep insertion order
    return sorted(transactions, key=lambda txn: date_sort_key(txn['date']))


def build_ledger(item_name, fiscal_year, dakhila_records, issue_records, return_records):
    """Running-balance rows for one item in one fiscal year."""
    if not _clean(item_name):
        return []

    transactions = _ledger_transactions(item_name, fiscal_year, dakhila_records, issue_records, return_records)

    running_qty = 0.0
    running_value = 0.0
    rows = []
    for txn in transactions:
        txn_total = txn['qty'] * txn['rate']
        if txn['type'] == EXPENSE:
            running_qty -= txn['qty']
            running_value -= txn_total
        else:
            running_qty += txn['qty']
            running_value += txn_total

        # Balances never go negative, even when the records say otherwise
        running_qty = max(running_qty, 0.0)
        running_value = max(running_value, 0.0)

        row = dict(txn)
        row['total'] = txn_total
        row['bal_qty'] = running_qty
        row['bal_rate'] = running_value / running_qty if running_qty > 0 else 0.0
        row['bal_total'] = running_value
        rows.append(row)
    return rows


def period_movements(item_name, fiscal_year, from_date, to_date, dakhila_records, issue_records, return_records):
    """(received, issued) quantities for one item between two BS dates, both ends included."""
    received = issued = 0.0
    for txn in _ledger_transactions(item_name, fiscal_year, dakhila_records, issue_records, return_records):
        key = date_sort_key(txn['date'])
        if from_date and key < date_sort_key(from_date):
            continue
        if to_date and key > date_sort_key(to_date):
            continue
        if txn['type'] == EXPENSE:
            issued += txn['qty']
        else:
            received += txn['qty']
    return received, issued


def ledger_summary(rows):
    income = sum(r['qty'] for r in rows if r['type'] in (INCOME, OPENING))
    expense = sum(r['qty'] for r in rows if r['type'] == EXPENSE)
    closing = rows[-1] if rows else None
    return {
        'income_qty': income,
        'expense_qty': expense,
        'closing_qty': closing['bal_qty'] if closing else 0.0,
        'closing_rate': closing['bal_rate'] if closing else 0.0,
        'closing_total': closing['bal_total'] if closing else 0.0,
    }


def _find_inventory_item(inventory_items, name):
    wanted = _clean(name)
    for inv in inventory_items:
        if _clean(inv.get('item_name')) == wanted:
            return inv
    return None


def _return_pool(person, return_records):
    entries = [
        r for r in return_records
        if _person(r.get('returned_by')) == person and r.get('status') == 'Approved'
    ]
    entries = sorted(entries, key=lambda r: date_sort_key(r.get('date')))
    pool = []
    for entry in entries:
        receiver = (entry.get('approved_by') or {}).get('name') or 'Store'
        for item in entry.get('items') or []:
            quantity = to_number(item.get('quantity'))
            pool.append({
                'name': _clean(item.get('name')),
                'code_no': str(item.get('code_no') or '').strip(),
                'remaining': quantity,
                'return_date': entry.get('date', ''),
                'receiver': receiver,
                'form_no': entry.get('form_no', ''),
            })
    return pool


def _consume(pool, issued_qty, matched, accepts):
    """Take from pool entries accepted by `accepts` until issued_qty is covered."""
    last = None
    for entry in pool:
        if matched >= issued_qty:
            break
        if entry['remaining'] <= 0 or not accepts(entry):
            continue
        take = min(entry['remaining'], issued_qty - matched)
        entry['remaining'] -= take
        matched += take
        last = entry
    return matched, last


def build_custody_ledger(person_name, issue_records, return_records, inventory_items):
    """
    Non-expendable items issued to a person and how much of each came back.

    Returns (rows, cleared). Matching is greedy and chronological: each issue
    line, oldest first, consumes from the person's approved returns first by
    exact asset code, then by item name. Nothing is reassigned afterwards.
    """
    person = _clean(person_name)
    if not person:
        return [], False

    pool = _return_pool(person, return_records)
    reports = sorted(issue_records, key=lambda r: date_sort_key(_issue_date(r)))

    rows = []
    for report in reports:
        if str(report.get('status') or '').strip() != 'Issued':
            continue
        if _person(report.get('demand_by')) != person:
            continue
        for item in report.get('items') or []:
            inv = _find_inventory_item(inventory_items, item.get('name'))
            report_non_expendable = report.get('item_type') == NON_EXPENDABLE
            inventory_non_expendable = inv is not None and inv.get('item_type') == NON_EXPENDABLE
            if not (report_non_expendable or inventory_non_expendable):
                continue

            inv = inv or {}
            issued_qty = to_number(item.get('quantity'))
            rate = to_number(item.get('rate')) or to_number(inv.get('rate'))
            name = _clean(item.get('name'))
            code = str(item.get('code_no') or inv.get('unique_code') or '').strip()

            matched = 0.0
            last = None
            if code:
                matched, last = _consume(
                    pool, issued_qty, matched,
                    lambda entry: entry['code_no'] == code and entry['name'] == name,
                )
            if matched < issued_qty:
                matched, fallback_last = _consume(
                    pool, issued_qty, matched,
                    lambda entry: entry['name'] == name,
                )
                last = fallback_last or last

            rows.append({
                'id': f"ISSUE-{report.get('id')}-{item.get('id')}",
                'date': _issue_date(report),
                'mag_form_no': str(report.get('mag_form_no') or ''),
                'sanket_no': item.get('code_no') or inv.get('sanket_no') or '',
                'name': item.get('name', ''),
                'specification': item.get('specification') or inv.get('specification') or '',
                'id_no': code,
                'source': inv.get('receipt_source') or 'खरिद',
                'unit': item.get('unit', ''),
                'quantity': issued_qty,
                'total_cost': rate * issued_qty,
                'return_quantity': matched,
                'return_date': last['return_date'] if last else '',
                'return_receiver': last['receiver'] if last else '',
            })

    cleared = all(row['return_quantity'] == row['quantity'] for row in rows)
    return rows, cleared


def custody_people(users, issue_records):
    """Names offered in the custody ledger picker: staff plus anyone who demanded items."""
    names = {u.get('full_name') for u in users if u.get('full_name')}
    names.update(
        (r.get('demand_by') or {}).get('name')
        for r in issue_records
        if (r.get('demand_by') or {}).get('name')
    )
    return sorted(names)
