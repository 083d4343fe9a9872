# approvals.py
"""
Status transitions and the writes they drag along.

Every move goes through records.RecordStore.transition, a conditional update on
the current status, so only one of two racing approvers wins; the follow-up
writes (inventory, generated documents) run only for the winner. They are not
a multi-document transaction.
"""

import logging

import records
import workflow
from calculators import dakhila_items_from_request, priced_line, recalculate, stock_request_line, to_number
from fiscal import check_date_order, next_serial, normalize_date, previous_document, serial_number, validate_document_date
from inventory import EXPENDABLE, RESTOCK_PURPOSE

logger = logging.getLogger(__name__)

COLLECTIONS = {
    workflow.DEMAND_FORM: records.MAG_FORMS,
    workflow.PURCHASE_ORDER: records.PURCHASE_ORDERS,
    workflow.ISSUE_REPORT: records.ISSUE_REPORTS,
    workflow.RETURN: records.RETURN_ENTRIES,
    workflow.MAINTENANCE: records.MARMAT_ENTRIES,
    workflow.DISPOSAL: records.DISPOSAL_ENTRIES,
    workflow.STOCK_ENTRY: records.STOCK_REQUESTS,
    workflow.DAKHILA: records.DAKHILA_REPORTS,
}


def _clean(name):
    return str(name or '').strip().lower()


def _signature(name, designation='', date=''):
    return {'name': name or '', 'designation': designation or '', 'date': date or ''}


def advance(store, document_type, record_id, role, fields=None):
    """
    Move a document one step forward for `role`. Raises WorkflowError when the
    move is illegal or the record changed underneath us.
    """
    collection = COLLECTIONS[document_type]
    record = store.get(collection, record_id)
    if record is None:
        raise workflow.WorkflowError('Record not found.')
    current = record.get('status')
    target = workflow.next_status(document_type, current, role)

    changes = dict(fields or {})
    changes['status'] = target
    updated = store.transition(collection, record_id, current, changes)
    if updated is None:
        raise workflow.WorkflowError('This record was changed by someone else. Reload and try again.')
    logger.info('%s %s: %s -> %s by %s', document_type, record_id, current, target, role)

    if document_type == workflow.DEMAND_FORM and target == workflow.APPROVED:
        on_demand_form_approved(store, updated)
    elif document_type == workflow.ISSUE_REPORT and target == workflow.ISSUED:
        on_issue_report_issued(store, updated)
    return updated


def reject(store, document_type, record_id, role, reason):
    collection = COLLECTIONS[document_type]
    record = store.get(collection, record_id)
    if record is None:
        raise workflow.WorkflowError('Record not found.')
    current = record.get('status')
    target = workflow.check_rejection(document_type, current, role, reason)
    updated = store.transition(collection, record_id, current, {
        'status': target,
        'rejection_reason': reason.strip(),
        'approved_by': _signature(''),
    })
    if updated is None:
        raise workflow.WorkflowError('This record was changed by someone else. Reload and try again.')
    logger.info('%s %s rejected by %s', document_type, record_id, role)
    return updated


# --------------------------------------------------------------------------- #
# Demand form -> purchase order / issue report
# --------------------------------------------------------------------------- #
def _inventory_by_name(inventory, name, store_id=None):
    wanted = _clean(name)
    matches = [i for i in inventory if _clean(i.get('item_name')) == wanted]
    if store_id:
        in_store = [i for i in matches if i.get('store_id') == store_id]
        matches = in_store or matches
    return matches[0] if matches else None


def on_demand_form_approved(store, form):
    """The storekeeper's verification ('market', 'stock' or both) decides what gets raised."""
    decision = ((form.get('store_keeper') or {}).get('status') or '').lower()
    created = []
    base = {
        'mag_form_id': form['id'],
        'mag_form_no': form.get('form_no'),
        'request_date': form.get('date', ''),
        'fiscal_year': form.get('fiscal_year'),
        'status': workflow.PENDING,
    }

    if 'market' in decision:
        order = dict(base)
        order['items'] = [priced_line(dict(item, rate=item.get('rate', 0))) for item in form.get('items') or []]
        created.append(('purchase_order', store.save(records.PURCHASE_ORDERS, order)))

    if 'stock' in decision:
        inventory = store.all(records.INVENTORY)
        lines = []
        for item in form.get('items') or []:
            inv = _inventory_by_name(inventory, item.get('name'), form.get('selected_store_id')) or {}
            line = dict(item)
            line['code_no'] = item.get('code_no') or inv.get('unique_code') or inv.get('sanket_no') or ''
            line['rate'] = item.get('rate') or inv.get('rate') or 0
            lines.append(priced_line(line))
        report = dict(base)
        report.update({
            'items': lines,
            'item_type': form.get('issue_item_type') or 'Expendable',
            'store_id': form.get('selected_store_id', ''),
            'demand_by': form.get('demand_by') or _signature(''),
        })
        created.append(('issue_report', store.save(records.ISSUE_REPORTS, report)))

    for kind, doc in created:
        logger.info('Demand form %s raised %s %s', form['id'], kind, doc['id'])
    return [doc for _, doc in created]


def on_issue_report_issued(store, report):
    """Take issued quantities out of stock; stock never goes below zero."""
    inventory = store.all(records.INVENTORY)
    for item in report.get('items') or []:
        inv = _inventory_by_name(inventory, item.get('name'), report.get('store_id'))
        if inv is None:
            logger.warning('Issue report %s: no inventory row for "%s"', report.get('id'), item.get('name'))
            continue
        remaining = max(to_number(inv.get('current_quantity')) - to_number(item.get('quantity')), 0.0)
        store.update(records.INVENTORY, inv['id'], {
            'current_quantity': remaining,
            'last_update_date_bs': report.get('issue_date') or report.get('request_date', ''),
        })
        inv['current_quantity'] = remaining


# --------------------------------------------------------------------------- #
# Stock entry requests
# --------------------------------------------------------------------------- #
def request_stock_entry(store, request, role):
    """
    Save a new Pending stock entry request. A linked generated PO moves to
    Stock Entry Requested only after the request itself is stored; if the PO
    move loses a race the request is withdrawn again.
    """
    items = [stock_request_line(item) for item in request.get('items') or [] if (item.get('item_name') or '').strip()]
    if not items:
        raise ValueError('Add at least one item to the stock entry request.')
    for item in items:
        if item['current_quantity'] <= 0:
            raise ValueError(f'Quantity for "{item["item_name"]}" must be greater than zero.')

    order_id = request.get('purchase_order_id')
    target = None
    if order_id:
        order = store.get(records.PURCHASE_ORDERS, order_id)
        if order is None:
            raise ValueError('Purchase order not found.')
        if order.get('status') != workflow.GENERATED:
            raise workflow.WorkflowError('Stock entry can only be requested for a generated purchase order.')
        target = workflow.next_status(workflow.PURCHASE_ORDER, order.get('status'), role)

    saved = dict(request)
    saved['items'] = items
    saved['status'] = workflow.INITIAL_STATUS[workflow.STOCK_ENTRY]
    saved = store.save(records.STOCK_REQUESTS, saved)

    if order_id and store.transition(records.PURCHASE_ORDERS, order_id, workflow.GENERATED, {'status': target}) is None:
        store.delete(records.STOCK_REQUESTS, saved['id'])
        raise workflow.WorkflowError('This purchase order was changed by someone else.')
    return saved


def _dakhila_no_for(store, request):
    items = request.get('items') or []
    if items and items[0].get('dakhila_no'):
        raw = str(items[0]['dakhila_no'])
        number = serial_number(raw)
        return str(number) if number else raw
    reports = store.all(records.DAKHILA_REPORTS, {'fiscal_year': request.get('fiscal_year')})
    return next_serial(reports, request.get('fiscal_year'), 'dakhila_no')


def _add_to_inventory(store, request, item):
    inventory = store.all(records.INVENTORY)
    wanted = _clean(item.get('item_name'))
    existing = next((
        i for i in inventory
        if _clean(i.get('item_name')) == wanted
        and i.get('item_type') == item.get('item_type')
        and i.get('store_id') == request.get('store_id')
    ), None)

    quantity = to_number(item.get('current_quantity'))
    stamp = {
        'last_update_date_bs': normalize_date(request.get('request_date_bs')),
        'fiscal_year': request.get('fiscal_year'),
    }
    if existing is not None:
        store.increment(records.INVENTORY, existing['id'], 'current_quantity', quantity)
        if to_number(item.get('rate')):
            stamp['rate'] = to_number(item.get('rate'))
        store.update(records.INVENTORY, existing['id'], stamp)
        return existing['id']

    new_item = {k: v for k, v in item.items() if k not in ('id', 'vat_amount', 'grand_total')}
    new_item.update(stamp)
    new_item['id'] = records.new_id()
    new_item['store_id'] = request.get('store_id', '')
    new_item['receipt_source'] = request.get('receipt_source', '')
    new_item['current_quantity'] = quantity
    return store.save(records.INVENTORY, new_item)['id']


def approve_stock_entry(store, request_id, approver_name, approver_designation='', today=''):
    """
    Approve a pending request: add its items to stock and write the final
    entry report. Returns the generated report, or None when the request was
    not pending any more.
    """
    approved = store.transition(records.STOCK_REQUESTS, request_id, workflow.PENDING, {
        'status': workflow.APPROVED,
        'approved_by': approver_name,
    })
    if approved is None:
        logger.warning('Stock entry %s was not pending; approval skipped', request_id)
        return None

    for item in approved.get('items') or []:
        _add_to_inventory(store, approved, item)

    date = normalize_date(approved.get('request_date_bs'))
    report = {
        'fiscal_year': approved.get('fiscal_year'),
        'dakhila_no': _dakhila_no_for(store, approved),
        'date': date,
        'order_no': approved.get('ref_no', ''),
        'items': dakhila_items_from_request(approved),
        'status': 'Final',
        'stock_request_id': request_id,
        'prepared_by': _signature(
            approved.get('requester_name') or approved.get('requested_by'),
            approved.get('requester_designation') or 'Store Assistant',
            date,
        ),
        'recommended_by': _signature(''),
        'approved_by': _signature(approver_name, approver_designation, today or date),
    }
    report = store.save(records.DAKHILA_REPORTS, report)

    order_id = approved.get('purchase_order_id')
    if order_id:
        store.transition(records.PURCHASE_ORDERS, order_id, workflow.STOCK_ENTRY_REQUESTED, {'status': workflow.COMPLETED})

    logger.info('Stock entry %s approved by %s; dakhila %s written', request_id, approver_name, report['dakhila_no'])
    return report


def reject_stock_entry(store, request_id, reason, approver_name):
    current = store.get(records.STOCK_REQUESTS, request_id)
    if current is None:
        raise workflow.WorkflowError('Record not found.')
    workflow.check_rejection(workflow.STOCK_ENTRY, current.get('status'), workflow.APPROVAL, reason)
    rejected = store.transition(records.STOCK_REQUESTS, request_id, workflow.PENDING, {
        'status': workflow.REJECTED,
        'rejection_reason': reason.strip(),
        'approved_by': approver_name,
    })
    if rejected is None:
        raise workflow.WorkflowError('This request was changed by someone else.')
    return rejected


def latest_approved_stock_entry(requests):
    approved = [r for r in requests if r.get('status') == workflow.APPROVED]
    if not approved:
        return None
    return max(approved, key=lambda r: (str(r.get('request_date_bs') or ''), str(r.get('id'))))


def new_document(document_type, fields, items):
    """A fresh document in its initial status with recomputed lines."""
    document = dict(fields)
    document['items'] = recalculate(document_type, items)
    document['status'] = workflow.INITIAL_STATUS[document_type]
    return document


def restock_demand_form(store, lines, fiscal_year, date, demand_by, created_by=''):
    """
    Save a Pending demand form for the items the monthly report says to order.
    Numbered and date-checked like a form raised by hand.
    """
    if not lines:
        raise ValueError('माग गर्नुपर्ने परिमाण भएको कुनै पनि सामान भेटिएन (No items need ordering)')
    date = normalize_date(date)
    validate_document_date(date, fiscal_year)
    existing = store.all(records.MAG_FORMS, {'fiscal_year': fiscal_year})
    form_no = next_serial(existing, fiscal_year, 'form_no')
    previous = previous_document(existing, fiscal_year, 'form_no', form_no)
    if previous:
        check_date_order(date, previous.get('date'), previous.get('form_no'), form_no)

    items = [dict(line, id=index) for index, line in enumerate(lines, start=1)]
    form = new_document(workflow.DEMAND_FORM, {
        'fiscal_year': fiscal_year,
        'form_no': form_no,
        'date': date,
        'demand_by': dict(demand_by, date=date),
        'purpose': RESTOCK_PURPOSE,
        'issue_item_type': EXPENDABLE,
        'created_by': created_by,
    }, items)
    saved = store.save(records.MAG_FORMS, form)
    logger.info('Restock demand form %s saved with %d lines', form_no, len(items))
    return saved
