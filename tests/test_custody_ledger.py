"""Personal custody ledger (Sahayak Jinshi Khata)"""
from ledger import build_custody_ledger, custody_people

PERSON = 'Hari Thapa'


def issue(report_id, date, name, qty, code='', item_type='Non-Expendable', person=PERSON, status='Issued'):
    return {
        'id': report_id, 'issue_date': date, 'mag_form_no': report_id, 'status': status,
        'item_type': item_type, 'demand_by': {'name': person},
        'items': [{'id': 1, 'name': name, 'quantity': qty, 'rate': 100, 'code_no': code, 'unit': 'pcs'}],
    }


def returned(entry_id, date, name, qty, code='', person=PERSON, status='Approved'):
    return {
        'id': entry_id, 'date': date, 'form_no': entry_id, 'status': status,
        'returned_by': {'name': person}, 'approved_by': {'name': 'Sita Karki'},
        'items': [{'id': 1, 'name': name, 'quantity': qty, 'code_no': code}],
    }


def test_earlier_issue_is_matched_first():
    rows, cleared = build_custody_ledger(
        PERSON,
        [issue('I2', '2081/05/02', 'Laptop', 5), issue('I1', '2081/05/01', 'Laptop', 5)],
        [returned('R1', '2081/05/03', 'Laptop', 5)],
        [],
    )
    by_form = {row['mag_form_no']: row for row in rows}
    assert by_form['I1']['return_quantity'] == 5
    assert by_form['I1']['return_date'] == '2081/05/03'
    assert by_form['I1']['return_receiver'] == 'Sita Karki'
    assert by_form['I2']['return_quantity'] == 0
    assert by_form['I2']['return_date'] == ''
    assert cleared is False


def test_returns_covering_issues_clear_the_person():
    rows, cleared = build_custody_ledger(
        PERSON,
        [issue('I1', '2081/05/01', 'Laptop', 2), issue('I2', '2081/05/02', 'Chair', 3)],
        [returned('R1', '2081/06/01', 'laptop', 2), returned('R2', '2081/06/02', 'Chair', 4)],
        [],
    )
    assert len(rows) == 2
    assert cleared is True


def test_exact_code_match_wins_over_name_order():
    rows, _ = build_custody_ledger(
        PERSON,
        [issue('I1', '2081/05/01', 'Laptop', 1, code='LT-2')],
        [returned('R1', '2081/05/03', 'Laptop', 1, code='LT-1'), returned('R2', '2081/05/04', 'Laptop', 1, code='LT-2')],
        [],
    )
    assert rows[0]['return_date'] == '2081/05/04'
    assert rows[0]['id_no'] == 'LT-2'


def test_name_fallback_when_codes_differ():
    rows, cleared = build_custody_ledger(
        PERSON,
        [issue('I1', '2081/05/01', 'Laptop', 1, code='LT-9')],
        [returned('R1', '2081/05/03', 'Laptop', 1, code='LT-1')],
        [],
    )
    assert rows[0]['return_quantity'] == 1
    assert cleared is True


def test_expendable_items_and_other_people_are_skipped():
    rows, cleared = build_custody_ledger(
        PERSON,
        [
            issue('I1', '2081/05/01', 'Gloves', 10, item_type='Expendable'),
            issue('I2', '2081/05/01', 'Laptop', 1, person='Someone Else'),
            issue('I3', '2081/05/01', 'Laptop', 1, status='Pending Approval'),
        ],
        [],
        [],
    )
    assert rows == []
    assert cleared is True


def test_inventory_type_marks_item_non_expendable():
    inventory = [{'item_name': 'Printer', 'item_type': 'Non-Expendable', 'unique_code': 'PR-1', 'receipt_source': 'अनुदान'}]
    rows, _ = build_custody_ledger(PERSON, [issue('I1', '2081/05/01', 'Printer', 1, item_type='Expendable')], [], inventory)
    assert len(rows) == 1
    assert rows[0]['id_no'] == 'PR-1'
    assert rows[0]['source'] == 'अनुदान'
    assert rows[0]['total_cost'] == 100


def test_unapproved_returns_do_not_count():
    rows, cleared = build_custody_ledger(
        PERSON,
        [issue('I1', '2081/05/01', 'Laptop', 1)],
        [returned('R1', '2081/05/03', 'Laptop', 1, status='Verified')],
        [],
    )
    assert rows[0]['return_quantity'] == 0
    assert cleared is False


def test_blank_person():
    assert build_custody_ledger('  ', [issue('I1', '2081/05/01', 'Laptop', 1)], [], []) == ([], False)


def test_custody_people_lists_staff_and_requesters():
    people = custody_people([{'full_name': 'Sita Karki'}, {'full_name': ''}], [issue('I1', '2081/05/01', 'Laptop', 1)])
    assert people == ['Hari Thapa', 'Sita Karki']
