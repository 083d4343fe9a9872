"""End-to-end checks through the Flask test client"""
import inspect
import re

import records
import templates
import workflow
from conftest import login_user, logout_user


def _demand_form_data(**extra):
    data = {
        'date': '2081/05/01',
        'demand_by.name': 'Hari Thapa',
        'demand_by.designation': 'Staff',
        'purpose': 'Ward use',
        'line_name': ['Laptop', ''],
        'line_specification': ['i5', ''],
        'line_unit': ['pcs', ''],
        'line_quantity': ['2', ''],
        'line_remarks': ['', ''],
    }
    data.update(extra)
    return data


def test_pages_need_login(client):
    response = client.get('/dashboard')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login')
    assert client.get('/api/items').status_code == 302


def test_login_and_logout(client):
    response = login_user(client, 'keeper', 'wrong')
    assert response.headers['Location'].endswith('/login')
    with client.session_transaction() as sess:
        assert 'user' not in sess

    response = login_user(client, 'keeper', fiscal_year='2082/083')
    assert response.headers['Location'].endswith('/dashboard')
    with client.session_transaction() as sess:
        assert sess['user']['role'] == 'STOREKEEPER'
        assert sess['user']['name'] == 'Ram Bahadur'
        assert sess['fiscal_year'] == '2082/083'
    assert client.get('/dashboard').status_code == 200

    logout_user(client)
    assert client.get('/dashboard').status_code == 302


def test_register_is_gated_by_admin_password(client, store):
    assert 'admin_pass' in client.get('/register').get_data(as_text=True)

    client.post('/register', data={'username': 'x', 'password': 'y', 'full_name': 'X', 'role': 'STAFF'})
    assert store.find_one(records.USERS, {'username': 'x'}) is None

    client.post('/register', data={'admin_pass': 'nope'})
    with client.session_transaction() as sess:
        assert 'admin_access' not in sess

    client.post('/register', data={'admin_pass': 'bootstrap-pass'})
    response = client.post('/register', data={
        'username': 'newkeeper', 'password': 'pass1234', 'full_name': 'New Keeper', 'role': 'STOREKEEPER',
    })
    assert response.headers['Location'].endswith('/login')
    user = store.find_one(records.USERS, {'username': 'newkeeper'})
    assert user['role'] == 'STOREKEEPER'
    assert user['password_hash'] != 'pass1234'
    assert login_user(client, 'newkeeper', 'pass1234').headers['Location'].endswith('/dashboard')


def test_role_denial_redirects_to_dashboard(client, store):
    login_user(client, 'staff')
    response = client.get('/users')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/dashboard')

    client.post('/documents/disposals', data={'date': '2081/05/01', 'line_name': ['Chair']})
    assert store.all(records.DISPOSAL_ENTRIES) == []


def test_demand_form_flow_raises_issue_report(client, store):
    login_user(client, 'staff')
    response = client.post('/documents/demand-forms', data=_demand_form_data())
    assert response.status_code == 200
    assert 'saved successfully' in response.get_data(as_text=True)

    forms = store.all(records.MAG_FORMS)
    assert len(forms) == 1
    form = forms[0]
    assert form['form_no'] == '1'
    assert form['status'] == workflow.PENDING
    assert form['demand_by']['name'] == 'Hari Thapa'
    assert [item['name'] for item in form['items']] == ['Laptop']

    # staff cannot verify
    client.post(f"/documents/demand-forms/{form['id']}", data={'action': 'advance'})
    assert store.get(records.MAG_FORMS, form['id'])['status'] == workflow.PENDING

    logout_user(client)
    login_user(client, 'keeper')
    client.post(f"/documents/demand-forms/{form['id']}", data={
        'action': 'advance', 'store_keeper_status': 'stock', 'selected_store_id': '',
        'issue_item_type': 'Non-Expendable', 'action_date': '2081/05/02',
    })
    verified = store.get(records.MAG_FORMS, form['id'])
    assert verified['status'] == workflow.VERIFIED
    assert verified['store_keeper']['name'] == 'Ram Bahadur'
    assert verified['store_keeper']['status'] == 'stock'

    logout_user(client)
    login_user(client, 'approver')
    client.post(f"/documents/demand-forms/{form['id']}", data={'action': 'advance', 'action_date': '2081/05/03'})
    approved = store.get(records.MAG_FORMS, form['id'])
    assert approved['status'] == workflow.APPROVED
    assert approved['approved_by']['name'] == 'Sita Karki'

    reports = store.all(records.ISSUE_REPORTS)
    assert len(reports) == 1
    assert reports[0]['item_type'] == 'Non-Expendable'
    assert reports[0]['demand_by']['name'] == 'Hari Thapa'


def test_document_date_outside_fiscal_year_is_refused(client, store):
    login_user(client, 'staff')
    response = client.post('/documents/demand-forms', data=_demand_form_data(date='2080/05/01'))
    assert response.status_code == 200
    assert store.all(records.MAG_FORMS) == []


def test_rejection_needs_reason(client, store):
    store.save(records.MAG_FORMS, {'id': 'm1', 'fiscal_year': '2081/082', 'form_no': '1', 'status': workflow.VERIFIED, 'items': []})
    login_user(client, 'approver')
    client.post('/documents/demand-forms/m1', data={'action': 'reject', 'reason': ''})
    assert store.get(records.MAG_FORMS, 'm1')['status'] == workflow.VERIFIED
    client.post('/documents/demand-forms/m1', data={'action': 'reject', 'reason': 'Duplicate'})
    assert store.get(records.MAG_FORMS, 'm1')['status'] == workflow.REJECTED


def test_stock_entry_request_and_approval(client, store):
    columns = ['item_name', 'item_type', 'unique_code', 'specification', 'unit', 'current_quantity',
               'rate', 'tax', 'batch_no', 'expiry_date_bs', 'dakhila_no', 'remarks']
    data = {f'line_{c}': '' for c in columns}
    data.update({
        'line_item_name': 'Syringe', 'line_item_type': 'Expendable', 'line_unit': 'pcs',
        'line_current_quantity': '100', 'line_rate': '5', 'line_tax': '13',
        'request_date_bs': '2081/06/01', 'store_id': 'main', 'receipt_source': 'खरिद',
    })
    login_user(client, 'keeper')
    client.post('/stock-entries', data=data)
    requests = store.all(records.STOCK_REQUESTS)
    assert len(requests) == 1
    assert requests[0]['status'] == workflow.PENDING

    # the storekeeper cannot approve their own request
    client.post(f"/stock-entries/{requests[0]['id']}/approve")
    assert store.all(records.INVENTORY) == []

    logout_user(client)
    login_user(client, 'approver')
    client.post(f"/stock-entries/{requests[0]['id']}/approve")
    client.post(f"/stock-entries/{requests[0]['id']}/approve")
    inventory = store.all(records.INVENTORY)
    assert len(inventory) == 1
    assert inventory[0]['current_quantity'] == 100
    reports = store.all(records.DAKHILA_REPORTS)
    assert len(reports) == 1
    assert reports[0]['approved_by']['name'] == 'Sita Karki'


def test_item_suggestions(client, store):
    for name in ('Paracetamol', 'Paracetamol Syrup', 'Gloves'):
        store.save(records.INVENTORY, {'item_name': name, 'current_quantity': 1})
    login_user(client, 'staff')
    response = client.get('/api/items?query=para')
    assert response.get_json() == ['Paracetamol', 'Paracetamol Syrup']


def test_ledger_pages(client, store):
    store.save(records.DAKHILA_REPORTS, {
        'id': 'd1', 'fiscal_year': '2081/082', 'dakhila_no': '1', 'date': '2081/04/10', 'status': 'Final',
        'items': [{'name': 'Paracetamol', 'quantity': 100, 'rate': 2}],
    })
    store.save(records.ISSUE_REPORTS, {
        'id': 'i1', 'fiscal_year': '2081/082', 'issue_no': '1', 'issue_date': '2081/05/01', 'status': 'Issued',
        'item_type': 'Non-Expendable', 'demand_by': {'name': 'Hari Thapa'},
        'items': [{'id': 1, 'name': 'Laptop', 'quantity': 1, 'rate': 90000}],
    })
    login_user(client, 'keeper')
    assert client.get('/jinshi-khata?item=Paracetamol').status_code == 200
    assert client.get('/ledger/Paracetamol%20Syrup').status_code == 200

    page = client.get('/sahayak-jinshi-khata', query_string={'person': 'Hari Thapa'}).get_data(as_text=True)
    assert '(Not Cleared)' in page
    assert 'Laptop' in page


def test_rabies_registration(client, store):
    login_user(client, 'staff')
    client.post('/rabies', data={
        'name': 'Ram', 'age': '30', 'sex': 'Male', 'animal_type': 'Dog', 'regimen': 'Intradermal',
        'reg_date_bs': '2081/05/10', 'reg_date_ad': '2024-08-26', 'exposure_date_bs': '2081/05/09',
    })
    patients = store.all(records.RABIES_PATIENTS)
    assert len(patients) == 1
    patient = patients[0]
    assert patient['reg_no'] == 'R-2081082-001'
    assert patient['reg_month'] == '05'
    assert [dose['date'] for dose in patient['schedule']] == ['2024-08-26', '2024-08-29', '2024-09-02']

    client.post(f"/rabies/{patient['id']}/dose/1", data={'given_date': '2024-08-27'})
    assert store.get(records.RABIES_PATIENTS, patient['id'])['schedule'][1]['status'] == 'Pending'
    client.post(f"/rabies/{patient['id']}/dose/1", data={'given_date': '2024-08-29'})
    assert store.get(records.RABIES_PATIENTS, patient['id'])['schedule'][1]['status'] == 'Given'

    assert client.get('/rabies/report?month=05').status_code == 200


def test_changes_are_audited(client, db):
    login_user(client, 'staff')
    client.post('/documents/demand-forms', data=_demand_form_data())
    entries = list(db['audit_log'].find({'target_type': 'demand_form'}))
    assert len(entries) == 1
    assert entries[0]['action'] == 'CREATE'
    assert entries[0]['user'] == 'Hari Thapa'


def test_storekeeper_edits_an_inventory_item(client, store):
    store.save(records.INVENTORY, {
        'id': 'inv-1', 'item_name': 'Gloves', 'item_type': 'Expendable', 'unit': 'box',
        'current_quantity': 10, 'rate': 5, 'fiscal_year': '2081/082',
    })
    login_user(client, 'staff')
    assert '/inventory/inv-1/edit' not in client.get('/inventory').get_data(as_text=True)
    client.post('/inventory/inv-1/edit', data={'item_name': 'Hacked', 'current_quantity': '999'})
    assert store.get(records.INVENTORY, 'inv-1')['item_name'] == 'Gloves'
    logout_user(client)

    login_user(client, 'keeper')
    assert '/inventory/inv-1/edit' in client.get('/inventory').get_data(as_text=True)
    response = client.post('/inventory/inv-1/edit', data={
        'item_name': 'Nitrile Gloves', 'item_type': 'Expendable', 'unit': 'box', 'current_quantity': '8',
        'rate': '6.5', 'ledger_page_no': 'P-3', 'approved_stock_level': '20', 'expiry_date_bs': '2082/1/5',
    })
    assert 'Item updated successfully.' in response.get_data(as_text=True)
    updated = store.get(records.INVENTORY, 'inv-1')
    assert updated['item_name'] == 'Nitrile Gloves'
    assert updated['current_quantity'] == 8
    assert updated['rate'] == 6.5
    assert updated['expiry_date_bs'] == '2082/01/05'
    # fields the form does not carry are left alone
    assert updated['fiscal_year'] == '2081/082'

    response = client.post('/inventory/inv-1/edit', data={'item_name': 'Nitrile Gloves', 'current_quantity': '-2'})
    assert 'Invalid input' in response.get_data(as_text=True)
    assert store.get(records.INVENTORY, 'inv-1')['current_quantity'] == 8
    assert client.get('/inventory/missing/edit').status_code == 404


def test_inventory_edit_is_audited(client, db, store):
    store.save(records.INVENTORY, {'id': 'inv-1', 'item_name': 'Gloves', 'current_quantity': 10})
    login_user(client, 'admin')
    client.post('/inventory/inv-1/edit', data={'item_name': 'Gloves', 'current_quantity': '9'})
    entries = list(db['audit_log'].find({'target_type': 'inventory_item'}))
    assert len(entries) == 1
    assert entries[0]['target_id'] == 'inv-1'


def test_monthly_report_raises_a_restock_demand_form(client, store):
    store.save(records.INVENTORY, {
        'id': 'inv-1', 'item_name': 'Gloves', 'item_type': 'Expendable', 'unit': 'box', 'fiscal_year': '2081/082',
        'current_quantity': 15, 'approved_stock_level': 40, 'ledger_page_no': 'P-2',
    })
    store.save(records.INVENTORY, {
        'id': 'inv-2', 'item_name': 'Masks', 'item_type': 'Expendable', 'unit': 'box', 'fiscal_year': '2081/082',
        'current_quantity': 50, 'approved_stock_level': 40, 'ledger_page_no': 'P-9',
    })
    login_user(client, 'keeper')
    page = client.get('/inventory/monthly-report?to_page=5&to_date=2081/05/30').get_data(as_text=True)
    assert 'Gloves' in page
    assert 'Masks' not in page
    assert 'भदौ' in page

    response = client.post('/inventory/monthly-report', data={'fiscal_year': '2081/082', 'date': '2081/05/30'})
    assert 'saved successfully' in response.get_data(as_text=True)
    [form] = store.all(records.MAG_FORMS)
    assert form['status'] == workflow.PENDING
    assert form['form_no'] == '1'
    assert [(i['name'], i['quantity']) for i in form['items']] == [('Gloves', 25)]
    assert form['demand_by']['name'] == 'Ram Bahadur'

    # nothing left to order once the only short item is filtered out
    response = client.post('/inventory/monthly-report', data={'fiscal_year': '2081/082', 'date': '2081/05/30',
                                                             'from_page': '5'})
    assert 'No items need ordering' in response.get_data(as_text=True)
    assert len(store.all(records.MAG_FORMS)) == 1


def test_disposal_form_loads_expired_stock(client, store):
    store.save(records.INVENTORY, {
        'id': 'inv-1', 'item_name': 'Old Syrup', 'item_type': 'Expendable', 'unit': 'bottle',
        'current_quantity': 6, 'rate': 40, 'batch_no': 'B1', 'expiry_date_bs': '2081/03/01',
    })
    store.save(records.INVENTORY, {
        'id': 'inv-2', 'item_name': 'New Syrup', 'item_type': 'Expendable', 'unit': 'bottle',
        'current_quantity': 6, 'rate': 40, 'expiry_date_bs': '2083/03/01',
    })
    login_user(client, 'keeper')
    page = client.get('/documents/disposals?expired_as_of=2081/04/10').get_data(as_text=True)
    assert '1 expired item(s) loaded successfully.' in page
    assert 'name="line_name" value="Old Syrup"' in page
    assert 'name="line_name" value="New Syrup"' not in page
    assert 'Batch: B1, Exp: 2081/03/01' in page

    page = client.get('/documents/disposals?expired_as_of=2080/01/01').get_data(as_text=True)
    assert 'No expired items found' in page

    logout_user(client)
    login_user(client, 'staff')
    page = client.get('/documents/disposals?expired_as_of=2081/04/10').get_data(as_text=True)
    assert 'name="line_name" value="Old Syrup"' not in page


def test_rabies_vaccine_stock_carries_into_next_month(client, store):
    login_user(client, 'staff')
    response = client.post('/rabies/report', data={
        'fiscal_year': '2081/082', 'month': '05', 'opening': '50', 'received': '100', 'expenditure': '120',
    })
    assert 'Vaccine stock saved successfully.' in response.get_data(as_text=True)
    saved = store.get(records.RABIES_STOCK, 'rabies-stock-2081082-05')
    assert saved['balance'] == 30

    page = client.get('/rabies/report?fiscal_year=2081/082&month=06').get_data(as_text=True)
    assert 'name="opening" value="30"' in page

    response = client.post('/rabies/report', data={
        'fiscal_year': '2081/082', 'month': '06', 'opening': '30', 'received': '0', 'expenditure': '45',
    })
    assert 'Expenditure is more than the doses available' in response.get_data(as_text=True)
    assert store.get(records.RABIES_STOCK, 'rabies-stock-2081082-06') is None


def test_every_stylesheet_class_is_used(app):
    import app as app_module
    markup = inspect.getsource(app_module.get_nav_links) + ''.join(
        value.replace(templates.CSS_STYLE, '')
        for name, value in vars(templates).items()
        if name.endswith('_TEMPLATE') or name == 'MESSAGE_BLOCK'
    )
    # status badges are styled by the status value itself
    statuses = {workflow.REJECTED}
    for table in workflow.TRANSITIONS.values():
        for (current, _), target in table.items():
            statuses.update((current, target))
    for name in set(re.findall(r'\.([A-Za-z][\w-]*)', templates.CSS_STYLE)):
        assert name in statuses or name in markup, name
