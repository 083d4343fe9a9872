import os
import requests
from flask import Flask, request, render_template_string, jsonify, redirect, url_for, session, flash, abort
from functools import wraps
from pymongo.errors import ServerSelectionTimeoutError
from datetime import datetime
from dotenv import load_dotenv
from werkzeug.security import generate_password_hash, check_password_hash

import approvals
import audit_logger
import records
import workflow
from audit_logger import audited
from calculators import document_totals, format_amount, format_quantity, recalculate
from error_logger import init_error_logging
from fiscal import (
    DEFAULT_FISCAL_YEAR, FISCAL_YEARS, NEPALI_MONTHS, check_date_order, month_name, next_serial, normalize_date,
    previous_document, serial_number, validate_document_date,
)
from ledger import build_custody_ledger, build_ledger, custody_people, ledger_summary
from inventory import ITEM_TYPES, clean_item_edit, disposal_lines, expired_items, restock_lines
from inventory import monthly_report as stock_report
from rabies import (
    ANIMAL_LABELS, ANIMALS, REPORT_ROWS, calculate_schedule, generate_reg_no, mark_dose_given, monthly_report,
    opening_stock, pending_doses_on, previous_month, revert_dose, stock_record_id, vaccine_stock, validate_registration,
)
from templates import (
    CHANGE_PASSWORD_TEMPLATE, CUSTODY_TEMPLATE, DASHBOARD_TEMPLATE, DOCUMENT_LIST_TEMPLATE,
    DOCUMENT_VIEW_TEMPLATE, INVENTORY_EDIT_TEMPLATE, INVENTORY_TEMPLATE, LEDGER_TEMPLATE, LOGIN_TEMPLATE,
    MONTHLY_REPORT_TEMPLATE, NAMED_LIST_TEMPLATE,
    RABIES_REPORT_TEMPLATE, RABIES_TEMPLATE, REGISTER_PASSWORD_TEMPLATE, REGISTER_TEMPLATE,
    SETTINGS_TEMPLATE, STOCK_ENTRIES_TEMPLATE, USERS_TEMPLATE,
)
load_dotenv() # Loads .env into os.environ
app = Flask(__name__)
app.secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD')
init_error_logging(app)
app.jinja_env.filters['amount'] = format_amount
app.jinja_env.filters['qty'] = format_quantity
DB_ERROR = "Database connection failed. Please try again later."
ADMINS = (workflow.ADMIN, workflow.SUPER_ADMIN)
# Line columns shared by several forms
PRICED_COLUMNS = [
    ('name', 'सामानको नाम'), ('code_no', 'सङ्केत नं.'), ('specification', 'स्पेसिफिकेसन'),
    ('unit', 'एकाई'), ('quantity', 'परिमाण'), ('rate', 'दर'), ('total_amount', 'जम्मा रकम'), ('remarks', 'कैफियत'),
]
QUANTITY_COLUMNS = [
    ('name', 'सामानको नाम'), ('specification', 'स्पेसिफिकेसन'), ('unit', 'एकाई'),
    ('quantity', 'परिमाण'), ('remarks', 'कैफियत'),
]
# URL slug -> how the document is numbered, dated, laid out and signed
DOCUMENT_TYPES = {
    'demand-forms': {
        'type': workflow.DEMAND_FORM,
        'title': 'माग फारम (Demand Form)',
        'number_field': 'form_no',
        'date_field': 'date',
        'creatable': True,
        'header': [('demand_by.name', 'माग गर्नेको नाम', None), ('demand_by.designation', 'पद', None), ('purpose', 'प्रयोजन', None)],
        'columns': QUANTITY_COLUMNS,
        'signatures': [('demand_by', 'माग गर्ने'), ('recommended_by', 'सिफारिस गर्ने'), ('store_keeper', 'स्टोरकिपर'), ('approved_by', 'स्वीकृत गर्ने')],
    },
    'purchase-orders': {
        'type': workflow.PURCHASE_ORDER,
        'title': 'खरिद आदेश (Purchase Order)',
        'number_field': 'order_no',
        'date_field': 'request_date',
        'creatable': False,
        'header': [],
        'columns': PRICED_COLUMNS,
        'signatures': [('recommended_by', 'तयार गर्ने'), ('finance_by', 'लेखा'), ('approved_by', 'स्वीकृत गर्ने')],
    },
    'issue-reports': {
        'type': workflow.ISSUE_REPORT,
        'title': 'खर्च निकासा फारम (Issue Report)',
        'number_field': 'issue_no',
        'date_field': 'request_date',
        'creatable': False,
        'header': [],
        'columns': PRICED_COLUMNS,
        'signatures': [('demand_by', 'बुझिलिने'), ('prepared_by', 'तयार गर्ने'), ('approved_by', 'स्वीकृत गर्ने')],
    },
    'returns': {
        'type': workflow.RETURN,
        'title': 'जिन्सी फिर्ता फारम (Return Form)',
        'number_field': 'form_no',
        'date_field': 'date',
        'creatable': True,
        'header': [('returned_by.name', 'फिर्ता गर्नेको नाम', None), ('returned_by.designation', 'पद', None)],
        'columns': [
            ('kharcha_nikasa_no', 'खर्च निकासा नं.'), ('code_no', 'सङ्केत नं.'), ('name', 'सामानको नाम'),
            ('specification', 'स्पेसिफिकेसन'), ('unit', 'एकाई'), ('quantity', 'परिमाण'), ('rate', 'दर'),
            ('total_amount', 'जम्मा'), ('vat_amount', 'मु.अ.कर'), ('grand_total', 'कुल जम्मा'),
            ('condition', 'अवस्था'), ('remarks', 'कैफियत'),
        ],
        'signatures': [('returned_by', 'फिर्ता गर्ने'), ('recommended_by', 'स्टोरकिपर'), ('approved_by', 'स्वीकृत गर्ने')],
    },
    'maintenance': {
        'type': workflow.MAINTENANCE,
        'title': 'मर्मत आदेश (Maintenance Order)',
        'number_field': 'form_no',
        'date_field': 'date',
        'creatable': True,
        'header': [('requested_by.name', 'अनुरोध गर्ने', None), ('requested_by.designation', 'पद', None)],
        'columns': [('name', 'सामानको नाम'), ('code_no', 'सङ्केत नं.'), ('specification', 'स्पेसिफिकेसन'),
                    ('unit', 'एकाई'), ('quantity', 'परिमाण'), ('remarks', 'मर्मतको विवरण')],
        'signatures': [('requested_by', 'अनुरोध गर्ने'), ('approved_by', 'स्वीकृत गर्ने'), ('maintained_by', 'मर्मत गर्ने')],
    },
    'disposals': {
        'type': workflow.DISPOSAL,
        'title': 'लिलाम / मिनाहा / धुल्याउने (Disposal)',
        'number_field': 'form_no',
        'date_field': 'date',
        'creatable': True,
        'header': [('disposal_type', 'किसिम', ['Dhuliyauna', 'Lilaam', 'Minaha'])],
        'columns': PRICED_COLUMNS,
        'signatures': [('prepared_by', 'तयार गर्ने'), ('approved_by', 'स्वीकृत गर्ने')],
    },
    'dakhila': {
        'type': workflow.DAKHILA,
        'title': 'दाखिला प्रतिवेदन (Entry Report)',
        'number_field': 'dakhila_no',
        'date_field': 'date',
        'creatable': True,
        'header': [('order_no', 'खरिद आदेश / हस्तान्तरण नं.', None)],
        'columns': [
            ('name', 'सामानको नाम'), ('code_no', 'सङ्केत नं.'), ('specification', 'स्पेसिफिकेसन'),
            ('source', 'स्रोत'), ('unit', 'एकाई'), ('quantity', 'परिमाण'), ('rate', 'दर'),
            ('total_amount', 'जम्मा'), ('vat_amount', 'मु.अ.कर'), ('grand_total', 'कुल जम्मा'),
            ('other_expenses', 'अन्य खर्च'), ('final_total', 'अन्तिम जम्मा'), ('remarks', 'कैफियत'),
        ],
        'signatures': [('prepared_by', 'तयार गर्ने'), ('recommended_by', 'सिफारिस गर्ने'), ('approved_by', 'स्वीकृत गर्ने')],
    },
}
# Who may raise each creatable document
CREATE_ROLES = {
    workflow.DEMAND_FORM: workflow.ROLES,
    workflow.RETURN: workflow.ROLES,
    workflow.MAINTENANCE: workflow.ROLES,
    workflow.DISPOSAL: (workflow.STOREKEEPER,) + ADMINS,
    workflow.DAKHILA: (workflow.STOREKEEPER,) + ADMINS,
}
# The creator signs in this field when it is not entered on the form
CREATOR_FIELDS = {
    workflow.DISPOSAL: 'prepared_by',
    workflow.DAKHILA: 'prepared_by',
}
# (document type, status reached) -> field the acting user signs
SIGNATURE_FIELDS = {
    (workflow.DEMAND_FORM, workflow.VERIFIED): 'store_keeper',
    (workflow.DEMAND_FORM, workflow.APPROVED): 'approved_by',
    (workflow.PURCHASE_ORDER, workflow.PENDING_ACCOUNT): 'recommended_by',
    (workflow.PURCHASE_ORDER, workflow.ACCOUNT_VERIFIED): 'finance_by',
    (workflow.PURCHASE_ORDER, workflow.GENERATED): 'approved_by',
    (workflow.ISSUE_REPORT, workflow.PENDING_APPROVAL): 'prepared_by',
    (workflow.ISSUE_REPORT, workflow.ISSUED): 'approved_by',
    (workflow.RETURN, workflow.VERIFIED): 'recommended_by',
    (workflow.RETURN, workflow.APPROVED): 'approved_by',
    (workflow.MAINTENANCE, workflow.APPROVED): 'approved_by',
    (workflow.MAINTENANCE, workflow.COMPLETED): 'maintained_by',
    (workflow.DISPOSAL, workflow.APPROVED): 'approved_by',
    (workflow.DAKHILA, 'Final'): 'approved_by',
}
COMPUTED_COLUMNS = {'total_amount', 'grand_total', 'final_total'}
NUMERIC_COLUMNS = {'quantity', 'rate', 'total_amount', 'vat_amount', 'grand_total', 'other_expenses', 'final_total'}
STOCK_LINE_COLUMNS = [
    ('item_name', 'Item'), ('item_type', 'Type'), ('unique_code', 'Code'), ('specification', 'Specification'),
    ('unit', 'Unit'), ('current_quantity', 'Quantity'), ('rate', 'Rate'), ('tax', 'Tax %'),
    ('batch_no', 'Batch'), ('expiry_date_bs', 'Expiry (BS)'), ('dakhila_no', 'Dakhila No.'), ('remarks', 'Remarks'),
]
SETTINGS_FIELDS = [
    ('org_name_nepali', 'Organization (Nepali)'), ('org_name_english', 'Organization (English)'),
    ('sub_title_nepali', 'Sub title 1'), ('sub_title_nepali_2', 'Sub title 2'), ('sub_title_nepali_3', 'Sub title 3'),
    ('address', 'Address'), ('phone', 'Phone'), ('email', 'Email'), ('website', 'Website'),
    ('pan_no', 'PAN No.'), ('default_vat_rate', 'Default VAT %'), ('active_fiscal_year', 'Active fiscal year'),
]
STORE_FIELDS = [('name', 'Store Name'), ('location', 'Location'), ('in_charge', 'In-charge')]
FIRM_FIELDS = [('name', 'Firm Name'), ('pan_no', 'PAN/VAT No.'), ('address', 'Address'), ('phone', 'Phone')]
# Login required decorator
def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user' not in session:
            return redirect('/login')
        return f(*args, **kwargs)
    return decorated_function
def roles_required(*roles):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if session['user'].get('role') not in roles:
                flash('Access denied for your role.')
                return redirect('/dashboard')
            return f(*args, **kwargs)
        return decorated_function
    return decorator
def current_role():
    return session['user'].get('role')
def current_fiscal_year():
    return session.get('fiscal_year', DEFAULT_FISCAL_YEAR)
def user_signature(date=''):
    user = session['user']
    return {'name': user.get('name', ''), 'designation': user.get('designation', ''), 'date': normalize_date(date)}
# Navigation links (what each role works on)
def get_nav_links():
    if 'user' in session:
        user = session['user']
        role = user.get('role')
        name = user.get('name', user.get('login', 'User'))
        links = [('/dashboard', 'Dashboard'), ('/documents/demand-forms', 'माग फारम')]
        if role != workflow.STAFF:
            links += [
                ('/documents/purchase-orders', 'खरिद आदेश'),
                ('/documents/issue-reports', 'निकासा'),
                ('/stock-entries', 'Stock Entry'),
                ('/documents/dakhila', 'दाखिला'),
            ]
        links += [
            ('/documents/returns', 'फिर्ता'),
            ('/documents/maintenance', 'मर्मत'),
            ('/inventory', 'Inventory'),
            ('/jinshi-khata', 'जिन्सी खाता'),
            ('/sahayak-jinshi-khata', 'सहायक खाता'),
            ('/rabies', 'Rabies'),
        ]
        if role in (workflow.STOREKEEPER,) + ADMINS:
            links += [('/documents/disposals', 'Disposal'), ('/stores', 'Stores'), ('/firms', 'Firms')]
        if role in ADMINS:
            links += [('/users', 'Users'), ('/settings', 'Settings')]
        items = ' |\n            '.join(f'<a href="{url}">{label}</a>' for url, label in links)
        return f"""
        <p class="nav-links"><strong>Navigate:</strong>
            {items} |
            <span>{name} ({role}), FY {current_fiscal_year()} <a href="/change-password">Password</a> <a href="/logout">Logout</a></span>
        </p>
        """
    else:
        return """
        <p class="nav-links"><strong>Navigate:</strong>
            <a href="/login">Login</a> | <a href="/register">Register</a>
        </p>
        """
def parse_lines(columns, keep_blank=False):
    """Line items posted as parallel line_<field> lists."""
    fields = [field for field, _ in columns]
    values = [request.form.getlist(f'line_{field}') for field in fields]
    lines = []
    for index, row in enumerate(zip(*values), start=1):
        line = dict(zip(fields, (value.strip() for value in row)))
        if not keep_blank and not (line.get('name') or line.get('item_name')):
            continue
        line['id'] = index
        lines.append(line)
    return lines
def parse_header(header):
    values = {}
    for field, _, _ in header:
        value = request.form.get(field, '').strip()
        if '.' in field:
            parent, child = field.split('.', 1)
            values.setdefault(parent, {})[child] = value
        else:
            values[field] = value
    return values
def input_columns(doc):
    return [(field, label) for field, label in doc['columns'] if field not in COMPUTED_COLUMNS]
def create_document(store, doc, existing, fiscal_year):
    number_field, date_field = doc['number_field'], doc['date_field']
    date = normalize_date(request.form.get(date_field))
    validate_document_date(date, fiscal_year)
    number = next_serial(existing, fiscal_year, number_field)
    previous = previous_document(existing, fiscal_year, number_field, number)
    if previous:
        check_date_order(date, previous.get(date_field), previous.get(number_field), number)
    lines = parse_lines(input_columns(doc))
    if not lines:
        raise ValueError('Add at least one line item.')
    fields = parse_header(doc['header'])
    fields.update({number_field: number, date_field: date, 'fiscal_year': fiscal_year, 'created_by': session['user']['login']})
    creator_field = CREATOR_FIELDS.get(doc['type'])
    if creator_field:
        fields[creator_field] = user_signature(date)
    document = approvals.new_document(doc['type'], fields, lines)
    store.save(approvals.COLLECTIONS[doc['type']], document)
    return f"{doc['title']} no. {number} saved successfully."
def action_inputs(store, doc_type, status):
    """Extra inputs the acting user fills in when moving a document on."""
    if doc_type == workflow.DEMAND_FORM and status == workflow.PENDING:
        stores = [(s['id'], s.get('name', '')) for s in store.all(records.STORES)]
        return [
            ('store_keeper_status', 'Store decision', [('market', 'बजारबाट खरिद (market)'), ('stock', 'मौज्दातबाट (stock)'), ('market,stock', 'दुवै (both)')]),
            ('selected_store_id', 'Issue from store', stores or [('', '-- none --')]),
            ('issue_item_type', 'Issue item type', ITEM_TYPES),
        ]
    if doc_type == workflow.PURCHASE_ORDER and status == workflow.PENDING:
        firms = [f.get('name', '') for f in store.all(records.FIRMS)]
        return [('vendor_name', 'Vendor', firms or None), ('budget_head', 'Budget head', None)]
    if doc_type == workflow.ISSUE_REPORT and status == workflow.PENDING:
        return [('issue_date', 'Issue date (YYYY/MM/DD)', None)]
    return []
def action_fields(store, doc_type, record, role):
    target = workflow.next_status(doc_type, record.get('status'), role)
    signature = user_signature(request.form.get('action_date'))
    fields = {}
    signature_field = SIGNATURE_FIELDS.get((doc_type, target))
    if signature_field:
        fields[signature_field] = signature
    fiscal_year = record.get('fiscal_year')
    if doc_type == workflow.DEMAND_FORM and target == workflow.VERIFIED:
        fields['store_keeper'] = dict(signature, status=request.form.get('store_keeper_status', 'market'))
        fields['selected_store_id'] = request.form.get('selected_store_id', '')
        fields['issue_item_type'] = request.form.get('issue_item_type') or 'Expendable'
    elif doc_type == workflow.PURCHASE_ORDER and target == workflow.PENDING_ACCOUNT:
        fields['vendor_details'] = {'name': request.form.get('vendor_name', '').strip()}
        fields['budget_details'] = {'budget_head': request.form.get('budget_head', '').strip()}
    elif doc_type == workflow.PURCHASE_ORDER and target == workflow.GENERATED:
        orders = store.all(records.PURCHASE_ORDERS, {'fiscal_year': fiscal_year})
        fields['order_no'] = next_serial(orders, fiscal_year, 'order_no')
    elif doc_type == workflow.ISSUE_REPORT and target == workflow.PENDING_APPROVAL:
        issue_date = normalize_date(request.form.get('issue_date'))
        validate_document_date(issue_date, fiscal_year)
        reports = store.all(records.ISSUE_REPORTS, {'fiscal_year': fiscal_year})
        fields['issue_date'] = issue_date
        fields['issue_no'] = next_serial(reports, fiscal_year, 'issue_no')
    return fields
def save_lines(store, doc, record, role):
    if not workflow.is_editable(doc['type'], record.get('status'), role):
        raise workflow.WorkflowError('This record can no longer be edited.')
    edited = parse_lines(input_columns(doc), keep_blank=True)
    lines = []
    for item, changes in zip(record.get('items') or [], edited):
        changes = {k: v for k, v in changes.items() if k != 'id'}
        merged = dict(item, **changes)
        if merged.get('name'):
            lines.append(merged)
    if not lines:
        raise ValueError('A document needs at least one line item.')
    store.update(approvals.COLLECTIONS[doc['type']], record['id'], {'items': recalculate(doc['type'], lines)})
# Routes
@app.route('/', methods=['GET'])
@login_required
def home():
    return redirect('/dashboard')
@app.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        username = request.form.get('username')
        password = request.form.get('password')
        fiscal_year = request.form.get('fiscal_year') or DEFAULT_FISCAL_YEAR
        if not username or not password:
            session['error'] = 'Username and password are required.'
            return redirect('/login')
        client = records.get_mongo_client()
        try:
            db = records.get_database(client)
            user_doc = db[records.USERS].find_one({'username': username})
            if user_doc and check_password_hash(user_doc['password_hash'], password):
                session['user'] = {
                    'id': user_doc.get('id'),
                    'login': username,
                    'name': user_doc.get('full_name', username),
                    'designation': user_doc.get('designation', ''),
                    'role': user_doc.get('role', workflow.STAFF)
                }
                session['fiscal_year'] = fiscal_year
                app.logger.info('%s logged in for %s', username, fiscal_year)
                return redirect('/dashboard')
            else:
                session['error'] = 'Invalid username or password.'
        except ServerSelectionTimeoutError:
            session['error'] = DB_ERROR
        finally:
            client.close()
        return redirect('/login')
    error = session.pop('error', None)
    message = session.pop('message', None)
    return render_template_string(LOGIN_TEMPLATE, error=error, message=message,
                                  fiscal_years=FISCAL_YEARS, default_fiscal_year=DEFAULT_FISCAL_YEAR)
@app.route('/register', methods=['GET', 'POST'])
def register():
    if request.method == 'POST':
        if 'admin_pass' in request.form:
            if not ADMIN_PASSWORD:
                session['error'] = 'Admin password not configured. Contact system administrator.'
                return redirect('/register')
            if request.form['admin_pass'] == ADMIN_PASSWORD:
                session['admin_access'] = True
                return redirect('/register')
            else:
                session['error'] = 'Incorrect admin password.'
                return redirect('/register')
        else:
            if 'admin_access' not in session:
                session['error'] = 'Admin access required.'
                return redirect('/register')
            username = request.form.get('username')
            password = request.form.get('password')
            full_name = request.form.get('full_name')
            role = request.form.get('role')
            if not username or not password or not full_name or role not in workflow.ROLES:
                session['error'] = 'All fields are required.'
                return redirect('/register')
            client = records.get_mongo_client()
            try:
                store = records.RecordStore(records.get_database(client))
                if store.find_one(records.USERS, {'username': username}):
                    session['error'] = 'Username already exists.'
                    return redirect('/register')
                store.save(records.USERS, {
                    'username': username,
                    'password_hash': generate_password_hash(password),
                    'full_name': full_name,
                    'designation': request.form.get('designation', ''),
                    'role': role
                })
                session['message'] = 'Registration successful! Please login.'
                session.pop('admin_access', None)
                return redirect('/login')
            except ServerSelectionTimeoutError:
                session['error'] = DB_ERROR
            finally:
                client.close()
            return redirect('/register')
    error = session.pop('error', None)
    if 'admin_access' not in session:
        return render_template_string(REGISTER_PASSWORD_TEMPLATE, error=error)
    else:
        return render_template_string(REGISTER_TEMPLATE, error=error, roles=workflow.ROLES)
@app.route('/logout', methods=['GET'])
def logout():
    session.pop('user', None)
    session.pop('fiscal_year', None)
    session.pop('admin_access', None)
    return redirect('/login')
@app.route('/change-password', methods=['GET', 'POST'])
@login_required
def change_password():
    message = None
    if request.method == 'POST':
        client = records.get_mongo_client()
        try:
            store = records.RecordStore(records.get_database(client))
            user_doc = store.find_one(records.USERS, {'username': session['user']['login']})
            new_password = request.form.get('new_password', '')
            if not user_doc or not check_password_hash(user_doc['password_hash'], request.form.get('current_password', '')):
                message = 'Current password is incorrect.'
            elif len(new_password) < 6:
                message = 'New password must be at least 6 characters.'
            elif new_password != request.form.get('confirm_password'):
                message = 'New passwords do not match.'
            else:
                store.update(records.USERS, user_doc['id'], {'password_hash': generate_password_hash(new_password)})
                message = 'Password changed successfully.'
        except ServerSelectionTimeoutError:
            return render_template_string(CHANGE_PASSWORD_TEMPLATE, nav_links=get_nav_links(), message=DB_ERROR), 500
        finally:
            client.close()
    return render_template_string(CHANGE_PASSWORD_TEMPLATE, nav_links=get_nav_links(), message=message)
@app.route('/dashboard', methods=['GET'])
@login_required
def dashboard():
    role = current_role()
    fiscal_year = current_fiscal_year()
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        settings = records.load_settings(store)
        cards = []
        for slug, doc in DOCUMENT_TYPES.items():
            pending = store.all(approvals.COLLECTIONS[doc['type']], {'fiscal_year': fiscal_year})
            count = len(workflow.actionable(doc['type'], pending, role))
            if count:
                cards.append({'title': doc['title'], 'count': count, 'url': url_for('documents', doc_type=slug)})
        stock_requests = store.all(records.STOCK_REQUESTS)
        if workflow.is_approver(role):
            count = len(workflow.actionable(workflow.STOCK_ENTRY, stock_requests, role))
            if count:
                cards.append({'title': 'Stock Entry Requests', 'count': count, 'url': url_for('stock_entries')})
        today_ad = datetime.now().strftime('%Y-%m-%d')
        doses_due = [
            (patient, index) for patient, index in pending_doses_on(store.all(records.RABIES_PATIENTS), today_ad)
            if patient['schedule'][index].get('date') == today_ad
        ]
        return render_template_string(DASHBOARD_TEMPLATE, nav_links=get_nav_links(), settings=settings,
                                      fiscal_year=fiscal_year, role=role, cards=cards,
                                      latest_stock_entry=approvals.latest_approved_stock_entry(stock_requests),
                                      doses_due=doses_due, message=None)
    except ServerSelectionTimeoutError:
        return render_template_string(DASHBOARD_TEMPLATE, nav_links=get_nav_links(), settings=records.DEFAULT_SETTINGS,
                                      fiscal_year=fiscal_year, role=role, cards=[], message=DB_ERROR), 500
    finally:
        client.close()
@app.route('/documents/<doc_type>', methods=['GET', 'POST'])
@login_required
def documents(doc_type):
    doc = DOCUMENT_TYPES.get(doc_type)
    if doc is None:
        abort(404)
    role = current_role()
    fiscal_year = current_fiscal_year()
    collection = approvals.COLLECTIONS[doc['type']]
    can_create = doc['creatable'] and role in CREATE_ROLES.get(doc['type'], ())
    message = None
    form_values = {}
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        if request.method == 'POST':
            if not can_create:
                flash('Access denied for your role.')
                return redirect(url_for('documents', doc_type=doc_type))
            form_values = request.form.to_dict()
            existing = store.all(collection, {'fiscal_year': fiscal_year})
            unsubscribe = audit_logger.audit_store(store, doc['type'])
            try:
                message = create_document(store, doc, existing, fiscal_year)
                form_values = {}
            except ValueError as e:
                message = str(e)
            finally:
                unsubscribe()
        prefill = [{} for _ in range(5)]
        as_of = request.args.get('expired_as_of', '').strip()
        if as_of and doc['type'] == workflow.DISPOSAL and can_create:
            try:
                expired = expired_items(store.all(records.INVENTORY), normalize_date(as_of), request.args.get('store_id', ''))
                if expired:
                    prefill = [dict(line, quantity=format_quantity(line['quantity']), rate=format_amount(line['rate']))
                               for line in disposal_lines(expired)]
                    form_values = {doc['date_field']: normalize_date(as_of)}
                    message = f'{len(expired)} expired item(s) loaded successfully.'
                else:
                    message = 'म्याद सकिएको कुनै सामान भेटिएन (No expired items found)'
            except ValueError as e:
                message = str(e)
        entries = store.all(collection, {'fiscal_year': fiscal_year})
        entries.sort(key=lambda r: serial_number(r.get(doc['number_field'])), reverse=True)
        item_names = sorted({i.get('item_name') for i in store.all(records.INVENTORY) if i.get('item_name')})
        return render_template_string(DOCUMENT_LIST_TEMPLATE, nav_links=get_nav_links(), message=message,
                                      doc=doc, slug=doc_type, fiscal_year=fiscal_year,
                                      actionable=workflow.actionable(doc['type'], entries, role),
                                      tracked=workflow.tracked(doc['type'], entries, role),
                                      can_create=can_create, next_no=next_serial(entries, fiscal_year, doc['number_field']),
                                      input_columns=input_columns(doc), item_names=item_names, form_values=form_values,
                                      prefill=prefill, as_of=as_of, stores=store.all(records.STORES),
                                      can_load_expired=doc['type'] == workflow.DISPOSAL and can_create)
    except ServerSelectionTimeoutError:
        return render_template_string(DOCUMENT_LIST_TEMPLATE, nav_links=get_nav_links(), message=DB_ERROR,
                                      doc=doc, slug=doc_type, actionable=[], tracked=[], can_create=False), 500
    finally:
        client.close()
@app.route('/documents/<doc_type>/<record_id>', methods=['GET', 'POST'])
@login_required
def view_document(doc_type, record_id):
    doc = DOCUMENT_TYPES.get(doc_type)
    if doc is None:
        abort(404)
    role = current_role()
    collection = approvals.COLLECTIONS[doc['type']]
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        record = store.get(collection, record_id)
        if record is None:
            abort(404)
        if request.method == 'POST':
            action = request.form.get('action')
            unsubscribe = audit_logger.audit_store(store, doc['type'])
            try:
                if action == 'advance':
                    approvals.advance(store, doc['type'], record_id, role, action_fields(store, doc['type'], record, role))
                    message = 'Status updated successfully.'
                elif action == 'reject':
                    approvals.reject(store, doc['type'], record_id, role, request.form.get('reason', ''))
                    message = 'Record rejected successfully.'
                elif action == 'save':
                    save_lines(store, doc, record, role)
                    message = 'Lines saved successfully.'
                else:
                    message = 'Unknown action.'
            except (workflow.WorkflowError, ValueError) as e:
                message = str(e)
            finally:
                unsubscribe()
            record = store.get(collection, record_id)
        status = record.get('status')
        can_act = workflow.can_act(doc['type'], status, role)
        return render_template_string(DOCUMENT_VIEW_TEMPLATE, nav_links=get_nav_links(), message=message,
                                      doc=doc, slug=doc_type, record=record, settings=records.load_settings(store),
                                      columns=doc['columns'], numeric=NUMERIC_COLUMNS, computed=COMPUTED_COLUMNS,
                                      totals=document_totals(doc['type'], record.get('items') or []),
                                      signatures=doc['signatures'],
                                      editable=workflow.is_editable(doc['type'], status, role),
                                      can_act=can_act,
                                      next_status=workflow.next_status(doc['type'], status, role) if can_act else None,
                                      action_inputs=action_inputs(store, doc['type'], status) if can_act else [],
                                      can_reject=workflow.can_reject(doc['type'], status, role),
                                      can_request_stock=(doc['type'] == workflow.PURCHASE_ORDER
                                                         and status == workflow.GENERATED
                                                         and role == workflow.STOREKEEPER))
    except ServerSelectionTimeoutError:
        return render_template_string(DOCUMENT_VIEW_TEMPLATE, nav_links=get_nav_links(), message=DB_ERROR,
                                      doc=doc, slug=doc_type, record={}, settings=records.DEFAULT_SETTINGS,
                                      columns=[], totals={}, signatures=[]), 500
    finally:
        client.close()
def build_stock_request(fiscal_year, purchase_order=None):
    date = normalize_date(request.form.get('request_date_bs'))
    validate_document_date(date, fiscal_year)
    items = parse_lines(STOCK_LINE_COLUMNS)
    for item in items:
        item['item_type'] = item.get('item_type') if item.get('item_type') in ITEM_TYPES else 'Expendable'
    mode = request.form.get('mode', 'add')
    user = session['user']
    return {
        'request_date_bs': date,
        'fiscal_year': fiscal_year,
        'store_id': request.form.get('store_id', ''),
        'receipt_source': 'Opening' if mode == 'opening' else request.form.get('receipt_source', '').strip(),
        'supplier': request.form.get('supplier', '').strip(),
        'ref_no': request.form.get('ref_no', '').strip(),
        'purchase_order_id': purchase_order['id'] if purchase_order else '',
        'items': items,
        'mode': mode,
        'requested_by': user['login'],
        'requester_name': user.get('name', ''),
        'requester_designation': user.get('designation', ''),
    }
def render_stock_entries(store, message=None, purchase_order=None):
    role = current_role()
    entries = store.all(records.STOCK_REQUESTS)
    entries.sort(key=lambda r: str(r.get('request_date_bs') or ''), reverse=True)
    if purchase_order:
        prefill = [
            {'item_name': i.get('name', ''), 'specification': i.get('specification', ''), 'unit': i.get('unit', ''),
             'current_quantity': format_quantity(i.get('quantity')), 'rate': format_amount(i.get('rate')),
             'item_type': 'Expendable', 'remarks': i.get('remarks', '')}
            for i in purchase_order.get('items') or []
        ]
        form_action = url_for('purchase_order_stock_request', record_id=purchase_order['id'])
    else:
        prefill = [{} for _ in range(5)]
        form_action = url_for('stock_entries')
    return render_template_string(STOCK_ENTRIES_TEMPLATE, nav_links=get_nav_links(), message=message,
                                  pending=[r for r in entries if r.get('status') == workflow.PENDING],
                                  history=[r for r in entries if r.get('status') != workflow.PENDING],
                                  is_approver=workflow.is_approver(role),
                                  can_request=role in (workflow.STOREKEEPER,) + ADMINS,
                                  purchase_order=purchase_order, prefill=prefill, form_action=form_action,
                                  line_columns=STOCK_LINE_COLUMNS, stores=store.all(records.STORES),
                                  firms=store.all(records.FIRMS))
@app.route('/stock-entries', methods=['GET', 'POST'])
@login_required
def stock_entries():
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        if request.method == 'POST':
            if current_role() not in (workflow.STOREKEEPER,) + ADMINS:
                flash('Access denied for your role.')
                return redirect(url_for('stock_entries'))
            unsubscribe = audit_logger.audit_store(store, workflow.STOCK_ENTRY)
            try:
                approvals.request_stock_entry(store, build_stock_request(current_fiscal_year()), current_role())
                message = 'Stock entry request submitted successfully.'
            except (workflow.WorkflowError, ValueError) as e:
                message = str(e)
            finally:
                unsubscribe()
        return render_stock_entries(store, message)
    except ServerSelectionTimeoutError:
        return render_template_string(STOCK_ENTRIES_TEMPLATE, nav_links=get_nav_links(), message=DB_ERROR), 500
    finally:
        client.close()
@app.route('/purchase-orders/<record_id>/stock-request', methods=['GET', 'POST'])
@login_required
@roles_required(workflow.STOREKEEPER)
def purchase_order_stock_request(record_id):
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        order = store.get(records.PURCHASE_ORDERS, record_id)
        if order is None:
            abort(404)
        if request.method == 'POST':
            unsubscribe = audit_logger.audit_store(store, workflow.STOCK_ENTRY)
            try:
                approvals.request_stock_entry(store, build_stock_request(order.get('fiscal_year') or current_fiscal_year(), order), current_role())
                flash(f"Stock entry requested for order {order.get('order_no')}.")
                return redirect(url_for('stock_entries'))
            except (workflow.WorkflowError, ValueError) as e:
                message = str(e)
            finally:
                unsubscribe()
        if order.get('status') != workflow.GENERATED:
            message = message or f"Order is {order.get('status')}; stock entry can only be requested once it is Generated."
        return render_stock_entries(store, message, purchase_order=order)
    except ServerSelectionTimeoutError:
        return render_template_string(STOCK_ENTRIES_TEMPLATE, nav_links=get_nav_links(), message=DB_ERROR), 500
    finally:
        client.close()
@app.route('/stock-entries/<request_id>/approve', methods=['POST'])
@login_required
@roles_required(*workflow.APPROVER_ROLES)
def approve_stock_entry(request_id):
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        unsubscribe = audit_logger.audit_store(store, workflow.STOCK_ENTRY)
        try:
            user = session['user']
            report = approvals.approve_stock_entry(store, request_id, user.get('name'), user.get('designation', ''))
        finally:
            unsubscribe()
        if report is None:
            flash('This request has already been processed.')
        else:
            flash(f"Stock entry approved; दाखिला no. {report['dakhila_no']} created.")
    except ServerSelectionTimeoutError:
        flash(DB_ERROR)
    finally:
        client.close()
    return redirect(url_for('stock_entries'))
@app.route('/stock-entries/<request_id>/reject', methods=['POST'])
@login_required
@roles_required(*workflow.APPROVER_ROLES)
def reject_stock_entry(request_id):
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        unsubscribe = audit_logger.audit_store(store, workflow.STOCK_ENTRY)
        try:
            approvals.reject_stock_entry(store, request_id, request.form.get('reason', ''), session['user'].get('name'))
            flash('Stock entry request rejected.')
        except workflow.WorkflowError as e:
            flash(str(e))
        finally:
            unsubscribe()
    except ServerSelectionTimeoutError:
        flash(DB_ERROR)
    finally:
        client.close()
    return redirect(url_for('stock_entries'))
@app.route('/inventory', methods=['GET'])
@login_required
def inventory():
    q = request.args.get('q', '').strip()
    item_type = request.args.get('item_type', '')
    store_id = request.args.get('store_id', '')
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        query = {}
        if item_type:
            query['item_type'] = item_type
        if store_id:
            query['store_id'] = store_id
        items = store.all(records.INVENTORY, query)
        if q:
            items = [i for i in items if q.lower() in str(i.get('item_name', '')).lower()
                     or q.lower() in str(i.get('unique_code', '')).lower()]
        items.sort(key=lambda i: str(i.get('item_name', '')).lower())
        return render_template_string(INVENTORY_TEMPLATE, nav_links=get_nav_links(), items=items, q=q,
                                      item_type=item_type, store_id=store_id, item_types=ITEM_TYPES,
                                      stores=store.all(records.STORES), message=None,
                                      can_edit=current_role() in (workflow.STOREKEEPER,) + ADMINS)
    except ServerSelectionTimeoutError:
        return render_template_string(INVENTORY_TEMPLATE, nav_links=get_nav_links(), items=[], message=DB_ERROR), 500
    finally:
        client.close()
@app.route('/inventory/<item_id>/edit', methods=['GET', 'POST'])
@login_required
@roles_required(workflow.STOREKEEPER, *ADMINS)
def edit_inventory_item(item_id):
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        item = store.get(records.INVENTORY, item_id)
        if item is None:
            abort(404)
        if request.method == 'POST':
            try:
                changes = clean_item_edit(request.form.to_dict())
                unsubscribe = audit_logger.audit_store(store, 'inventory_item')
                try:
                    store.update(records.INVENTORY, item_id, changes)
                finally:
                    unsubscribe()
                message = 'Item updated successfully.'
                item = store.get(records.INVENTORY, item_id)
            except ValueError as e:
                message = f'Invalid input: {e}'
                item = dict(item, **request.form.to_dict())
        return render_template_string(INVENTORY_EDIT_TEMPLATE, nav_links=get_nav_links(), message=message, item=item,
                                      item_types=ITEM_TYPES, stores=store.all(records.STORES))
    except ServerSelectionTimeoutError:
        return render_template_string(INVENTORY_EDIT_TEMPLATE, nav_links=get_nav_links(), message=DB_ERROR,
                                      item={}, item_types=ITEM_TYPES, stores=[]), 500
    finally:
        client.close()
@app.route('/inventory/monthly-report', methods=['GET', 'POST'])
@login_required
def inventory_monthly_report():
    values = request.form if request.method == 'POST' else request.args
    fiscal_year = values.get('fiscal_year') or current_fiscal_year()
    filters = {field: values.get(field, '').strip() for field in ('from_date', 'to_date', 'from_page', 'to_page')}
    filters['from_date'] = normalize_date(filters['from_date'])
    filters['to_date'] = normalize_date(filters['to_date'])
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        data = store.snapshot(records.INVENTORY, records.DAKHILA_REPORTS, records.ISSUE_REPORTS, records.RETURN_ENTRIES)
        rows = stock_report(data[records.INVENTORY], fiscal_year, data[records.DAKHILA_REPORTS],
                            data[records.ISSUE_REPORTS], data[records.RETURN_ENTRIES], **filters)
        if request.method == 'POST':
            unsubscribe = audit_logger.audit_store(store, workflow.DEMAND_FORM)
            try:
                form = approvals.restock_demand_form(store, restock_lines(rows), current_fiscal_year(),
                                                     request.form.get('date'), user_signature(),
                                                     created_by=session['user']['login'])
                message = f"माग फारम नं {form['form_no']} saved successfully."
            except ValueError as e:
                message = str(e)
            finally:
                unsubscribe()
        return render_template_string(MONTHLY_REPORT_TEMPLATE, nav_links=get_nav_links(), message=message,
                                      settings=records.load_settings(store), rows=rows, fiscal_year=fiscal_year,
                                      fiscal_years=FISCAL_YEARS, filters=filters,
                                      report_month=month_name(filters['to_date'] or filters['from_date']))
    except ServerSelectionTimeoutError:
        return render_template_string(MONTHLY_REPORT_TEMPLATE, nav_links=get_nav_links(), message=DB_ERROR,
                                      settings=records.DEFAULT_SETTINGS, rows=[], fiscal_year=fiscal_year,
                                      fiscal_years=FISCAL_YEARS, filters=filters, report_month=''), 500
    finally:
        client.close()
def render_ledger(item_name, fiscal_year, ledger_type):
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        data = store.snapshot(records.DAKHILA_REPORTS, records.ISSUE_REPORTS, records.RETURN_ENTRIES, records.INVENTORY)
        item_names = sorted({
            i.get('item_name') for i in data[records.INVENTORY]
            if i.get('item_name') and i.get('item_type', 'Expendable') == ledger_type
        })
        rows = build_ledger(item_name, fiscal_year, data[records.DAKHILA_REPORTS],
                            data[records.ISSUE_REPORTS], data[records.RETURN_ENTRIES])
        return render_template_string(LEDGER_TEMPLATE, nav_links=get_nav_links(), settings=records.load_settings(store),
                                      item_name=item_name, fiscal_year=fiscal_year, fiscal_years=FISCAL_YEARS,
                                      ledger_type=ledger_type, item_types=ITEM_TYPES, item_names=item_names,
                                      rows=rows, summary=ledger_summary(rows), message=None)
    except ServerSelectionTimeoutError:
        return render_template_string(LEDGER_TEMPLATE, nav_links=get_nav_links(), settings=records.DEFAULT_SETTINGS,
                                      message=DB_ERROR), 500
    finally:
        client.close()
@app.route('/jinshi-khata', methods=['GET'])
@login_required
def jinshi_khata():
    return render_ledger(request.args.get('item', '').strip(),
                         request.args.get('fiscal_year') or current_fiscal_year(),
                         request.args.get('ledger_type') or 'Expendable')
@app.route('/ledger/<path:item_name>', methods=['GET'])
@login_required
def item_ledger(item_name):
    # URL decode item_name if necessary
    item_name = requests.utils.unquote(item_name)
    return render_ledger(item_name, current_fiscal_year(), request.args.get('ledger_type') or 'Expendable')
@app.route('/sahayak-jinshi-khata', methods=['GET'])
@login_required
def sahayak_jinshi_khata():
    person = request.args.get('person', '').strip()
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        data = store.snapshot(records.USERS, records.ISSUE_REPORTS, records.RETURN_ENTRIES, records.INVENTORY)
        rows, cleared = build_custody_ledger(person, data[records.ISSUE_REPORTS],
                                             data[records.RETURN_ENTRIES], data[records.INVENTORY])
        return render_template_string(CUSTODY_TEMPLATE, nav_links=get_nav_links(), settings=records.load_settings(store),
                                      people=custody_people(data[records.USERS], data[records.ISSUE_REPORTS]),
                                      person=person, rows=rows, cleared=cleared, message=None)
    except ServerSelectionTimeoutError:
        return render_template_string(CUSTODY_TEMPLATE, nav_links=get_nav_links(), settings=records.DEFAULT_SETTINGS,
                                      message=DB_ERROR), 500
    finally:
        client.close()
@app.route('/rabies', methods=['GET', 'POST'])
@login_required
def rabies_register():
    fiscal_year = current_fiscal_year()
    q = request.args.get('q', '').strip().lower()
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        patients = store.all(records.RABIES_PATIENTS)
        if request.method == 'POST':
            reg_date_bs = normalize_date(request.form.get('reg_date_bs'))
            patient = {
                'fiscal_year': fiscal_year,
                'reg_no': generate_reg_no(patients, fiscal_year),
                'reg_date_bs': reg_date_bs,
                'reg_month': reg_date_bs[5:7],
                'reg_date_ad': request.form.get('reg_date_ad', '').strip(),
                'exposure_date_bs': normalize_date(request.form.get('exposure_date_bs')),
                'regimen': request.form.get('regimen', 'Intradermal'),
            }
            for field in ('name', 'age', 'sex', 'address', 'phone', 'animal_type', 'exposure_category', 'body_part'):
                patient[field] = request.form.get(field, '').strip()
            try:
                validate_registration(patient)
                patient['schedule'] = calculate_schedule(patient['reg_date_ad'], patient['regimen'])
                if not patient['schedule']:
                    raise ValueError('Registration date (AD) is required to build the vaccination schedule.')
                unsubscribe = audit_logger.audit_store(store, 'rabies_patient')
                try:
                    store.save(records.RABIES_PATIENTS, patient)
                finally:
                    unsubscribe()
                message = f"Patient {patient['reg_no']} registered successfully."
                patients = store.all(records.RABIES_PATIENTS)
            except ValueError as e:
                message = str(e)
        listed = [p for p in patients if p.get('fiscal_year') == fiscal_year]
        if q:
            listed = [p for p in listed if q in str(p.get('name', '')).lower() or q in str(p.get('reg_no', '')).lower()]
        listed.sort(key=lambda p: str(p.get('reg_no', '')), reverse=True)
        return render_template_string(RABIES_TEMPLATE, nav_links=get_nav_links(), message=message, patients=listed,
                                      q=q, animals=ANIMALS, next_reg_no=generate_reg_no(patients, fiscal_year))
    except ServerSelectionTimeoutError:
        return render_template_string(RABIES_TEMPLATE, nav_links=get_nav_links(), patients=[], message=DB_ERROR), 500
    finally:
        client.close()
@app.route('/rabies/<patient_id>/dose/<int:index>', methods=['POST'])
@login_required
def rabies_dose(patient_id, index):
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        patient = store.get(records.RABIES_PATIENTS, patient_id)
        if patient is None:
            abort(404)
        try:
            if request.form.get('action') == 'revert':
                updated = revert_dose(patient, index)
            else:
                updated = mark_dose_given(patient, index, request.form.get('given_date', ''))
            store.update(records.RABIES_PATIENTS, patient_id, {'schedule': updated['schedule']})
        except ValueError as e:
            flash(str(e))
    except ServerSelectionTimeoutError:
        flash(DB_ERROR)
    finally:
        client.close()
    return redirect(url_for('rabies_register'))
@app.route('/rabies/report', methods=['GET', 'POST'])
@login_required
def rabies_report():
    values = request.form if request.method == 'POST' else request.args
    fiscal_year = values.get('fiscal_year') or current_fiscal_year()
    month = values.get('month') or datetime.now().strftime('%m')
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        saved = store.get(records.RABIES_STOCK, stock_record_id(fiscal_year, month))
        if request.method == 'POST':
            try:
                stock = vaccine_stock(request.form.get('opening'), request.form.get('received'),
                                      request.form.get('expenditure'))
                unsubscribe = audit_logger.audit_store(store, 'rabies_stock')
                try:
                    saved = store.save(records.RABIES_STOCK, dict(stock, id=stock_record_id(fiscal_year, month),
                                                                  fiscal_year=fiscal_year, month=month))
                finally:
                    unsubscribe()
                message = 'Vaccine stock saved successfully.'
            except ValueError as e:
                message = str(e)
        earlier = previous_month(month)
        previous = store.get(records.RABIES_STOCK, stock_record_id(fiscal_year, earlier)) if earlier else None
        report = monthly_report(store.all(records.RABIES_PATIENTS), fiscal_year, month)
        return render_template_string(RABIES_REPORT_TEMPLATE, nav_links=get_nav_links(), message=message,
                                      settings=records.load_settings(store),
                                      fiscal_year=fiscal_year, fiscal_years=FISCAL_YEARS, month=month,
                                      months=NEPALI_MONTHS, report=report, row_labels=REPORT_ROWS,
                                      animal_labels=ANIMAL_LABELS, stock=opening_stock(saved, previous))
    except ServerSelectionTimeoutError:
        return DB_ERROR, 500
    finally:
        client.close()
@app.route('/users', methods=['GET', 'POST'])
@login_required
@roles_required(*ADMINS)
@audited('UPDATE', 'user')
def users():
    message = None
    role = current_role()
    # Only a super admin hands out super admin
    assignable = workflow.ROLES if role == workflow.SUPER_ADMIN else [r for r in workflow.ROLES if r != workflow.SUPER_ADMIN]
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        if request.method == 'POST':
            delete_id = request.form.get('delete_id')
            if delete_id:
                target = store.get(records.USERS, delete_id)
                if delete_id == session['user'].get('id'):
                    message = 'You cannot delete your own account.'
                elif target and target.get('role') == workflow.SUPER_ADMIN and role != workflow.SUPER_ADMIN:
                    message = 'Only a super admin can delete a super admin.'
                elif store.delete(records.USERS, delete_id):
                    message = f"User {target.get('username')} deleted successfully."
                else:
                    message = 'User not found.'
            else:
                username = request.form.get('username', '').strip()
                password = request.form.get('password', '')
                full_name = request.form.get('full_name', '').strip()
                new_role = request.form.get('role')
                if not username or not password or not full_name:
                    message = 'Username, password and full name are required.'
                elif new_role not in assignable:
                    message = 'You cannot assign that role.'
                elif store.find_one(records.USERS, {'username': username}):
                    message = 'Username already exists.'
                else:
                    store.save(records.USERS, {
                        'username': username,
                        'password_hash': generate_password_hash(password),
                        'full_name': full_name,
                        'designation': request.form.get('designation', '').strip(),
                        'phone_number': request.form.get('phone_number', '').strip(),
                        'organization_name': records.load_settings(store).get('org_name_nepali'),
                        'role': new_role,
                    })
                    message = f'User {username} added successfully.'
        user_list = sorted(store.all(records.USERS), key=lambda u: u.get('username', ''))
        return render_template_string(USERS_TEMPLATE, nav_links=get_nav_links(), message=message, users=user_list,
                                      roles=assignable, current_user_id=session['user'].get('id'))
    except ServerSelectionTimeoutError:
        return render_template_string(USERS_TEMPLATE, nav_links=get_nav_links(), users=[], message=DB_ERROR), 500
    finally:
        client.close()
@app.route('/settings', methods=['GET', 'POST'])
@login_required
@roles_required(*ADMINS)
@audited('UPDATE', 'settings')
def settings():
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        if request.method == 'POST':
            values = {field: request.form.get(field, '').strip() for field, _ in SETTINGS_FIELDS}
            values['id'] = 'organization'
            store.save(records.SETTINGS, values)
            message = 'Settings saved successfully.'
        return render_template_string(SETTINGS_TEMPLATE, nav_links=get_nav_links(), message=message,
                                      settings=records.load_settings(store), fields=SETTINGS_FIELDS)
    except ServerSelectionTimeoutError:
        return render_template_string(SETTINGS_TEMPLATE, nav_links=get_nav_links(), settings=records.DEFAULT_SETTINGS,
                                      fields=SETTINGS_FIELDS, message=DB_ERROR), 500
    finally:
        client.close()
def named_list(collection, title, fields):
    message = None
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        if request.method == 'POST':
            delete_id = request.form.get('delete_id')
            if delete_id:
                message = 'Deleted successfully.' if store.delete(collection, delete_id) else 'Record not found.'
            else:
                entry = {field: request.form.get(field, '').strip() for field, _ in fields}
                if not entry[fields[0][0]]:
                    message = f'{fields[0][1]} is required.'
                elif store.find_one(collection, {fields[0][0]: entry[fields[0][0]]}):
                    message = f"{entry[fields[0][0]]} already exists."
                else:
                    store.save(collection, entry)
                    message = f"{entry[fields[0][0]]} added successfully."
        entries = sorted(store.all(collection), key=lambda e: str(e.get('name', '')).lower())
        return render_template_string(NAMED_LIST_TEMPLATE, nav_links=get_nav_links(), message=message,
                                      title=title, fields=fields, entries=entries)
    except ServerSelectionTimeoutError:
        return render_template_string(NAMED_LIST_TEMPLATE, nav_links=get_nav_links(), message=DB_ERROR,
                                      title=title, fields=fields, entries=[]), 500
    finally:
        client.close()
@app.route('/stores', methods=['GET', 'POST'])
@login_required
@roles_required(workflow.STOREKEEPER, *ADMINS)
@audited('UPDATE', 'store')
def stores():
    return named_list(records.STORES, 'Stores', STORE_FIELDS)
@app.route('/firms', methods=['GET', 'POST'])
@login_required
@roles_required(workflow.STOREKEEPER, *ADMINS)
@audited('UPDATE', 'firm')
def firms():
    return named_list(records.FIRMS, 'Firms & Suppliers', FIRM_FIELDS)
@app.route('/api/items', methods=['GET'])
@login_required
def get_item_suggestions():
    query = request.args.get('query', '').lower()
    client = records.get_mongo_client()
    try:
        store = records.RecordStore(records.get_database(client))
        names = sorted({i.get('item_name') for i in store.all(records.INVENTORY) if i.get('item_name')})
        matching = [n for n in names if query in n.lower()][:20]
        return jsonify(matching)
    except ServerSelectionTimeoutError:
        return jsonify({'error': DB_ERROR}), 500
    finally:
        client.close()
if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
