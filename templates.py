# CSS for all templates (same colors, form replicas print cleanly from the browser)
CSS_STYLE = """
<style>
    body {
        font-family: Arial, 'Noto Sans Devanagari', sans-serif;
        max-width: 1200px;
        margin: 0 auto;
        padding: 20px;
        background-color: #f8f9fa;
        color: #333;
    }
    h1 {
        color: #0056b3;
        text-align: center;
        margin-bottom: 20px;
    }
    h2 {
        color: #343a40;
        margin-top: 30px;
    }
    h3 {
        color: #495057;
        margin-top: 10px;
    }
    .nav-links {
        text-align: center;
        margin-bottom: 20px;
        font-size: 16px;
        position: sticky;
        top: 0;
        background-color: #f8f9fa;
        z-index: 100;
        padding: 10px 0;
        box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        border-bottom: 1px solid #dee2e6;
    }
    .nav-links a {
        color: #0056b3;
        text-decoration: none;
        margin: 0 6px;
        font-weight: bold;
    }
    .nav-links a:hover {
        text-decoration: underline;
        color: #003d80;
    }

    form {
        background-color: #fff;
        padding: 20px;
        border-radius: 8px;
        box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        max-width: 1100px;
        margin: 0 auto 20px;
    }
    form.inline {
        display: inline;
        padding: 0;
        margin: 0;
        box-shadow: none;
        background: none;
    }

    .common-section {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 15px;
        margin-bottom: 20px;
    }

    .line-row input {
        width: 100%;
        padding: 6px;
        border: 1px solid #ced4da;
        border-radius: 4px;
        box-sizing: border-box;
    }

    form label {
        display: block;
        margin: 10px 0 5px;
        font-weight: bold;
    }

    form input, form select, form textarea {
        width: 100%;
        padding: 8px;
        margin-bottom: 10px;
        border: 1px solid #ced4da;
        border-radius: 4px;
        box-sizing: border-box;
    }

    .form-buttons {
        text-align: center;
    }

    form input[type="submit"],
    form button {
        background-color: #0056b3;
        color: #fff;
        border: none;
        padding: 12px 26px;
        border-radius: 6px;
        cursor: pointer;
        margin: 10px 8px;
        display: inline-block;
        font-weight: bold;
        font-size: 15px;
        width: auto;
        transition: all 0.25s ease-in-out;
        box-shadow: 0 3px 6px rgba(0,0,0,0.15);
    }

    form input[type="submit"]:hover,
    form button:hover {
        background-color: #003d80;
        transform: translateY(-2px);
        box-shadow: 0 5px 10px rgba(0,0,0,0.2);
    }

    /* === Action Buttons (Approve / Reject / View) === */
    .action-buttons button {
        padding: 6px 10px;
        border-radius: 4px;
        font-size: 13px;
        font-weight: 600;
        border: none;
        cursor: pointer;
        margin: 2px;
        box-shadow: 0 2px 4px rgba(0,0,0,0.1);
    }
    .action-buttons .delete-btn, form button.delete-btn {
        background-color: #dc3545;
        color: #fff;
    }
    .action-buttons .edit-btn {
        background-color: #ffc107;
        color: #212529;
    }
    .action-buttons .view-btn, form button.view-btn {
        background-color: #28a745;
        color: white;
    }

    table {
        width: 100%;
        border-collapse: collapse;
        background-color: #fff;
        box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        margin-top: 20px;
    }

    table th, table td {
        padding: 8px;
        text-align: left;
        border: 1px solid #dee2e6;
    }

    table th {
        background-color: #0056b3;
        color: #fff;
        font-weight: bold;
    }

    table tr:nth-child(even) {
        background-color: #f8f9fa;
    }

    table td.num, table th.num {
        text-align: right;
    }

    table tfoot td {
        font-weight: bold;
        background-color: #e9ecef;
    }

    .status {
        padding: 2px 8px;
        border-radius: 10px;
        font-size: 12px;
        font-weight: bold;
        background-color: #e3f2fd;
        color: #1976d2;
    }
    .status.Rejected { background-color: #f8d7da; color: #721c24; }
    .status.Approved, .status.Issued, .status.Completed, .status.Final, .status.Generated {
        background-color: #d4edda; color: #155724;
    }

    .out-of-stock {
        background-color: #e3f2fd !important;
        color: #1976d2 !important;
    }

    .message {
        padding: 10px;
        margin-bottom: 20px;
        border-radius: 4px;
        text-align: center;
        font-weight: bold;
        white-space: pre-line;
    }

    .message.success {
        background-color: #d4edda;
        color: #155724;
    }

    .message.error {
        background-color: #f8d7da;
        color: #721c24;
    }

    .banner {
        padding: 14px;
        border-radius: 6px;
        text-align: center;
        font-size: 18px;
        font-weight: bold;
        margin: 15px 0;
    }
    .banner.cleared { background-color: #d4edda; color: #155724; border: 2px solid #28a745; }
    .banner.not-cleared { background-color: #f8d7da; color: #721c24; border: 2px solid #dc3545; }

    .filter-form {
        background-color: #fff;
        padding: 15px;
        border-radius: 8px;
        box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        margin-bottom: 20px;
    }

    .filter-section {
        display: grid;
        grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
        gap: 15px;
        align-items: end;
    }

    .form-header {
        text-align: center;
        line-height: 1.4;
    }
    .form-header .org { font-size: 20px; font-weight: bold; }

    .signatures {
        display: grid;
        grid-template-columns: repeat(4, 1fr);
        gap: 15px;
        margin-top: 30px;
        font-size: 14px;
    }
    .signatures div { border-top: 1px dotted #333; padding-top: 5px; }

    .cards {
        display: grid;
        grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
        gap: 15px;
    }
    .card {
        background: #fff;
        border-radius: 8px;
        padding: 15px;
        box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        text-align: center;
    }
    .card .count { font-size: 28px; font-weight: bold; color: #0056b3; }

    .login-form, .register-form {
        max-width: 400px;
        margin: 60px auto;
        padding: 20px;
        background-color: #fff;
        border-radius: 8px;
        box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        text-align: center;
    }

    @media print {
        .nav-links, form:not(.printable), .no-print { display: none !important; }
        form.printable { box-shadow: none; padding: 0; }
        body { background: #fff; max-width: none; }
        table th { background-color: #fff; color: #000; }
    }

    @media (max-width: 600px) {
        body {
            padding: 10px;
        }
        form, table {
            max-width: 100%;
        }
        .common-section, .signatures {
            grid-template-columns: 1fr;
        }
        table th, table td {
            font-size: 14px;
            padding: 6px;
        }
        .filter-section {
            grid-template-columns: 1fr;
        }
    }
</style>
"""

MESSAGE_BLOCK = """
{% if message %}
    <p class="message {% if 'successfully' in message|lower %}success{% else %}error{% endif %}">{{ message }}</p>
{% endif %}
{% with flashed = get_flashed_messages() %}
    {% for m in flashed %}<p class="message error">{{ m }}</p>{% endfor %}
{% endwith %}
"""

LOGIN_TEMPLATE = CSS_STYLE + """
<h1>Smart Health Inventory Login</h1>
<div class="login-form">
    <h2>Login</h2>
    {% if error %}
        <p class="message error">{{ error }}</p>
    {% endif %}
    {% if message %}
        <p class="message success">{{ message }}</p>
    {% endif %}
    <form method="POST">
        <label>Username:</label>
        <input type="text" name="username" required><br>
        <label>Password:</label>
        <input type="password" name="password" required><br>
        <label>आर्थिक वर्ष (Fiscal Year):</label>
        <select name="fiscal_year">
            {% for fy in fiscal_years %}
                <option value="{{ fy.value }}" {% if fy.value == default_fiscal_year %}selected{% endif %}>{{ fy.label }}</option>
            {% endfor %}
        </select>
        <input type="submit" value="Login">
    </form>
    <p><a href="/register">Need the first account? Register here.</a></p>
</div>
"""
# Register Password Template
REGISTER_PASSWORD_TEMPLATE = CSS_STYLE + """
<h1>Smart Health Registration</h1>
<div class="register-form">
    <h2>Admin Access Required</h2>
    {% if error %}
        <p class="message error">{{ error }}</p>
    {% endif %}
    <form method="POST">
        <label>Admin Password:</label>
        <input type="password" name="admin_pass" required><br>
        <input type="submit" value="Access Registration">
    </form>
    <p><a href="/login">Back to Login</a></p>
</div>
"""
# Register Template
REGISTER_TEMPLATE = CSS_STYLE + """
<h1>Smart Health Registration</h1>
<div class="register-form">
    <h2>Register</h2>
    {% if error %}
        <p class="message error">{{ error }}</p>
    {% endif %}
    <form method="POST">
        <label>Username:</label>
        <input type="text" name="username" required><br>
        <label>Password:</label>
        <input type="password" name="password" required><br>
        <label>Full Name:</label>
        <input type="text" name="full_name" required><br>
        <label>Designation:</label>
        <input type="text" name="designation"><br>
        <label>Role:</label>
        <select name="role" required>
            {% for role in roles %}<option value="{{ role }}">{{ role }}</option>{% endfor %}
        </select><br>
        <input type="submit" value="Register">
    </form>
    <p><a href="/login">Already have an account? Login here.</a></p>
</div>
"""

CHANGE_PASSWORD_TEMPLATE = CSS_STYLE + """
<h1>Change Password</h1>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<p><a href="{{ url_for('inventory_monthly_report') }}">मासिक प्रतिवेदन (Monthly report)</a></p>
<div class="register-form">
    <form method="POST">
        <label>Current Password:</label>
        <input type="password" name="current_password" required>
        <label>New Password:</label>
        <input type="password" name="new_password" required>
        <label>Confirm New Password:</label>
        <input type="password" name="confirm_password" required>
        <input type="submit" value="Change Password">
    </form>
</div>
"""

DASHBOARD_TEMPLATE = CSS_STYLE + """
<h1>{{ settings.org_name_nepali }}</h1>
<p style="text-align:center">{{ settings.sub_title_nepali_2 }} | आर्थिक वर्ष {{ fiscal_year }}</p>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<h2>Waiting on you ({{ role }})</h2>
<div class="cards">
    {% for card in cards %}
        <div class="card">
            <div class="count">{{ card.count }}</div>
            <a href="{{ card.url }}">{{ card.title }}</a>
        </div>
    {% endfor %}
</div>
<h2>Latest approved stock entry</h2>
{% if latest_stock_entry %}
    <table>
        <tr><th>Date</th><th>Source</th><th>Supplier</th><th>Items</th><th>Approved by</th></tr>
        <tr>
            <td>{{ latest_stock_entry.request_date_bs }}</td>
            <td>{{ latest_stock_entry.receipt_source }}</td>
            <td>{{ latest_stock_entry.supplier }}</td>
            <td>{{ latest_stock_entry['items']|length }}</td>
            <td>{{ latest_stock_entry.approved_by }}</td>
        </tr>
    </table>
{% else %}
    <p>No approved stock entries yet.</p>
{% endif %}
{% if doses_due %}
    <h2>Rabies doses due today</h2>
    <table>
        <tr><th>Reg. No</th><th>Name</th><th>Day</th><th>Scheduled</th></tr>
        {% for patient, index in doses_due %}
            <tr>
                <td>{{ patient.reg_no }}</td><td>{{ patient.name }}</td>
                <td>D{{ patient.schedule[index].day }}</td><td>{{ patient.schedule[index].date }}</td>
            </tr>
        {% endfor %}
    </table>
{% endif %}
"""

DOCUMENT_LIST_TEMPLATE = CSS_STYLE + """
<h1>{{ doc.title }}</h1>
<p style="text-align:center">आर्थिक वर्ष {{ fiscal_year }}</p>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<h2>Waiting on you</h2>
{% if actionable %}
<table>
    <tr><th>No.</th><th>Date</th><th>Status</th><th>Items</th><th></th></tr>
    {% for r in actionable %}
        <tr>
            <td>{{ r.get(doc.number_field, '') }}</td>
            <td>{{ r.get(doc.date_field, '') }}</td>
            <td><span class="status {{ r.status }}">{{ r.status }}</span></td>
            <td>{{ r['items']|length }}</td>
            <td class="action-buttons"><a href="{{ url_for('view_document', doc_type=slug, record_id=r.id) }}"><button class="view-btn">Open</button></a></td>
        </tr>
    {% endfor %}
</table>
{% else %}
    <p>Nothing is waiting on you.</p>
{% endif %}

<h2>All records</h2>
<table>
    <tr><th>No.</th><th>Date</th><th>Status</th><th>Items</th><th></th></tr>
    {% for r in tracked %}
        <tr>
            <td>{{ r.get(doc.number_field, '') }}</td>
            <td>{{ r.get(doc.date_field, '') }}</td>
            <td><span class="status {{ r.status }}">{{ r.status }}</span></td>
            <td>{{ r['items']|length }}</td>
            <td class="action-buttons"><a href="{{ url_for('view_document', doc_type=slug, record_id=r.id) }}"><button class="view-btn">View</button></a></td>
        </tr>
    {% endfor %}
</table>

{% if can_create %}
<h2>New {{ doc.title }}</h2>
{% if can_load_expired %}
<form method="GET" action="{{ url_for('documents', doc_type=slug) }}" class="filter-form">
    <div class="filter-section">
        <div>
            <label>म्याद सकिएको मिति सम्म (Expired before, YYYY/MM/DD):</label>
            <input name="expired_as_of" value="{{ as_of }}" placeholder="2081/04/15" required>
        </div>
        <div>
            <label>Store:</label>
            <select name="store_id">
                <option value="">All</option>
                {% for s in stores %}<option value="{{ s.id }}">{{ s.name }}</option>{% endfor %}
            </select>
        </div>
        <div class="button-div"><button type="submit">Load expired stock</button></div>
    </div>
</form>
{% endif %}
<form method="POST" action="{{ url_for('documents', doc_type=slug) }}">
    <div class="common-section">
        <div>
            <label>No.:</label>
            <input name="{{ doc.number_field }}" value="{{ next_no }}" readonly>
        </div>
        <div>
            <label>मिति (Date, YYYY/MM/DD):</label>
            <input name="{{ doc.date_field }}" placeholder="2081/04/15" value="{{ form_values.get(doc.date_field, '') }}" required>
        </div>
        {% for field, label, options in doc.header %}
            <div>
                <label>{{ label }}:</label>
                {% if options %}
                    <select name="{{ field }}">
                        {% for option in options %}{% if option is string %}<option value="{{ option }}">{{ option }}</option>{% else %}<option value="{{ option[0] }}">{{ option[1] }}</option>{% endif %}{% endfor %}
                    </select>
                {% else %}
                    <input name="{{ field }}" value="{{ form_values.get(field, '') }}">
                {% endif %}
            </div>
        {% endfor %}
    </div>
    <datalist id="item-names">
        {% for name in item_names %}<option value="{{ name }}">{% endfor %}
    </datalist>
    <table id="lines">
        <tr>{% for field, label in input_columns %}<th>{{ label }}</th>{% endfor %}</tr>
        {% for line in prefill %}
            <tr class="line-row">
                {% for field, label in input_columns %}
                    <td><input name="line_{{ field }}" value="{{ line.get(field, '') }}" {% if field == 'name' %}list="item-names"{% endif %}></td>
                {% endfor %}
            </tr>
        {% endfor %}
    </table>
    <div class="form-buttons">
        <button type="button" onclick="addLine()">Add Line</button>
        <input type="submit" value="Save">
    </div>
</form>
<script>
    function addLine() {
        const table = document.getElementById('lines');
        const rows = table.getElementsByClassName('line-row');
        const clone = rows[rows.length - 1].cloneNode(true);
        clone.querySelectorAll('input').forEach(input => input.value = '');
        table.appendChild(clone);
    }
</script>
{% endif %}
"""

DOCUMENT_VIEW_TEMPLATE = CSS_STYLE + """
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<div class="form-header">
    <div class="org">{{ settings.org_name_nepali }}</div>
    <div>{{ settings.sub_title_nepali }}</div>
    <div>{{ settings.sub_title_nepali_2 }}</div>
    <div>{{ settings.address }}</div>
    <h2>{{ doc.title }}</h2>
</div>
<p>
    <strong>No.:</strong> {{ record.get(doc.number_field, '') }} &nbsp;
    <strong>मिति:</strong> {{ record.get(doc.date_field, '') }} &nbsp;
    <strong>आर्थिक वर्ष:</strong> {{ record.fiscal_year }} &nbsp;
    <strong>Status:</strong> <span class="status {{ record.status }}">{{ record.status }}</span>
</p>
{% if record.rejection_reason %}
    <p class="message error">अस्वीकृतिको कारण: {{ record.rejection_reason }}</p>
{% endif %}

<form method="POST" class="printable" style="max-width:none">
<table>
    <tr>
        <th>क्र.सं.</th>
        {% for field, label in columns %}<th {% if field in numeric %}class="num"{% endif %}>{{ label }}</th>{% endfor %}
    </tr>
    {% for item in record['items'] %}
        <tr class="line-row">
            <td>{{ loop.index }}</td>
            {% for field, label in columns %}
                {% if editable and field not in computed %}
                    <td><input name="line_{{ field }}" value="{{ item.get(field, '') }}"></td>
                {% elif field in numeric %}
                    <td class="num">{{ item.get(field)|amount }}</td>
                {% else %}
                    <td>{{ item.get(field, '') }}</td>
                {% endif %}
            {% endfor %}
        </tr>
    {% endfor %}
    <tfoot>
        <tr>
            <td>जम्मा (Total)</td>
            {% for field, label in columns %}
                <td class="num">{% if field in totals %}{{ totals[field]|amount }}{% endif %}</td>
            {% endfor %}
        </tr>
    </tfoot>
</table>
{% if editable %}
    <div class="form-buttons">
        <button type="submit" name="action" value="save">Save Lines</button>
    </div>
{% endif %}
</form>

<div class="signatures">
    {% for field, label in signatures %}
        <div>
            <strong>{{ label }}</strong><br>
            {{ record.get(field, {}).get('name', '') }}<br>
            {{ record.get(field, {}).get('designation', '') }}<br>
            {{ record.get(field, {}).get('date', '') }}
        </div>
    {% endfor %}
</div>

{% if can_act %}
<h3>{{ next_status }}</h3>
<form method="POST">
    <input type="hidden" name="action" value="advance">
    <div class="common-section">
        {% for field, label, options in action_inputs %}
            <div>
                <label>{{ label }}:</label>
                {% if options %}
                    <select name="{{ field }}">
                        {% for option in options %}{% if option is string %}<option value="{{ option }}">{{ option }}</option>{% else %}<option value="{{ option[0] }}">{{ option[1] }}</option>{% endif %}{% endfor %}
                    </select>
                {% else %}
                    <input name="{{ field }}">
                {% endif %}
            </div>
        {% endfor %}
        <div>
            <label>मिति (Date):</label>
            <input name="action_date" placeholder="2081/04/15">
        </div>
    </div>
    <div class="form-buttons"><input type="submit" value="Move to {{ next_status }}"></div>
</form>
{% endif %}
{% if can_reject %}
<form method="POST">
    <input type="hidden" name="action" value="reject">
    <label>अस्वीकृतिको कारण (Rejection reason):</label>
    <textarea name="reason"></textarea>
    <div class="form-buttons"><button type="submit" class="delete-btn">Reject</button></div>
</form>
{% endif %}
{% if can_request_stock %}
    <p class="no-print" style="text-align:center"><a href="{{ url_for('purchase_order_stock_request', record_id=record.id) }}">Request stock entry for this order</a></p>
{% endif %}
<p class="no-print" style="text-align:center"><a href="javascript:window.print()">Print</a> | <a href="{{ url_for('documents', doc_type=slug) }}">Back</a></p>
"""

STOCK_ENTRIES_TEMPLATE = CSS_STYLE + """
<h1>जिन्सी मौज्दात प्रविष्टि (Stock Entry Requests)</h1>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
{% if pending %}
<h2>Pending approval</h2>
{% for r in pending %}
    <table>
        <tr><th colspan="7">{{ r.request_date_bs }} | {{ r.receipt_source }} | {{ r.supplier }} | Ref {{ r.ref_no }} | Requested by {{ r.requester_name }}</th></tr>
        <tr><th>Item</th><th>Type</th><th>Unit</th><th class="num">Qty</th><th class="num">Rate</th><th class="num">Tax %</th><th class="num">Grand Total</th></tr>
        {% for item in r['items'] %}
            <tr>
                <td>{{ item.item_name }}</td><td>{{ item.item_type }}</td><td>{{ item.unit }}</td>
                <td class="num">{{ item.current_quantity|qty }}</td><td class="num">{{ item.rate|amount }}</td>
                <td class="num">{{ item.tax|amount }}</td><td class="num">{{ item.grand_total|amount }}</td>
            </tr>
        {% endfor %}
    </table>
    {% if is_approver %}
    <div class="action-buttons">
        <form method="POST" action="{{ url_for('approve_stock_entry', request_id=r.id) }}" class="inline">
            <button type="submit" class="view-btn">Approve</button>
        </form>
        <form method="POST" action="{{ url_for('reject_stock_entry', request_id=r.id) }}" class="inline">
            <input name="reason" placeholder="Rejection reason" style="width:auto">
            <button type="submit" class="delete-btn">Reject</button>
        </form>
    </div>
    {% endif %}
{% endfor %}
{% endif %}

{% if can_request %}
<h2>{% if purchase_order %}Stock entry for order {{ purchase_order.order_no }}{% else %}New stock entry request{% endif %}</h2>
<form method="POST" action="{{ form_action }}">
    <div class="common-section">
        <div>
            <label>Mode:</label>
            <select name="mode">
                <option value="add">Add stock</option>
                <option value="opening">Opening stock</option>
            </select>
        </div>
        <div>
            <label>मिति (Date, YYYY/MM/DD):</label>
            <input name="request_date_bs" placeholder="2081/04/15" required>
        </div>
        <div>
            <label>Store:</label>
            <select name="store_id">
                {% for s in stores %}<option value="{{ s.id }}">{{ s.name }}</option>{% endfor %}
            </select>
        </div>
        <div>
            <label>Receipt Source:</label>
            <input name="receipt_source" value="{{ 'खरिद' if purchase_order else '' }}">
        </div>
        <div>
            <label>Supplier:</label>
            <input name="supplier" list="firm-names" value="{{ purchase_order.vendor_details.name if purchase_order and purchase_order.vendor_details else '' }}">
            <datalist id="firm-names">{% for f in firms %}<option value="{{ f.name }}">{% endfor %}</datalist>
        </div>
        <div>
            <label>Bill / Ref No.:</label>
            <input name="ref_no">
        </div>
    </div>
    <table id="lines">
        <tr>{% for field, label in line_columns %}<th>{{ label }}</th>{% endfor %}</tr>
        {% for item in prefill %}
            <tr class="line-row">
                {% for field, label in line_columns %}
                    <td><input name="line_{{ field }}" value="{{ item.get(field, '') }}"></td>
                {% endfor %}
            </tr>
        {% endfor %}
    </table>
    <div class="form-buttons">
        <button type="button" onclick="addLine()">Add Line</button>
        <input type="submit" value="Submit for Approval">
    </div>
</form>
<script>
    function addLine() {
        const table = document.getElementById('lines');
        const rows = table.getElementsByClassName('line-row');
        const clone = rows[rows.length - 1].cloneNode(true);
        clone.querySelectorAll('input').forEach(input => input.value = '');
        table.appendChild(clone);
    }
</script>
{% endif %}

<h2>History</h2>
<table>
    <tr><th>Date</th><th>Source</th><th>Supplier</th><th>Items</th><th>Status</th><th>Note</th></tr>
    {% for r in history %}
        <tr>
            <td>{{ r.request_date_bs }}</td><td>{{ r.receipt_source }}</td><td>{{ r.supplier }}</td>
            <td>{{ r['items']|length }}</td>
            <td><span class="status {{ r.status }}">{{ r.status }}</span></td>
            <td>{{ r.rejection_reason or '' }}</td>
        </tr>
    {% endfor %}
</table>
"""

INVENTORY_TEMPLATE = CSS_STYLE + """
<h1>जिन्सी मौज्दात (Inventory)</h1>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<p><a href="{{ url_for('inventory_monthly_report') }}">मासिक प्रतिवेदन (Monthly report)</a></p>
<form method="GET" class="filter-form">
    <div class="filter-section">
        <div>
            <label>Search:</label>
            <input name="q" value="{{ q }}">
        </div>
        <div>
            <label>Type:</label>
            <select name="item_type">
                <option value="">All</option>
                {% for t in item_types %}<option value="{{ t }}" {% if t == item_type %}selected{% endif %}>{{ t }}</option>{% endfor %}
            </select>
        </div>
        <div>
            <label>Store:</label>
            <select name="store_id">
                <option value="">All</option>
                {% for s in stores %}<option value="{{ s.id }}" {% if s.id == store_id %}selected{% endif %}>{{ s.name }}</option>{% endfor %}
            </select>
        </div>
        <div class="button-div"><button type="submit">Filter</button></div>
    </div>
</form>
<table>
    <tr>
        <th>Item</th><th>Code</th><th>Type</th><th>Unit</th><th class="num">Quantity</th>
        <th class="num">Rate</th><th>Batch</th><th>Expiry (BS)</th><th>Last Update</th><th></th>
    </tr>
    {% for item in items %}
        <tr class="{{ 'out-of-stock' if item.current_quantity|float <= 0 else '' }}">
            <td>{{ item.item_name }}</td><td>{{ item.unique_code or item.sanket_no or '' }}</td>
            <td>{{ item.item_type }}</td><td>{{ item.unit }}</td>
            <td class="num">{{ item.current_quantity|qty }}</td><td class="num">{{ item.rate|amount }}</td>
            <td>{{ item.batch_no or '' }}</td><td>{{ item.expiry_date_bs or '' }}</td><td>{{ item.last_update_date_bs or '' }}</td>
            <td class="action-buttons">
                <a href="{{ url_for('item_ledger', item_name=item.item_name) }}"><button class="view-btn">Ledger</button></a>
                {% if can_edit %}<a href="{{ url_for('edit_inventory_item', item_id=item.id) }}"><button class="edit-btn">Edit</button></a>{% endif %}
            </td>
        </tr>
    {% endfor %}
</table>
"""

INVENTORY_EDIT_TEMPLATE = CSS_STYLE + """
<h1>Edit Inventory Item</h1>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
{% if item %}
<form method="POST" action="{{ url_for('edit_inventory_item', item_id=item.id) }}">
    <div class="common-section">
        <div>
            <label>सामानको नाम (Item Name):</label>
            <input name="item_name" value="{{ item.item_name or '' }}" required>
        </div>
        <div>
            <label>Type:</label>
            <select name="item_type">
                {% for t in item_types %}<option value="{{ t }}" {% if t == item.item_type %}selected{% endif %}>{{ t }}</option>{% endfor %}
            </select>
        </div>
        <div>
            <label>Store:</label>
            <select name="store_id">
                <option value="">-- none --</option>
                {% for s in stores %}<option value="{{ s.id }}" {% if s.id == item.store_id %}selected{% endif %}>{{ s.name }}</option>{% endfor %}
            </select>
        </div>
        <div><label>Unique Code:</label><input name="unique_code" value="{{ item.unique_code or '' }}"></div>
        <div><label>सङ्केत नं.:</label><input name="sanket_no" value="{{ item.sanket_no or '' }}"></div>
        <div><label>जि.खा.पा.नं. (Ledger Page):</label><input name="ledger_page_no" value="{{ item.ledger_page_no or '' }}"></div>
        <div><label>Unit:</label><input name="unit" value="{{ item.unit or '' }}"></div>
        <div><label>Quantity:</label><input name="current_quantity" type="number" step="any" min="0" value="{{ item.current_quantity|qty }}"></div>
        <div><label>Rate:</label><input name="rate" type="number" step="0.01" min="0" value="{{ item.rate|amount }}"></div>
        <div><label>Batch:</label><input name="batch_no" value="{{ item.batch_no or '' }}"></div>
        <div><label>Expiry (BS, YYYY/MM/DD):</label><input name="expiry_date_bs" value="{{ item.expiry_date_bs or '' }}"></div>
        <div><label>स्वीकृत मौज्दात (ASL):</label><input name="approved_stock_level" type="number" step="any" min="0" value="{{ item.approved_stock_level|qty }}"></div>
        <div><label>आकस्मिक माग बिन्दु (EOP):</label><input name="emergency_order_point" type="number" step="any" min="0" value="{{ item.emergency_order_point|qty }}"></div>
        <div><label>Specification:</label><input name="specification" value="{{ item.specification or '' }}"></div>
        <div><label>Remarks:</label><input name="remarks" value="{{ item.remarks or '' }}"></div>
    </div>
    <div class="form-buttons">
        <input type="submit" value="Save">
        <a href="{{ url_for('inventory') }}">Back to inventory</a>
    </div>
</form>
{% endif %}
"""

MONTHLY_REPORT_TEMPLATE = CSS_STYLE + """
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<form method="GET" action="{{ url_for('inventory_monthly_report') }}" class="filter-form">
    <div class="filter-section">
        <div>
            <label>आर्थिक वर्ष:</label>
            <select name="fiscal_year">
                {% for fy in fiscal_years %}<option value="{{ fy.value }}" {% if fy.value == fiscal_year %}selected{% endif %}>{{ fy.label }}</option>{% endfor %}
            </select>
        </div>
        <div><label>मिति देखि (From, BS):</label><input name="from_date" value="{{ filters.from_date }}" placeholder="2081/04/01"></div>
        <div><label>मिति सम्म (To, BS):</label><input name="to_date" value="{{ filters.to_date }}" placeholder="2081/04/32"></div>
        <div><label>पाना नं देखि:</label><input name="from_page" type="number" min="0" value="{{ filters.from_page }}"></div>
        <div><label>पाना नं सम्म:</label><input name="to_page" type="number" min="0" value="{{ filters.to_page }}"></div>
        <div class="button-div"><button type="submit">Show</button></div>
    </div>
</form>
<div class="form-header">
    <div class="org">{{ settings.org_name_nepali }}</div>
    <div>{{ settings.sub_title_nepali }}</div>
    <h2>स्टोर मौज्दात तथा निकासा सम्बन्धी आवधिक प्रतिवेदन</h2>
    <div>(खर्च भएर जाने जिन्सी)</div>
</div>
<p>
    <strong>आ.व.:</strong> {{ fiscal_year }}
    {% if report_month %}&nbsp; <strong>प्रतिवेदन गरेको महिना:</strong> {{ report_month }}{% endif %}
    {% if filters.from_date %}&nbsp; <strong>मिति देखि:</strong> {{ filters.from_date }}{% endif %}
    {% if filters.to_date %}&nbsp; <strong>मिति सम्म:</strong> {{ filters.to_date }}{% endif %}
    {% if filters.from_page %}&nbsp; <strong>खाता पाना देखि:</strong> {{ filters.from_page }}{% endif %}
    {% if filters.to_page %}&nbsp; <strong>खाता पाना सम्म:</strong> {{ filters.to_page }}{% endif %}
</p>
<table>
    <tr>
        <th rowspan="2">क्र.सं.</th><th rowspan="2">सामानको नाम</th><th rowspan="2">जि.खा.पा.नं.</th>
        <th rowspan="2">सङ्केत नं.</th><th rowspan="2">एकाई</th><th colspan="5">मौज्दात तथा निकासा</th>
        <th rowspan="2" class="num">ASL</th><th rowspan="2" class="num">EOP</th>
        <th rowspan="2" class="num">माग गर्नुपर्ने परिमाण</th><th rowspan="2">कैफियत</th>
    </tr>
    <tr>
        <th class="num">गत महिनाको बाँकी</th><th class="num">यस अवधिमा प्राप्त</th><th class="num">यस अवधिमा निकासा</th>
        <th class="num">जम्मा</th><th class="num">हालको बाँकी</th>
    </tr>
    {% for row in rows %}
        <tr class="{{ 'out-of-stock' if row.quantity_to_order > 0 else '' }}">
            <td>{{ loop.index }}</td><td>{{ row.item_name }}</td><td>{{ row.ledger_page_no or '-' }}</td>
            <td>{{ row.sanket_no or '-' }}</td><td>{{ row.unit }}</td>
            <td class="num">{{ row.previous_balance|qty }}</td><td class="num">{{ row.received|qty }}</td>
            <td class="num">{{ row.issued|qty }}</td><td class="num">{{ row.total|qty }}</td><td class="num">{{ row.balance|qty }}</td>
            <td class="num">{{ row.approved_stock_level|qty if row.approved_stock_level else '-' }}</td>
            <td class="num">{{ row.emergency_order_point|qty if row.emergency_order_point else '-' }}</td>
            <td class="num">{{ row.quantity_to_order|qty if row.quantity_to_order else '-' }}</td>
            <td>{{ row.remarks or '-' }}</td>
        </tr>
    {% else %}
        <tr><td colspan="14">कुनै डाटा उपलब्ध छैन (No data available).</td></tr>
    {% endfor %}
</table>
<form method="POST" action="{{ url_for('inventory_monthly_report') }}" class="inline">
    <input type="hidden" name="fiscal_year" value="{{ fiscal_year }}">
    {% for field in ['from_date', 'to_date', 'from_page', 'to_page'] %}<input type="hidden" name="{{ field }}" value="{{ filters[field] }}">{% endfor %}
    <label>माग फारम मिति (YYYY/MM/DD):</label>
    <input name="date" placeholder="2081/04/15" required>
    <button type="submit">प्रतिवेदन अनुसार माग गर्नुहोस् (Raise demand form)</button>
</form>
"""

LEDGER_TEMPLATE = CSS_STYLE + """
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<div class="form-header">
    <div class="org">{{ settings.org_name_nepali }}</div>
    <div>{{ settings.sub_title_nepali_2 }}</div>
    <h2>जिन्सी खाता (Item Ledger)</h2>
</div>
<form method="GET" action="{{ url_for('jinshi_khata') }}" class="filter-form">
    <div class="filter-section">
        <div>
            <label>Ledger Type:</label>
            <select name="ledger_type" onchange="this.form.submit()">
                {% for t in item_types %}<option value="{{ t }}" {% if t == ledger_type %}selected{% endif %}>{{ t }}</option>{% endfor %}
            </select>
        </div>
        <div>
            <label>Item:</label>
            <input name="item" list="item-names" value="{{ item_name }}">
            <datalist id="item-names">{% for name in item_names %}<option value="{{ name }}">{% endfor %}</datalist>
        </div>
        <div>
            <label>आर्थिक वर्ष:</label>
            <select name="fiscal_year">
                {% for fy in fiscal_years %}<option value="{{ fy.value }}" {% if fy.value == fiscal_year %}selected{% endif %}>{{ fy.label }}</option>{% endfor %}
            </select>
        </div>
        <div class="button-div"><button type="submit">Show</button></div>
    </div>
</form>
{% if item_name %}
<p><strong>सामानको नाम:</strong> {{ item_name }} &nbsp; <strong>आर्थिक वर्ष:</strong> {{ fiscal_year }}</p>
<table>
    <tr>
        <th rowspan="2">मिति</th><th rowspan="2">सन्दर्भ नं.</th><th rowspan="2">Type</th>
        <th colspan="3">आम्दानी / खर्च</th><th colspan="3">मौज्दात (Balance)</th><th rowspan="2">कैफियत</th>
    </tr>
    <tr>
        <th class="num">Qty</th><th class="num">Rate</th><th class="num">Total</th>
        <th class="num">Qty</th><th class="num">Rate</th><th class="num">Total</th>
    </tr>
    {% for row in rows %}
        <tr>
            <td>{{ row.date }}</td><td>{{ row.ref_no }}</td><td>{{ row.type }}</td>
            <td class="num">{{ row.qty|qty }}</td><td class="num">{{ row.rate|amount }}</td><td class="num">{{ row.total|amount }}</td>
            <td class="num">{{ row.bal_qty|qty }}</td><td class="num">{{ row.bal_rate|amount }}</td><td class="num">{{ row.bal_total|amount }}</td>
            <td>{{ row.remarks }}</td>
        </tr>
    {% else %}
        <tr><td colspan="10">No transactions for this item in {{ fiscal_year }}.</td></tr>
    {% endfor %}
    {% if rows %}
    <tfoot>
        <tr>
            <td colspan="3">जम्मा</td>
            <td class="num">In {{ summary.income_qty|qty }} / Out {{ summary.expense_qty|qty }}</td><td></td><td></td>
            <td class="num">{{ summary.closing_qty|qty }}</td><td class="num">{{ summary.closing_rate|amount }}</td>
            <td class="num">{{ summary.closing_total|amount }}</td><td></td>
        </tr>
    </tfoot>
    {% endif %}
</table>
{% endif %}
"""

CUSTODY_TEMPLATE = CSS_STYLE + """
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<div class="form-header">
    <div class="org">{{ settings.org_name_nepali }}</div>
    <div>{{ settings.sub_title_nepali_2 }}</div>
    <h2>सहायक जिन्सी खाता (Personal Custody Ledger)</h2>
</div>
<form method="GET" class="filter-form">
    <div class="filter-section">
        <div>
            <label>Person:</label>
            <select name="person">
                <option value="">-- Select --</option>
                {% for name in people %}<option value="{{ name }}" {% if name == person %}selected{% endif %}>{{ name }}</option>{% endfor %}
            </select>
        </div>
        <div class="button-div"><button type="submit">Show</button></div>
    </div>
</form>
{% if person %}
    {% if cleared %}
        <div class="banner cleared">फरफारक भएको (Cleared): all issued items have been returned.</div>
    {% else %}
        <div class="banner not-cleared">फरफारक नभएको (Not Cleared): items are still held by {{ person }}.</div>
    {% endif %}
    <table>
        <tr>
            <th>मिति</th><th>माग फारम नं.</th><th>सङ्केत नं.</th><th>नाम</th><th>स्पेसिफिकेसन</th>
            <th>पहिचान नं.</th><th>प्राप्तिको स्रोत</th><th>एकाई</th><th class="num">परिमाण</th>
            <th class="num">जम्मा लागत</th><th class="num">फिर्ता परिमाण</th><th>फिर्ता मिति</th><th>बुझिलिने</th>
        </tr>
        {% for row in rows %}
            <tr>
                <td>{{ row.date }}</td><td>{{ row.mag_form_no }}</td><td>{{ row.sanket_no }}</td><td>{{ row.name }}</td>
                <td>{{ row.specification }}</td><td>{{ row.id_no }}</td><td>{{ row.source }}</td><td>{{ row.unit }}</td>
                <td class="num">{{ row.quantity|qty }}</td><td class="num">{{ row.total_cost|amount }}</td>
                <td class="num">{{ row.return_quantity|qty }}</td><td>{{ row.return_date }}</td><td>{{ row.return_receiver }}</td>
            </tr>
        {% else %}
            <tr><td colspan="13">No non-expendable items issued to {{ person }}.</td></tr>
        {% endfor %}
    </table>
{% endif %}
"""

RABIES_TEMPLATE = CSS_STYLE + """
<h1>रेबिज खोप दर्ता (Rabies Vaccination Register)</h1>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<h2>New registration</h2>
<form method="POST">
    <div class="common-section">
        <div><label>Reg. No.:</label><input name="reg_no" value="{{ next_reg_no }}" readonly></div>
        <div><label>दर्ता मिति (BS, YYYY/MM/DD):</label><input name="reg_date_bs" required></div>
        <div><label>Registration date (AD):</label><input name="reg_date_ad" type="date" required></div>
        <div><label>Name:</label><input name="name" required></div>
        <div><label>Age:</label><input name="age" type="number" min="0"></div>
        <div>
            <label>Sex:</label>
            <select name="sex"><option>Male</option><option>Female</option><option>Other</option></select>
        </div>
        <div><label>Address:</label><input name="address"></div>
        <div><label>Phone:</label><input name="phone"></div>
        <div>
            <label>Animal:</label>
            <select name="animal_type">{% for a in animals %}<option>{{ a }}</option>{% endfor %}</select>
        </div>
        <div>
            <label>Exposure Category:</label>
            <select name="exposure_category"><option>I</option><option>II</option><option>III</option></select>
        </div>
        <div><label>Body part:</label><input name="body_part"></div>
        <div><label>Exposure date (BS):</label><input name="exposure_date_bs"></div>
        <div>
            <label>Regimen:</label>
            <select name="regimen"><option>Intradermal</option><option>Intramuscular</option></select>
        </div>
    </div>
    <div class="form-buttons"><input type="submit" value="Register Patient"></div>
</form>

<form method="GET" class="filter-form">
    <div class="filter-section">
        <div><label>Search:</label><input name="q" value="{{ q }}"></div>
        <div class="button-div"><button type="submit">Search</button> <a href="{{ url_for('rabies_report') }}">Monthly report</a></div>
    </div>
</form>
<table>
    <tr><th>Reg. No</th><th>Date</th><th>Name</th><th>Age/Sex</th><th>Animal</th><th>Regimen</th><th>Schedule</th></tr>
    {% for p in patients %}
        <tr>
            <td>{{ p.reg_no }}</td><td>{{ p.reg_date_bs }}</td><td>{{ p.name }}</td>
            <td>{{ p.age }}/{{ p.sex }}</td><td>{{ p.animal_type }}</td><td>{{ p.regimen }}</td>
            <td>
                {% for dose in p.schedule %}
                    <form method="POST" action="{{ url_for('rabies_dose', patient_id=p.id, index=loop.index0) }}" class="inline">
                        {% if dose.status == 'Given' %}
                            <input type="hidden" name="action" value="revert">
                            <button type="submit" class="view-btn" title="Given {{ dose.given_date }}">D{{ dose.day }} &#10003;</button>
                        {% else %}
                            <input type="hidden" name="action" value="given">
                            <input type="date" name="given_date" value="{{ dose.date }}" style="width:auto">
                            <button type="submit" title="Scheduled {{ dose.date }}">D{{ dose.day }}</button>
                        {% endif %}
                    </form>
                {% endfor %}
            </td>
        </tr>
    {% endfor %}
</table>
"""

RABIES_REPORT_TEMPLATE = CSS_STYLE + """
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<div class="form-header">
    <div class="org">{{ settings.org_name_nepali }}</div>
    <div>{{ settings.sub_title_nepali_3 }}</div>
    <h2>Monthly Rabies Report</h2>
</div>
<form method="GET" class="filter-form">
    <div class="filter-section">
        <div>
            <label>आर्थिक वर्ष:</label>
            <select name="fiscal_year">
                {% for fy in fiscal_years %}<option value="{{ fy.value }}" {% if fy.value == fiscal_year %}selected{% endif %}>{{ fy.label }}</option>{% endfor %}
            </select>
        </div>
        <div>
            <label>Month:</label>
            <select name="month">
                {% for code, label in months %}<option value="{{ code }}" {% if code == month %}selected{% endif %}>{{ label }}</option>{% endfor %}
            </select>
        </div>
        <div class="button-div"><button type="submit">Show</button></div>
    </div>
</form>
<form method="POST" action="{{ url_for('rabies_report') }}">
    <h3>खोप मौज्दात विवरण (Vaccine Stock Details)</h3>
    <input type="hidden" name="fiscal_year" value="{{ fiscal_year }}">
    <input type="hidden" name="month" value="{{ month }}">
    <div class="common-section">
        <div><label>अघिल्लो मौज्दात (Opening Stock):</label><input name="opening" value="{{ stock.opening|qty }}" type="number" step="any" min="0"></div>
        <div><label>प्राप्त मात्रा (Received Dose):</label><input name="received" value="{{ stock.received|qty }}" type="number" step="any" min="0"></div>
        <div><label>खर्च मात्रा (Expenditure Dose):</label><input name="expenditure" value="{{ stock.expenditure|qty }}" type="number" step="any" min="0"></div>
    </div>
    <div class="form-buttons"><input type="submit" value="Save stock"></div>
</form>
<table>
    <tr><th class="num">Previous month opening</th><th class="num">Received dose</th><th class="num">Expenditure dose</th><th class="num">Balance dose</th></tr>
    <tr>
        <td class="num">{{ stock.opening|qty }}</td><td class="num">{{ stock.received|qty }}</td>
        <td class="num">{{ stock.expenditure|qty }}</td><td class="num">{{ stock.balance|qty }}</td>
    </tr>
</table>
<table>
    <tr><th></th>{% for label in animal_labels %}<th class="num">{{ label }}</th>{% endfor %}<th class="num">Total</th></tr>
    {% for label in row_labels %}
        <tr>
            <td>{{ label }}</td>
            {% for count in report.matrix[loop.index0] %}<td class="num">{{ count }}</td>{% endfor %}
            <td class="num">{{ report.row_totals[loop.index0] }}</td>
        </tr>
    {% endfor %}
    <tfoot>
        <tr>
            <td>Total</td>
            {% for count in report.column_totals %}<td class="num">{{ count }}</td>{% endfor %}
            <td class="num">{{ report.grand_total }}</td>
        </tr>
    </tfoot>
</table>
"""

USERS_TEMPLATE = CSS_STYLE + """
<h1>User Management</h1>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<table>
    <tr><th>Username</th><th>Full Name</th><th>Designation</th><th>Role</th><th></th></tr>
    {% for u in users %}
        <tr>
            <td>{{ u.username }}</td><td>{{ u.full_name }}</td><td>{{ u.designation or '' }}</td><td>{{ u.role }}</td>
            <td class="action-buttons">
                {% if u.id != current_user_id %}
                <form method="POST" class="inline" onsubmit="return confirm('Delete {{ u.username }}?');">
                    <input type="hidden" name="delete_id" value="{{ u.id }}">
                    <button type="submit" class="delete-btn">Delete</button>
                </form>
                {% endif %}
            </td>
        </tr>
    {% endfor %}
</table>
<h2>Add user</h2>
<form method="POST">
    <div class="common-section">
        <div><label>Username:</label><input name="username" required></div>
        <div><label>Password:</label><input type="password" name="password" required></div>
        <div><label>Full Name:</label><input name="full_name" required></div>
        <div><label>Designation:</label><input name="designation"></div>
        <div><label>Phone:</label><input name="phone_number"></div>
        <div>
            <label>Role:</label>
            <select name="role">{% for role in roles %}<option value="{{ role }}">{{ role }}</option>{% endfor %}</select>
        </div>
    </div>
    <div class="form-buttons"><input type="submit" value="Add User"></div>
</form>
"""

SETTINGS_TEMPLATE = CSS_STYLE + """
<h1>Organization Settings</h1>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<form method="POST">
    <div class="common-section">
        {% for field, label in fields %}
            <div>
                <label>{{ label }}:</label>
                <input name="{{ field }}" value="{{ settings.get(field, '') }}">
            </div>
        {% endfor %}
    </div>
    <div class="form-buttons"><input type="submit" value="Save Settings"></div>
</form>
"""

NAMED_LIST_TEMPLATE = CSS_STYLE + """
<h1>{{ title }}</h1>
{{ nav_links|safe }}
""" + MESSAGE_BLOCK + """
<table>
    <tr>{% for field, label in fields %}<th>{{ label }}</th>{% endfor %}<th></th></tr>
    {% for entry in entries %}
        <tr>
            {% for field, label in fields %}<td>{{ entry.get(field, '') }}</td>{% endfor %}
            <td class="action-buttons">
                <form method="POST" class="inline">
                    <input type="hidden" name="delete_id" value="{{ entry.id }}">
                    <button type="submit" class="delete-btn">Delete</button>
                </form>
            </td>
        </tr>
    {% endfor %}
</table>
<h2>Add</h2>
<form method="POST">
    <div class="common-section">
        {% for field, label in fields %}
            <div><label>{{ label }}:</label><input name="{{ field }}" {% if loop.first %}required{% endif %}></div>
        {% endfor %}
    </div>
    <div class="form-buttons"><input type="submit" value="Add"></div>
</form>
"""
