# fiscal.py
"""
Fiscal-year and Nepali (BS) date helpers.

Dates are kept as strings the way the office writes them (2081/01/05,
2081-1-5, ...). Nothing here converts BS to AD; we only normalise the text so
records sort and compare consistently.
"""

import re

# Nepali fiscal years; label in Devanagari, value stored on every record
FISCAL_YEARS = [
    {'label': '२०८१/०८२', 'value': '2081/082'},
    {'label': '२०८२/०८३', 'value': '2082/083'},
    {'label': '२०८३/०८४', 'value': '2083/084'},
    {'label': '२०८४/०८५', 'value': '2084/085'},
    {'label': '२०८५/०८६', 'value': '2085/086'},
    {'label': '२०८६/०८७', 'value': '2086/087'},
    {'label': '२०८७/०८८', 'value': '2087/088'},
    {'label': '२०८८/०८९', 'value': '2088/089'},
    {'label': '२०८९/०९०', 'value': '2089/090'},
    {'label': '२०९०/०९१', 'value': '2090/091'},
]

DEFAULT_FISCAL_YEAR = '2081/082'

NEPALI_MONTHS = [
    ('01', 'बैशाख (Baishakh)'), ('02', 'जेठ (Jestha)'), ('03', 'असार (Ashad)'),
    ('04', 'साउन (Shrawan)'), ('05', 'भदौ (Bhadra)'), ('06', 'असोज (Ashwin)'),
    ('07', 'कार्तिक (Kartik)'), ('08', 'मंसिर (Mangsir)'), ('09', 'पुष (Poush)'),
    ('10', 'माघ (Magh)'), ('11', 'फागुन (Falgun)'), ('12', 'चैत्र (Chaitra)'),
]

_DATE_RE = re.compile(r'^\s*(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})\s*$')


def parse_date(text):
    """Return (year, month, day) ints, or None when the text is not a date."""
    if not text:
        return None
    match = _DATE_RE.match(str(text))
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    # BS months run up to 32 days
    if not 1 <= month <= 12 or not 1 <= day <= 32:
        return None
    return year, month, day


def normalize_date(text):
    """2081-1-5 / 2081.01.05 / 2081/01/05 -> 2081/01/05. Unparseable text is returned stripped."""
    parts = parse_date(text)
    if parts is None:
        return (text or '').strip()
    return '%04d/%02d/%02d' % parts


def date_sort_key(text):
    parts = parse_date(text)
    if parts is None:
        return (1,)
    return (0,) + parts


def fiscal_year_bounds(fiscal_year):
    """2081/082 -> ('2081/04/01', '2082/03/32')."""
    try:
        start_year = int(str(fiscal_year).split('/')[0])
    except ValueError:
        return None
    return '%04d/04/01' % start_year, '%04d/03/32' % (start_year + 1)


def is_within_fiscal_year(date_text, fiscal_year):
    bounds = fiscal_year_bounds(fiscal_year)
    parts = parse_date(date_text)
    if bounds is None or parts is None:
        return False
    return date_sort_key(bounds[0]) <= date_sort_key(date_text) <= date_sort_key(bounds[1])


def validate_document_date(date_text, fiscal_year):
    """Raise ValueError with a user-facing message when the date is unusable."""
    if not date_text or not str(date_text).strip():
        raise ValueError('मिति आवश्यक छ (Date is required)')
    if parse_date(date_text) is None:
        raise ValueError(f'Invalid date "{date_text}". Use YYYY/MM/DD.')
    if not is_within_fiscal_year(date_text, fiscal_year):
        start, end = fiscal_year_bounds(fiscal_year)
        raise ValueError(f'मिति आर्थिक वर्ष {fiscal_year} भित्रको हुनुपर्छ ({start} देखि {end} सम्म मात्र मान्य छ)')


def check_date_order(date_text, previous_date, previous_no, current_no):
    """A serial numbered document cannot be dated before the previous number."""
    if not previous_date:
        return
    if date_sort_key(date_text) < date_sort_key(previous_date):
        raise ValueError(
            f'मिति क्रम मिलेन (Invalid Date Order): no. {previous_no} is dated {previous_date}, '
            f'no. {current_no} cannot be dated {date_text}.'
        )


def serial_number(value):
    """'12' -> 12, 'D-081-012' -> 12, anything else -> 0."""
    if value is None:
        return 0
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    tail = text.split('-')[-1]
    return int(tail) if tail.isdigit() else 0


def next_serial(records, fiscal_year, field):
    numbers = [serial_number(r.get(field)) for r in records if r.get('fiscal_year') == fiscal_year]
    return str(max(numbers, default=0) + 1)


def previous_document(records, fiscal_year, field, current_no):
    """The record holding serial current_no - 1 in the same fiscal year, if any."""
    wanted = serial_number(current_no) - 1
    if wanted < 1:
        return None
    for record in records:
        if record.get('fiscal_year') == fiscal_year and serial_number(record.get(field)) == wanted:
            return record
    return None


def month_name(date_text):
    """Nepali month label for a BS date, '' when the text is not a date."""
    parts = parse_date(date_text)
    if parts is None:
        return ''
    return NEPALI_MONTHS[parts[1] - 1][1]
