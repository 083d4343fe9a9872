# rabies.py
"""
Rabies vaccination clinic register.

Registration dates are BS strings for display; vaccination schedules are kept
in AD (YYYY-MM-DD) because dose dates are counted in real days.
"""

from datetime import datetime, timedelta

from calculators import to_number
from fiscal import date_sort_key, parse_date

INTRADERMAL = 'Intradermal'
INTRAMUSCULAR = 'Intramuscular'

SCHEDULE_DAYS = {
    INTRADERMAL: [0, 3, 7],
    INTRAMUSCULAR: [0, 3, 7, 14, 28],
}

ANIMALS = ['Dog', 'Monkey', 'Cat', 'Cattle', 'Rodent', 'Jackal', 'Tiger', 'Bear', 'Saliva Contact', 'Other']
ANIMAL_LABELS = [
    'Dog bite', 'Monkey bite', 'Cat bite', 'Cattle bite', 'Rodent bite',
    'Jackal bite', 'Tiger bite', 'Bear bite', 'Saliva contact', 'Other specify',
]
REPORT_ROWS = ['Male (15+Yr)', 'Female (15+Yr)', 'Male Child (<15 Yr)', 'Female Child (<15 Yr)']

AD_FORMAT = '%Y-%m-%d'


def generate_reg_no(patients, fiscal_year):
    fy_clean = str(fiscal_year).replace('/', '')
    prefix = f'R-{fy_clean}-'
    numbers = []
    for patient in patients:
        reg_no = str(patient.get('reg_no') or '')
        if patient.get('fiscal_year') != fiscal_year or not reg_no.startswith(prefix):
            continue
        tail = reg_no[len(prefix):]
        if tail.isdigit():
            numbers.append(int(tail))
    return '%s%03d' % (prefix, max(numbers, default=0) + 1)


def calculate_schedule(start_date_ad, regimen):
    """Dose list for a regimen starting on start_date_ad. Bad dates give an empty schedule."""
    try:
        start = datetime.strptime(str(start_date_ad).strip(), AD_FORMAT)
    except ValueError:
        return []
    days = SCHEDULE_DAYS.get(regimen, SCHEDULE_DAYS[INTRADERMAL])
    return [
        {'day': day, 'date': (start + timedelta(days=day)).strftime(AD_FORMAT), 'status': 'Pending'}
        for day in days
    ]


def mark_dose_given(patient, dose_index, given_date_ad):
    """Return a copy of `patient` with one dose marked Given."""
    schedule = list(patient.get('schedule') or [])
    if not 0 <= dose_index < len(schedule):
        raise ValueError('No such dose in the schedule.')
    try:
        given = datetime.strptime(str(given_date_ad).strip(), AD_FORMAT).strftime(AD_FORMAT)
    except ValueError:
        raise ValueError('मिति ढाँचा मिलेन (Invalid Date)')

    dose = dict(schedule[dose_index])
    # Day 0 can be given whenever the patient turns up
    if dose.get('day') != 0 and given < dose.get('date', ''):
        raise ValueError(
            'तपाईंले छान्नुभएको मिति खोप तालिका (Scheduled Date) भन्दा अगाडि छ। '
            '(Selected date cannot be earlier than scheduled date)'
        )
    dose['status'] = 'Given'
    dose['given_date'] = given
    schedule[dose_index] = dose

    updated = dict(patient)
    updated['schedule'] = schedule
    return updated


def revert_dose(patient, dose_index):
    schedule = list(patient.get('schedule') or [])
    if not 0 <= dose_index < len(schedule):
        raise ValueError('No such dose in the schedule.')
    dose = {k: v for k, v in schedule[dose_index].items() if k != 'given_date'}
    dose['status'] = 'Pending'
    schedule[dose_index] = dose
    updated = dict(patient)
    updated['schedule'] = schedule
    return updated


def validate_registration(patient):
    if not (patient.get('name') or '').strip():
        raise ValueError('बिरामीको नाम आवश्यक छ (Patient name is required)')
    if parse_date(patient.get('reg_date_bs')) is None:
        raise ValueError('दर्ता मिति आवश्यक छ (Registration date is required)')
    exposure = patient.get('exposure_date_bs')
    if exposure and parse_date(exposure) is not None:
        if date_sort_key(exposure) > date_sort_key(patient.get('reg_date_bs')):
            raise ValueError('Exposure date cannot be after the registration date.')


def _row_index(patient):
    try:
        age = int(str(patient.get('age') or '0').strip())
    except ValueError:
        age = 0
    sex = patient.get('sex')
    if sex == 'Male':
        return 2 if age < 15 else 0
    if sex == 'Female':
        return 3 if age < 15 else 1
    return None


def _column_index(patient):
    animal = patient.get('animal_type')
    if animal in ANIMALS:
        return ANIMALS.index(animal)
    return len(ANIMALS) - 1


def monthly_report(patients, fiscal_year, month):
    """
    Counts of new patients for one month: rows by sex and age band, columns by
    animal. Patients whose sex is neither Male nor Female are left out.
    """
    matrix = [[0] * len(ANIMALS) for _ in REPORT_ROWS]
    for patient in patients:
        if patient.get('fiscal_year') != fiscal_year or patient.get('reg_month') != month:
            continue
        row = _row_index(patient)
        if row is None:
            continue
        matrix[row][_column_index(patient)] += 1

    row_totals = [sum(row) for row in matrix]
    column_totals = [sum(column) for column in zip(*matrix)]
    return {
        'matrix': matrix,
        'row_totals': row_totals,
        'column_totals': column_totals,
        'grand_total': sum(row_totals),
    }


def pending_doses_on(patients, date_ad):
    """(patient, dose index) pairs still due on or before date_ad."""
    due = []
    for patient in patients:
        for index, dose in enumerate(patient.get('schedule') or []):
            if dose.get('status') != 'Given' and dose.get('date', '') <= date_ad:
                due.append((patient, index))
    return due


def stock_record_id(fiscal_year, month):
    return 'rabies-stock-%s-%s' % (str(fiscal_year).replace('/', ''), month)


def previous_month(month):
    """Month code before `month` inside a fiscal year, or None for Shrawan."""
    if month == '04':
        return None
    return '%02d' % (int(month) - 1 or 12)


def vaccine_stock(opening, received, expenditure):
    """Dose balance for the month: opening + received - expenditure."""
    values = {'opening': to_number(opening), 'received': to_number(received), 'expenditure': to_number(expenditure)}
    if any(v < 0 for v in values.values()):
        raise ValueError('Dose counts cannot be negative.')
    values['balance'] = values['opening'] + values['received'] - values['expenditure']
    if values['balance'] < 0:
        raise ValueError('खर्च मात्रा उपलब्ध मात्रा भन्दा बढी छ (Expenditure is more than the doses available)')
    return values


def opening_stock(saved_stock, previous_stock):
    """A saved month keeps its own figures; a new month opens with last month's balance."""
    if saved_stock:
        return saved_stock
    opening = previous_stock.get('balance', 0) if previous_stock else 0
    return {'opening': to_number(opening), 'received': 0.0, 'expenditure': 0.0, 'balance': to_number(opening)}
