"""
Date parsing helpers shared by uploads, hotel edits and check-out requests
"""
import math
from datetime import date, datetime

DATE_FORMATS = ('%Y-%m-%d', '%d-%m-%Y', '%d/%m/%Y', '%Y/%m/%d')

MINIMUM_STAY_DAYS = 3


def parse_date(value):
    """
    Parse a date value coming from a form, JSON body or upload cell.

    Accepts date/datetime objects, ISO dates and ISO datetimes
    ("2025-09-01T00:00:00.000Z"), and the day-first formats used in the
    upload sheets. Raises ValueError for anything else.
    """
    if value is None:
        raise ValueError('Date is required')

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        raise ValueError('Date is required')

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # ISO datetimes, including a trailing "Z"
    iso = text[:-1] + '+00:00' if text.endswith('Z') else text
    try:
        return datetime.fromisoformat(iso).date()
    except ValueError:
        raise ValueError(f'Invalid date: {text}')


def stay_length_days(start_date, end_date):
    """Number of nights between two dates, rounded up"""
    seconds = (end_date - start_date).total_seconds()
    return math.ceil(seconds / 86400)


def meets_minimum_stay(start_date, end_date, minimum_days=MINIMUM_STAY_DAYS):
    return stay_length_days(start_date, end_date) >= minimum_days
