"""
Input validation for the boundary layer.

The core engine accepts any positive count and any calendar date; the rules
here (1..4 dates, no past bookings, e-mail shaped attendees) are the public
API policy applied before calling it.
"""

import re
from datetime import date
from typing import Optional

from pendulum import Date

from .domain.codes import is_confirmation_code
from .domain.exceptions import InvalidAttendee, InvalidCount, InvalidDate, InvalidInput
from .domain.models import as_date

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

DEFAULT_MAX_COUNT = 4


def parse_date(text: str) -> Date:
    """Parse a strict YYYY-MM-DD date."""
    text = (text or "").strip()
    if not DATE_PATTERN.match(text):
        raise InvalidDate("Invalid date format. Please use YYYY-MM-DD.")
    try:
        return as_date(date.fromisoformat(text))
    except ValueError as exc:
        raise InvalidDate(f"Invalid date {text!r}: {exc}") from exc


def parse_booking_date(text: str, today: date) -> Date:
    """
    Parse a requested booking date.

    Raises:
        InvalidDate: If malformed, or not strictly after ``today``
    """
    day = parse_date(text)
    if day <= as_date(today):
        raise InvalidDate("Date is in the past. Please choose a future date.")
    return day


def resolve_start_date(text: Optional[str], today: date) -> Date:
    """Start date for availability searches; missing, bad or past input means today."""
    today = as_date(today)
    if not text:
        return today
    try:
        day = parse_date(text)
    except InvalidDate:
        return today
    return max(day, today)


def validate_count(n: int, maximum: int = DEFAULT_MAX_COUNT) -> int:
    if not 1 <= n <= maximum:
        raise InvalidCount(f"N must be between 1 and {maximum}.")
    return n


def validate_confirmation_code(text: str) -> str:
    """Return the normalized code, or raise InvalidInput for other shapes."""
    code = (text or "").strip().lower()
    if not is_confirmation_code(code):
        raise InvalidInput("Invalid confirmation code. Codes are 8 hexadecimal characters.")
    return code


def validate_email(text: str) -> str:
    """Return the stripped address, or raise InvalidAttendee."""
    text = (text or "").strip()
    if not EMAIL_PATTERN.match(text):
        raise InvalidAttendee("Invalid email address. Please enter a valid email.")
    return text
