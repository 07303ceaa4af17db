"""
Calendar-interchange text encoding for persisted reservations.

Timestamps are stored in the iCalendar UTC basic format (``20250310T090000Z``)
and attendees as ``mailto:`` URIs, as in RFC 5545 DTSTART/DTSTAMP/ATTENDEE.
"""

import re
from datetime import datetime

import pendulum
from pendulum import DateTime

MAILTO_PREFIX = "mailto:"

_ICAL_UTC = re.compile(
    r"^(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})"
    r"T(?P<hour>\d{2})(?P<minute>\d{2})(?P<second>\d{2})Z$"
)


def to_icalendar(value: datetime) -> str:
    """Encode an aware datetime as iCalendar UTC text."""
    if value.tzinfo is None:
        raise ValueError(f"Naive datetime cannot be encoded: {value!r}")
    utc = pendulum.instance(value).in_timezone("UTC")
    return utc.strftime("%Y%m%dT%H%M%SZ")


def from_icalendar(text: str) -> DateTime:
    """Decode iCalendar UTC text into a pendulum DateTime."""
    match = _ICAL_UTC.match(text.strip())
    if not match:
        raise ValueError(f"Not an iCalendar UTC date-time: {text!r}")
    parts = {name: int(value) for name, value in match.groupdict().items()}
    return pendulum.datetime(tz="UTC", **parts)


def to_mailto(address: str) -> str:
    if address.startswith(MAILTO_PREFIX):
        return address
    return f"{MAILTO_PREFIX}{address}"


def from_mailto(uri: str) -> str:
    if uri.startswith(MAILTO_PREFIX):
        return uri[len(MAILTO_PREFIX):]
    return uri
