"""
Tests for the calendar-interchange encoding helpers.
"""

from datetime import datetime

import pendulum
import pytest

from dayslot.adapters.icalendar import from_icalendar, from_mailto, to_icalendar, to_mailto


def test_encode_utc_basic_format():
    value = pendulum.datetime(2025, 3, 10, 9, 0, 0, tz="UTC")

    assert to_icalendar(value) == "20250310T090000Z"


def test_encode_converts_to_utc():
    value = pendulum.datetime(2025, 3, 10, 10, 0, 0, tz="Europe/Berlin")

    assert to_icalendar(value) == "20250310T090000Z"


def test_decode():
    decoded = from_icalendar("20250301T123015Z")

    assert decoded == pendulum.datetime(2025, 3, 1, 12, 30, 15, tz="UTC")
    assert decoded.timezone_name == "UTC"


def test_naive_datetime_rejected():
    with pytest.raises(ValueError, match="Naive"):
        to_icalendar(datetime(2025, 3, 10, 9, 0))


@pytest.mark.parametrize("text", ["2025-03-10T09:00:00Z", "20250310T090000", "garbage", ""])
def test_malformed_text_rejected(text):
    with pytest.raises(ValueError):
        from_icalendar(text)


def test_mailto_helpers():
    assert to_mailto("a@x.com") == "mailto:a@x.com"
    assert to_mailto("mailto:a@x.com") == "mailto:a@x.com"
    assert from_mailto("mailto:a@x.com") == "a@x.com"
    assert from_mailto("a@x.com") == "a@x.com"
