"""
Public holiday data source backed by the Nager.Date REST API.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List

import requests
from pendulum import Date

from ..domain.calendar_policy import HolidayCalendar
from ..domain.exceptions import CalendarSourceError
from ..domain.models import as_date

logger = logging.getLogger(__name__)


class HolidayApiClient:
    """
    Client for the Nager.Date public holiday API.

    Holidays are fetched once at startup and turned into a ``HolidayCalendar``;
    the calendar policy itself never does I/O.
    """

    DEFAULT_BASE_URL = "https://date.nager.at/api/v3"

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}

    def fetch_holidays(self, country_code: str, year: int) -> List[Date]:
        """
        Get nationwide public holidays for one country and year.

        Args:
            country_code: ISO 3166-1 alpha-2 country code, e.g. "US"
            year: Calendar year

        Returns:
            Sorted list of holiday dates

        Raises:
            CalendarSourceError: If the API call fails or returns bad data
        """
        url = f"{self.base_url}/PublicHolidays/{year}/{country_code.upper()}"

        try:
            response = requests.get(url, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarSourceError(f"Failed to fetch holidays from {url}: {e}") from e
        except ValueError as e:
            raise CalendarSourceError(f"Holiday API returned invalid JSON: {e}") from e

        return self._parse_holidays(data)

    def _parse_holidays(self, response_data: Any) -> List[Date]:
        """
        Parse the PublicHolidays response into dates.

        Response format:
        [
            {
                "date": "2025-01-01",
                "name": "New Year's Day",
                "global": true,
                "counties": null,
                "types": ["Public"]
            }
        ]

        Regional holidays (``global`` false) are skipped.
        """
        if not isinstance(response_data, list):
            raise CalendarSourceError("Holiday API response must be a list")

        holidays: List[Date] = []

        for item in response_data:
            if not self._is_nationwide_public(item):
                continue
            try:
                holidays.append(as_date(date.fromisoformat(item["date"])))
            except (KeyError, TypeError, ValueError) as e:
                raise CalendarSourceError(f"Could not parse holiday entry {item!r}: {e}") from e

        return sorted(set(holidays))

    @staticmethod
    def _is_nationwide_public(item: Dict[str, Any]) -> bool:
        types = item.get("types") or ["Public"]
        if "Public" not in types:
            return False
        return bool(item.get("global", True)) or not item.get("counties")

    def build_calendar(self, country_code: str, years: Iterable[int]) -> HolidayCalendar:
        """Fetch several years and combine them into one calendar."""
        days: List[Date] = []
        for year in sorted(set(years)):
            fetched = self.fetch_holidays(country_code, year)
            logger.debug("Loaded %d holidays for %s %d", len(fetched), country_code, year)
            days.extend(fetched)
        return HolidayCalendar(days)
