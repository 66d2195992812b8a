"""Public holiday adapter - HTTP client for the Nager.Date API."""

import logging
from datetime import date

import requests

from almanac.core.dates import parse_date
from almanac.core.errors import InvalidDate

logger = logging.getLogger(__name__)

API_BASE = "https://date.nager.at/api/v3"


class NagerHolidayAdapter:
    """
    Nager.Date public holiday adapter.

    Implements HolidaySource protocol. Results are cached per year. Network
    failures are logged and read as "no holidays" so calendar views still
    render.
    """

    def __init__(self, country_code: str, timeout: int = 10):
        self.country_code = country_code.upper()
        self.timeout = timeout
        self._session = requests.Session()
        self._cache: dict[int, dict[date, str]] = {}

    def _fetch(self, year: int) -> list[dict]:
        resp = self._session.get(
            f"{API_BASE}/PublicHolidays/{year}/{self.country_code}",
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def holidays(self, year: int) -> dict[date, str]:
        """Holiday names keyed by date for a year."""
        if year in self._cache:
            return self._cache[year]

        try:
            data = self._fetch(year)
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Holiday lookup failed for {self.country_code} {year}: {e}")
            return {}

        result = {}
        for item in data:
            try:
                result[parse_date(item["date"])] = item.get("name") or item.get("localName", "")
            except (KeyError, InvalidDate, TypeError):
                continue

        self._cache[year] = result
        return result
