"""Holiday lookup interface."""

from datetime import date
from typing import Protocol


class HolidaySource(Protocol):
    """Interface for fetching public holidays."""

    def holidays(self, year: int) -> dict[date, str]:
        """Holiday names keyed by date for a year."""
        ...
