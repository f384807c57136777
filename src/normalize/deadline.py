from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime

ISO_FORMAT = "%Y-%m-%d"
_LEAP_YEAR = 2000
_MONTH_DAY_FORMATS = ("%b %d %Y", "%B %d %Y")
_WS_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class Deadline:
    """A recurring annual date: month and day, no year."""

    month: int
    day: int

    def __post_init__(self) -> None:
        # Validated against a leap year so Feb 29 is representable.
        date(_LEAP_YEAR, self.month, self.day)

    @classmethod
    def parse(cls, text: str) -> Deadline:
        """Parse ``"Jan 15"`` / ``"January 15"``; raises ValueError otherwise."""
        cleaned = _WS_PATTERN.sub(" ", text.strip())
        for fmt in _MONTH_DAY_FORMATS:
            try:
                parsed = datetime.strptime(f"{cleaned} {_LEAP_YEAR}", fmt)
            except ValueError:
                continue
            return cls(month=parsed.month, day=parsed.day)
        raise ValueError(f"not a month/day deadline: {text!r}")

    @classmethod
    def from_iso(cls, text: str) -> Deadline:
        parsed = datetime.strptime(text.strip(), ISO_FORMAT)
        return cls(month=parsed.month, day=parsed.day)

    def resolve(self, today: date | None = None) -> date:
        """Next occurrence on or after ``today``."""
        reference = today or date.today()
        year = reference.year
        while True:
            if self.month != 2 or self.day != 29 or calendar.isleap(year):
                candidate = date(year, self.month, self.day)
                if candidate >= reference:
                    return candidate
            year += 1

    def to_iso(self, today: date | None = None) -> str:
        return self.resolve(today).strftime(ISO_FORMAT)
