"""
Reusable parsers for seed catalog data.

These parsers handle the messy reality of hand-edited catalog rows:
- Blank values that arrive as None, NaN, NaT or whitespace
- Names and types typed with inconsistent case and spacing
- Product codes (SKUs) in free-form formats
- Expiration dates stored as ISO strings, dates or timestamps
"""

import re
from datetime import date, datetime, timezone
from typing import Any

import pandas as pd


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-likes are never "blank" scalars
        return False


class DateParser:
    """
    Date parser for expiration and received dates.

    Accepts datetime/date objects, pandas Timestamps and strings in ISO
    or common US formats. Timezone-aware values are converted to UTC and
    returned naive so that comparisons never mix aware and naive datetimes.
    """

    DATE_FORMATS = [
        "%Y-%m-%d",      # ISO: 2024-07-25
        "%m/%d/%Y",      # US: 05/27/2024
        "%m/%d/%y",      # US short: 03/21/24
        "%Y/%m/%d",      # ISO slash: 2024/07/25
    ]

    def __init__(self):
        self._cache: dict[str, datetime | None] = {}

    def parse(self, value: Any) -> datetime | None:
        """Parse a date-like value, trying multiple formats."""
        if is_blank(value):
            return None

        if isinstance(value, pd.Timestamp):
            value = value.to_pydatetime()
        if isinstance(value, datetime):
            return self._to_utc_naive(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)

        date_str = str(value).strip()

        if date_str in self._cache:
            return self._cache[date_str]

        result = self._parse_iso(date_str)
        if result is None:
            for fmt in self.DATE_FORMATS:
                try:
                    result = datetime.strptime(date_str, fmt)
                    break
                except ValueError:
                    continue

        self._cache[date_str] = result
        return result

    def _parse_iso(self, date_str: str) -> datetime | None:
        # fromisoformat rejects a trailing "Z" on older interpreters
        candidate = date_str[:-1] + "+00:00" if date_str.endswith("Z") else date_str
        try:
            return self._to_utc_naive(datetime.fromisoformat(candidate))
        except ValueError:
            return None

    @staticmethod
    def _to_utc_naive(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)


class ProductCodeValidator:
    """
    Validates seed SKUs.

    A code looks right when it contains only letters, digits and hyphens
    and its length without hyphens falls within [min_length, max_length].
    """

    PATTERN = re.compile(r"^[A-Za-z0-9-]+$")

    def __init__(self, min_length: int = 6, max_length: int = 12):
        self.min_length = min_length
        self.max_length = max_length

    def is_valid(self, sku: Any) -> bool:
        if is_blank(sku):
            return False
        raw = str(sku)
        if not self.PATTERN.match(raw):
            return False
        return self.min_length <= len(raw.replace("-", "")) <= self.max_length


class NameNormalizer:
    """
    Normalizes seed names and types for duplicate matching: leading and
    trailing whitespace is dropped and case is folded. Internal spacing is
    kept, so "Pepper  - Ghost" and "Pepper - Ghost" stay distinct.
    """

    def normalize(self, name: Any) -> str | None:
        """Normalize a name. Returns None for blank names."""
        if is_blank(name):
            return None
        return str(name).strip().lower()
