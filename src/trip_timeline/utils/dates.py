"""Date helpers for itinerary fields."""

import re
from typing import Any

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
# Date/time separator as in "28/02/2026T10:00"; words like "Tuesday" are left alone
_TIME_SEPARATOR = re.compile(r"(?<=\d)T(?=\d)")


def normalize_date_only(value: Any) -> str:
    """
    Returns ``value`` as a ``YYYY-MM-DD`` string using text slicing only.

    Timestamps such as ``2026-02-28T00:00:00.000Z`` keep their calendar day;
    they are never turned into date objects, which could shift them to the
    previous local day.
    """
    if value is None or not isinstance(value, str):
        return ""
    s = value.strip()
    if not s:
        return ""
    if _ISO_DATE_PREFIX.match(s):
        return s[:10]
    match = _TIME_SEPARATOR.search(s)
    if match:
        return s[:match.start()]
    return s
