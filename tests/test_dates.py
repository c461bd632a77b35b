import pytest

from trip_timeline.utils.dates import normalize_date_only


def test_utc_midnight_timestamp_keeps_calendar_day():
    assert normalize_date_only("2026-02-28T00:00:00.000Z") == "2026-02-28"


@pytest.mark.parametrize("value", ["2026-03-17", "1999-12-31", ""])
def test_normalization_is_idempotent(value):
    once = normalize_date_only(value)
    assert once == value
    assert normalize_date_only(once) == once


def test_date_with_suffix_is_truncated():
    assert normalize_date_only("  2026-03-17 10:30  ") == "2026-03-17"


def test_non_canonical_value_truncated_at_time_separator():
    assert normalize_date_only("17/03/2026T10:00") == "17/03/2026"


def test_words_containing_t_are_left_alone():
    assert normalize_date_only(" Tuesday ") == "Tuesday"


def test_other_text_is_trimmed_and_returned():
    assert normalize_date_only(" 17/03/26 ") == "17/03/26"


@pytest.mark.parametrize("value", [None, 20260317, "   "])
def test_missing_or_non_text_gives_empty_string(value):
    assert normalize_date_only(value) == ""
