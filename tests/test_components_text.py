from datetime import datetime, timedelta, timezone

from docsign.components import format_clock_time, format_long_date, format_timestamp_text


def test_long_date_uses_english_month():
    assert format_long_date(datetime(2024, 5, 1)) == "May 1, 2024"


def test_clock_time_twelve_hour():
    assert format_clock_time(datetime(2024, 5, 1, 15, 4, 5)) == "03:04:05 PM"
    assert format_clock_time(datetime(2024, 5, 1, 0, 0, 9)) == "12:00:09 AM"
    assert format_clock_time(datetime(2024, 5, 1, 12, 30, 0)) == "12:30:00 PM"


def test_timestamp_text_utc():
    moment = datetime(2024, 5, 1, 10, 30, 0, tzinfo=timezone.utc)
    assert format_timestamp_text(moment) == "Signed on: May 1, 2024, 10:30:00 AM, UTC"


def test_timestamp_text_fixed_offset():
    moment = datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone(timedelta(hours=8)))
    assert format_timestamp_text(moment) == "Signed on: December 31, 2024, 11:59:59 PM, UTC+08:00"


def test_timestamp_text_naive_uses_local_zone():
    text = format_timestamp_text(datetime(2024, 5, 1, 10, 30, 0))
    assert text.startswith("Signed on: May 1, 2024, 10:30:00 AM, ")
