from datetime import datetime, timedelta, timezone

import pytest

from timberjack.timefmt import LayoutError, format_layout, parse_layout

DEFAULT = "2006-01-02T15-04-05.000"


def test_format_default_layout():
    when = datetime(2020, 1, 2, 3, 4, 5, 6000, tzinfo=timezone.utc)
    assert format_layout(when, DEFAULT) == "2020-01-02T03-04-05.006"


def test_parse_default_layout():
    got = parse_layout("2014-05-04T14-44-33.555", DEFAULT)
    assert got == datetime(2014, 5, 4, 14, 44, 33, 555000, tzinfo=timezone.utc)


def test_round_trip_keeps_instant():
    when = datetime(2025, 5, 22, 23, 41, 59, 987000, tzinfo=timezone.utc)
    assert parse_layout(format_layout(when, DEFAULT), DEFAULT) == when


def test_parse_incomplete_reports_cannot_parse():
    with pytest.raises(LayoutError, match="cannot parse"):
        parse_layout("2020-01-01T00-00", DEFAULT)


def test_parse_extra_text():
    with pytest.raises(LayoutError, match="extra text"):
        parse_layout("2020-01-01T00-00-00.000x", DEFAULT)


def test_day_out_of_range():
    with pytest.raises(LayoutError, match="day out of range"):
        parse_layout("2021-02-30", "2006-01-02")


def test_month_names_and_pm():
    when = datetime(2016, 11, 4, 18, 30, tzinfo=timezone.utc)
    text = format_layout(when, "Monday January 2 3:04PM")
    assert text == "Friday November 4 6:30PM"
    back = parse_layout("Nov 4 2016 6:30pm", "Jan 2 2006 3:04pm")
    assert back == when


def test_zone_offsets():
    zone = timezone(timedelta(hours=-7))
    when = datetime(2006, 1, 2, 15, 4, 5, tzinfo=zone)
    assert format_layout(when, "15:04 -07:00") == "15:04 -07:00"
    assert format_layout(when.astimezone(timezone.utc), "Z07:00") == "Z"
    parsed = parse_layout("2006-01-02 15:04:05 -0700", "2006-01-02 15:04:05 -0700")
    assert parsed == when


def test_optional_fraction():
    layout = "15:04:05.999"
    assert format_layout(datetime(2000, 1, 1, 1, 2, 3), layout) == "01:02:03"
    assert format_layout(datetime(2000, 1, 1, 1, 2, 3, 500000), layout) == "01:02:03.5"
    assert parse_layout("01:02:03.25", layout).microsecond == 250000