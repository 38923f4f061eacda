from datetime import datetime, timezone

import pytest

from timberjack.schedule import build_slots, next_slot_after, parse_clock

UTC = timezone.utc


@pytest.mark.parametrize(
    "text, expected", [("10:00", (10, 0)), ("09:05", (9, 5)), ("23:59", (23, 59)), ("0:0", (0, 0))]
)
def test_parse_clock_valid(text, expected):
    assert parse_clock(text) == expected


@pytest.mark.parametrize(
    "text", ["-1:00", "24:00", "00:60", "00:-1", "00", "foo:bar", "foo", "1:2:3", " 1:00"]
)
def test_parse_clock_invalid(text):
    with pytest.raises(ValueError):
        parse_clock(text)


def test_invalid_minutes_give_no_slots(capsys):
    assert build_slots([61, -1, 999], []) == []
    assert build_slots([-5, 60, 999, -1], []) == []
    assert "RotateAtMinutes" in capsys.readouterr().err


def test_invalid_times_give_no_slots():
    times = ["-1:00", "24:00", "00:60", "00:-1", "00", "foo:bar", "foo"]
    assert build_slots([], times) == []


def test_empty_gives_no_slots():
    assert build_slots(None, None) == []


def test_dedup_minutes_and_time():
    slots = build_slots([0, 30], ["00:00", "12:30", "14:45"])
    assert len(slots) == 49
    assert slots == sorted(set(slots))
    assert (14, 45) in slots


def test_slots_sorted():
    slots = build_slots([30, 0], [])
    assert slots[:3] == [(0, 0), (0, 30), (1, 0)]
    assert slots[-1] == (23, 30)


def test_next_slot_same_hour():
    now = datetime(2025, 1, 1, 10, 0, tzinfo=UTC)
    assert next_slot_after(now, [(10, 1)], UTC) == datetime(2025, 1, 1, 10, 1, tzinfo=UTC)


def test_next_slot_minute_marks():
    now = datetime(2025, 5, 12, 14, 1, tzinfo=UTC)
    slots = build_slots([0, 15, 30], [])
    assert next_slot_after(now, slots, UTC) == datetime(2025, 5, 12, 14, 15, tzinfo=UTC)


def test_next_slot_is_strictly_after():
    now = datetime(2025, 5, 12, 14, 15, tzinfo=UTC)
    slots = build_slots([0, 15, 30], [])
    assert next_slot_after(now, slots, UTC) == datetime(2025, 5, 12, 14, 30, tzinfo=UTC)


def test_next_slot_rolls_to_next_day():
    now = datetime(2025, 5, 12, 10, 1, tzinfo=UTC)
    assert next_slot_after(now, [(10, 0)], UTC) == datetime(2025, 5, 13, 10, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(1999, 1, 1, tzinfo=UTC), datetime(1999, 1, 2, tzinfo=UTC)),
        (datetime(3000, 1, 1, tzinfo=UTC), datetime(3000, 1, 2, tzinfo=UTC)),
        (datetime(9999, 1, 1, 23, 59, 59, tzinfo=UTC), datetime(9999, 1, 2, tzinfo=UTC)),
    ],
)
def test_next_slot_extreme_dates(now, expected):
    assert next_slot_after(now, [(0, 0)], UTC) == expected


def test_next_slot_without_slots():
    assert next_slot_after(datetime(2025, 1, 1, tzinfo=UTC), [], UTC) is None