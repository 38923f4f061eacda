"""Clock-aligned rotation slots: parsing, normalising and finding the next one."""

from __future__ import annotations

import re
import sys
from datetime import datetime, timedelta, tzinfo
from typing import Iterable

__all__ = ["parse_clock", "build_slots", "next_slot_after"]

_INT = re.compile(r"[+-]?[0-9]+")


def parse_clock(text: str) -> tuple[int, int]:
    """Parse ``HH:MM`` into ``(hour, minute)``; raise ValueError if invalid."""
    parts = text.split(":")
    if len(parts) != 2 or not all(_INT.fullmatch(p) for p in parts):
        raise ValueError(f"invalid time: {text!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"invalid time: {text!r}")
    return hour, minute


def build_slots(minutes: Iterable[int], times: Iterable[str]) -> list[tuple[int, int]]:
    """Combine minute marks (every hour) and ``HH:MM`` times into sorted unique slots.

    Invalid entries are reported on stderr and skipped.
    """
    slots: set[tuple[int, int]] = set()
    for minute in minutes or ():
        if not 0 <= minute <= 59:
            print(
                f"timberjack: [{minute}] No valid minute specified for RotateAtMinutes.",
                file=sys.stderr,
            )
            continue
        slots.update((hour, minute) for hour in range(24))
    for text in times or ():
        try:
            slots.add(parse_clock(text))
        except ValueError:
            print(
                f"timberjack: [{text}] No valid time specified for RotateAt.",
                file=sys.stderr,
            )
    return sorted(slots)


def _at(base: datetime, hour: int, minute: int, tz: tzinfo | None) -> datetime:
    naive = datetime(base.year, base.month, base.day, hour, minute)
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def next_slot_after(
    now: datetime, slots: list[tuple[int, int]], tz: tzinfo | None
) -> datetime | None:
    """Return the earliest slot strictly after ``now``, looking up to 24 hours ahead.

    ``tz`` is the zone the slots are read in; ``None`` means local time.
    Returns None when no slot is found.
    """
    if not slots:
        return None
    local_now = now.astimezone(tz) if tz is not None else now.astimezone()
    hour_start = local_now.replace(minute=0, second=0, microsecond=0)
    try:
        for offset in range(25):
            base = hour_start + timedelta(hours=offset)
            for hour, minute in slots:
                candidate = _at(base, hour, minute, tz)
                if candidate > now:
                    return candidate
    except OverflowError:
        return None
    return None