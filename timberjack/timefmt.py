"""Formatting and parsing of timestamps with reference-time layouts.

A layout is written as the reference moment ``Mon Jan 2 15:04:05 -0700 2006``
would appear, e.g. ``2006-01-02T15-04-05.000``.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo

__all__ = ["LayoutError", "format_layout", "parse_layout"]

_MONTHS = [calendar.month_name[i] for i in range(1, 13)]
_MONTHS_ABBR = [calendar.month_abbr[i] for i in range(1, 13)]
_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
_DAYS_ABBR = [d[:3] for d in _DAYS]

_ZONES = ("-070000", "-07:00:00", "-0700", "-07:00", "-07")
_ZZONES = ("Z070000", "Z07:00:00", "Z0700", "Z07:00", "Z07")

# Numeric tokens: (min digits, max digits)
_NUMERIC = {
    "2006": (4, 4),
    "06": (2, 2),
    "01": (2, 2),
    "1": (1, 2),
    "02": (2, 2),
    "2": (1, 2),
    "_2": (1, 2),
    "15": (1, 2),
    "03": (2, 2),
    "3": (1, 2),
    "04": (2, 2),
    "4": (1, 2),
    "05": (2, 2),
    "5": (1, 2),
}


class LayoutError(ValueError):
    """Raised when a timestamp does not match a layout or a layout is unusable."""


@dataclass(frozen=True)
class _Chunk:
    text: str
    std: str | None = None  # None means literal text
    digits: int = 0  # fractional digits
    sep: str = "."


def _next_std(layout: str, i: int) -> _Chunk | None:
    rest = layout[i:]
    c = rest[0]
    if c == "J":
        for name in ("January", "Jan"):
            if rest.startswith(name):
                return _Chunk(name, name)
    elif c == "M":
        for name in ("Monday", "Mon"):
            if rest.startswith(name):
                return _Chunk(name, name)
    elif c == "0":
        if len(rest) > 1 and rest[1] in "123456":
            return _Chunk(rest[:2], rest[:2])
    elif c == "1":
        return _Chunk("15", "15") if rest.startswith("15") else _Chunk("1", "1")
    elif c == "2":
        return _Chunk("2006", "2006") if rest.startswith("2006") else _Chunk("2", "2")
    elif c == "_":
        if rest.startswith("_2"):
            return _Chunk("_2", "_2")
    elif c in "345":
        return _Chunk(c, c)
    elif c == "P":
        if rest.startswith("PM"):
            return _Chunk("PM", "PM")
    elif c == "p":
        if rest.startswith("pm"):
            return _Chunk("pm", "pm")
    elif c == "-":
        for z in _ZONES:
            if rest.startswith(z):
                return _Chunk(z, z)
    elif c == "Z":
        for z in _ZZONES:
            if rest.startswith(z):
                return _Chunk(z, z)
    elif c in ".,":
        if len(rest) > 1 and rest[1] in "09":
            digit = rest[1]
            j = 1
            while j < len(rest) and rest[j] == digit:
                j += 1
            if not (j < len(rest) and rest[j].isdigit()):
                kind = "frac0" if digit == "0" else "frac9"
                return _Chunk(rest[:j], kind, digits=j - 1, sep=c)
    return None


def _chunks(layout: str) -> list[_Chunk]:
    out: list[_Chunk] = []
    literal: list[str] = []
    i = 0
    while i < len(layout):
        chunk = _next_std(layout, i)
        if chunk is None:
            literal.append(layout[i])
            i += 1
            continue
        if literal:
            out.append(_Chunk("".join(literal)))
            literal = []
        out.append(chunk)
        i += len(chunk.text)
    if literal:
        out.append(_Chunk("".join(literal)))
    return out


def _format_zone(std: str, offset: timedelta | None) -> str:
    seconds = int(offset.total_seconds()) if offset is not None else 0
    if std.startswith("Z") and seconds == 0:
        return "Z"
    sign = "-" if seconds < 0 else "+"
    seconds = abs(seconds)
    hh, rem = divmod(seconds, 3600)
    mm, ss = divmod(rem, 60)
    form = std[1:]
    if form == "070000":
        return f"{sign}{hh:02d}{mm:02d}{ss:02d}"
    if form == "07:00:00":
        return f"{sign}{hh:02d}:{mm:02d}:{ss:02d}"
    if form == "0700":
        return f"{sign}{hh:02d}{mm:02d}"
    if form == "07:00":
        return f"{sign}{hh:02d}:{mm:02d}"
    return f"{sign}{hh:02d}"


def format_layout(value: datetime, layout: str) -> str:
    """Render ``value`` according to ``layout``."""
    parts: list[str] = []
    hour12 = value.hour % 12 or 12
    nanos = value.microsecond * 1000
    for chunk in _chunks(layout):
        std = chunk.std
        if std is None:
            parts.append(chunk.text)
        elif std == "January":
            parts.append(_MONTHS[value.month - 1])
        elif std == "Jan":
            parts.append(_MONTHS_ABBR[value.month - 1])
        elif std == "Monday":
            parts.append(_DAYS[value.weekday()])
        elif std == "Mon":
            parts.append(_DAYS_ABBR[value.weekday()])
        elif std == "2006":
            parts.append(f"{value.year:04d}")
        elif std == "06":
            parts.append(f"{value.year % 100:02d}")
        elif std == "01":
            parts.append(f"{value.month:02d}")
        elif std == "1":
            parts.append(str(value.month))
        elif std == "02":
            parts.append(f"{value.day:02d}")
        elif std == "2":
            parts.append(str(value.day))
        elif std == "_2":
            parts.append(f"{value.day:2d}")
        elif std == "15":
            parts.append(f"{value.hour:02d}")
        elif std == "03":
            parts.append(f"{hour12:02d}")
        elif std == "3":
            parts.append(str(hour12))
        elif std == "04":
            parts.append(f"{value.minute:02d}")
        elif std == "4":
            parts.append(str(value.minute))
        elif std == "05":
            parts.append(f"{value.second:02d}")
        elif std == "5":
            parts.append(str(value.second))
        elif std == "PM":
            parts.append("PM" if value.hour >= 12 else "AM")
        elif std == "pm":
            parts.append("pm" if value.hour >= 12 else "am")
        elif std in _ZONES or std in _ZZONES:
            parts.append(_format_zone(std, value.utcoffset()))
        elif std == "frac0":
            parts.append(chunk.sep + f"{nanos:09d}"[: chunk.digits])
        elif std == "frac9":
            digits = f"{nanos:09d}"[: chunk.digits].rstrip("0")
            if digits:
                parts.append(chunk.sep + digits)
    return "".join(parts)


def _take_digits(value: str, pos: int, low: int, high: int) -> tuple[int, int] | None:
    end = pos
    while end < len(value) and end - pos < high and value[end].isdigit():
        end += 1
    if end - pos < low:
        return None
    return int(value[pos:end]), end


def _match_name(value: str, pos: int, names: list[str]) -> tuple[int, int] | None:
    for index, name in enumerate(names):
        candidate = value[pos:pos + len(name)]
        if candidate.lower() == name.lower():
            return index, pos + len(name)
    return None


def _parse_zone(std: str, value: str, pos: int) -> tuple[int, int] | None:
    if std.startswith("Z") and value[pos:pos + 1] == "Z":
        return 0, pos + 1
    if value[pos:pos + 1] not in ("+", "-"):
        return None
    sign = -1 if value[pos] == "-" else 1
    form = std[1:]
    width = len(form) + 1
    piece = value[pos:pos + width]
    if len(piece) != width:
        return None
    body = piece[1:]
    for expected, got in zip(form, body):
        if (expected == ":") != (got == ":") or (expected != ":" and not got.isdigit()):
            return None
    digits = body.replace(":", "")
    hh = int(digits[0:2])
    mm = int(digits[2:4]) if len(digits) >= 4 else 0
    ss = int(digits[4:6]) if len(digits) >= 6 else 0
    return sign * (hh * 3600 + mm * 60 + ss), pos + width


def parse_layout(text: str, layout: str, tz: tzinfo | None = timezone.utc) -> datetime:
    """Parse ``text`` written in ``layout``.

    Without a zone in the layout, the result is placed in ``tz``; ``tz=None``
    means the local time zone.
    """
    year, month, day = 1, 1, 1
    hour = minute = second = nanos = 0
    pm: bool | None = None
    offset: int | None = None
    pos = 0

    def fail(chunk_text: str) -> LayoutError:
        return LayoutError(
            f'parsing time "{text}" as "{layout}": cannot parse "{text[pos:]}" as "{chunk_text}"'
        )

    for chunk in _chunks(layout):
        std = chunk.std
        if std is None:
            if not text.startswith(chunk.text, pos):
                raise fail(chunk.text)
            pos += len(chunk.text)
            continue
        if std in _NUMERIC:
            start = pos
            if std == "_2" and text[pos:pos + 1] == " ":
                start += 1
            low, high = _NUMERIC[std]
            got = _take_digits(text, start, low, high)
            if got is None:
                raise fail(chunk.text)
            number, pos = got
            if std == "2006":
                year = number
            elif std == "06":
                year = number + (1900 if number >= 69 else 2000)
            elif std in ("01", "1"):
                month = number
            elif std in ("02", "2", "_2"):
                day = number
            elif std == "15":
                hour = number
            elif std in ("03", "3"):
                if number > 12:
                    raise LayoutError(f'parsing time "{text}": hour out of range')
                hour = number
            elif std in ("04", "4"):
                minute = number
            else:
                second = number
        elif std in ("January", "Jan"):
            got = _match_name(text, pos, _MONTHS if std == "January" else _MONTHS_ABBR)
            if got is None:
                raise fail(chunk.text)
            index, pos = got
            month = index + 1
        elif std in ("Monday", "Mon"):
            got = _match_name(text, pos, _DAYS if std == "Monday" else _DAYS_ABBR)
            if got is None:
                raise fail(chunk.text)
            pos = got[1]
        elif std in ("PM", "pm"):
            marker = text[pos:pos + 2].upper()
            if marker not in ("AM", "PM"):
                raise fail(chunk.text)
            pm = marker == "PM"
            pos += 2
        elif std in _ZONES or std in _ZZONES:
            got = _parse_zone(std, text, pos)
            if got is None:
                raise fail(chunk.text)
            offset, pos = got
        elif std == "frac0":
            piece = text[pos:pos + 1 + chunk.digits]
            if (
                len(piece) != 1 + chunk.digits
                or piece[0] != chunk.sep
                or not piece[1:].isdigit()
            ):
                raise fail(chunk.text)
            nanos = int(piece[1:].ljust(9, "0")[:9])
            pos += len(piece)
        elif std == "frac9":
            if text[pos:pos + 1] in (".", ","):
                end = pos + 1
                while end < len(text) and text[end].isdigit():
                    end += 1
                digits = text[pos + 1:end]
                if digits:
                    nanos = int(digits.ljust(9, "0")[:9])
                pos = end

    if pos != len(text):
        raise LayoutError(f'parsing time "{text}": extra text: "{text[pos:]}"')

    if pm is True and hour < 12:
        hour += 12
    elif pm is False and hour == 12:
        hour = 0

    if not 1 <= month <= 12:
        raise LayoutError(f'parsing time "{text}": month out of range')
    if not 1 <= day <= calendar.monthrange(year, month)[1]:
        raise LayoutError(f'parsing time "{text}": day out of range')
    if hour > 23:
        raise LayoutError(f'parsing time "{text}": hour out of range')
    if minute > 59:
        raise LayoutError(f'parsing time "{text}": minute out of range')
    if second > 59:
        raise LayoutError(f'parsing time "{text}": second out of range')

    result = datetime(year, month, day, hour, minute, second, nanos // 1000)
    if offset is not None:
        return result.replace(tzinfo=timezone(timedelta(seconds=offset)))
    if tz is None:
        return result.astimezone()
    return result.replace(tzinfo=tz)