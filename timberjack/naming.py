"""Backup file naming: building names and reading timestamps back from them."""

from __future__ import annotations

import os
from datetime import datetime, timezone

from .timefmt import LayoutError, format_layout, parse_layout

__all__ = [
    "BackupNameError",
    "DEFAULT_LAYOUT",
    "backup_name",
    "sanitize_reason",
    "count_digits_after_dot",
    "truncate_fractional",
    "trim_compression_suffix",
    "prefix_and_ext",
    "time_from_name",
    "validate_backup_time_format",
]

DEFAULT_LAYOUT = "2006-01-02T15-04-05.000"
GZIP_SUFFIX = ".gz"
ZSTD_SUFFIX = ".zst"
_REASON_LIMIT = 32


class BackupNameError(ValueError):
    """Raised when a file name is not a backup of the current log file."""


def _ext(base: str) -> str:
    index = base.rfind(".")
    return base[index:] if index >= 0 else ""


def _as_aware(when: datetime) -> datetime:
    return when if when.tzinfo is not None else when.replace(tzinfo=timezone.utc)


def backup_name(
    name: str, local: bool, reason: str, when: datetime, layout: str, after_ext: bool
) -> str:
    """Return the backup path for ``name`` rotated at ``when`` for ``reason``."""
    directory, base = os.path.split(name)
    ext = _ext(base)
    prefix = base[: len(base) - len(ext)]
    when = _as_aware(when)
    when = when.astimezone() if local else when.astimezone(timezone.utc)
    stamp = format_layout(when, layout)
    if after_ext:
        rotated = f"{prefix}{ext}-{stamp}-{reason}"
    else:
        rotated = f"{prefix}-{stamp}-{reason}{ext}"
    return os.path.join(directory, rotated)


def sanitize_reason(reason: str) -> str:
    """Reduce ``reason`` to a short ``[a-z0-9_-]`` tag; empty if nothing usable."""
    text = reason.lower().strip()
    out: list[str] = []
    last_dash = False
    for ch in text:
        if ("a" <= ch <= "z") or ("0" <= ch <= "9") or ch in "-_":
            out.append(ch)
            last_dash = ch == "-"
        elif not last_dash and out:
            out.append("-")
            last_dash = True
        if len(out) >= _REASON_LIMIT:
            break
    return "".join(out).strip("-_")


def count_digits_after_dot(layout: str) -> int:
    """Count the digits directly after the first ``.`` in ``layout``."""
    index = layout.find(".")
    if index < 0:
        return 0
    count = 0
    for ch in layout[index + 1:]:
        if not ch.isdecimal():
            break
        count += 1
    return count


def truncate_fractional(when: datetime, digits: int) -> datetime:
    """Drop fractional seconds beyond ``digits`` places (0 to 9)."""
    if not 0 <= digits <= 9:
        raise ValueError(f"unsupported fractional precision: {digits}")
    if digits >= 6:
        return when
    factor = 10 ** (6 - digits)
    return when.replace(microsecond=(when.microsecond // factor) * factor)


def trim_compression_suffix(name: str) -> str:
    """Strip a trailing ``.gz`` and then a trailing ``.zst``."""
    name = name.removesuffix(GZIP_SUFFIX)
    return name.removesuffix(ZSTD_SUFFIX)


def prefix_and_ext(filename: str) -> tuple[str, str]:
    """Return the backup prefix (name without extension plus ``-``) and extension."""
    base = os.path.basename(filename)
    ext = _ext(base)
    return base[: len(base) - len(ext)] + "-", ext


def time_from_name(
    filename: str, prefix: str, ext: str, layout: str, local: bool, after_ext: bool
) -> datetime:
    """Read the rotation timestamp out of a backup file name."""
    layout = layout or DEFAULT_LAYOUT
    tz = None if local else timezone.utc

    if not after_ext:
        if not filename.startswith(prefix):
            raise BackupNameError("mismatched prefix")
        if not filename.endswith(ext):
            raise BackupNameError("mismatched extension")
        trimmed = filename[len(prefix): len(filename) - len(ext)]
        hyphen = trimmed.rfind("-")
        if hyphen < 0:
            raise BackupNameError(
                f"malformed backup filename: missing reason separator in {trimmed!r}"
            )
        return parse_layout(trimmed[:hyphen], layout, tz)

    base = prefix[:-1] + ext
    bare = trim_compression_suffix(filename)
    if not bare.startswith(base + "-"):
        raise BackupNameError(f"malformed backup filename: {filename!r}")
    trimmed = bare[len(base) + 1:]
    hyphen = trimmed.rfind("-")
    if hyphen < 0:
        raise BackupNameError(f"malformed backup filename: {filename!r}")
    return parse_layout(trimmed[:hyphen], layout, tz)


def validate_backup_time_format(layout: str) -> None:
    """Raise LayoutError unless ``layout`` formats and parses back to the same moment."""
    if not layout:
        raise LayoutError("empty backupformat field")
    sample = datetime(2025, 5, 22, 23, 41, 59, 987654, tzinfo=timezone.utc)
    try:
        sample = truncate_fractional(sample, count_digits_after_dot(layout))
    except ValueError as exc:
        raise LayoutError(str(exc)) from exc
    text = format_layout(sample, layout)
    try:
        parsed = parse_layout(text, layout, timezone.utc)
    except LayoutError as exc:
        raise LayoutError(f"invalid BackupTimeFormat: {exc}") from exc
    if parsed != sample:
        raise LayoutError(
            "invalid BackupTimeFormat: time parsed from the format does not match the time supplied"
        )