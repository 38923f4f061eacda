"""Finding old backups and deciding which to delete and which to compress."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .naming import GZIP_SUFFIX, ZSTD_SUFFIX, BackupNameError, time_from_name
from .timefmt import LayoutError

__all__ = ["LogInfo", "CleanupPlan", "old_log_files", "plan_cleanup"]


@dataclass(frozen=True)
class LogInfo:
    """A backup file and the rotation time read from its name."""

    timestamp: datetime
    name: str


@dataclass
class CleanupPlan:
    """Backups to delete and backups to compress."""

    remove: list[LogInfo] = field(default_factory=list)
    compress: list[LogInfo] = field(default_factory=list)


def _timestamp(name: str, prefix: str, ext: str, layout: str, local: bool, after_ext: bool):
    for suffix in ("", GZIP_SUFFIX, ZSTD_SUFFIX):
        try:
            return time_from_name(name, prefix, ext + suffix, layout, local, after_ext)
        except (BackupNameError, LayoutError):
            continue
    return None


def old_log_files(
    directory: str, prefix: str, ext: str, layout: str, local: bool, after_ext: bool
) -> list[LogInfo]:
    """List backups in ``directory``, newest first; other files and directories are ignored."""
    try:
        entries = list(os.scandir(directory))
    except OSError as exc:
        raise OSError(f"can't read log file directory: {exc}") from exc

    found: list[LogInfo] = []
    for entry in entries:
        try:
            if entry.is_dir():
                continue
        except OSError:
            continue
        stamp = _timestamp(entry.name, prefix, ext, layout, local, after_ext)
        if stamp is not None:
            found.append(LogInfo(stamp, entry.name))
    return sorted(found, key=lambda info: info.timestamp, reverse=True)


def plan_cleanup(
    files: list[LogInfo], max_backups: int, max_age: int, now: datetime, compression: str
) -> CleanupPlan:
    """Decide which backups to delete and compress.

    ``files`` must be sorted newest first. ``max_backups`` counts distinct
    timestamps; ``max_age`` is in days of 24 hours. Zero disables either limit.
    """
    if max_backups == 0 and max_age == 0 and compression == "none":
        return CleanupPlan()

    keep = list(files)
    removal: dict[str, LogInfo] = {}

    if max_backups > 0:
        distinct = list(dict.fromkeys(info.timestamp for info in keep))
        if len(distinct) > max_backups:
            kept = set(distinct[:max_backups])
            for info in keep:
                if info.timestamp not in kept:
                    removal.setdefault(info.name, info)
            keep = [info for info in keep if info.timestamp in kept]

    if max_age > 0:
        cutoff = now - timedelta(days=max_age)
        for info in keep:
            if info.timestamp < cutoff:
                removal.setdefault(info.name, info)
        keep = [info for info in keep if info.timestamp >= cutoff]

    to_compress: list[LogInfo] = []
    if compression != "none":
        to_compress = [
            info
            for info in keep
            if not info.name.endswith((GZIP_SUFFIX, ZSTD_SUFFIX)) and info.name not in removal
        ]

    return CleanupPlan(remove=list(removal.values()), compress=to_compress)