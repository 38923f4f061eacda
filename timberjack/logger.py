"""A rolling log file writer with size, interval and clock-based rotation."""

from __future__ import annotations

import os
import queue
import stat as stat_mod
import sys
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, BinaryIO, Callable

from .cleanup import old_log_files, plan_cleanup
from .compression import compress_log_file, compressed_suffix, effective_compression
from .naming import (
    DEFAULT_LAYOUT,
    backup_name,
    prefix_and_ext,
    sanitize_reason,
    validate_backup_time_format,
)
from .ownership import copy_owner
from .schedule import build_slots, next_slot_after
from .timefmt import LayoutError

__all__ = ["Logger", "LoggerClosedError", "MEGABYTE", "DEFAULT_MAX_SIZE", "DEFAULT_FILE_MODE"]

MEGABYTE = 1024 * 1024
DEFAULT_MAX_SIZE = 100
DEFAULT_FILE_MODE = 0o640


class LoggerClosedError(ValueError):
    """Raised when an operation needs an open logger."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _warn(message: str) -> None:
    print(f"timberjack: {message}", file=sys.stderr)


@dataclass(eq=False)
class Logger:
    """A writable log file that rotates itself.

    The file named by ``filename`` is always the current log. It is rotated
    (renamed to ``<name>-<timestamp>-<reason><ext>``) when a write would make
    it larger than ``max_size`` megabytes, when ``rotation_interval`` has
    elapsed, when a clock mark from ``rotate_at_minutes`` or ``rotate_at`` is
    crossed, or on request. Old backups are compressed and pruned according
    to ``compression``, ``max_backups`` and ``max_age`` (days).

    ``clock``, ``stat``, ``rename``, ``remove`` and ``megabyte`` may be
    replaced to control time, file system access and size units.
    """

    filename: str = ""
    max_size: int = 0
    max_age: int = 0
    max_backups: int = 0
    local_time: bool = False
    compress: bool = False
    compression: str = ""
    rotation_interval: timedelta = timedelta(0)
    backup_time_format: str = ""
    rotate_at_minutes: list[int] = field(default_factory=list)
    rotate_at: list[str] = field(default_factory=list)
    append_time_after_ext: bool = False
    file_mode: int = 0
    clock: Callable[[], datetime] = field(default=_utc_now, repr=False)
    stat: Callable[[str], Any] = field(default=os.stat, repr=False)
    rename: Callable[[str, str], None] = field(default=os.rename, repr=False)
    remove: Callable[[str], None] = field(default=os.remove, repr=False)
    megabyte: int = field(default=MEGABYTE, repr=False)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._cfg_lock = threading.Lock()
        self._resolved = False
        self._layout = DEFAULT_LAYOUT
        self._after_ext = False
        self._local = False
        self._compression = "none"
        self._file: BinaryIO | None = None
        self._size = 0
        self._last_rotation: datetime | None = None
        self._log_start: datetime | None = None
        self._closed = False
        self._mill_queue: queue.Queue | None = None
        self._mill_thread: threading.Thread | None = None
        self._schedule_started = False
        self._slots: list[tuple[int, int]] = []
        self._quit: threading.Event | None = None
        self._schedule_thread: threading.Thread | None = None

    # -- public interface -------------------------------------------------

    def write(self, data: bytes | str) -> int:
        """Write ``data`` (text is UTF-8 encoded), rotating first if needed.

        Returns the number of bytes written. A single write larger than the
        maximum file size is rejected with ValueError.
        """
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        with self._lock:
            self._resolve_config()
            if self._closed:
                return self._write_closed(payload)

            self._ensure_schedule()
            now = self._localize(self._now())
            limit = self._max()
            if len(payload) > limit:
                raise ValueError(
                    f"write length {len(payload)} exceeds maximum file size {limit}"
                )

            if self._file is None:
                self._open_existing_or_new(len(payload))
                if self._last_rotation is None:
                    self._last_rotation = now

            interval = self._interval()
            if interval > timedelta(0) and (
                self._last_rotation is None or now - self._last_rotation >= interval
            ):
                try:
                    self._rotate("time")
                except OSError as exc:
                    raise OSError(f"interval rotation failed: {exc}") from exc
                self._last_rotation = now

            for hour, minute in self._slots:
                mark = self._mark(now, hour, minute)
                last = self._last_rotation
                if (last is None or last < mark) and mark <= now:
                    try:
                        self._rotate("time")
                    except OSError as exc:
                        raise OSError(f"scheduled-minute rotation failed: {exc}") from exc
                    self._last_rotation = mark
                    break

            if self._size + len(payload) > limit:
                try:
                    self._rotate("size")
                except OSError as exc:
                    raise OSError(f"size rotation failed: {exc}") from exc

            written = self._file.write(payload)
            self._size += written
            return written

    def flush(self) -> None:
        """Flush the current file, if open."""
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def close(self) -> None:
        """Close the current file and stop the background threads.

        Closing twice is harmless; writes after closing append to the file
        directly without rotation.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            quit_event, schedule_thread = self._quit, self._schedule_thread
            self._quit = None
            mill_queue, mill_thread = self._mill_queue, self._mill_thread
            error: OSError | None = None
            try:
                self._close_file()
            except OSError as exc:
                error = exc

        if quit_event is not None:
            quit_event.set()
            if schedule_thread is not None:
                schedule_thread.join()
        if mill_queue is not None and mill_thread is not None:
            mill_queue.put(None)
            mill_thread.join()
        if error is not None:
            raise error

    def rotate(self) -> None:
        """Rotate now, tagging the backup "time" if an interval is due, else "size"."""
        self.rotate_with_reason("")

    def rotate_with_reason(self, reason: str) -> None:
        """Rotate now, tagging the backup with the sanitised ``reason``.

        An empty tag falls back to the behaviour of :meth:`rotate`.
        """
        with self._lock:
            if self._closed:
                raise LoggerClosedError("logger closed")
            self._resolve_config()
            tag = sanitize_reason(reason)
            if not tag:
                tag = "time" if self._should_time_rotate() else "size"
            self._rotate(tag)

    def validate_backup_time_format(self) -> None:
        """Raise LayoutError unless ``backup_time_format`` round-trips a timestamp."""
        validate_backup_time_format(self.backup_time_format)

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # -- configuration ----------------------------------------------------

    def _resolve_config(self) -> None:
        with self._cfg_lock:
            if self._resolved:
                return
            layout = self.backup_time_format
            if not layout:
                layout = DEFAULT_LAYOUT
            else:
                try:
                    validate_backup_time_format(layout)
                except LayoutError as exc:
                    _warn(
                        f"invalid BackupTimeFormat: {exc} — falling back to default "
                        f"format: {DEFAULT_LAYOUT}"
                    )
                    layout = DEFAULT_LAYOUT
            self._layout = layout
            self._after_ext = self.append_time_after_ext
            self._local = self.local_time
            self._compression = effective_compression(self.compression, self.compress)
            self._resolved = True

    def _tz(self) -> tzinfo | None:
        return None if self._local else timezone.utc

    def _now(self) -> datetime:
        value = self.clock()
        return value if value.tzinfo is not None else value.astimezone()

    def _localize(self, value: datetime) -> datetime:
        tz = self._tz()
        return value.astimezone(tz) if tz is not None else value.astimezone()

    def _mark(self, now: datetime, hour: int, minute: int) -> datetime:
        naive = datetime(now.year, now.month, now.day, hour, minute)
        tz = self._tz()
        return naive.replace(tzinfo=tz) if tz is not None else naive.astimezone()

    def _interval(self) -> timedelta:
        value = self.rotation_interval
        if isinstance(value, (int, float)):
            return timedelta(seconds=value)
        return value or timedelta(0)

    def _max(self) -> int:
        size = self.max_size or DEFAULT_MAX_SIZE
        return size * self.megabyte

    def _filename(self) -> str:
        if self.filename:
            return self.filename
        name = os.path.basename(sys.argv[0] if sys.argv else "") + "-timberjack.log"
        return os.path.join(tempfile.gettempdir(), name)

    def _dir(self) -> str:
        return os.path.dirname(self._filename()) or "."

    def _should_time_rotate(self) -> bool:
        interval = self._interval()
        if interval == timedelta(0) or self._last_rotation is None:
            return False
        return self._now() - self._last_rotation >= interval

    # -- file handling ----------------------------------------------------

    def _write_closed(self, payload: bytes) -> int:
        try:
            fd = os.open(self._filename(), os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644)
        except OSError as exc:
            raise OSError(
                f"timberjack: write on closed logger failed to open file: {exc}"
            ) from exc
        with os.fdopen(fd, "wb", buffering=0) as handle:
            return handle.write(payload)

    def _close_file(self) -> None:
        if self._file is None:
            return
        handle, self._file = self._file, None
        handle.close()

    def _rotate(self, reason: str) -> None:
        self._close_file()
        self._open_new(reason)
        self._mill()

    def _open_existing_or_new(self, write_len: int) -> None:
        self._mill()
        name = self._filename()
        try:
            info = self.stat(name)
        except FileNotFoundError:
            self._open_new("initial")
            return
        except OSError as exc:
            raise OSError(f"error getting log file info: {exc}") from exc

        if info.st_size + write_len >= self._max():
            self._rotate("size")
            return

        try:
            fd = os.open(name, os.O_APPEND | os.O_WRONLY)
        except OSError:
            self._open_new("initial")
            return
        self._file = os.fdopen(fd, "wb", buffering=0)
        self._size = info.st_size

    def _open_new(self, reason: str) -> None:
        self._resolve_config()
        try:
            os.makedirs(self._dir(), 0o755, exist_ok=True)
        except OSError as exc:
            raise OSError(f"can't make directories for new logfile: {exc}") from exc

        name = self._filename()
        mode = self.file_mode or DEFAULT_FILE_MODE
        old_info = None
        try:
            info = self.stat(name)
        except FileNotFoundError:
            self._log_start = self._now()
        except OSError as exc:
            raise OSError(f"failed to stat log file {name}: {exc}") from exc
        else:
            old_info = info
            mode = stat_mod.S_IMODE(info.st_mode)
            when = self._now()
            rotated = backup_name(name, self._local, reason, when, self._layout, self._after_ext)
            try:
                self.rename(name, rotated)
            except OSError as exc:
                raise OSError(f"can't rename log file: {exc}") from exc
            self._log_start = when

        try:
            fd = os.open(name, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
        except OSError as exc:
            raise OSError(f"can't open new logfile {name}: {exc}") from exc
        self._file = os.fdopen(fd, "wb", buffering=0)
        self._size = 0

        if old_info is not None:
            try:
                copy_owner(name, old_info)
            except (OSError, ValueError) as exc:
                _warn(f"[{self.filename}] failed to chown new log file {name}: {exc}")

    # -- background cleanup -----------------------------------------------

    def _mill(self) -> None:
        if self._closed:
            return
        if self._mill_thread is None:
            self._mill_queue = queue.Queue(maxsize=1)
            self._mill_thread = threading.Thread(
                target=self._mill_loop,
                args=(self._mill_queue,),
                name="timberjack-mill",
                daemon=True,
            )
            self._mill_thread.start()
        try:
            self._mill_queue.put_nowait(True)
        except queue.Full:
            pass

    def _mill_loop(self, signals: queue.Queue) -> None:
        for _ in iter(signals.get, None):
            try:
                self._mill_run_once()
            except OSError:
                pass

    def _mill_run_once(self) -> None:
        self._resolve_config()
        algorithm = self._compression
        if self.max_backups == 0 and self.max_age == 0 and algorithm == "none":
            return

        now = self._now()
        directory = self._dir()
        prefix, ext = prefix_and_ext(self._filename())
        files = old_log_files(directory, prefix, ext, self._layout, self._local, self._after_ext)
        plan = plan_cleanup(files, self.max_backups, self.max_age, now, algorithm)

        for info in plan.remove:
            try:
                self.remove(os.path.join(directory, info.name))
            except FileNotFoundError:
                pass
            except OSError as exc:
                _warn(f"[{self.filename}] failed to remove old log file {info.name}: {exc}")

        suffix = compressed_suffix(algorithm)
        for info in plan.compress:
            path = os.path.join(directory, info.name)
            try:
                compress_log_file(path, path + suffix, stat=self.stat, remove=self.remove)
            except OSError as exc:
                _warn(f"[{self.filename}] failed to compress log file {info.name}: {exc}")

    # -- scheduled rotation -----------------------------------------------

    def _ensure_schedule(self) -> None:
        if not (self.rotate_at_minutes or self.rotate_at) or self._schedule_started:
            return
        self._schedule_started = True
        slots = build_slots(self.rotate_at_minutes, self.rotate_at)
        if not slots:
            return
        self._slots = slots
        self._quit = threading.Event()
        self._schedule_thread = threading.Thread(
            target=self._run_schedule,
            args=(self._quit, list(slots), self._tz()),
            name="timberjack-schedule",
            daemon=True,
        )
        self._schedule_thread.start()

    def _run_schedule(
        self, quit_event: threading.Event, slots: list[tuple[int, int]], tz: tzinfo | None
    ) -> None:
        while not quit_event.is_set():
            now = self._now()
            target = next_slot_after(now, slots, tz)
            if target is None:
                _warn(
                    f"[{self.filename}] Could not determine next scheduled rotation time "
                    f"for {now} with marks {slots}. Retrying calculation in 1 minute."
                )
                if quit_event.wait(60):
                    return
                continue

            delay = max((target - now).total_seconds(), 0.0)
            if quit_event.wait(delay):
                return

            with self._lock:
                if self._closed:
                    return
                last = self._last_rotation
                if last is None or last < target:
                    try:
                        self._rotate("time")
                    except OSError as exc:
                        _warn(f"[{self.filename}] scheduled rotation failed: {exc}")
                    else:
                        self._last_rotation = self._now()