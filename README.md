# timberjack

A rolling log file writer. `timberjack.logger.Logger` is a file-like object
that writes to one "current" log file and moves it aside when one of these
happens:

- a write would make the file larger than `max_size` megabytes (size-based),
- `rotation_interval` has elapsed since the last rotation (interval-based),
- a clock mark from `rotate_at_minutes` or `rotate_at` is reached,
- you call `rotate()` or `rotate_with_reason()` yourself.

Rotated files can be compressed with gzip or zstd, and old backups are removed
according to `max_backups` and `max_age`.

## Installation

```
pip install timberjack
```

## Usage

```python
import logging
from datetime import timedelta

from timberjack.logger import Logger

writer = Logger(
    filename="/var/log/myapp/foo.log",
    max_size=500,                        # megabytes
    max_backups=3,                       # distinct rotation events to keep
    max_age=28,                          # days
    compression="gzip",                  # "none", "gzip" or "zstd"
    local_time=True,                     # timestamps in local time, not UTC
    rotation_interval=timedelta(days=1),
)

handler = logging.StreamHandler(writer)
logging.getLogger().addHandler(handler)
```

`write()` takes bytes or text (text is UTF-8 encoded) and returns the number
of bytes written; `flush()` is also available. `Logger` works as a context
manager and closes itself on exit:

```python
with Logger(filename="app.log", max_size=10) as log:
    log.write(b"hello\n")
```

### Options

| Option | Default | Meaning |
| --- | --- | --- |
| `filename` | `<program>-timberjack.log` in the temp directory | the current log file |
| `max_size` | 100 | megabytes before a size rotation |
| `max_backups` | 0 (keep all) | distinct rotation timestamps to keep |
| `max_age` | 0 (no limit) | days (of 24 hours) to keep backups |
| `local_time` | `False` | use local time instead of UTC in backup names |
| `compression` | `""` | `"none"`, `"gzip"` or `"zstd"`; unknown names mean none, with a warning |
| `compress` | `False` | older switch for gzip, used only when `compression` is empty |
| `rotation_interval` | `timedelta(0)` (off) | a `timedelta`, or a number of seconds |
| `backup_time_format` | `2006-01-02T15-04-05.000` | timestamp layout in backup names |
| `rotate_at_minutes` | `[]` | minutes of every hour to rotate at |
| `rotate_at` | `[]` | `"HH:MM"` times of day to rotate at |
| `append_time_after_ext` | `False` | put timestamp and reason after the extension |
| `file_mode` | `0o640` | permissions for newly created log files |

`clock`, `stat`, `rename`, `remove` and `megabyte` may also be passed to
control the time source, file system calls and size unit (useful in tests).

A new file made by rotation keeps the permissions of the file it replaces
and, where the platform allows, its owner and group.

### Backup names

Backups live next to the current file. By default they are named
`<name>-<timestamp>-<reason><ext>`, for example
`server-2016-11-04T18-30-00.000-size.log`. With `append_time_after_ext=True`
the form is `<name><ext>-<timestamp>-<reason>`, for example
`server.log-2016-11-04T18-30-00.000-size`. A `.gz` or `.zst` suffix is added
when a backup is compressed.

The reason is `size` or `time` for automatic rotations. `rotate()` uses
`time` if an interval rotation is due and `size` otherwise.
`rotate_with_reason()` takes a custom tag, which is lower-cased and reduced
to letters, digits, `-` and `_` (at most 32 characters); an empty result
falls back to the `rotate()` behaviour:

```python
log.rotate_with_reason("Reload NOW!! v2")   # ...-reload-now-v2.log
```

The timestamp layout is written in the reference-time style, where the
moment `Mon Jan 2 15:04:05 -0700 2006` shows how each field is written
(`2006` year, `01` month, `02` day, `15` hour, `04` minute, `05` second,
`.000` milliseconds, and so on). `validate_backup_time_format()` raises
`timberjack.timefmt.LayoutError` unless the layout formats and parses back
to the same moment; an invalid layout is reported on stderr and the default
is used instead.

### Scheduled rotation

```python
Logger(filename="app.log", rotate_at_minutes=[0, 30])    # every half hour
Logger(filename="app.log", rotate_at=["00:00", "12:00"])  # midnight and midday
```

A background thread rotates at each mark, and a write that finds a mark
crossed since the last rotation rotates too. Invalid minutes or times are
reported on stderr and skipped.

### Cleanup

After each rotation, and when the file is first opened, a background thread
removes backups beyond the `max_backups` newest rotation timestamps and
backups older than `max_age` days, then compresses the remaining
uncompressed backups if compression is enabled. Files in the directory that
do not match the backup naming pattern, and directories, are left alone.

### Errors and closing

- A single write larger than the maximum file size raises `ValueError`.
- Failures to rename, open or stat files raise `OSError`.
- `close()` may be called more than once. Writing after `close()` appends
  directly to the file without rotating; `rotate()` after `close()` raises
  `timberjack.logger.LoggerClosedError`.
- Only one process should write to a given set of log files at a time.

## Lower-level helpers

- `timberjack.naming`: `backup_name`, `time_from_name`, `prefix_and_ext`,
  `sanitize_reason`, `validate_backup_time_format` and related helpers.
- `timberjack.timefmt`: `format_layout` and `parse_layout` for
  reference-time layouts.
- `timberjack.compression`: `effective_compression`, `compressed_suffix`
  and `compress_log_file`.
- `timberjack.schedule`: `parse_clock`, `build_slots`, `next_slot_after`.
- `timberjack.cleanup`: `old_log_files` and `plan_cleanup`.

## What it does not do

There is no command-line tool and no signal handling; to rotate on a signal
such as SIGHUP, install your own handler that calls `rotate()`.