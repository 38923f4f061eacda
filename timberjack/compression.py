"""Choosing a compression algorithm and compressing rotated log files."""

from __future__ import annotations

import gzip
import os
import shutil
import stat as stat_mod
import sys
from typing import Any, BinaryIO, Callable

import zstandard

from .naming import GZIP_SUFFIX, ZSTD_SUFFIX
from .ownership import copy_owner

__all__ = [
    "CompressionError",
    "effective_compression",
    "compressed_suffix",
    "compress_log_file",
]


class CompressionError(OSError):
    """Raised when a log file cannot be compressed."""


def effective_compression(compression: str, compress: bool) -> str:
    """Return ``"none"``, ``"gzip"`` or ``"zstd"``.

    An explicit ``compression`` wins; when it is empty the legacy ``compress``
    flag selects gzip. Unknown names fall back to ``"none"`` with a warning.
    """
    algorithm = (compression or "").strip().lower()
    if algorithm in ("gzip", "zstd"):
        return algorithm
    if algorithm == "":
        return "gzip" if compress else "none"
    if algorithm == "none":
        return "none"
    print(f"timberjack: invalid compression {algorithm!r} — using none", file=sys.stderr)
    return "none"


def compressed_suffix(algorithm: str) -> str:
    """Return the file suffix for ``algorithm``, or ``""`` for none."""
    return {"gzip": GZIP_SUFFIX, "zstd": ZSTD_SUFFIX}.get(algorithm, "")


def _compress(source: BinaryIO, target: BinaryIO, dst: str) -> None:
    if dst.endswith(ZSTD_SUFFIX):
        zstandard.ZstdCompressor().copy_stream(source, target)
        return
    with gzip.GzipFile(filename="", mode="wb", fileobj=target, mtime=0) as writer:
        shutil.copyfileobj(source, writer)


def compress_log_file(
    src: str,
    dst: str,
    stat: Callable[[str], Any] = os.stat,
    remove: Callable[[str], None] = os.remove,
) -> None:
    """Compress ``src`` into ``dst`` and remove ``src`` on success.

    The algorithm is zstd when ``dst`` ends in ``.zst`` and gzip otherwise.
    The destination keeps the source's permissions and, where possible, owner.
    """
    try:
        source = open(src, "rb")
    except OSError as exc:
        raise CompressionError(
            f"failed to open source log file {src} for compression: {exc}"
        ) from exc

    with source:
        try:
            info = stat(src)
        except OSError as exc:
            raise CompressionError(f"failed to stat source log file {src}: {exc}") from exc

        try:
            fd = os.open(
                dst, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, stat_mod.S_IMODE(info.st_mode)
            )
        except OSError as exc:
            raise CompressionError(
                f"failed to open destination compressed log file {dst}: {exc}"
            ) from exc

        target = os.fdopen(fd, "wb")
        try:
            _compress(source, target, dst)
        except (OSError, zstandard.ZstdError) as exc:
            try:
                target.close()
            except OSError:
                pass
            try:
                remove(dst)
            except OSError:
                pass
            raise CompressionError(f"failed to write compressed data to {dst}: {exc}") from exc

        try:
            target.close()
        except OSError as exc:
            raise CompressionError(
                f"failed to close destination compressed file {dst}: {exc}"
            ) from exc

    try:
        copy_owner(dst, info)
    except (OSError, ValueError) as exc:
        print(
            f"timberjack: [{os.path.basename(src)}] failed to chown compressed log file "
            f"{dst}: {exc} (source {src})",
            file=sys.stderr,
        )

    try:
        remove(src)
    except OSError as exc:
        raise CompressionError(
            f"failed to remove original source log file {src} after compression: {exc}"
        ) from exc