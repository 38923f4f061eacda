"""Carrying a file's owner and group over to a new file."""

from __future__ import annotations

import os
from typing import Any

__all__ = ["copy_owner"]


def copy_owner(name: str, info: Any) -> None:
    """Give ``name`` the uid and gid recorded in the stat result ``info``.

    Does nothing on platforms without ownership support.
    """
    uid = getattr(info, "st_uid", None)
    gid = getattr(info, "st_gid", None)
    if uid is None or gid is None:
        raise ValueError(f"failed to get ownership from file info for {name}")
    chown = getattr(os, "chown", None)
    if chown is None:
        return
    chown(name, uid, gid)