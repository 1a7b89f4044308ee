"""Crash-safe file replacement via same-directory temp file and rename."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from ..errors import WriteFailedError

DEFAULT_MODE = 0o644


def atomic_write(path: Path | str, data: bytes | str, mode: int | None = None) -> None:
    """Replace `path` with `data` so readers see either old or new content.

    When `mode` is None the existing file's permissions are kept, falling back
    to 0644 for new files. The temp file is removed on any failure.
    """
    target = Path(path)
    payload = data.encode("utf-8") if isinstance(data, str) else data
    if mode is None:
        try:
            mode = target.stat().st_mode & 0o7777
        except FileNotFoundError:
            mode = DEFAULT_MODE

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", dir=str(target.parent))
    except OSError as exc:
        raise WriteFailedError(target, f"failed to create temp file: {exc}") from exc

    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except OSError as exc:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise WriteFailedError(target, str(exc)) from exc


__all__ = ["DEFAULT_MODE", "atomic_write"]
