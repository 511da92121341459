"""Whole-file text writes that readers never observe half-finished."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

from usercolors.errors import StorageError, classify_exception

NEW_FILE_MODE = 0o644


def atomic_write_text(path: Path, text: str) -> Path:
    """Write ``text`` to ``path`` through a sibling temp file and a rename.

    A symlinked ``path`` is followed, so the link survives and its target
    receives the new content. The target's permission bits are kept; new
    files get ``NEW_FILE_MODE``. Raises a typed error from
    ``usercolors.errors`` on failure; the target keeps its previous contents
    in that case.
    """
    target = Path(path).resolve()
    tmp_name: str | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            mode = stat.S_IMODE(target.stat().st_mode)
        except FileNotFoundError:
            mode = NEW_FILE_MODE
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
            handle.flush()
            os.fchmod(handle.fileno(), mode)
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as exc:
        error = classify_exception(exc, path)
        if not isinstance(error, StorageError):
            error = StorageError(path=path, details={"original": str(exc)})
        raise error from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
    return path
