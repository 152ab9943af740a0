"""Runtime helpers for counting how often booking functions execute."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Dict, Optional

_LOCK = threading.RLock()
_COUNTS: Dict[str, int] = {}
_TRACKING_FILE: Optional[Path] = None


def _resolve_tracking_file() -> Optional[Path]:
    raw = os.getenv('TRACKING_FILE', '').strip()
    return Path(raw) if raw else None


def _load_counts(path: Path) -> None:
    if not path.exists():
        return

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError, TypeError):
        return

    if not isinstance(data, dict):
        return

    for name, raw_count in data.items():
        if not name:
            continue
        try:
            count = int(raw_count)
        except (TypeError, ValueError):
            continue
        _COUNTS[str(name)] = max(count, 0)


def _persist_counts_locked() -> None:
    """Write the in-memory counts to ``_TRACKING_FILE``. Caller must hold ``_LOCK``."""
    if _TRACKING_FILE is None:
        return

    _TRACKING_FILE.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Optional[Path] = None
    try:
        with NamedTemporaryFile(
            "w", encoding="utf-8", dir=_TRACKING_FILE.parent, delete=False
        ) as handle:
            json.dump(_COUNTS, handle, sort_keys=True)
            handle.write("\n")
            handle.flush()
            tmp_path = Path(handle.name)

        tmp_path.replace(_TRACKING_FILE)
    except OSError:
        if tmp_path is not None:
            try:
                tmp_path.unlink()
            except OSError:
                pass


def configure(tracking_file: Optional[str]) -> None:
    """Point persistence at ``tracking_file`` (``None`` keeps counts in memory only)."""
    global _TRACKING_FILE

    with _LOCK:
        _TRACKING_FILE = Path(tracking_file) if tracking_file else None
        if _TRACKING_FILE is not None:
            _load_counts(_TRACKING_FILE)


def t(func_name: str) -> None:
    """Record the provided function name each time it runs."""
    if not func_name:
        return

    with _LOCK:
        _COUNTS[func_name] = _COUNTS.get(func_name, 0) + 1
        _persist_counts_locked()


def snapshot() -> Dict[str, int]:
    """Return a copy of the current counters."""
    with _LOCK:
        return dict(_COUNTS)


def reset() -> None:
    with _LOCK:
        _COUNTS.clear()
        _persist_counts_locked()


_TRACKING_FILE = _resolve_tracking_file()
if _TRACKING_FILE is not None:
    _load_counts(_TRACKING_FILE)
