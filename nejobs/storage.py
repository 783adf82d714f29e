"""Local key/value storage: one JSON blob per key, with file locking.

Collections (alerts, saved jobs, the seen ledger) are always read and
written whole. Writes are best-effort: a failed write is logged and the
caller carries on as if it had succeeded.
"""
from __future__ import annotations

import fcntl
import json
import re
from pathlib import Path
from typing import Any

from nejobs.config import DATA_DIR
from nejobs.log import get_logger

log = get_logger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class LocalStore:
    def __init__(self, root: Path | str = DATA_DIR) -> None:
        self.root = Path(root)

    def path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        p = self.path(key)
        if not p.exists():
            return default
        try:
            with open(p, "r", encoding="utf-8") as f:
                _lock(f, exclusive=False)
                try:
                    return json.load(f)
                finally:
                    _unlock(f)
        except (OSError, ValueError) as exc:
            log.warning("Could not read %s: %s", p.name, exc)
            return default

    def set(self, key: str, value: Any) -> bool:
        p = self.path(key)
        try:
            payload = json.dumps(value, indent=2, ensure_ascii=False)
            self.root.mkdir(parents=True, exist_ok=True)
            with open(p, "w", encoding="utf-8") as f:
                _lock(f)
                try:
                    f.write(payload)
                finally:
                    _unlock(f)
        except (OSError, TypeError, ValueError) as exc:
            log.warning("Could not write %s: %s", p.name, exc)
            return False
        log.debug("Stored %s", p.name)
        return True

    def delete(self, key: str) -> bool:
        try:
            self.path(key).unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            log.warning("Could not delete %s: %s", key, exc)
            return False
        return True
