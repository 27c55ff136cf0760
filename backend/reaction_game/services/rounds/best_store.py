"""Persistent best reaction time.

``BestTimeStore`` is the only place storage failures are handled: every
read, write and clear absorbs errors from the backing storage and logs
them, so callers see either a positive float or ``None`` ("not set").

Storage backends implement ``get(key)``, ``set(key, value)`` and
``delete(key)`` on string values.
"""

import logging
import math
from typing import Dict, Optional

from reaction_game import db
from reaction_game.models import DEFAULT_NAMESPACE, StoredValue

DEFAULT_BEST_KEY = 'rg_best_ms_v1'
MAX_NAMESPACE_LEN = 64


def validate_namespace(client_id) -> Optional[str]:
    """Client id as a storage namespace; None selects the default one.

    Raises ValueError for ids that cannot be stored as given.
    """
    if client_id is None or client_id == '':
        return None
    if not isinstance(client_id, str):
        raise ValueError('client_id must be a string')
    if len(client_id) > MAX_NAMESPACE_LEN:
        raise ValueError(f'client_id must be at most {MAX_NAMESPACE_LEN} characters')
    return client_id


def parse_duration(raw: Optional[str]) -> Optional[float]:
    """Stored text to a positive finite duration, or None."""
    if not raw:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def format_duration(duration: float) -> str:
    if float(duration).is_integer():
        return str(int(duration))
    return repr(float(duration))


class MemoryStorage:
    """Dict-backed storage."""

    def __init__(self):
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class DatabaseStorage:
    """Storage rows in the ``stored_value`` table for one client namespace."""

    def __init__(self, app, namespace: Optional[str] = None):
        self._app = app
        self.namespace = namespace or DEFAULT_NAMESPACE

    def _row(self, key: str) -> Optional[StoredValue]:
        return StoredValue.query.filter_by(namespace=self.namespace, key=key).first()

    def get(self, key: str) -> Optional[str]:
        with self._app.app_context():
            try:
                row = self._row(key)
            except Exception:
                db.session.rollback()
                raise
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with self._app.app_context():
            try:
                row = self._row(key)
                if row is None:
                    row = StoredValue(namespace=self.namespace, key=key, value=value)
                else:
                    row.value = value
                db.session.add(row)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

    def delete(self, key: str) -> None:
        with self._app.app_context():
            try:
                StoredValue.query.filter_by(namespace=self.namespace, key=key).delete()
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise


class BestTimeStore:
    """Best (minimum) reaction time that survives across sessions."""

    def __init__(self, storage, key: str = DEFAULT_BEST_KEY, logger: Optional[logging.Logger] = None):
        self._storage = storage
        self.key = key
        self._logger = logger or logging.getLogger(__name__)

    def read(self) -> Optional[float]:
        try:
            raw = self._storage.get(self.key)
        except Exception as exc:
            self._logger.warning(f"[best-read-failed] key={self.key} error={exc}")
            return None
        return parse_duration(raw)

    def write(self, duration: float) -> None:
        if not math.isfinite(duration) or duration <= 0:
            return
        try:
            self._storage.set(self.key, format_duration(duration))
        except Exception as exc:
            self._logger.warning(f"[best-write-failed] key={self.key} error={exc}")

    def clear(self) -> None:
        try:
            self._storage.delete(self.key)
        except Exception as exc:
            self._logger.warning(f"[best-clear-failed] key={self.key} error={exc}")

    def offer(self, duration: float) -> bool:
        """Persist ``duration`` if it beats the current best; True when written."""
        if not math.isfinite(duration) or duration <= 0:
            return False
        best = self.read()
        if best is not None and not duration < best:
            return False
        self.write(duration)
        return True
