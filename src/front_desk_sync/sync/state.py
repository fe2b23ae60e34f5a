"""Local state persistence layer.

Manages the JSON records that survive process restarts in the state
directory (``.front_desk/state/`` by default).  Two kinds of record exist:

* ``outbox`` -- the serialized outbox queue (ordered array of events).
* ``snapshot_{hotel_id}`` -- the last known-good booking list per hotel.

Key design choices:

* **Atomic writes** -- ``write()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Whole-record values** -- callers always hand over the complete value;
  there is no in-place partial update of a record.
* **Corruption is explicit** -- ``read()`` raises ``CorruptStateError``
  for records that cannot be decoded; callers decide whether to drop them.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from ..errors import CorruptStateError

# Keys become file names; anything outside this set is escaped.
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class StateStore:
    """Durable key/value storage backed by one JSON file per key.

    Args:
        state_dir: Directory where records are stored.  Created lazily on
            first write.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir

    @property
    def state_dir(self) -> Path:
        return self._state_dir

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def read(self, key: str) -> Any | None:
        """Load the record stored under *key*.

        Args:
            key: Record name.

        Returns:
            The decoded JSON value, or ``None`` if no record exists.

        Raises:
            CorruptStateError: If the record exists but is not valid JSON.
            OSError: If the record exists but cannot be opened.
        """
        path = self._record_path(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as fh:
                return json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CorruptStateError(key, str(exc)) from exc

    def write(self, key: str, value: Any) -> None:
        """Persist *value* under *key* atomically.

        Writes to a temporary file in the same directory then atomically
        replaces the target.  Creates ``state_dir`` if it does not exist.

        Args:
            key: Record name.
            value: JSON-serializable value; the whole record is replaced.
        """
        self._state_dir.mkdir(parents=True, exist_ok=True)

        target = self._record_path(key)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._state_dir), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, indent=2)
            os.replace(tmp_path, target)
        except BaseException:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def delete(self, key: str) -> None:
        """Remove the record stored under *key*.

        No-op if not present.
        """
        try:
            self._record_path(key).unlink()
        except FileNotFoundError:
            pass

    def exists(self, key: str) -> bool:
        """Return ``True`` if a record is stored under *key*."""
        return self._record_path(key).exists()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record_path(self, key: str) -> Path:
        """Return the path to the record file for *key*."""
        safe_key = _UNSAFE_KEY_CHARS.sub("_", key)
        return self._state_dir / f"{safe_key}.json"
