# =============================================================================
# ledger/persistence.py  —  Key-Value Backends
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Provides the tiny get/set/remove interface the store persists through.
#   The store never knows whether it is talking to memory or a file.
#
#   InMemoryKeyValueStore  →  tests and throwaway sessions
#   JsonFileKeyValueStore  →  one JSON file holding {key: string}
#
# The values are opaque strings.  The store decides what goes in them.
# =============================================================================

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol


logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """A dict with the KeyValueStore interface."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore:
    """Persist keys to a single JSON file.

    Every write rewrites the whole file through a temp file and os.replace(),
    so a crash mid-write leaves the previous version intact.  Reads go back
    to disk each time; another process may have written since.

    Args:
        path: Location of the JSON file.  Created on first write.
    """

    def __init__(self, path: os.PathLike | str):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read %s (%s); starting empty", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("%s does not hold a JSON object; starting empty", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            # Don't leave the temp file behind.
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
