from __future__ import annotations

import datetime as dt
import json
import logging
import os
import pathlib
from typing import Optional

from .types import CacheEntry, DrawRecord, StorageError

KEY_LAST_NUMBERS = "last_numbers"
KEY_LAST_FETCH_TIME = "last_fetch_time"


class CacheStore:
    """Persist the last known record and when it was fetched.

    The whole entry is rewritten on every save via an atomic file replace,
    so readers never observe a half-written entry.
    """

    def __init__(self, path: str, logger: Optional[logging.Logger] = None) -> None:
        self._path = pathlib.Path(path)
        self._logger = logger or logging.getLogger("drawwatch.cache")

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def read(self) -> Optional[CacheEntry]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            record = DrawRecord.from_dict(data[KEY_LAST_NUMBERS])
            fetched_at = dt.datetime.fromisoformat(data[KEY_LAST_FETCH_TIME])
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            self._logger.warning("Could not read cache %s: %s", self._path, exc)
            return None
        except (KeyError, TypeError, ValueError) as exc:
            self._logger.warning("Ignoring malformed cache entry in %s: %s", self._path, exc)
            return None
        return CacheEntry(record=record, fetched_at=fetched_at)

    def write(self, record: DrawRecord, fetched_at: dt.datetime) -> CacheEntry:
        payload = {
            KEY_LAST_NUMBERS: record.to_dict(),
            KEY_LAST_FETCH_TIME: fetched_at.isoformat(),
        }
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StorageError(f"Failed to write cache {self._path}: {exc}") from exc
        self._logger.debug("Saved record for %r to %s", record.draw_date_raw, self._path)
        return CacheEntry(record=record, fetched_at=fetched_at)
