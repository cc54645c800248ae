from __future__ import annotations
import json
import logging
import os
import re
import tempfile
import threading
from typing import Any, Dict, Optional, Set

import config
from .clock import Clock, now_ms
from .identity import hash_id

logger = logging.getLogger("ridguard.settings")

# Recognized option keys
RADIUS_M = "radius_m"
ALTITUDE_WINDOW_ENABLED = "altitude_window_enabled"
ALTITUDE_MIN_M = "altitude_min_m"
ALTITUDE_MAX_M = "altitude_max_m"
COOLDOWN_S = "cooldown_s"
LOG_RETENTION_HOURS = "log_retention_hours"
MAP_ENABLED = "map_enabled"
SILENCE_UNTIL = "silence_until"
IGNORE_IDS = "ignore_ids"

IGNORE_UNTIL_PREFIX = "ignore_until_"

_IGNORE_SPLIT = re.compile(r"[,\n]")


class MemoryStore:
    """Dict-backed key-value store."""

    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self._values[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)


class JsonFileStore(MemoryStore):
    """
    Key-value store persisted as a flat JSON object.

    A missing or unreadable file starts empty; failed writes are logged and
    the in-memory value is kept.
    """

    def __init__(self, path: str) -> None:
        super().__init__(self._load(path))
        self.path = path

    @staticmethod
    def _load(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read settings from %s: %s", path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", path)
            return {}
        return data

    def put(self, key: str, value: Any) -> None:
        super().put(key, value)
        tmp_path = None
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            # write to a sibling temp file, then atomically replace
            fd, tmp_path = tempfile.mkstemp(prefix=".settings-", suffix=".tmp", dir=parent or ".")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            logger.warning("Failed to persist settings to %s: %s", self.path, exc)
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError as exc:
                    logger.debug("Could not remove %s: %s", tmp_path, exc)


def _bool_from_value(value: Any, default: bool = False) -> bool:
    """Parse a stored bool that may also be '0'/'1'/'true' text (or missing)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return default
        return value.lower() in ("1", "true", "yes", "on", "y")
    return default


class SettingsStore:
    """Typed view over the user options in a key-value store."""

    def __init__(self, store: MemoryStore | None = None, clock: Clock = now_ms) -> None:
        self.store = store if store is not None else MemoryStore()
        self.clock = clock
        self._lock = threading.Lock()

    # ------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------
    def _get_int(self, key: str, default: int) -> int:
        raw = self.store.get(key)
        # string-encoded path first, then the numeric one
        if isinstance(raw, str):
            try:
                return int(raw.strip())
            except ValueError:
                pass
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if isinstance(raw, float) and raw.is_integer():
            return int(raw)
        return default

    def _put(self, key: str, value: Any) -> None:
        with self._lock:
            self.store.put(key, value)

    # ------------------------------------------------------------
    # Alert geometry
    # ------------------------------------------------------------
    @property
    def radius_m(self) -> int:
        return self._get_int(RADIUS_M, config.DEFAULT_RADIUS_M)

    @radius_m.setter
    def radius_m(self, value: int) -> None:
        self._put(RADIUS_M, int(value))

    @property
    def altitude_window_enabled(self) -> bool:
        return _bool_from_value(self.store.get(ALTITUDE_WINDOW_ENABLED),
                                config.DEFAULT_ALTITUDE_WINDOW_ENABLED)

    @altitude_window_enabled.setter
    def altitude_window_enabled(self, value: bool) -> None:
        self._put(ALTITUDE_WINDOW_ENABLED, bool(value))

    @property
    def altitude_min_m(self) -> int:
        return self._get_int(ALTITUDE_MIN_M, config.DEFAULT_ALTITUDE_MIN_M)

    @altitude_min_m.setter
    def altitude_min_m(self, value: int) -> None:
        self._put(ALTITUDE_MIN_M, int(value))

    @property
    def altitude_max_m(self) -> int:
        return self._get_int(ALTITUDE_MAX_M, config.DEFAULT_ALTITUDE_MAX_M)

    @altitude_max_m.setter
    def altitude_max_m(self, value: int) -> None:
        self._put(ALTITUDE_MAX_M, int(value))

    @property
    def cooldown_s(self) -> int:
        return self._get_int(COOLDOWN_S, config.DEFAULT_COOLDOWN_S)

    @cooldown_s.setter
    def cooldown_s(self, value: int) -> None:
        self._put(COOLDOWN_S, int(value))

    # ------------------------------------------------------------
    # Logging / display
    # ------------------------------------------------------------
    @property
    def log_retention_hours(self) -> int:
        return self._get_int(LOG_RETENTION_HOURS, config.DEFAULT_LOG_RETENTION_HOURS)

    @log_retention_hours.setter
    def log_retention_hours(self, value: int) -> None:
        self._put(LOG_RETENTION_HOURS, int(value))

    @property
    def map_enabled(self) -> bool:
        return _bool_from_value(self.store.get(MAP_ENABLED), config.DEFAULT_MAP_ENABLED)

    @map_enabled.setter
    def map_enabled(self, value: bool) -> None:
        self._put(MAP_ENABLED, bool(value))

    # ------------------------------------------------------------
    # Silence window
    # ------------------------------------------------------------
    @property
    def silence_until(self) -> int:
        return self._get_int(SILENCE_UNTIL, config.DEFAULT_SILENCE_UNTIL_MS)

    @silence_until.setter
    def silence_until(self, value: int) -> None:
        self._put(SILENCE_UNTIL, int(value))

    def set_silence_for_minutes(self, minutes: int) -> int:
        until = self.clock() + int(minutes) * 60 * 1000
        self.silence_until = until
        return until

    def clear_silence(self) -> None:
        self.silence_until = 0

    def is_silenced(self) -> bool:
        return self.clock() < self.silence_until

    # ------------------------------------------------------------
    # Ignore lists
    # ------------------------------------------------------------
    @property
    def ignore_ids(self) -> str:
        raw = self.store.get(IGNORE_IDS, config.DEFAULT_IGNORE_IDS)
        return raw if isinstance(raw, str) else config.DEFAULT_IGNORE_IDS

    def set_ignore_ids(self, raw: str) -> None:
        self._put(IGNORE_IDS, raw or "")

    def manual_ignore_ids(self) -> Set[str]:
        entries = (e.strip() for e in _IGNORE_SPLIT.split(self.ignore_ids))
        return {e for e in entries if e}

    def is_manually_ignored(self, identity: Optional[str]) -> bool:
        if identity is None:
            return False
        wanted = identity.casefold()
        return any(e.casefold() == wanted for e in self.manual_ignore_ids())

    def ignore_temporarily(self, identity: Optional[str], minutes: int) -> None:
        if identity is None:
            return
        until = self.clock() + int(minutes) * 60 * 1000
        self._put(IGNORE_UNTIL_PREFIX + hash_id(identity), until)

    def is_temporarily_ignored(self, identity: Optional[str]) -> bool:
        if identity is None:
            return False
        until = self._get_int(IGNORE_UNTIL_PREFIX + hash_id(identity), 0)
        return until > self.clock()
