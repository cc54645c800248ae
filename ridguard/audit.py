from __future__ import annotations
import csv
import logging
import os
import threading
from datetime import datetime
from typing import Optional

import config
from .clock import Clock, now_ms
from .identity import hash_id
from .settings import SettingsStore

logger = logging.getLogger("ridguard.audit")


def _fmt(value: Optional[float], spec: str) -> str:
    return "" if value is None else format(value, spec)


class PrivacyAuditLog:
    """
    Best-effort, anonymized CSV trail of observations.

    One file per local calendar day (<prefix>_<YYYY-MM-DD>.csv). Identities
    are stored only as hash_id() digests. Every write first deletes files
    older than the retention window. I/O errors are logged and dropped.
    """

    def __init__(
        self,
        settings: SettingsStore,
        log_dir: str = config.LOG_DIR,
        prefix: str = config.LOG_PREFIX,
        clock: Clock = now_ms,
    ) -> None:
        self.settings = settings
        self.log_dir = log_dir
        self.prefix = prefix
        self.clock = clock
        self._lock = threading.Lock()

    def current_path(self, at_ms: int | None = None) -> str:
        at_ms = self.clock() if at_ms is None else at_ms
        day = datetime.fromtimestamp(at_ms / 1000.0).strftime("%Y-%m-%d")
        return os.path.join(self.log_dir, f"{self.prefix}_{day}.csv")

    def record(
        self,
        identity: Optional[str],
        distance: float,
        altitude_diff: Optional[float] = None,
        speed: Optional[float] = None,
        heading: Optional[float] = None,
        last_seen_ms: int = 0,
    ) -> None:
        hashed = hash_id(identity)
        with self._lock:
            try:
                os.makedirs(self.log_dir, exist_ok=True)
            except OSError as exc:
                logger.warning("Cannot create log directory %s: %s", self.log_dir, exc)
                return

            self.cleanup()

            now = self.clock()
            path = self.current_path(now)
            try:
                new_file = not os.path.exists(path)
                with open(path, "a", newline="", encoding="utf-8") as f:
                    writer = csv.writer(f, lineterminator="\n")
                    if new_file:
                        writer.writerow(config.LOG_HEADER)
                    writer.writerow([
                        now,
                        hashed,
                        f"{distance or 0.0:.1f}",
                        _fmt(altitude_diff, ".1f"),
                        _fmt(speed, ".1f"),
                        _fmt(heading, ".0f"),
                        int(last_seen_ms or 0),
                    ])
            except OSError as exc:
                logger.warning("Failed to append audit entry to %s: %s", path, exc)

    def cleanup(self) -> int:
        """Delete log files whose mtime is older than the retention window."""
        retention_s = self.settings.log_retention_hours * 3600
        now_s = self.clock() / 1000.0
        removed = 0
        try:
            entries = list(os.scandir(self.log_dir))
        except OSError as exc:
            logger.debug("Retention scan of %s failed: %s", self.log_dir, exc)
            return 0

        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                if now_s - entry.stat().st_mtime > retention_s:
                    os.remove(entry.path)
                    removed += 1
            except OSError as exc:
                logger.debug("Could not remove %s: %s", entry.path, exc)

        if removed:
            logger.info("Retention cleanup removed %d log file(s)", removed)
        return removed
