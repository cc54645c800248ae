import logging
import threading
from typing import Dict, Optional

from .clock import Clock, now_ms
from .identity import hash_id
from .models import AlertDecision, SuppressReason
from .settings import SettingsStore

logger = logging.getLogger("ridguard.alerts")


class AlertDecisionEngine:
    """
    Decide whether a single report should raise a proximity alert.

    Rules are checked in a fixed order and the first match wins:
      1. no identity
      2. global silence window
      3. permanent ignore list
      4. temporary ignore
      5. distance outside (0, radius]
      6. altitude diff outside [min, max] (window enabled, diff known)
      7. per-identity cooldown
    Otherwise the alert fires and the identity's cooldown restarts.

    The engine only reports the outcome; actuation is up to the caller.
    """

    def __init__(self, settings: SettingsStore, clock: Clock = now_ms) -> None:
        self.settings = settings
        self.clock = clock
        self._last_alert_ms: Dict[str, int] = {}
        self._lock = threading.Lock()

    def evaluate(
        self,
        identity: Optional[str],
        altitude_diff: Optional[float],
        distance: float,
    ) -> AlertDecision:
        s = self.settings

        if not identity:
            return AlertDecision.suppress(SuppressReason.NO_IDENTITY)

        if self.clock() < s.silence_until:
            return AlertDecision.suppress(SuppressReason.SILENCED)

        if s.is_manually_ignored(identity):
            return AlertDecision.suppress(SuppressReason.IGNORED)

        if s.is_temporarily_ignored(identity):
            return AlertDecision.suppress(SuppressReason.TEMPORARILY_IGNORED)

        if distance is None or distance <= 0 or distance > s.radius_m:
            return AlertDecision.suppress(SuppressReason.OUT_OF_RADIUS)

        if s.altitude_window_enabled and altitude_diff is not None:
            if altitude_diff < s.altitude_min_m or altitude_diff > s.altitude_max_m:
                return AlertDecision.suppress(SuppressReason.OUTSIDE_ALTITUDE_WINDOW)

        cooldown_ms = s.cooldown_s * 1000
        with self._lock:
            now = self.clock()
            last = self._last_alert_ms.get(identity)
            if last is not None and now - last < cooldown_ms:
                return AlertDecision.suppress(SuppressReason.COOLDOWN)
            self._last_alert_ms[identity] = now

        logger.info("Alert fired for %s at %.1f m", hash_id(identity), distance)
        return AlertDecision.fire()

    def last_fired_ms(self, identity: str) -> Optional[int]:
        with self._lock:
            return self._last_alert_ms.get(identity)

    def reset(self) -> None:
        with self._lock:
            self._last_alert_ms.clear()
