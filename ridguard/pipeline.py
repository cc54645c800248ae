from __future__ import annotations
import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import config
from .actuator import AlertActuator, SilentActuator
from .alerts import AlertDecisionEngine
from .audit import PrivacyAuditLog
from .bus import EventBus
from .clock import Clock, now_ms
from .identity import get_primary_id
from .models import (
    AircraftMap,
    AircraftObservation,
    AircraftState,
    AlertDecision,
    LocationData,
    ReceiverPosition,
    ScanState,
    SourceKind,
)
from .settings import SettingsStore
from .sources import DetectionSource, PositionFeed

logger = logging.getLogger("ridguard.pipeline")


@dataclass
class PipelineSnapshot:
    """Detached copy of the live state for display consumers."""
    aircraft: Dict[str, AircraftState] = field(default_factory=dict)
    receiver: Optional[ReceiverPosition] = None
    scanning: bool = False
    last_activity_ms: int = 0


class TelemetryIngestPipeline:
    """
    Owns the live aircraft map and receiver position.

    Every report from a detection source is merged into the map, then handed
    to the alert engine and the audit log on the calling thread. Observers
    subscribe to `events`:
      - "scanning"  (bool)              on every lifecycle transition
      - "activity"  (last_activity_ms)  on every report
      - "alert"     (identity, distance) when an alert fires
    """

    def __init__(
        self,
        settings: SettingsStore,
        engine: AlertDecisionEngine,
        audit_log: PrivacyAuditLog,
        sources: Sequence[DetectionSource] = (),
        position_feed: PositionFeed | None = None,
        actuator: AlertActuator | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.settings = settings
        self.engine = engine
        self.audit_log = audit_log
        self.sources: List[DetectionSource] = list(sources)
        self.position_feed = position_feed
        self.actuator = actuator or SilentActuator()
        self.clock = clock
        self.events = EventBus()

        self._lock = threading.Lock()
        self._lifecycle = threading.Lock()
        self._aircraft: AircraftMap = {}
        self._receiver: Optional[ReceiverPosition] = None
        self._state = ScanState.IDLE
        self._started: List[DetectionSource] = []
        self._feed_started = False
        self._last_activity_ms = 0

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------
    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def scanning(self) -> bool:
        return self._state == ScanState.ACTIVE

    def start(self) -> None:
        with self._lifecycle:
            if self._state == ScanState.ACTIVE:
                return

            if self.position_feed is not None and not self._feed_started:
                try:
                    self.position_feed.start(self.set_receiver_position)
                    self._feed_started = True
                except Exception:
                    logger.exception("Position feed failed to start")

            for source in self.sources:
                if source in self._started:
                    continue
                try:
                    source.start(self)
                    self._started.append(source)
                except Exception:
                    logger.exception("Detection source %s failed to start", source.kind.name)

            self._state = ScanState.ACTIVE
            logger.info("Scanning started (%d/%d sources)", len(self._started), len(self.sources))
        self.events.emit("scanning", True)

    def stop(self) -> None:
        with self._lifecycle:
            if self._state != ScanState.ACTIVE and not self._started and not self._feed_started:
                return

            for source in self._started:
                try:
                    source.stop()
                except Exception:
                    logger.exception("Detection source %s failed to stop", source.kind.name)
            self._started = []

            if self._feed_started and self.position_feed is not None:
                try:
                    self.position_feed.stop()
                except Exception:
                    logger.exception("Position feed failed to stop")
            self._feed_started = False

            with self._lock:
                self._aircraft.clear()

            self._state = ScanState.IDLE
            logger.info("Scanning stopped")
        self.events.emit("scanning", False)

    # ------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------
    def set_receiver_position(self, position: Optional[ReceiverPosition]) -> None:
        with self._lock:
            self._receiver = copy.copy(position)

    @property
    def receiver_position(self) -> Optional[ReceiverPosition]:
        with self._lock:
            return copy.copy(self._receiver)

    def on_new_aircraft(self, observation: AircraftObservation) -> None:
        self.on_report(observation)

    def on_updated_aircraft(self, observation: AircraftObservation) -> None:
        self.on_report(observation)

    def on_report(self, observation: AircraftObservation) -> AlertDecision:
        now = self.clock()
        with self._lock:
            st = self._aircraft.get(observation.session_key)
            if st is None:
                st = AircraftState(
                    session_key=observation.session_key,
                    observation=copy.deepcopy(observation),
                    first_seen_ms=now,
                )
                # seed id timestamps so the first report counts as fresh
                st.merge(observation, now)
                self._aircraft[observation.session_key] = st
            else:
                st.merge(observation, now)
            st.refresh_shadow(now)

            merged = st.observation
            identity = get_primary_id(merged)
            location = merged.location
            distance = location.distance if location and location.distance is not None else 0.0
            alt_diff = self._altitude_diff_locked(location)
            speed = location.speed_horizontal if location else None
            heading = location.direction if location else None
            last_seen = merged.last_seen_ms
            self._last_activity_ms = now

        decision = self.engine.evaluate(identity, alt_diff, distance)
        self.audit_log.record(identity, distance, alt_diff, speed, heading, last_seen)

        if decision.fired:
            try:
                self.actuator.trigger()
            except Exception:
                logger.exception("Alert actuator failed")
            self.events.emit("alert", identity, distance)
        else:
            logger.debug("Suppressed %s: %s", observation.session_key, decision.reason.value)

        self.events.emit("activity", now)
        return decision

    # ------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------
    def altitude_diff(self, location: Optional[LocationData]) -> Optional[float]:
        with self._lock:
            return self._altitude_diff_locked(location)

    def _altitude_diff_locked(self, location: Optional[LocationData]) -> Optional[float]:
        if location is None or self._receiver is None:
            return None
        alt = location.altitude_geodetic
        if alt is None or alt == config.ALTITUDE_UNKNOWN:
            alt = location.altitude_pressure
        if alt is None or alt == config.ALTITUDE_UNKNOWN:
            return None
        return alt - self._receiver.altitude

    def identity_of(self, session_key: str) -> Optional[str]:
        """Identity the alert engine sees for this aircraft (None if unknown key)."""
        with self._lock:
            st = self._aircraft.get(session_key)
            return get_primary_id(st.observation) if st is not None else None

    def nearest_identity(self) -> Optional[str]:
        """Identity of the closest aircraft with a known, positive distance."""
        with self._lock:
            best = None
            for st in self._aircraft.values():
                loc = st.observation.location
                if loc is None or loc.distance is None or loc.distance <= 0:
                    continue
                if best is None or loc.distance < best[0]:
                    best = (loc.distance, st)
            return get_primary_id(best[1].observation) if best else None

    def refresh_shadows(self, now: int | None = None) -> None:
        now = self.clock() if now is None else now
        with self._lock:
            for st in self._aircraft.values():
                st.refresh_shadow(now)

    # ------------------------------------------------------------
    # Display boundary
    # ------------------------------------------------------------
    def snapshot(self) -> PipelineSnapshot:
        with self._lock:
            return PipelineSnapshot(
                aircraft=copy.deepcopy(self._aircraft),
                receiver=copy.copy(self._receiver),
                scanning=self.scanning,
                last_activity_ms=self._last_activity_ms,
            )

    @property
    def last_activity_ms(self) -> int:
        return self._last_activity_ms

    def seconds_since_last_scan(self, now: int | None = None) -> Optional[int]:
        if self._last_activity_ms <= 0:
            return None
        now = self.clock() if now is None else now
        return max(0, (now - self._last_activity_ms) // 1000)

    def status_summary(self) -> str:
        flags = []
        for kind in SourceKind:
            on = any(s.kind == kind and s.available for s in self.sources)
            flags.append(f"{kind.value} {'on' if on else 'off'}")
        return " · ".join(flags)

    def map_positions(self, online: bool) -> List[Tuple[str, float, float]]:
        """Positions for the optional map overlay (map_enabled and online only)."""
        if not (self.settings.map_enabled and online):
            return []
        out = []
        with self._lock:
            for key, st in self._aircraft.items():
                loc = st.observation.location
                if loc is not None and loc.has_position:
                    out.append((key, loc.latitude, loc.longitude))
        return out
