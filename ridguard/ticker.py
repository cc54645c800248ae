from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import config
from .models import ReceiverPosition
from .pipeline import TelemetryIngestPipeline
from .radar import RadarProjector

logger = logging.getLogger("ridguard.ticker")


@dataclass
class RadarBlip:
    session_key: str
    label: str
    x: float
    y: float
    distance_m: float
    inferred: bool = False


@dataclass
class RadarFrame:
    """Everything the display needs for one refresh."""
    blips: List[RadarBlip] = field(default_factory=list)
    receiver: Optional[ReceiverPosition] = None
    max_range_m: int = config.DEFAULT_RADIUS_M
    scanning: bool = False
    status: str = ""
    seconds_since_last_scan: Optional[int] = None
    silenced: bool = False
    aircraft_count: int = 0
    map_positions: List[Tuple[str, float, float]] = field(default_factory=list)


def build_frame(
    pipeline: TelemetryIngestPipeline,
    projector: RadarProjector,
    online: bool = False,
) -> RadarFrame:
    pipeline.refresh_shadows()
    snap = pipeline.snapshot()
    max_range = pipeline.settings.radius_m

    blips = []
    states = list(snap.aircraft.values())
    for st, (x, y) in projector.project_keyed(states, snap.receiver, max_range):
        blips.append(RadarBlip(
            session_key=st.session_key,
            label=st.shadow_id or st.session_key,
            x=x,
            y=y,
            distance_m=st.observation.location.distance,
            inferred=st.shadow_inferred,
        ))

    return RadarFrame(
        blips=blips,
        receiver=snap.receiver,
        max_range_m=max(config.RADAR_MIN_RANGE_M, max_range),
        scanning=snap.scanning,
        status=pipeline.status_summary(),
        seconds_since_last_scan=pipeline.seconds_since_last_scan(),
        silenced=pipeline.settings.is_silenced(),
        aircraft_count=len(states),
        map_positions=pipeline.map_positions(online),
    )


class PeriodicTicker:
    """Calls `fn` every `interval_s` on a daemon thread until cancelled."""

    def __init__(self, interval_s: float, fn: Callable[[], None], name: str = "ticker") -> None:
        self.interval_s = interval_s
        self.fn = fn
        self.name = name
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._cancel.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._cancel.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.interval_s + 1.0)
        self._thread = None

    def _run(self) -> None:
        while not self._cancel.is_set():
            try:
                self.fn()
            except Exception:
                logger.exception("Tick failed")
            if self._cancel.wait(self.interval_s):
                break


class DisplayDriver:
    """1 Hz refresh: snapshot -> projection -> latest RadarFrame."""

    def __init__(
        self,
        pipeline: TelemetryIngestPipeline,
        projector: RadarProjector | None = None,
        online: Callable[[], bool] = lambda: False,
        on_frame: Callable[[RadarFrame], None] | None = None,
        interval_s: float = config.TICK_S,
    ) -> None:
        self.pipeline = pipeline
        self.projector = projector or RadarProjector()
        self.online = online
        self.on_frame = on_frame
        self._frame = RadarFrame()
        self._lock = threading.Lock()
        self.ticker = PeriodicTicker(interval_s, self.tick, name="display-tick")

    @property
    def frame(self) -> RadarFrame:
        with self._lock:
            return self._frame

    def tick(self) -> None:
        frame = build_frame(self.pipeline, self.projector, online=self.online())
        with self._lock:
            self._frame = frame
        if self.on_frame is not None:
            self.on_frame(frame)

    def start(self) -> None:
        self.ticker.start()

    def stop(self) -> None:
        self.ticker.cancel()
