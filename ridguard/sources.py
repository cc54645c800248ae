from __future__ import annotations
import csv
import logging
import threading
from typing import Callable, List, Optional, Protocol, Tuple

from .clock import now_ms
from .models import AircraftObservation, LocationData, ReceiverPosition, SourceKind
import config

logger = logging.getLogger("ridguard.sources")


class AircraftSink(Protocol):
    def on_new_aircraft(self, observation: AircraftObservation) -> None: ...
    def on_updated_aircraft(self, observation: AircraftObservation) -> None: ...


class DetectionSource:
    """
    Capability shared by every detection technology: start / stop.

    Concrete sources decode broadcasts elsewhere and push the decoded
    observations into the sink they were started with.
    """
    kind: SourceKind = SourceKind.BLUETOOTH

    def __init__(self, kind: SourceKind | None = None) -> None:
        if kind is not None:
            self.kind = kind
        self.running = False

    @property
    def available(self) -> bool:
        """Whether the underlying radio is usable (status summary flag)."""
        return True

    def start(self, sink: AircraftSink) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class ThreadedSource(DetectionSource):
    """Source that produces observations from a background thread."""

    def __init__(self, kind: SourceKind | None = None) -> None:
        super().__init__(kind)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._seen: set = set()

    def start(self, sink: AircraftSink) -> None:
        if self.running:
            return
        self._stop.clear()
        self._seen.clear()
        self._thread = threading.Thread(
            target=self._main, args=(sink,), name=f"source-{self.kind.name.lower()}", daemon=True
        )
        self.running = True
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None
        self.running = False

    def emit(self, sink: AircraftSink, obs: AircraftObservation) -> None:
        if obs.session_key in self._seen:
            sink.on_updated_aircraft(obs)
        else:
            self._seen.add(obs.session_key)
            sink.on_new_aircraft(obs)

    def _main(self, sink: AircraftSink) -> None:
        try:
            self._run(sink)
        except Exception:
            logger.exception("Detection source %s crashed", self.kind.name)
        finally:
            # finished on its own (end of replay, crash): allow a fresh start()
            if self._thread is threading.current_thread():
                self.running = False

    def _run(self, sink: AircraftSink) -> None:
        raise NotImplementedError


# ------------------------------------------------------------
# Receiver position feeds
# ------------------------------------------------------------

PositionCallback = Callable[[ReceiverPosition], None]


class PositionFeed:
    def start(self, callback: PositionCallback) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class StaticPositionFeed(PositionFeed):
    """Pushes one fixed receiver fix when started (e.g. from --lat/--lon)."""

    def __init__(self, latitude: float, longitude: float, altitude: float = 0.0) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.altitude = altitude

    def start(self, callback: PositionCallback) -> None:
        callback(ReceiverPosition(
            latitude=self.latitude,
            longitude=self.longitude,
            altitude=self.altitude,
            timestamp_ms=now_ms(),
        ))

    def stop(self) -> None:
        pass


# ------------------------------------------------------------
# CSV replay
# ------------------------------------------------------------
# Columns:
# time_s,session_key,uas_id,uas_id_2,mac,lat,lon,alt_geo_m,alt_press_m,
# distance_m,speed_mps,heading_deg
# Blank cells mean "unknown".

def _opt_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    value = value.strip()
    if value == "":
        return None
    return float(value)


def _opt_str(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_replay_csv(path: str) -> List[Tuple[float, AircraftObservation]]:
    """Load a recorded session as (time_s, observation) pairs sorted by time."""
    rows: List[Tuple[float, AircraftObservation]] = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for lineno, row in enumerate(reader, start=2):
            try:
                t = float(row["time_s"])
                key = row["session_key"].strip()
                alt_geo = _opt_float(row.get("alt_geo_m"))
                alt_press = _opt_float(row.get("alt_press_m"))
                location = LocationData(
                    latitude=_opt_float(row.get("lat")),
                    longitude=_opt_float(row.get("lon")),
                    altitude_geodetic=config.ALTITUDE_UNKNOWN if alt_geo is None else alt_geo,
                    altitude_pressure=config.ALTITUDE_UNKNOWN if alt_press is None else alt_press,
                    distance=_opt_float(row.get("distance_m")),
                    speed_horizontal=_opt_float(row.get("speed_mps")),
                    direction=_opt_float(row.get("heading_deg")),
                )
            except (KeyError, ValueError, AttributeError) as exc:
                logger.warning("Skipping replay row %d in %s: %s", lineno, path, exc)
                continue

            mac = _opt_str(row.get("mac")) or key
            rows.append((t, AircraftObservation(
                session_key=key,
                mac_address=mac,
                identification1=_opt_str(row.get("uas_id")),
                identification2=_opt_str(row.get("uas_id_2")),
                location=location,
            )))

    rows.sort(key=lambda r: r[0])
    return rows


class ReplaySource(ThreadedSource):
    """Plays a recorded CSV session back in (scaled) real time."""

    def __init__(
        self,
        rows: List[Tuple[float, AircraftObservation]],
        kind: SourceKind = SourceKind.BLUETOOTH,
        speed: float = 1.0,
        loop: bool = False,
    ) -> None:
        super().__init__(kind)
        self.rows = rows
        self.speed = max(speed, 1e-3)
        self.loop = loop

    @classmethod
    def from_csv(cls, path: str, **kwargs) -> "ReplaySource":
        return cls(load_replay_csv(path), **kwargs)

    def _run(self, sink: AircraftSink) -> None:
        while not self._stop.is_set():
            prev_t = None
            for t, obs in self.rows:
                if prev_t is not None and t > prev_t:
                    if self._stop.wait((t - prev_t) / self.speed):
                        return
                prev_t = t
                if self._stop.is_set():
                    return
                obs.last_seen_ms = now_ms()
                self.emit(sink, obs)
            if not self.loop:
                return
