from __future__ import annotations
import math
from typing import List

from ridguard.clock import now_ms
from ridguard.geo import add, mul, norm, offset_latlon
from ridguard.models import AircraftObservation, LocationData, ReceiverPosition, SourceKind
from ridguard.sources import AircraftSink, ThreadedSource
from .scenarios import SimDrone


class SimulatedSource(ThreadedSource):
    """
    Detection source that flies scripted drones around a fixed receiver and
    reports them once per step, as a decoder would.
    """

    def __init__(
        self,
        drones: List[SimDrone],
        receiver: ReceiverPosition,
        kind: SourceKind = SourceKind.BLUETOOTH,
        dt: float = 1.0,
    ) -> None:
        super().__init__(kind)
        self.drones = drones
        self.receiver = receiver
        self.dt = dt
        self.time_s = 0.0

    def step(self, dt: float) -> None:
        for d in self.drones:
            d.pos_m = add(d.pos_m, mul(d.vel_mps, dt))
        self.time_s += dt

    def observe(self, d: SimDrone) -> AircraftObservation:
        lat, lon = offset_latlon(self.receiver.latitude, self.receiver.longitude,
                                 d.pos_m[0], d.pos_m[1])
        return AircraftObservation(
            session_key=d.session_key,
            mac_address=d.mac or d.session_key,
            identification1=d.uas_id,
            identification2=d.uas_id_2,
            location=LocationData(
                latitude=lat,
                longitude=lon,
                altitude_geodetic=d.alt_m,
                distance=norm(d.pos_m),
                speed_horizontal=norm(d.vel_mps),
                direction=_track_deg(d.vel_mps),
            ),
            last_seen_ms=now_ms(),
        )

    def _run(self, sink: AircraftSink) -> None:
        while not self._stop.is_set():
            for d in self.drones:
                self.emit(sink, self.observe(d))
            if self._stop.wait(self.dt):
                return
            self.step(self.dt)


def _track_deg(vel_mps) -> float | None:
    if norm(vel_mps) < 1e-6:
        return None
    return (math.degrees(math.atan2(vel_mps[0], vel_mps[1])) + 360.0) % 360.0
