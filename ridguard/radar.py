import math
from typing import Iterable, List, Optional, Tuple, Union

import config
from .geo import bearing_deg
from .models import AircraftObservation, AircraftState, ReceiverPosition

Point = Tuple[float, float]
Target = Union[AircraftObservation, AircraftState]


class RadarProjector:
    """
    Polar projection of aircraft onto a display disc centred on the receiver.

    Radius is distance / max range, pinned to the rim beyond range. Angle is
    the bearing from the receiver (north up); with no receiver fix every
    target is drawn at bearing 0. Output (x, y) is relative to the disc
    centre in screen convention (+y down).
    """

    def __init__(self, disc_radius: float = 1.0) -> None:
        self.disc_radius = disc_radius

    def project(
        self,
        aircraft: Iterable[Target],
        receiver: Optional[ReceiverPosition],
        max_range_m: float,
    ) -> List[Point]:
        return [p for _, p in self.project_keyed(aircraft, receiver, max_range_m)]

    def project_keyed(
        self,
        aircraft: Iterable[Target],
        receiver: Optional[ReceiverPosition],
        max_range_m: float,
    ) -> List[Tuple[Target, Point]]:
        """Like project() but keeps each drawn target next to its point."""
        max_range_m = max(config.RADAR_MIN_RANGE_M, max_range_m)
        out = []
        for target in aircraft:
            obs = target.observation if isinstance(target, AircraftState) else target
            loc = obs.location
            if loc is None or loc.distance is None or loc.distance <= 0:
                continue

            normalized = min(loc.distance / max_range_m, 1.0)
            bearing = 0.0
            if receiver is not None and loc.has_position:
                bearing = bearing_deg(receiver.latitude, receiver.longitude,
                                      loc.latitude, loc.longitude)

            rad = math.radians(bearing - 90.0)
            r = self.disc_radius * normalized
            out.append((target, (r * math.cos(rad), r * math.sin(rad))))
        return out
