from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass
class SimDrone:
    session_key: str
    pos_m: Tuple[float, float]          # (east, north) from receiver, m
    vel_mps: Tuple[float, float]        # horizontal velocity, m/s
    alt_m: float                        # geodetic altitude, m
    uas_id: Optional[str] = None        # Basic ID #1
    uas_id_2: Optional[str] = None      # Basic ID #2
    mac: str = ""


def single_approach() -> List[SimDrone]:
    # One drone flying straight over the receiver from the west
    return [
        SimDrone("sim-1", pos_m=(-400, 30), vel_mps=(8, 0), alt_m=60,
                 uas_id="1581F4XFC238U0012345", mac="60:60:1F:00:00:01"),
    ]

def crossing_pair() -> List[SimDrone]:
    return [
        SimDrone("sim-1", pos_m=(-300, -150), vel_mps=(6, 3), alt_m=80,
                 uas_id="1581F4XFC238U0012345", mac="60:60:1F:00:00:01"),
        SimDrone("sim-2", pos_m=(250, -250), vel_mps=(-5, 5), alt_m=300,
                 uas_id_2="FIN87astrdge12k8", mac="60:60:1F:00:00:02"),
    ]

def loiter_three() -> List[SimDrone]:
    return [
        SimDrone("sim-1", pos_m=(120, 40), vel_mps=(0, 0), alt_m=40,
                 uas_id="1581F4XFC238U0012345", mac="60:60:1F:00:00:01"),
        SimDrone("sim-2", pos_m=(-60, 150), vel_mps=(1, -1), alt_m=100,
                 uas_id_2="FIN87astrdge12k8", mac="60:60:1F:00:00:02"),
        # no Basic ID at all -> identified by MAC
        SimDrone("sim-3", pos_m=(500, -500), vel_mps=(-4, 4), alt_m=20,
                 mac="60:60:1F:00:00:03"),
    ]

SCENARIOS = {
    "1": single_approach,
    "2": crossing_pair,
    "3": loiter_three,
}
