import csv
import threading

import config
from ridguard.sources import ReplaySource, load_replay_csv

HEADER = [
    "time_s", "session_key", "uas_id", "uas_id_2", "mac",
    "lat", "lon", "alt_geo_m", "alt_press_m",
    "distance_m", "speed_mps", "heading_deg",
]


def write_session(path, rows):
    with path.open("w", newline="") as f:
        w = csv.writer(f)
        w.writerow(HEADER)
        w.writerows(rows)


def test_load_replay_csv(tmp_path):
    session = tmp_path / "session.csv"
    write_session(session, [
        [1.0, "k2", "", "FIN-2", "", 52.001, 21.0, "", 130, 111.2, 0, ""],
        [0.0, "k1", "DRONE-1", "", "AA:BB", 52.0005, 21.0, 110, "", 55.6, 4.5, 90],
    ])

    rows = load_replay_csv(str(session))

    assert [t for t, _ in rows] == [0.0, 1.0]
    first = rows[0][1]
    assert first.session_key == "k1"
    assert first.identification1 == "DRONE-1"
    assert first.identification2 is None
    assert first.mac_address == "AA:BB"
    assert first.location.altitude_geodetic == 110.0
    assert first.location.altitude_pressure == config.ALTITUDE_UNKNOWN
    assert first.location.direction == 90.0

    second = rows[1][1]
    # missing mac falls back to the session key
    assert second.mac_address == "k2"
    assert second.identification2 == "FIN-2"
    assert second.location.altitude_geodetic == config.ALTITUDE_UNKNOWN
    assert second.location.altitude_pressure == 130.0
    assert second.location.direction is None


def test_bad_rows_are_skipped(tmp_path):
    session = tmp_path / "session.csv"
    write_session(session, [
        ["soon", "k1", "DRONE-1", "", "", 52.0, 21.0, 100, "", 50, 1, 0],
        [0.5, "k1", "DRONE-1", "", "", "north", 21.0, 100, "", 50, 1, 0],
        [1.0, "k1", "DRONE-1", "", "", 52.0, 21.0, 100, "", 50, 1, 0],
    ])
    rows = load_replay_csv(str(session))
    assert len(rows) == 1
    assert rows[0][0] == 1.0


class CollectingSink:
    def __init__(self, expected):
        self.new = []
        self.updated = []
        self.expected = expected
        self.done = threading.Event()

    def _check(self):
        if len(self.new) + len(self.updated) >= self.expected:
            self.done.set()

    def on_new_aircraft(self, obs):
        self.new.append(obs.session_key)
        self._check()

    def on_updated_aircraft(self, obs):
        self.updated.append(obs.session_key)
        self._check()


def test_replay_source_routes_new_and_updated(tmp_path):
    session = tmp_path / "session.csv"
    write_session(session, [
        [0.0, "k1", "DRONE-1", "", "", 52.0, 21.0, 100, "", 50, 1, 0],
        [0.0, "k2", "DRONE-2", "", "", 52.0, 21.0, 100, "", 80, 1, 0],
        [0.01, "k1", "DRONE-1", "", "", 52.0, 21.0, 100, "", 45, 1, 0],
    ])
    src = ReplaySource.from_csv(str(session), speed=10.0)
    sink = CollectingSink(expected=3)

    src.start(sink)
    assert sink.done.wait(2.0)
    src.stop()

    assert sink.new == ["k1", "k2"]
    assert sink.updated == ["k1"]
    assert not src.running


def test_finished_replay_can_be_started_again(tmp_path):
    session = tmp_path / "session.csv"
    write_session(session, [
        [0.0, "k1", "DRONE-1", "", "", 52.0, 21.0, 100, "", 50, 1, 0],
    ])
    src = ReplaySource.from_csv(str(session))

    first = CollectingSink(expected=1)
    src.start(first)
    assert first.done.wait(2.0)
    src._thread.join(timeout=2.0)
    assert not src.running

    second = CollectingSink(expected=1)
    src.start(second)
    assert second.done.wait(2.0)
    assert second.new == ["k1"]
    src.stop()
