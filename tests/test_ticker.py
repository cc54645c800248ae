import threading

from ridguard.models import AircraftObservation, LocationData, ReceiverPosition
from ridguard.pipeline import TelemetryIngestPipeline
from ridguard.radar import RadarProjector
from ridguard.ticker import DisplayDriver, PeriodicTicker, build_frame
from sim.scenarios import SCENARIOS, SimDrone
from sim.world import SimulatedSource


def make_pipeline(settings, engine, audit_log, clock):
    return TelemetryIngestPipeline(settings, engine, audit_log, clock=clock)


def report(pipeline, key, distance, uas_id="DRONE-1"):
    pipeline.on_report(AircraftObservation(
        session_key=key,
        mac_address="AA",
        identification1=uas_id,
        location=LocationData(latitude=52.0, longitude=21.001, altitude_geodetic=110.0, distance=distance),
    ))


def test_build_frame_projects_and_summarises(settings, engine, audit_log, clock):
    p = make_pipeline(settings, engine, audit_log, clock)
    p.set_receiver_position(ReceiverPosition(52.0, 21.0, 100.0))
    report(p, "k1", 100.0)
    report(p, "k2", None, uas_id="DRONE-2")

    frame = build_frame(p, RadarProjector())

    assert frame.aircraft_count == 2
    assert [b.session_key for b in frame.blips] == ["k1"]
    blip = frame.blips[0]
    assert blip.label == "DRONE-1"
    assert blip.x > 0
    assert frame.max_range_m == settings.radius_m
    assert frame.seconds_since_last_scan == 0
    assert frame.status == "BLE off · Wi-Fi off · NAN off"
    assert frame.silenced is False
    assert frame.map_positions == []


def test_build_frame_flags_silence_and_map(settings, engine, audit_log, clock):
    p = make_pipeline(settings, engine, audit_log, clock)
    report(p, "k1", 100.0)
    settings.set_silence_for_minutes(5)
    settings.map_enabled = True

    frame = build_frame(p, RadarProjector(), online=True)

    assert frame.silenced is True
    assert frame.map_positions == [("k1", 52.0, 21.001)]


def test_periodic_ticker_runs_until_cancelled():
    calls = []
    hit = threading.Event()

    def fn():
        calls.append(1)
        if len(calls) >= 2:
            hit.set()

    t = PeriodicTicker(0.01, fn)
    t.start()
    assert hit.wait(2.0)
    t.cancel()
    assert not t.running
    n = len(calls)
    assert t._thread is None
    assert len(calls) == n


def test_periodic_ticker_survives_failing_tick():
    hit = threading.Event()
    calls = []

    def fn():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        hit.set()

    t = PeriodicTicker(0.01, fn)
    t.start()
    assert hit.wait(2.0)
    t.cancel()


def test_display_driver_tick_publishes_frame(settings, engine, audit_log, clock):
    p = make_pipeline(settings, engine, audit_log, clock)
    frames = []
    d = DisplayDriver(p, on_frame=frames.append)
    report(p, "k1", 100.0)

    d.tick()

    assert d.frame is frames[-1]
    assert d.frame.aircraft_count == 1


def test_simulated_source_observes_relative_to_receiver():
    drone = SimDrone("s", pos_m=(300.0, 400.0), vel_mps=(0.0, -10.0), alt_m=50.0,
                     uas_id="SIM-1", mac="60:60")
    src = SimulatedSource([drone], ReceiverPosition(52.0, 21.0))

    obs = src.observe(drone)
    assert obs.location.distance == 500.0
    assert obs.location.speed_horizontal == 10.0
    assert obs.location.direction == 180.0
    assert obs.location.latitude > 52.0 and obs.location.longitude > 21.0

    src.step(10.0)
    assert drone.pos_m == (300.0, 300.0)
    assert src.time_s == 10.0


def test_scenarios_build_fresh_drones():
    for key, build in SCENARIOS.items():
        drones = build()
        assert drones, key
        assert build()[0] is not drones[0]
