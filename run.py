import argparse
import logging
import os
import sys
from collections import deque

import pygame

import config
from ridguard.actuator import SilentActuator, SpeechActuator
from ridguard.alerts import AlertDecisionEngine
from ridguard.audit import PrivacyAuditLog
from ridguard.models import ReceiverPosition, SourceKind
from ridguard.pipeline import TelemetryIngestPipeline
from ridguard.settings import JsonFileStore, MemoryStore, SettingsStore
from ridguard.sources import ReplaySource, StaticPositionFeed
from ridguard.ticker import DisplayDriver
from sim.scenarios import SCENARIOS
from sim.world import SimulatedSource
from viz.pygame_app import render
from viz.radar_display import notify_alert

logger = logging.getLogger("ridguard")


def build_sources(args, receiver: ReceiverPosition):
    if args.replay:
        try:
            return [ReplaySource.from_csv(args.replay, speed=args.speed, loop=args.loop)]
        except OSError as e:
            print("Failed to load replay CSV:", e)
    drones = SCENARIOS.get(args.scenario, SCENARIOS["1"])()
    return [SimulatedSource(drones, receiver, kind=SourceKind.BLUETOOTH)]


def build_pipeline(args) -> TelemetryIngestPipeline:
    store = JsonFileStore(args.settings) if args.settings else MemoryStore()
    settings = SettingsStore(store)
    if args.radius is not None:
        settings.radius_m = args.radius

    receiver = ReceiverPosition(latitude=args.lat, longitude=args.lon, altitude=args.alt)
    feed = None if args.no_fix else StaticPositionFeed(args.lat, args.lon, args.alt)

    return TelemetryIngestPipeline(
        settings=settings,
        engine=AlertDecisionEngine(settings),
        audit_log=PrivacyAuditLog(settings, log_dir=args.log_dir),
        sources=build_sources(args, receiver),
        position_feed=feed,
        actuator=SilentActuator() if args.no_speech else SpeechActuator(),
    )


def main():
    parser = argparse.ArgumentParser(description="Drone Remote ID proximity guard")
    parser.add_argument("--replay", "-r", help="CSV session to replay instead of the simulator", default=None)
    parser.add_argument("--loop", action="store_true", help="loop the replay")
    parser.add_argument("--speed", type=float, default=1.0, help="replay speed multiplier")
    parser.add_argument("--scenario", "-s", help="simulator scenario key (1/2/3)", default="1")
    parser.add_argument("--settings", help="JSON settings file (created if missing)", default=None)
    parser.add_argument("--radius", type=int, default=None, help="override alert radius (m)")
    parser.add_argument("--log-dir", default=config.LOG_DIR, help="audit log directory")
    parser.add_argument("--lat", type=float, default=52.2297, help="receiver latitude")
    parser.add_argument("--lon", type=float, default=21.0122, help="receiver longitude")
    parser.add_argument("--alt", type=float, default=100.0, help="receiver altitude (m)")
    parser.add_argument("--no-fix", action="store_true", help="run without a receiver position")
    parser.add_argument("--no-speech", action="store_true", help="log alerts instead of speaking")
    parser.add_argument("--online", action="store_true", help="treat the network as reachable (map overlay)")
    args = parser.parse_args()

    logging.basicConfig(
        level=os.getenv("RIDGUARD_LOG_LEVEL", config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    pipeline = build_pipeline(args)
    messages = deque(maxlen=4)
    pipeline.events.on("alert", lambda identity, distance: notify_alert())
    pipeline.events.on("scanning", lambda on: messages.append("Scanning " + ("started" if on else "stopped")))

    driver = DisplayDriver(pipeline, online=lambda: args.online)

    pygame.init()
    screen = pygame.display.set_mode((config.SCREEN_W, config.SCREEN_H))
    pygame.display.set_caption("RID Guard")
    clock = pygame.time.Clock()
    font = pygame.font.SysFont("consolas,menlo,monospace", 16)

    pipeline.start()
    driver.start()

    running = True
    while running:
        clock.tick(config.FPS)

        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                running = False
            elif e.type == pygame.KEYDOWN:
                if e.key == pygame.K_ESCAPE:
                    running = False

                elif e.key == pygame.K_SPACE:
                    if pipeline.scanning:
                        pipeline.stop()
                    else:
                        pipeline.start()

                elif e.key == pygame.K_s:
                    pipeline.settings.set_silence_for_minutes(config.SILENCE_MINUTES)
                    messages.append(f"Silenced for {config.SILENCE_MINUTES} min")

                elif e.key == pygame.K_u:
                    pipeline.settings.clear_silence()
                    messages.append("Alerts re-armed")

                elif e.key == pygame.K_i:
                    ident = pipeline.nearest_identity()
                    if ident:
                        pipeline.settings.ignore_temporarily(ident, config.TEMP_IGNORE_MINUTES)
                        messages.append(f"Ignoring nearest for {config.TEMP_IGNORE_MINUTES} min")

        render(screen, font, driver.frame, list(messages))
        pygame.display.flip()

    driver.stop()
    pipeline.stop()
    pipeline.actuator.close()

    pygame.quit()
    sys.exit(0)


if __name__ == "__main__":
    main()
