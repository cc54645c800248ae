import pygame
from typing import List

import config
from ridguard.ticker import RadarFrame
from .colors import WHITE, AMBER, GREEN, GREY, CYAN


def draw_hud(screen, font, frame: RadarFrame, messages: List[str] = ()):
    """Side panel: scan state, receiver fix, controls, visible drones."""
    screen_w, screen_h = screen.get_size()
    panel_w = int(screen_w * 0.30)
    panel_x = screen_w - panel_w
    margin_x, margin_y = 12, 10
    line_spacing = 20

    hud_surface = pygame.Surface((panel_w, screen_h), pygame.SRCALPHA)
    hud_surface.fill((0, 0, 0, 180))
    y = margin_y

    if frame.seconds_since_last_scan is None:
        last_scan = "Last scan: --"
    else:
        last_scan = f"Last scan: {frame.seconds_since_last_scan}s ago"

    if frame.receiver is None:
        fix = "Receiver: no fix"
    else:
        fix = (f"Receiver: {frame.receiver.latitude:.5f}, "
               f"{frame.receiver.longitude:.5f}  {frame.receiver.altitude:.0f} m")

    lines = [
        ("SCANNING" if frame.scanning else "IDLE", GREEN if frame.scanning else GREY),
        (frame.status, WHITE),
        (last_scan, WHITE),
        (fix, WHITE),
        ("Alerts SILENCED" if frame.silenced else "Alerts armed", AMBER if frame.silenced else WHITE),
        ("", WHITE),
        ("Controls:", WHITE),
        ("[SPACE]  Start / stop scanning", WHITE),
        (f"[S]      Silence {config.SILENCE_MINUTES} min", WHITE),
        ("[U]      Unsilence", WHITE),
        (f"[I]      Ignore nearest {config.TEMP_IGNORE_MINUTES} min", WHITE),
        ("[ESC]    Quit", WHITE),
        ("", WHITE),
        (f"Drones: {frame.aircraft_count} ({len(frame.blips)} on radar)", WHITE),
    ]

    for text, color in lines:
        hud_surface.blit(font.render(text, True, color), (margin_x, y))
        y += line_spacing

    for blip in sorted(frame.blips, key=lambda b: b.distance_m):
        if y > screen_h - line_spacing * (len(messages) + 2):
            break
        mark = "?" if blip.inferred else " "
        text = f"{mark}{blip.label[:20]:<20} {blip.distance_m:6.0f} m"
        color = AMBER if blip.distance_m <= frame.max_range_m else GREY
        hud_surface.blit(font.render(text, True, color), (margin_x, y))
        y += line_spacing

    # Map overlay positions (only populated when enabled and online)
    if frame.map_positions:
        y += line_spacing // 2
        hud_surface.blit(font.render("Map:", True, CYAN), (margin_x, y))
        y += line_spacing
        for key, lat, lon in frame.map_positions:
            if y > screen_h - line_spacing * (len(messages) + 2):
                break
            hud_surface.blit(font.render(f" {key[:10]:<10} {lat:.5f}, {lon:.5f}", True, CYAN), (margin_x, y))
            y += line_spacing

    y = screen_h - line_spacing * (len(messages) + 1)
    for msg in messages:
        hud_surface.blit(font.render(msg, True, GREY), (margin_x, y))
        y += line_spacing

    screen.blit(hud_surface, (panel_x, 0))
