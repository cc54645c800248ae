import math
import time

import pygame

import config
from ridguard.ticker import RadarFrame
from .colors import WHITE, GREY, DARK, AMBER, RED, GREEN

# Flash control state for the alert box
flash_state = False
last_flash_time = 0.0
alert_until = 0.0


def notify_alert(hold_s: float = 3.0) -> None:
    """Called from the pipeline's "alert" event; keeps the box lit for hold_s."""
    global alert_until
    alert_until = time.time() + hold_s


def draw_blip(screen, font, frame: RadarFrame, blip, center, radius):
    cx, cy = center
    # blip coords are already normalized to a unit disc
    x = cx + blip.x * radius
    y = cy + blip.y * radius
    inside = blip.distance_m <= frame.max_range_m
    color = RED if inside else AMBER

    size = 7
    if blip.inferred:
        pygame.draw.circle(screen, color, (x, y), size, 2)
    else:
        pygame.draw.circle(screen, color, (x, y), size)

    tag = f"{blip.label[-6:]} {blip.distance_m:.0f}m"
    text = font.render(tag, True, color)
    screen.blit(text, (x + 10, y - 8))


def draw_alert_box(screen, frame: RadarFrame, radar_rect):
    """Flashing box below the radar while an alert is fresh."""
    global flash_state, last_flash_time
    now = time.time()
    flash_interval = 0.4

    if frame.silenced:
        label, color = "SILENCED", GREY
        flash_state = True
    elif now < alert_until:
        label, color = "DRONE NEARBY", RED
        if now - last_flash_time > flash_interval:
            flash_state = not flash_state
            last_flash_time = now
    elif frame.scanning:
        label, color = "MONITORING", GREEN
        flash_state = True
    else:
        label, color = "IDLE", GREY
        flash_state = True

    screen_w, screen_h = screen.get_size()
    box_w, box_h = 320, 60
    box_x = radar_rect.centerx - box_w // 2
    box_y = radar_rect.bottom + 16
    if box_y + box_h > screen_h:
        box_y = screen_h - box_h - 10

    rect = pygame.Rect(box_x, box_y, box_w, box_h)
    pygame.draw.rect(screen, color if flash_state else DARK, rect, border_radius=10)

    big = pygame.font.Font(None, 40)
    text = big.render(label, True, (0, 0, 0))
    screen.blit(text, text.get_rect(center=rect.center))


def draw_radar(screen, font, frame: RadarFrame):
    """Left part of the screen: range rings, receiver, projected drones."""
    screen_w, screen_h = screen.get_size()

    radar_h = int(screen_h * 0.85)
    center_x = int(screen_w * 0.35)
    center_y = radar_h // 2
    center = (center_x, center_y)
    radius = min(center_x, center_y) - 30

    pygame.draw.circle(screen, (0, 0, 0), center, radius)
    for frac in config.RADAR_RING_FRACTIONS:
        pygame.draw.circle(screen, GREY, center, int(radius * frac), 1 if frac < 1.0 else 2)

    # heading ticks, north up
    for deg in range(0, 360, 30):
        rad = math.radians(deg)
        x1 = center_x + (radius - 10) * math.sin(rad)
        y1 = center_y - (radius - 10) * math.cos(rad)
        x2 = center_x + radius * math.sin(rad)
        y2 = center_y - radius * math.cos(rad)
        pygame.draw.line(screen, GREY, (x1, y1), (x2, y2), 1)
    north = font.render("N", True, WHITE)
    screen.blit(north, (center_x - 5, center_y - radius - 22))

    # receiver
    pygame.draw.circle(screen, WHITE, center, 6)

    for blip in frame.blips:
        draw_blip(screen, font, frame, blip, center, radius)

    label = font.render(f"{frame.max_range_m} m", True, WHITE)
    screen.blit(label, (center_x - 20, center_y - radius + 10))
    if frame.receiver is None:
        warn = font.render("no receiver fix: bearings unknown", True, AMBER)
        screen.blit(warn, (center_x - warn.get_width() // 2, center_y + radius - 30))

    radar_rect = pygame.Rect(center_x - radius, center_y - radius, radius * 2, radius * 2)
    draw_alert_box(screen, frame, radar_rect)
