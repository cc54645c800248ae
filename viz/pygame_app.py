from typing import List

from ridguard.ticker import RadarFrame
from .colors import BG_COLOR
from .hud import draw_hud
from .radar_display import draw_radar


def render(screen, font, frame: RadarFrame, messages: List[str] = ()):
    screen.fill(BG_COLOR)
    draw_radar(screen, font, frame)
    draw_hud(screen, font, frame, messages)
