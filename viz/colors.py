WHITE = (235, 235, 235)
GREY  = (110, 110, 110)
DARK  = (40, 40, 40)
GREEN = (60, 200, 90)
AMBER = (255, 176, 0)
RED   = (230, 40, 40)
CYAN  = (0, 200, 220)
BG_COLOR = (12, 12, 18)
