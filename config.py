# Global knobs (display + pipeline constants)
SCREEN_W, SCREEN_H = 1100, 760
FPS = 30                    # render loop rate (frames/s)

TICK_S = 1.0                # display snapshot / projection period (s)

LOG_LEVEL = "INFO"

# Sentinel used by Remote ID decoders for "altitude not available" (m)
ALTITUDE_UNKNOWN = -1000.0

# ---------------------------------------------------------------------
# User-facing option defaults (see ridguard.settings.SettingsStore)
# ---------------------------------------------------------------------
DEFAULT_RADIUS_M = 200
DEFAULT_ALTITUDE_WINDOW_ENABLED = False
DEFAULT_ALTITUDE_MIN_M = -50
DEFAULT_ALTITUDE_MAX_M = 150
DEFAULT_COOLDOWN_S = 30
DEFAULT_LOG_RETENTION_HOURS = 48
DEFAULT_MAP_ENABLED = False
DEFAULT_SILENCE_UNTIL_MS = 0
DEFAULT_IGNORE_IDS = ""

# Silence button / ignore button durations (minutes)
SILENCE_MINUTES = 30
TEMP_IGNORE_MINUTES = 60

# ---------------------------------------------------------------------
# Privacy audit log
# ---------------------------------------------------------------------
LOG_DIR = "ridguard_logs"
LOG_PREFIX = "ridguard"
LOG_HEADER = [
    "timestamp",
    "hashed_id",
    "distance_m",
    "alt_diff_m",
    "speed_mps",
    "heading_deg",
    "last_seen_ms",
]
HASH_BYTES = 8              # truncated SHA-256 length -> 16 hex chars

# ---------------------------------------------------------------------
# Radar projection
# ---------------------------------------------------------------------
RADAR_MIN_RANGE_M = 50
RADAR_RING_FRACTIONS = (0.33, 0.66, 1.0)

# A Basic ID not re-broadcast within this window is treated as stale and
# the state falls back to the last known id (inferred).
SHADOW_ID_STALE_MS = 10_000

EARTH_RADIUS_M = 6_371_008.8
