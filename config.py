# config.py
"""
Configuration settings for the story player.
"""

# ── Playback core ───────────────────────────────────────────────────────────

# Seconds between progress-clock ticks (only affects smoothness)
TICK_INTERVAL = 0.01

# Delay between start() and the first playing tick
SETTLE_DELAY = 0.1

# Seconds each story is shown
DEFAULT_ITEM_DURATION = 15.0

# Wrap to the first story instead of dismissing after the last one
LOOP_AT_END = False

# ── Basic Application Settings ──────────────────────────────────────────────

FPS = 60

# Folder holding the story images (natural-sorted)
STORIES_PATH = "stories"

SHOW_OVERLAYS = False

# Display settings
FULLSCREEN = False
WINDOWED_SIZE = (540, 960)

# ── Gesture classification ─────────────────────────────────────────────────

TAP_MAX_SEC        = 0.25   # presses shorter than this are taps, not holds
LEFT_ZONE_FRACTION = 0.33   # left share of the width that steps backwards
PROGRESS_BAND_PX   = 40     # tapping the top band jumps to a segment

# ── Progress bar ───────────────────────────────────────────────────────────

BAR_MARGIN_PX  = 12
BAR_HEIGHT_PX  = 4
BAR_GAP_PX     = 4

# ── Web remote / diagnostics ───────────────────────────────────────────────

WEB_PORT = 8080
DIAG_REFRESH_INTERVAL = 1.0

# ── Logging ────────────────────────────────────────────────────────────────

LOG_FILE  = "runtime.log"
LOG_LEVEL = "INFO"
