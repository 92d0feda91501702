"""
Configuration settings for the webinar replay player.
"""
# config.py

FPS = 30

# ── Schedule defaults (used when webinar.json omits a field) ───────────────

# Path to the persisted webinar configuration and scripted chat
WEBINAR_FILE  = "webinar.json"
COMMENTS_FILE = "comments.json"

# Path to the recording; a file path or any URI GStreamer can open
VIDEO_PATH = "videos/webinar.mp4"

START_HOUR     = 18
START_MINUTE   = 50
VIDEO_DURATION = 3600                 # seconds; 0 → probe VIDEO_PATH
TIMEZONE       = "America/Sao_Paulo"
RECURRENCE     = "daily"              # daily | weekly | monthly | once

# ── Clock cadences ─────────────────────────────────────────────────────────

PHASE_TICK_INTERVAL    = 1.0   # recompute waiting / live / ended
DRIFT_CHECK_INTERVAL   = 10.0  # compare player position with elapsed time
VIEWER_JITTER_INTERVAL = 5.0   # cosmetic viewer-count wobble

# Re-seek only when the player is further than this from the live position.
# Tuned by eye; re-seeking more often stutters.
DRIFT_TOLERANCE_SEC = 5.0

# ── Simulated audience ─────────────────────────────────────────────────────

VIEWERS_BASE   = 280
VIEWERS_SPREAD = 150
VIEWERS_FLOOR  = 200
VIEWERS_STEP   = (-8, 11)     # inclusive range of each jitter step

# ── Display settings ───────────────────────────────────────────────────────

FULLSCREEN    = True
WINDOWED_SIZE = (1280, 720)
SHOW_OVERLAYS = False          # diagnostics panel, toggled with "i"

# Optional image painted behind the waiting / ended cards
BACKGROUND_IMAGE = ""

# Number of chat lines kept on screen (newest at the bottom)
CHAT_LINES = 12

# ── Texts and colours ──────────────────────────────────────────────────────

COUNTDOWN_TEXT    = "The webinar starts in:"
NEXT_WEBINAR_TEXT = "Next webinar in:"
SOON_BADGE_TEXT   = "STARTING SOON"
ENDED_BADGE_TEXT  = "BROADCAST ENDED"
LIVE_BADGE_TEXT   = "LIVE"

BACKGROUND_COLOR = (26, 26, 46)      # #1a1a2e
COUNTDOWN_COLOR  = (255, 215, 0)     # #FFD700
LIVE_COLOR       = (231, 76, 60)     # #e74c3c

# ── Web remote / logging ───────────────────────────────────────────────────

WEB_PORT              = 8080
DIAG_REFRESH_INTERVAL = 1.0
LOG_FILE              = "runtime.log"
