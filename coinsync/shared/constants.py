"""
Shared constants for the coin arena.
Used by both server and client. Components take these as keyword
defaults so tests can swap them out without touching this module.
"""

# =============================================================================
# NETWORK SETTINGS
# =============================================================================
SERVER_HOST = "localhost"
SERVER_PORT = 8080
SERVER_URL = f"ws://{SERVER_HOST}:{SERVER_PORT}"

# Artificial latency in milliseconds, applied by the server in each direction
# (so a round trip is roughly 2 * LAG_MS)
LAG_MS = 100

# Extra client-side lag on top of the server's (0 = off)
CLIENT_LAG_MS = 0

# =============================================================================
# GAME WORLD SETTINGS
# =============================================================================
WORLD_WIDTH = 800
WORLD_HEIGHT = 600

# =============================================================================
# AGENT SETTINGS
# =============================================================================
PLAYER_RADIUS = 15
PLAYER_SPEED = 220  # Pixels per second
SPAWN_MARGIN = 30  # Keep spawns away from the walls

# =============================================================================
# PICKUP SETTINGS
# =============================================================================
COIN_RADIUS = 8
COIN_SPAWN_INTERVAL_MS = 2000
MAX_COINS = 25  # Spawner skips a firing once this many are live

# =============================================================================
# TIMING
# =============================================================================
TICK_RATE = 30  # Simulation steps (and snapshots) per second
MAX_TICK_DELTA = 0.25  # Seconds; longer scheduler stalls are clamped
TICK_LOG_INTERVAL = 150  # Log a summary every N ticks

# =============================================================================
# CLIENT / INTERPOLATION SETTINGS
# =============================================================================
CLIENT_FPS = 60
INTERP_DELAY_MS = 180  # Render this far behind the estimated server time
SNAPSHOT_BUFFER_SIZE = 50  # Samples kept per agent
SKEW_SMOOTHING = 0.1  # Weight of the newest skew sample
