# Zoom thresholds by update-recency quintile (0 = most recently updated fifth).
ZOOM_LEVELS = (15.5, 16.0, 16.5, 17.0, 17.5)
DEFAULT_ZOOM_LEVEL = ZOOM_LEVELS[0]  # pins appended by incremental refresh

# Trending
TRENDING_MIN_POSTS = 5       # no trending below or at this collection size
TRENDING_FRACTION = 0.15     # top ~15th percentile by likes
TRENDING_MIN_LIKES = 1

# New pins
MAX_COMMENT_LEN = 50
MAX_EMOJI_LEN = 16

# Timers (seconds)
REFRESH_INTERVAL_S = 5.0
TRENDING_INTERVAL_S = 30.0
LIKES_CHECK_INTERVAL_S = 10.0
PLACEMENT_DEBOUNCE_S = 0.3

# Placement
EARTH_RADIUS_M = 6378137.0
PLACEMENT_STEP_M = 1.0
PLACEMENT_MAX_STEPS = 10
BADGE_EXTRA_ONE = 15.0       # "new" or "trending"
BADGE_EXTRA_BOTH = 25.0      # "new" and "trending"
LONG_COMMENT_CHARS = 26      # comments longer than this wrap below the badges
LONG_COMMENT_MOVE_DOWN = 25.0
LONG_COMMENT_EXTRA_H = 10.0

# Timeouts
BACKEND_TIMEOUT_S = 20
