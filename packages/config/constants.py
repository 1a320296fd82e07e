# config constants
LOCAL_ENV = ".env.local"
PRODUCTION_ENV = ".env.production"
VIEWER_CFG = "configs/viewer.yml"

DEFAULT_BASE_URL = "http://localhost:3000"
WS_PATH = "/api/ws"
LEADERBOARD_PATH = "/api/leaderboard"
STATS_PATH = "/api/stats"

TIMEFRAMES = ("24h", "7d", "30d", "all")
SORT_ORDERS = ("asc", "desc")

DEFAULT_POLL_INTERVAL_MS = 30000
DEFAULT_RECONNECT_DELAY_SEC = 5.0
DEFAULT_LIMIT = 100
