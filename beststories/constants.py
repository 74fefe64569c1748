"""
Constants and configuration defaults for the best stories service.
"""

# Upstream
HN_API_BASE = "https://hacker-news.firebaseio.com/v0"
CANDIDATE_LIST_PATH = "/beststories.json"
ITEM_PATH_TEMPLATE = "/item/{id}.json"

# Cache TTLs (seconds)
CANDIDATE_CACHE_TTL = 60
ITEM_CACHE_TTL = 300  # 5 minutes
CANDIDATE_CACHE_KEY = "candidate-list"
ITEM_CACHE_KEY_PREFIX = "item-"

# Fan-out
MAX_CANDIDATES = 500  # Hard cap on ids fetched per run
MAX_CONCURRENT_FETCHES = 10

# Timeouts (seconds)
REQUEST_TIMEOUT = 10.0
CONNECT_TIMEOUT = 5.0
FETCH_TIMEOUT = 15.0  # Upper bound for one cache-aside fetch

# Request bounds (enforced by adapters)
DEFAULT_COUNT = 10
MIN_COUNT = 1
MAX_COUNT = 10000
COUNT_OUT_OF_RANGE_MSG = (
    f"Count out of range, you can retrieve up to {MAX_COUNT} stories"
)

LOG_LEVEL = "INFO"
