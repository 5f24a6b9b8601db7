import os

# -----------------------------------------------------------------------------
# Analytics backend (Tinybird)
# -----------------------------------------------------------------------------
TINYBIRD_HOST = os.environ.get("TINYBIRD_HOST", "https://api.tinybird.co").rstrip("/")
TINYBIRD_TOKEN = os.environ.get("TINYBIRD_TOKEN", "")
TINYBIRD_DATASOURCE = os.environ.get("TINYBIRD_DATASOURCE", "page_views")
TINYBIRD_PIPE = os.environ.get("TINYBIRD_PIPE", "top_pages")
BACKEND_TIMEOUT = float(os.environ.get("BACKEND_TIMEOUT", "10"))

# -----------------------------------------------------------------------------
# Top pages query
# -----------------------------------------------------------------------------
LOOKBACK_DAYS = 30
TOP_PAGES_LIMIT = 10

# -----------------------------------------------------------------------------
# Client
# -----------------------------------------------------------------------------
STREAK_DECAY_SECONDS = 1.5

# CORS allowlist (when the page is served from another origin than the API)
CORS_ALLOW_ORIGINS = os.environ.get("CORS_ALLOW_ORIGINS", "").split(",")
CORS_ALLOW_ORIGINS = [o.strip() for o in CORS_ALLOW_ORIGINS if o.strip()]
