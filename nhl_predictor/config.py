import os
from typing import List

SQLITE_URL = "sqlite:///./nhl_predictions.db"
POSTGRES_URL = os.environ.get("DATABASE_URL")

DATABASE_URL = POSTGRES_URL if POSTGRES_URL else SQLITE_URL

NHL_STATS_API_BASE = os.environ.get("NHL_STATS_API_BASE", "https://api.nhle.com/stats/rest/en/team")
ESPN_NHL_BASE = os.environ.get("ESPN_NHL_BASE", "https://site.api.espn.com/apis/site/v2/sports/hockey/nhl")
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "30"))

CURRENT_SEASON_ID = int(os.environ.get("CURRENT_SEASON_ID", "20242025"))

ACCURACY_THRESHOLD = float(os.environ.get("ACCURACY_THRESHOLD", "60"))

SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "true").lower() == "true"
PREDICTION_REFRESH_HOURS = float(os.environ.get("PREDICTION_REFRESH_HOURS", "24"))

# ESPN event ids retried through the per-game summary endpoint when the
# scoreboard yields no updates.
FALLBACK_GAME_IDS: List[int] = [
    int(game_id) for game_id in os.environ.get("FALLBACK_GAME_IDS", "").split(",")
    if game_id.strip().isdigit()
]

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_JSON = os.environ.get("LOG_JSON", "false").lower() == "true"

ALLOWED_ORIGINS = os.environ.get("ALLOWED_ORIGINS", "*").split(",")
