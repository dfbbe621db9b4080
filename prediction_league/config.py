import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/prediction_league.db")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Cron (trophy sweep)
CRON_SECRET = os.getenv("CRON_SECRET")
CRON_ENABLED = os.getenv("CRON_ENABLED", "false").lower() in ("true", "on", "1")
RECENTLY_FINISHED_HOURS = int(os.getenv("RECENTLY_FINISHED_HOURS", "48"))

# Default scoring, used when a tournament leaves a value unset
DEFAULT_EXACT_SCORE_POINTS = 3
DEFAULT_CORRECT_RESULT_POINTS = 1
DEFAULT_INCORRECT_RESULT_POINTS = 0
DEFAULT_DRAW_WITH_DEFAULT_POINTS = 1
