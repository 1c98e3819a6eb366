import os

from config import db_config_from_env

DB_CONFIG = db_config_from_env("furniture_production", default_pool_size=4)

DEBUG = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_FILE = os.getenv("LOG_FILE") or None

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Costing / sync engine
RECALC_PARALLELISM = int(os.getenv("RECALC_PARALLELISM", "4"))
WRITE_BATCH_LIMIT = int(os.getenv("WRITE_BATCH_LIMIT", "450"))
SPLIT_TOLERANCE = float(os.getenv("SPLIT_TOLERANCE", "0.005"))
DEFAULT_SCHEDULE_DAYS = int(os.getenv("DEFAULT_SCHEDULE_DAYS", "7"))
OFFER_BACKFILL_POLICY = os.getenv("OFFER_BACKFILL_POLICY", "first_accepted")
