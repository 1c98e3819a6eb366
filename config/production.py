import os

from config import db_config_from_env

DB_CONFIG = db_config_from_env("furniture_production", default_pool_size=8)

DEBUG = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "logs/furniture_production.log")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

RECALC_PARALLELISM = int(os.getenv("RECALC_PARALLELISM", "8"))
WRITE_BATCH_LIMIT = int(os.getenv("WRITE_BATCH_LIMIT", "450"))
SPLIT_TOLERANCE = float(os.getenv("SPLIT_TOLERANCE", "0.005"))
DEFAULT_SCHEDULE_DAYS = int(os.getenv("DEFAULT_SCHEDULE_DAYS", "7"))
OFFER_BACKFILL_POLICY = os.getenv("OFFER_BACKFILL_POLICY", "first_accepted")
