import os

from config import db_config_from_env

DB_CONFIG = db_config_from_env("furniture_production_test")

DEBUG = False
TESTING = True

LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

RECALC_PARALLELISM = 1
WRITE_BATCH_LIMIT = 450
SPLIT_TOLERANCE = 0.005
DEFAULT_SCHEDULE_DAYS = 7
OFFER_BACKFILL_POLICY = "first_accepted"
