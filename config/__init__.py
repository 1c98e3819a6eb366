import os


def get_settings_module() -> str:
    # Settings module is chosen by APP_ENV, 'development' by default
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def db_config_from_env(default_database: str, *, default_pool_size: int = 1) -> dict:
    """MySQL settings from DB_* variables.

    DB_POOL_SIZE above 1 gives the recalculation workers a shared connection pool.
    """
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", ""),
        "database": os.getenv("DB_NAME", default_database),
        "pool_size": int(os.getenv("DB_POOL_SIZE", str(default_pool_size))),
    }
