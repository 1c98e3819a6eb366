import pytest

from config import db_config_from_env
from src.furniture_production.furniture_production.database.connection import DBConfig, DatabaseConnection


def test_db_config_from_env(monkeypatch):
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_POOL_SIZE", "6")
    monkeypatch.delenv("DB_NAME", raising=False)

    config = DBConfig.from_dict(db_config_from_env("furniture_production"))

    assert config.host == "db.internal"
    assert config.database == "furniture_production"
    assert config.pool_size == 6
    assert "pool_size" not in config.connect_args()


def test_db_config_requires_host_user_and_database():
    with pytest.raises(ValueError, match="database, user"):
        DBConfig.from_dict({"host": "localhost"})


def test_unpooled_factory_is_shared_per_config():
    config = DBConfig.from_dict({"host": "localhost", "user": "root", "database": "fp_shared"})

    assert DatabaseConnection.get_instance(config) is DatabaseConnection.get_instance(config)
    assert DatabaseConnection.get_instance(config).config.pool_size == 1
