from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

import mysql.connector
from mysql.connector import pooling

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 1

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        missing = sorted({"host", "user", "database"} - set(db_config))
        if missing:
            raise ValueError(f"DB_CONFIG is missing: {', '.join(missing)}")
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config.get("password", "")),
            database=str(db_config["database"]),
            pool_size=max(1, int(db_config.get("pool_size", 1))),
        )

    def connect_args(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
        }


class DatabaseConnection:
    """Connection factory shared by every MySQL repository.

    Each operation takes its own connection and closes it when done. With a pool size
    above 1 the connections come from a mysql-connector pool, so parallel recalculation
    workers reuse sockets instead of reconnecting.
    """

    _instances: dict[DBConfig, "DatabaseConnection"] = {}
    _instances_lock = threading.Lock()

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None
        if config.pool_size > 1:
            self._pool = pooling.MySQLConnectionPool(
                pool_name=f"furniture-{config.database}",
                pool_size=config.pool_size,
                **config.connect_args(),
            )
            logger.info("MySQL pool for %s ready (size=%d)", config.database, config.pool_size)

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        with cls._instances_lock:
            if config not in cls._instances:
                cls._instances[config] = DatabaseConnection(config)
            return cls._instances[config]

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        if self._pool is not None:
            try:
                return self._pool.get_connection()
            except mysql.connector.errors.PoolError:
                logger.warning("MySQL pool for %s exhausted, opening a direct connection", self._config.database)
        return mysql.connector.connect(**self._config.connect_args())
