from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10

    @classmethod
    def from_settings(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config.get("password") or ""),
            database=str(db_config["database"]),
            connect_timeout=int(db_config.get("connect_timeout", 10)),
        )


class DatabaseConnection:
    """Connection factory for the ledger database, one per DBConfig.

    Every unit of work opens its own short-lived connection, so two
    concurrent requests never share a transaction.
    """

    _instances: ClassVar[dict[DBConfig, "DatabaseConnection"]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        with cls._lock:
            if config not in cls._instances:
                cls._instances[config] = DatabaseConnection(config)
            return cls._instances[config]

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=self._config.port,
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=self._config.connect_timeout,
            autocommit=False,
        )
