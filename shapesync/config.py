# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file, and from the settings mapping the
#   init / test-connection / discover handlers receive.
#   Provides typed config objects to all other modules.
#
# CLASSES:
# --------
# - MySQLConfig (dataclass)
#     host: str               (default "localhost")
#     port: int               (default 3306)
#     user: str               (default "root")
#     password: str           (default "")
#     database: str           (default "shapesync")
#     connect_timeout: int    (default 10)
#     read_timeout: int|None  (default None)
#     write_timeout: int|None (default None)
#
# - StreamConfig (dataclass)
#     data_stream_url: str          (default "http://127.0.0.1:8000/datapoint")
#     request_timeout: float        (default 10.0)
#     poll_interval: float          (default 0.1)
#     max_consecutive_errors: int   (default 10)
#
# - AppConfig (dataclass)
#     mysql: MySQLConfig
#     stream: StreamConfig
#     log_level: str          (default "INFO")
#
# FUNCTIONS:
# ----------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# - reset_config() -> None
#     Forget the singleton (tests).
#
# - parse_data_source_name(dsn) -> MySQLConfig
#     "user:password@host:port/database", also the Go driver form
#     "user:password@tcp(host:port)/database".
#
# ==============================================

import os
import re
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional
from pathlib import Path

from dotenv import load_dotenv

from shapesync.errors import ConfigurationError


_DSN_PATTERN = re.compile(
    r"^(?P<user>[^:@/]*)(?::(?P<password>[^@]*))?@"
    r"(?:tcp\()?(?P<host>[^:/()]+)(?::(?P<port>[^/)]+))?\)?"
    r"/(?P<database>[^?]*)(?:\?.*)?$"
)

_DSN_KEYS = ("DataSourceName", "data_source_name", "dsn")


@dataclass
class MySQLConfig:
    """MySQL / MariaDB connection configuration."""
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "shapesync"
    connect_timeout: int = 10
    read_timeout: Optional[int] = None
    write_timeout: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Optional[Mapping[str, Any]]) -> "MySQLConfig":
        """
        Build a config from a handler settings mapping.

        Args:
            settings: Either a mapping holding a data source name under
                "DataSourceName" (or "data_source_name" / "dsn"), or
                explicit host / port / user / password / database keys.

        Returns:
            MySQLConfig

        Raises:
            ConfigurationError: settings missing, DSN unparseable,
                port not numeric or no database name.
        """
        if not settings:
            raise ConfigurationError("settings are required to connect")

        for key in _DSN_KEYS:
            dsn = settings.get(key)
            if dsn:
                config = parse_data_source_name(str(dsn))
                timeout = settings.get("connect_timeout")
                if timeout is not None:
                    config = replace(config, connect_timeout=_to_int("connect_timeout", timeout))
                return config

        if "host" not in settings and "database" not in settings:
            raise ConfigurationError(
                "settings didn't contain a DataSourceName key or host/database keys"
            )

        defaults = cls()
        config = cls(
            host=str(settings.get("host") or defaults.host),
            port=_to_int("port", settings.get("port", defaults.port)),
            user=str(settings.get("user") or defaults.user),
            password=str(settings.get("password") or ""),
            database=str(settings.get("database") or ""),
            connect_timeout=_to_int(
                "connect_timeout", settings.get("connect_timeout", defaults.connect_timeout)
            ),
        )
        if not config.database:
            raise ConfigurationError("settings didn't contain a database name")
        return config


@dataclass
class StreamConfig:
    """Where and how often the streaming pipeline polls for data points."""
    data_stream_url: str = "http://127.0.0.1:8000/datapoint"
    request_timeout: float = 10.0
    poll_interval: float = 0.1
    max_consecutive_errors: int = 10


@dataclass
class AppConfig:
    """Main application configuration."""
    mysql: MySQLConfig = field(default_factory=MySQLConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    log_level: str = "INFO"


def parse_data_source_name(dsn: str) -> MySQLConfig:
    """Parse "user:password@host:port/database" into a MySQLConfig."""
    match = _DSN_PATTERN.match(dsn.strip())
    if match is None:
        raise ConfigurationError(
            "couldn't parse data source name, expected user:password@host:port/database"
        )

    database = match.group("database")
    if not database:
        raise ConfigurationError("data source name didn't contain a database name")

    port = match.group("port")
    return MySQLConfig(
        host=match.group("host"),
        port=_to_int("port", port) if port else 3306,
        user=match.group("user") or "root",
        password=match.group("password") or "",
        database=database,
    )


def _to_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _to_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if not value:
        return None
    return _to_int(name, value)


# Singleton instance
_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    dsn = os.getenv("MYSQL_DATA_SOURCE_NAME")
    if dsn:
        mysql_config = parse_data_source_name(dsn)
    else:
        mysql_config = MySQLConfig(
            host=os.getenv("MYSQL_HOST", "localhost"),
            port=_to_int("MYSQL_PORT", os.getenv("MYSQL_PORT", "3306")),
            user=os.getenv("MYSQL_USER", "root"),
            password=os.getenv("MYSQL_PASSWORD", ""),
            database=os.getenv("MYSQL_DATABASE", "shapesync"),
        )
    mysql_config.connect_timeout = _to_int(
        "MYSQL_CONNECT_TIMEOUT", os.getenv("MYSQL_CONNECT_TIMEOUT", "10")
    )
    mysql_config.read_timeout = _optional_int("MYSQL_READ_TIMEOUT")
    mysql_config.write_timeout = _optional_int("MYSQL_WRITE_TIMEOUT")

    stream_config = StreamConfig(
        data_stream_url=os.getenv("DATA_STREAM_URL", "http://127.0.0.1:8000/datapoint"),
        request_timeout=_to_float("STREAM_REQUEST_TIMEOUT", os.getenv("STREAM_REQUEST_TIMEOUT", "10")),
        poll_interval=_to_float("STREAM_POLL_INTERVAL", os.getenv("STREAM_POLL_INTERVAL", "0.1")),
        max_consecutive_errors=_to_int(
            "STREAM_MAX_CONSECUTIVE_ERRORS", os.getenv("STREAM_MAX_CONSECUTIVE_ERRORS", "10")
        ),
    )

    _config_instance = AppConfig(
        mysql=mysql_config,
        stream=stream_config,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )

    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config_instance
    _config_instance = None
