# ==============================================
# Tests for configuration loading
# ==============================================

import pytest

from shapesync.config import (
    AppConfig,
    MySQLConfig,
    get_config,
    parse_data_source_name,
)
from shapesync.errors import ConfigurationError

ENV_KEYS = (
    "MYSQL_DATA_SOURCE_NAME", "MYSQL_HOST", "MYSQL_PORT", "MYSQL_USER",
    "MYSQL_PASSWORD", "MYSQL_DATABASE", "MYSQL_CONNECT_TIMEOUT",
    "MYSQL_READ_TIMEOUT", "MYSQL_WRITE_TIMEOUT", "DATA_STREAM_URL",
    "STREAM_REQUEST_TIMEOUT", "STREAM_POLL_INTERVAL", "STREAM_MAX_CONSECUTIVE_ERRORS",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestDataSourceName:

    def test_full_form(self):
        config = parse_data_source_name("admin:s3cret@db.local:3307/feeds")

        assert config.user == "admin"
        assert config.password == "s3cret"
        assert config.host == "db.local"
        assert config.port == 3307
        assert config.database == "feeds"

    def test_tcp_form(self):
        config = parse_data_source_name("root:pw@tcp(127.0.0.1:3306)/test?parseTime=true")

        assert config.host == "127.0.0.1"
        assert config.port == 3306
        assert config.database == "test"

    def test_defaults(self):
        config = parse_data_source_name("@localhost/feeds")

        assert config.user == "root"
        assert config.password == ""
        assert config.port == 3306

    @pytest.mark.parametrize("dsn", ["not a dsn", "root@localhost:3306/", "root@host:abc/db"])
    def test_invalid(self, dsn):
        with pytest.raises(ConfigurationError):
            parse_data_source_name(dsn)


class TestFromSettings:

    def test_data_source_name_key(self):
        config = MySQLConfig.from_settings({"DataSourceName": "root:pw@localhost:3306/feeds"})
        assert config.database == "feeds"

    def test_data_source_name_with_timeout(self):
        config = MySQLConfig.from_settings({"dsn": "root@localhost/feeds", "connect_timeout": "3"})
        assert config.connect_timeout == 3

    def test_explicit_keys(self):
        config = MySQLConfig.from_settings(
            {"host": "db", "port": "3310", "user": "app", "password": "x", "database": "feeds"}
        )

        assert (config.host, config.port, config.user, config.password, config.database) == (
            "db", 3310, "app", "x", "feeds",
        )

    def test_explicit_keys_defaults(self):
        config = MySQLConfig.from_settings({"database": "feeds"})

        assert config.host == "localhost"
        assert config.port == 3306
        assert config.user == "root"

    @pytest.mark.parametrize("settings", [
        None,
        {},
        {"user": "root"},
        {"host": "db"},
        {"host": "db", "database": "feeds", "port": "nope"},
    ])
    def test_invalid(self, settings):
        with pytest.raises(ConfigurationError):
            MySQLConfig.from_settings(settings)


class TestEnvironment:

    def test_defaults(self, clean_env):
        config = get_config()

        assert isinstance(config, AppConfig)
        assert config.mysql.host == "localhost"
        assert config.mysql.database == "shapesync"
        assert config.mysql.read_timeout is None
        assert config.stream.data_stream_url == "http://127.0.0.1:8000/datapoint"
        assert config.log_level == "INFO"

    def test_singleton(self, clean_env):
        assert get_config() is get_config()

    def test_separate_variables(self, clean_env):
        clean_env.setenv("MYSQL_HOST", "db.local")
        clean_env.setenv("MYSQL_PORT", "3307")
        clean_env.setenv("MYSQL_DATABASE", "feeds")
        clean_env.setenv("MYSQL_READ_TIMEOUT", "30")
        clean_env.setenv("LOG_LEVEL", "debug")

        config = get_config()

        assert config.mysql.host == "db.local"
        assert config.mysql.port == 3307
        assert config.mysql.database == "feeds"
        assert config.mysql.read_timeout == 30
        assert config.log_level == "DEBUG"

    def test_data_source_name_wins(self, clean_env):
        clean_env.setenv("MYSQL_DATA_SOURCE_NAME", "app:pw@dsn-host:3308/fromdsn")
        clean_env.setenv("MYSQL_HOST", "ignored")

        config = get_config()

        assert config.mysql.host == "dsn-host"
        assert config.mysql.database == "fromdsn"

    def test_stream_variables(self, clean_env):
        clean_env.setenv("DATA_STREAM_URL", "http://stream:9000/points")
        clean_env.setenv("STREAM_POLL_INTERVAL", "0.5")

        config = get_config()

        assert config.stream.data_stream_url == "http://stream:9000/points"
        assert config.stream.poll_interval == 0.5

    def test_bad_port(self, clean_env):
        clean_env.setenv("MYSQL_PORT", "three")

        with pytest.raises(ConfigurationError):
            get_config()

    def test_max_consecutive_errors(self, clean_env):
        clean_env.setenv("STREAM_MAX_CONSECUTIVE_ERRORS", "4")
        assert get_config().stream.max_consecutive_errors == 4

    @pytest.mark.parametrize("name, value", [
        ("STREAM_REQUEST_TIMEOUT", "soon"),
        ("STREAM_POLL_INTERVAL", "fast"),
        ("STREAM_MAX_CONSECUTIVE_ERRORS", "many"),
    ])
    def test_bad_stream_numbers(self, clean_env, name, value):
        clean_env.setenv(name, value)

        with pytest.raises(ConfigurationError, match=name):
            get_config()
