# ==============================================
# MySQLClient
# ==============================================
#
# PURPOSE:
#   Manages the MySQL / MariaDB connection and every round trip
#   the subscriber makes: schema statements, upserts, and the
#   introspection that rebuilds the shape registry at startup.
#
# WHY THIS CLASS EXISTS:
#   Tables are created ON THE FLY from the shapes data points
#   carry. This class runs the statements the synthesizers render
#   and translates driver errors into shapesync errors, so nothing
#   above the storage layer imports pymysql.
#
# CLASS: MySQLClient
# ------------------
#   Stateful: holds one connection, guarded by a lock because
#   PyMySQL connections must not be shared between threads.
#
#   Constructor:
#   ------------
#   - __init__(config: MySQLConfig)
#       Store connection params. Don't connect yet.
#
#   Methods:
#   --------
#   - connect() -> str                 → "Connected to: <version>"
#   - disconnect() -> None
#   - is_connected -> bool
#   - execute(query, params=None) -> int
#   - execute_ddl(statement) -> None   → MigrationError on failure
#   - execute_upsert(statement, params) -> int → UpsertError on failure
#   - fetch_all(query, params=None) -> list[dict]
#   - list_tables() -> list[str]       → base tables only, no views
#   - describe_table(table) -> list[dict]
#   - load_shapes() -> list[Shape]
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MySQLClient(...) as db:` usage.
#
# ==============================================

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, cast

import pymysql
import pymysql.cursors

from shapesync.config import MySQLConfig
from shapesync.errors import ConnectivityError, MigrationError, UpsertError
from shapesync.schema.identifiers import quote
from shapesync.schema.shape import Property, Shape
from shapesync.schema.types import from_sql_type
from shapesync.sql.model import METADATA_COLUMN_NAMES

logger = logging.getLogger(__name__)

# Improves performance of inserts
SESSION_SETTINGS = (
    "SET @@session.unique_checks = 0",
    "SET @@session.foreign_key_checks = 0",
)


class MySQLClient:
    def __init__(self, config: MySQLConfig):
        self.config = config
        self.connection = None
        self.connection_info = ""
        self._lock = threading.RLock()

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    def connect(self) -> str:
        """
        Establish the connection, creating the database if it doesn't exist.

        Returns:
            "Connected to: <server version>"

        Raises:
            ConnectivityError: server unreachable or version unreadable
        """
        with self._lock:
            if self.connection is not None:
                return self.connection_info

            try:
                connection = pymysql.connect(
                    host=self.config.host,
                    port=self.config.port,
                    user=self.config.user,
                    password=self.config.password,
                    connect_timeout=self.config.connect_timeout,
                    read_timeout=self.config.read_timeout,
                    write_timeout=self.config.write_timeout,
                    autocommit=True,
                    charset="utf8mb4",
                )
            except pymysql.MySQLError as e:
                raise ConnectivityError(
                    f"couldn't open SQL connection to {self.config.host}:{self.config.port}: {e}"
                ) from e

            try:
                with connection.cursor() as cursor:
                    cursor.execute(f"CREATE DATABASE IF NOT EXISTS {quote(self.config.database)}")
                    cursor.execute(f"USE {quote(self.config.database)}")
                    cursor.execute("SELECT VERSION()")
                    row = cursor.fetchone()
                    for setting in SESSION_SETTINGS:
                        cursor.execute(setting)
            except pymysql.MySQLError as e:
                connection.close()
                raise ConnectivityError(f"couldn't prepare database {self.config.database!r}: {e}") from e

            version = str(row[0]) if row and row[0] else ""
            if not version:
                connection.close()
                raise ConnectivityError("couldn't get data from database server")

            self.connection = connection
            self.connection_info = f"Connected to: {version}"
            logger.info("%s (%s:%s/%s)", self.connection_info,
                        self.config.host, self.config.port, self.config.database)
            return self.connection_info

    def disconnect(self) -> None:
        # Close connection cleanly
        with self._lock:
            if self.connection is not None:
                try:
                    self.connection.close()
                except pymysql.MySQLError as e:
                    raise ConnectivityError(f"error while closing connection: {e}") from e
                finally:
                    self.connection = None
                    logger.info("MySQL connection closed")

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> int:
        """Execute one statement; returns the affected row count."""
        with self._lock:
            connection = self._require_connection()
            with connection.cursor() as cursor:
                if params is not None:
                    return cursor.execute(query, tuple(params))
                return cursor.execute(query)

    def execute_ddl(self, statement: str) -> None:
        logger.debug("Updating table:\n%s", statement)
        try:
            self.execute(statement)
        except pymysql.MySQLError as e:
            logger.error("Error executing command: %s\n%s", e, statement)
            raise MigrationError(f"schema statement failed: {e}", statement) from e

    def execute_upsert(self, statement: str, params: Sequence[Any]) -> int:
        logger.debug("Upserting record with %r", list(params))
        try:
            return self.execute(statement, params)
        except pymysql.MySQLError as e:
            logger.error("Error executing upsert: %s\n%s\nparameters: %r", e, statement, list(params))
            raise UpsertError(f"upsert failed: {e}", statement, params) from e

    def fetch_all(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        # Execute SELECT and return rows as dicts
        with self._lock:
            connection = self._require_connection()
            with connection.cursor(pymysql.cursors.DictCursor) as cursor:
                if params is not None:
                    cursor.execute(query, tuple(params))
                else:
                    cursor.execute(query)
                return cast(List[Dict[str, Any]], list(cursor.fetchall()))

    def list_tables(self) -> List[str]:
        # Companion views show up in SHOW TABLES too; they are not shapes
        rows = self.fetch_all("SHOW FULL TABLES")
        tables = []
        for row in rows:
            name, table_type = list(row.values())[:2]
            if _text(table_type).upper() == "BASE TABLE":
                tables.append(_text(name))
        return tables

    def describe_table(self, table: str) -> List[Dict[str, Any]]:
        return self.fetch_all(f"DESCRIBE {quote(table)}")

    def load_shapes(self) -> List[Shape]:
        """
        Rebuild shapes from the live schema.

        One shape per base table; metadata columns are skipped,
        PRI columns become keys and column types map back through
        from_sql_type().
        """
        shapes = []
        try:
            tables = self.list_tables()
            described = [(table, self.describe_table(table)) for table in tables]
        except pymysql.MySQLError as e:
            raise ConnectivityError(f"couldn't read existing tables: {e}") from e

        for table, columns in described:
            shape = Shape(entity_key=table)
            for column in columns:
                name = _text(column["Field"])
                if name in METADATA_COLUMN_NAMES:
                    continue
                if _text(column.get("Key")) == "PRI":
                    shape.key_names.append(name)
                shape.properties[name] = Property(name=name, type=from_sql_type(_text(column["Type"])))
            shapes.append(shape)
        logger.info("Loaded %d shapes from %s", len(shapes), self.config.database)
        return shapes

    def _require_connection(self):
        if self.connection is None:
            raise ConnectivityError("not connected to MySQL, call connect() first")
        return self.connection

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()


def _text(value: Any) -> str:
    # MySQL 8 returns some DESCRIBE columns as bytes
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return "" if value is None else str(value)
