# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests. Nothing here needs a live
# database: FakeStoreClient stands in for MySQLClient and
# records every statement it is asked to run.
#
# FIXTURES:
# ---------
# - store           → FakeStoreClient
# - subscriber      → initialized ShapeSyncSubscriber over `store`
# - app_config      → AppConfig with defaults
# - products_point  → factory for Test.Products data points
#
# ==============================================

import re
import threading
import time

import pytest

from shapesync.config import AppConfig, reset_config
from shapesync.errors import MigrationError
from shapesync.schema.shape import Action, DataPoint, DeclaredShape
from shapesync.subscriber import ShapeSyncSubscriber


_CREATE_TABLE = re.compile(r"^CREATE TABLE (IF NOT EXISTS )?`([^`]*)`")


class FakeStoreClient:
    """
    Records statements instead of running them.

    Like a real server, a plain CREATE TABLE for a table that already
    exists fails.
    """

    def __init__(self, shapes=None, version="10.11.6-MariaDB"):
        self.config = None
        self.version = version
        self.shapes = list(shapes or [])
        self.connection_info = ""
        self.connected = False
        self.connect_calls = 0
        self.ddl = []
        self.tables = {s.entity_key for s in self.shapes}
        self.upserts = []
        self.fail_ddl_containing = None
        self.ddl_delay = 0.0
        self._lock = threading.Lock()

    @property
    def is_connected(self):
        return self.connected

    def connect(self):
        self.connect_calls += 1
        self.connected = True
        self.connection_info = f"Connected to: {self.version}"
        return self.connection_info

    def disconnect(self):
        self.connected = False

    def load_shapes(self):
        return list(self.shapes)

    def execute_ddl(self, statement):
        if self.fail_ddl_containing and self.fail_ddl_containing in statement:
            raise MigrationError("schema statement failed: simulated", statement)
        created = _CREATE_TABLE.match(statement)
        if created:
            if created.group(2) in self.tables and not created.group(1):
                raise MigrationError("schema statement failed: table already exists", statement)
            self.tables.add(created.group(2))
        if self.ddl_delay:
            time.sleep(self.ddl_delay)
        with self._lock:
            self.ddl.append(statement)

    def execute_upsert(self, statement, params):
        with self._lock:
            self.upserts.append((statement, list(params)))
        return 1


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def app_config():
    return AppConfig()


@pytest.fixture
def store():
    return FakeStoreClient()


@pytest.fixture
def subscriber(store, app_config):
    def factory(config):
        store.config = config
        return store

    sub = ShapeSyncSubscriber(config=app_config, client_factory=factory)
    sub.init()
    return sub


@pytest.fixture
def products_point():
    """Factory for data points of the Test.Products entity."""

    def make(action=Action.UPSERT, keys=("ID",), properties=None, data=None, meta=None, friendly=None):
        if properties is None:
            properties = ("ID:integer", "Name:string", "Price:float")
        return DataPoint(
            source="Test",
            entity="Products",
            action=action,
            shape=DeclaredShape(
                key_names=tuple(keys),
                properties=tuple(properties),
                friendly_names=dict(friendly or {}),
            ),
            data=dict(data or {}),
            meta=dict(meta or {}),
        )

    return make
