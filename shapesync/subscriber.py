# ==============================================
# ShapeSyncSubscriber: Orchestrator
# ==============================================
#
# PURPOSE:
#   The class that ties registry, synthesizers and store together.
#   Callers (the CLI, the streaming pipeline, an RPC server) only
#   talk to this class.
#
# HOW A DATA POINT FLOWS:
#
#   data point
#       │
#       ▼
#   ShapeRegistry.find_compatible ── known & covers shape ──┐
#       │ unknown / drifted                                 │
#       ▼                                                   │
#   action must be start-publish (else ProtocolError)       │
#       │                                                   │
#       ▼   ┌── migration_lock(entity_key) ──────────────┐  │
#           │ re-check → analyze → DDLSynthesizer.render │  │
#           │ → execute each statement → apply_delta     │  │
#           └────────────────────────────────────────────┘  │
#       │                                                   │
#       ▼ ◄─────────────────────────────────────────────────┘
#   action == upsert → UpsertSynthesizer.parameters → execute
#
# CLASS: ShapeSyncSubscriber
# --------------------------
#   Handlers:
#   ---------
#   - init(settings) -> HandlerResponse
#   - dispose() -> HandlerResponse
#   - test_connection(settings) -> HandlerResponse
#   - discover_shapes(settings) -> list[Shape]
#   - receive_data_point(point) -> HandlerResponse
#
#   Other:
#   ------
#   - get_status() -> dict
#
# ==============================================

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from shapesync.config import AppConfig, MySQLConfig, get_config
from shapesync.errors import ConnectivityError, ProtocolError, ShapeSyncError
from shapesync.registry.shape_registry import ShapeRegistry
from shapesync.schema.analyzer import ShapeAnalyzer
from shapesync.schema.identifiers import sanitize
from shapesync.schema.shape import Action, DataPoint, KnownShape
from shapesync.sql.ddl import DDLSynthesizer
from shapesync.sql.upsert import UpsertSynthesizer
from shapesync.storage.mysql_client import MySQLClient

logger = logging.getLogger(__name__)

VIEW_SUFFIX = "_VIEW"


@dataclass
class HandlerResponse:
    success: bool
    message: str = ""


class ShapeSyncSubscriber:
    """Keeps a MySQL schema in step with incoming data points and upserts them."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        client_factory: Callable[[MySQLConfig], Any] = MySQLClient,
    ):
        """
        Args:
            config: Used when a handler is called without settings.
                If None, loads from environment on first use.
            client_factory: Builds the store client from a MySQLConfig
        """
        self._config = config
        self._client_factory = client_factory
        self._client = None
        self._analyzer = ShapeAnalyzer()
        self._ddl = DDLSynthesizer()
        self._upserts = UpsertSynthesizer()
        self._registry = ShapeRegistry(self._analyzer, self._upserts)
        self._connect_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._stats = {"received": 0, "migrations": 0, "upserts": 0, "rejected": 0}

    @property
    def registry(self) -> ShapeRegistry:
        return self._registry

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    # ------------------------------------------
    # Lifecycle handlers
    # ------------------------------------------

    def init(self, settings: Optional[Mapping[str, Any]] = None) -> HandlerResponse:
        """
        Connect to the store and rebuild the registry from its tables.

        Args:
            settings: Connection settings; falls back to the app config

        Raises:
            ConfigurationError, ConnectivityError
        """
        info = self._connect(settings)
        return HandlerResponse(success=True, message=info)

    def dispose(self) -> HandlerResponse:
        with self._connect_lock:
            client, self._client = self._client, None
        if client is None:
            return HandlerResponse(success=True, message="Not initialized.")
        client.disconnect()
        return HandlerResponse(success=True, message="Closed connection.")

    def test_connection(self, settings: Optional[Mapping[str, Any]] = None) -> HandlerResponse:
        """Open and close a separate connection with the given settings."""
        try:
            client = self._client_factory(self._mysql_config(settings))
            info = client.connect()
            client.disconnect()
        except ShapeSyncError as e:
            logger.warning("Connection test failed: %s", e)
            return HandlerResponse(success=False, message=str(e))
        return HandlerResponse(success=True, message=info)

    def discover_shapes(self, settings: Optional[Mapping[str, Any]] = None) -> List:
        self._connect(settings)
        return self._registry.list_all_shapes()

    # ------------------------------------------
    # Data points
    # ------------------------------------------

    def receive_data_point(self, point: DataPoint) -> HandlerResponse:
        """
        Make sure the point's table can hold it, then upsert it.

        Raises:
            ConnectivityError: init() hasn't been called
            ProtocolError: unknown shape on a non start-publish point
            MigrationError: a schema statement failed (not committed)
            UpsertError: the upsert failed
        """
        client = self._client
        if client is None:
            raise ConnectivityError("you must call init before sending data points")

        self._count("received")
        key = point.entity_key
        logger.debug("Received %s data point for %s", point.action.value, key)

        known = self._registry.find_compatible(key, point.shape)
        if known is None:
            if point.action is not Action.START_PUBLISH:
                self._count("rejected")
                raise ProtocolError(
                    f"data point shape for {key!r} was incompatible with the shape "
                    f"defined in the start-publish data point for this batch"
                )
            known = self._migrate(client, point)

        if point.action is Action.UPSERT:
            statement, params = self._upserts.synthesize(point, known)
            client.execute_upsert(statement, params)
            self._count("upserts")

        return HandlerResponse(success=True)

    def get_status(self) -> Dict[str, Any]:
        with self._stats_lock:
            status: Dict[str, Any] = dict(self._stats)
        status["initialized"] = self.is_initialized
        status["known_shapes"] = len(self._registry)
        return status

    # ------------------------------------------
    # Internal
    # ------------------------------------------

    def _migrate(self, client, point: DataPoint) -> KnownShape:
        key = point.entity_key
        with self._registry.migration_lock(key):
            # Another thread may have migrated while we waited
            known = self._registry.find_compatible(key, point.shape)
            if known is not None:
                return known

            delta = self._registry.analyze(key, point.shape)
            for statement in self._ddl.render(delta, view_name=self._view_name(point)):
                client.execute_ddl(statement)

            known = self._registry.apply_delta(delta)
            self._count("migrations")
            return known

    def _connect(self, settings: Optional[Mapping[str, Any]]) -> str:
        with self._connect_lock:
            # Already connected: nothing to do
            if self._client is not None:
                return self._client.connection_info

            client = self._client_factory(self._mysql_config(settings))
            info = client.connect()
            try:
                shapes = client.load_shapes()
            except ShapeSyncError:
                client.disconnect()
                raise

            self._registry = ShapeRegistry.from_shapes(
                shapes, analyzer=self._analyzer, upsert_synthesizer=self._upserts
            )
            self._client = client
            return info

    def _mysql_config(self, settings: Optional[Mapping[str, Any]]) -> MySQLConfig:
        if settings:
            return MySQLConfig.from_settings(settings)
        if self._config is None:
            self._config = get_config()
        return self._config.mysql

    def _count(self, name: str) -> None:
        with self._stats_lock:
            self._stats[name] += 1

    @staticmethod
    def _view_name(point: DataPoint) -> str:
        name = point.meta.get("shapeName") or f"{point.entity or point.entity_key}{VIEW_SUFFIX}"
        return sanitize(name)
