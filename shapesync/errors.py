# ==============================================
# Errors
# ==============================================
#
# PURPOSE:
#   One exception hierarchy for everything the subscriber can
#   surface to its caller. Driver exceptions are translated into
#   these at the storage boundary so callers never import pymysql.
#
# CLASSES:
# --------
# - ShapeSyncError        → base class
# - ConfigurationError    → missing / invalid connection parameters
# - ConnectivityError     → store unreachable or not initialized
# - MigrationError        → DDL failed (carries .statement)
# - UpsertError           → DML failed (carries .statement, .parameters)
# - ProtocolError         → caller broke the record sequencing contract
#
# ==============================================

from typing import Any, Optional, Sequence


class ShapeSyncError(Exception):
    """Base class for all shapesync errors."""


class ConfigurationError(ShapeSyncError):
    """Connection settings are missing or invalid. Not retried."""


class ConnectivityError(ShapeSyncError):
    """The store could not be reached, or no connection is open."""


class MigrationError(ShapeSyncError):
    """
    A schema statement failed.

    The shape is not committed to the registry, so the next record
    for the same entity runs analysis and DDL again.
    """

    def __init__(self, message: str, statement: str):
        super().__init__(message)
        self.statement = statement

    def __str__(self) -> str:
        return f"{self.args[0]}\nstatement:\n{self.statement}"


class UpsertError(ShapeSyncError):
    """An upsert failed. The committed shape is unaffected."""

    def __init__(self, message: str, statement: str, parameters: Optional[Sequence[Any]] = None):
        super().__init__(message)
        self.statement = statement
        self.parameters = list(parameters or [])

    def __str__(self) -> str:
        return f"{self.args[0]}\nstatement:\n{self.statement}\nparameters: {self.parameters!r}"


class ProtocolError(ShapeSyncError):
    """A data point arrived out of order or could not be understood."""
