# ==============================================
# SQL: statement synthesis
# ==============================================
#
# Modules:
# --------
# - model.py   → table / column model, metadata columns
# - ddl.py     → CREATE TABLE / CREATE VIEW / ALTER TABLE
# - upsert.py  → INSERT ... ON DUPLICATE KEY UPDATE + parameter plans
#
# ==============================================

from .ddl import DDLSynthesizer
from .model import METADATA_COLUMNS, TableModel, build_table_model
from .upsert import UpsertSynthesizer

__all__ = [
    "DDLSynthesizer",
    "METADATA_COLUMNS",
    "TableModel",
    "UpsertSynthesizer",
    "build_table_model",
]
