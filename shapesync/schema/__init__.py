# ==============================================
# SCHEMA: shapes and everything about one value
# ==============================================
#
# Modules:
# --------
# - types.py        → logical type ⇄ SQL column type
# - coercion.py     → value formatting / truncation per column type
# - identifiers.py  → identifier sanitizing and quoting
# - shape.py        → Shape, KnownShape, ShapeDelta, DataPoint, ...
# - analyzer.py     → ShapeAnalyzer (declared vs. committed shape)
#
# ==============================================

from .analyzer import ShapeAnalyzer
from .coercion import format_value
from .identifiers import quote, sanitize
from .shape import (
    Action,
    DataPoint,
    DeclaredShape,
    KnownShape,
    ParameterSpec,
    Property,
    RenderCache,
    Shape,
    ShapeDelta,
)
from .types import from_sql_type, to_sql_type

__all__ = [
    "Action",
    "DataPoint",
    "DeclaredShape",
    "KnownShape",
    "ParameterSpec",
    "Property",
    "RenderCache",
    "Shape",
    "ShapeAnalyzer",
    "ShapeDelta",
    "format_value",
    "from_sql_type",
    "quote",
    "sanitize",
    "to_sql_type",
]
