# ==============================================
# Table / Column Model
# ==============================================
#
# PURPOSE:
#   The intermediate model both synthesizers render from. Built
#   fresh for every synthesis call and never cached.
#
# CLASSES:
# --------
# - ColumnModel (dataclass)
#     name: str          → sanitized physical column name
#     sql_type: str      → from to_sql_type(logical, is_key)
#     is_key: bool
#     source_name: str   → property name as the data point spells it
#
# - VirtualColumn (dataclass)
#     name: str          → display name exposed by the view
#     from_name: str     → physical column it reads
#
# - TableModel (dataclass)
#     name, view_name, columns (sorted by name), keys,
#     virtual_columns; non_key_columns derived
#
# - MetadataColumn (namedtuple) + METADATA_COLUMNS
#     The four system columns every managed table carries.
#
# FUNCTION:
# ---------
# - build_table_model(name, properties, keys, friendly_names, view_name)
#     Raises ProtocolError when two columns (or two view columns)
#     end up with the same name once sanitized, or when one takes the
#     name of a metadata column. MySQL compares column names without
#     regard to case, so neither does this check.
#
# ==============================================

from collections import namedtuple
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence

from shapesync.errors import ProtocolError
from shapesync.schema.identifiers import sanitize
from shapesync.schema.types import to_sql_type

MetadataColumn = namedtuple("MetadataColumn", ["name", "sql_type", "definition", "bound"])

PUBLISHER = MetadataColumn("publisher", "VARCHAR(1000)", "DEFAULT NULL", True)
PUBLISHED_AT = MetadataColumn("publishedAt", "DATETIME", "DEFAULT NULL", True)
CREATED_AT = MetadataColumn("createdAt", "DATETIME", "DEFAULT CURRENT_TIMESTAMP", False)
SHAPE_VERSION = MetadataColumn("shapeVersion", "VARCHAR(50)", "DEFAULT NULL", True)

# Order matters: it is the order of the CREATE TABLE / view column lists
METADATA_COLUMNS = (PUBLISHER, PUBLISHED_AT, CREATED_AT, SHAPE_VERSION)

# Metadata columns the upsert binds (createdAt is filled in by the database)
BOUND_METADATA_COLUMNS = tuple(c for c in METADATA_COLUMNS if c.bound)

METADATA_COLUMN_NAMES = frozenset(c.name for c in METADATA_COLUMNS)


@dataclass
class ColumnModel:
    name: str
    sql_type: str
    is_key: bool = False
    source_name: str = ""


@dataclass
class VirtualColumn:
    name: str
    from_name: str


@dataclass
class TableModel:
    name: str
    columns: List[ColumnModel] = field(default_factory=list)
    keys: List[str] = field(default_factory=list)
    virtual_columns: List[VirtualColumn] = field(default_factory=list)
    view_name: Optional[str] = None

    @property
    def non_key_columns(self) -> List[ColumnModel]:
        return [c for c in self.columns if not c.is_key]


def build_table_model(
    name: str,
    properties: Mapping[str, str],
    keys: Sequence[str] = (),
    friendly_names: Optional[Mapping[str, str]] = None,
    view_name: Optional[str] = None,
) -> TableModel:
    """
    Build the model for one table.

    Args:
        name: Table name (entity key)
        properties: Property name → logical type
        keys: Key property names, in primary key order
        friendly_names: Property name → display name for the view
        view_name: Companion view name; no virtual columns without it

    Returns:
        TableModel with columns sorted by physical name

    Raises:
        ProtocolError: duplicate column or view column names
    """
    friendly_names = friendly_names or {}
    key_set = set(keys)

    columns = [
        ColumnModel(
            name=sanitize(prop_name),
            sql_type=to_sql_type(logical_type, prop_name in key_set),
            is_key=prop_name in key_set,
            source_name=prop_name,
        )
        for prop_name, logical_type in properties.items()
    ]
    # Rendering order is by physical name, whatever order properties arrived in
    columns.sort(key=lambda c: c.name)
    _check_unique(name, "column", ((c.source_name, c.name) for c in columns))

    virtual_columns: List[VirtualColumn] = []
    if view_name is not None:
        virtual_columns = [
            VirtualColumn(
                name=sanitize(friendly_names.get(c.source_name, c.source_name)),
                from_name=c.name,
            )
            for c in columns
        ]
        _check_unique(
            name, "view column",
            ((friendly_names.get(c.source_name, c.source_name), v.name)
             for c, v in zip(columns, virtual_columns)),
        )

    return TableModel(
        name=sanitize(name),
        columns=columns,
        keys=[sanitize(k) for k in keys],
        virtual_columns=virtual_columns,
        view_name=sanitize(view_name) if view_name is not None else None,
    )


def _check_unique(table: str, kind: str, names: Iterable) -> None:
    # names: (declared name, sanitized name) pairs
    seen = {m.name.lower(): m.name for m in METADATA_COLUMNS}
    for declared, sanitized in names:
        if not sanitized:
            raise ProtocolError(f"{kind} {declared!r} of {table!r} has no usable characters")
        folded = sanitized.lower()
        if folded in seen:
            raise ProtocolError(
                f"{kind} {declared!r} of {table!r} maps to {sanitized!r}, "
                f"which is already taken by {seen[folded]!r}"
            )
        seen[folded] = declared
