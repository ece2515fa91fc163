# ==============================================
# Shape Model (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes describing the schema a stream of data points
#   carries, what the registry remembers about it, and what
#   changed between the two.
#
# WHY THIS FILE EXISTS:
#   The analyzer, the SQL synthesizers, the registry and the
#   storage bootstrap all speak in these types. Keeping them free
#   of logic (apart from parsing) keeps the imports one-directional.
#
# ENUMS:
# ------
# - Action(Enum): START_PUBLISH, UPSERT, DELETE, END_PUBLISH
#
# CLASSES:
# --------
# - Property        → one named, typed property of a shape
# - DeclaredShape   → the shape as a data point declares it
#                     ("name:type" strings + key names)
# - Shape           → committed schema for one entity key
# - ParameterSpec   → one slot of an upsert parameter plan
# - RenderCache     → upsert SQL + its parameter plan
# - KnownShape      → Shape + RenderCache, owned by the registry
# - ShapeDelta      → analyzer output, consumed once by the DDL step
# - DataPoint       → one inbound record
#
# ==============================================

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from shapesync.errors import ProtocolError
from shapesync.schema.identifiers import sanitize
from shapesync.schema.types import STRING


class Action(Enum):
    """What the sender wants done with a data point."""
    START_PUBLISH = "start-publish"
    UPSERT = "upsert"
    DELETE = "delete"
    END_PUBLISH = "end-publish"


@dataclass(frozen=True)
class Property:
    name: str
    type: str

    def __str__(self) -> str:
        return f"{self.name}:{self.type}"


def parse_property(text: str) -> Property:
    """
    Parse a "name:type" property string.

    The type is everything after the last colon; a string with no
    colon is a string property.
    """
    name, sep, type_ = text.rpartition(":")
    if not sep:
        return Property(name=text, type=STRING)
    return Property(name=name, type=type_.strip().lower() or STRING)


def entity_key(source: str, entity: str) -> str:
    """
    Derive the entity key (also the physical table name).

    "Test", "Products" → "Test.Products"; a missing half is dropped.
    """
    parts = [p for p in (source, entity) if p]
    return sanitize(".".join(parts))


@dataclass(frozen=True)
class DeclaredShape:
    key_names: Tuple[str, ...] = ()
    properties: Tuple[str, ...] = ()
    friendly_names: Mapping[str, str] = field(default_factory=dict)

    def parsed_properties(self) -> Dict[str, Property]:
        """Declared properties by name, in declaration order."""
        parsed: Dict[str, Property] = {}
        for text in self.properties:
            prop = parse_property(text)
            parsed[prop.name] = prop
        return parsed


@dataclass
class Shape:
    """The last committed schema for one entity."""
    entity_key: str
    key_names: List[str] = field(default_factory=list)
    properties: Dict[str, Property] = field(default_factory=dict)
    friendly_names: Dict[str, str] = field(default_factory=dict)

    def property_types(self) -> Dict[str, str]:
        return {name: prop.type for name, prop in self.properties.items()}

    def covers(self, declared: DeclaredShape) -> bool:
        """
        True when every declared property, key and friendly name is
        already part of this shape, i.e. no DDL is needed.
        """
        for name in declared.parsed_properties():
            if name not in self.properties:
                return False
        for key in declared.key_names:
            if key not in self.key_names:
                return False
        for name, friendly in declared.friendly_names.items():
            if self.friendly_names.get(name) != friendly:
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "name": self.entity_key,
            "keys": list(self.key_names),
            "properties": [str(p) for p in self.properties.values()],
            "friendlyNames": dict(self.friendly_names),
        }


@dataclass(frozen=True)
class ParameterSpec:
    """
    One bound parameter of the upsert statement.

    column_name is the sanitized name baked into the SQL text,
    source_name the key to read from the data point (data for
    columns, meta for the metadata slots).
    """
    column_name: str
    sql_type: str
    is_metadata: bool = False
    source_name: str = ""


@dataclass(frozen=True)
class RenderCache:
    upsert_sql: str
    parameter_plan: Tuple[ParameterSpec, ...]


@dataclass
class KnownShape:
    shape: Shape
    render_cache: RenderCache

    @property
    def entity_key(self) -> str:
        return self.shape.entity_key

    @property
    def key_names(self) -> List[str]:
        return self.shape.key_names

    @property
    def properties(self) -> Dict[str, Property]:
        return self.shape.properties


@dataclass
class ShapeDelta:
    """
    What the DDL step has to reconcile.

    full_property_set is the complete current set (known plus newly
    declared), never just the additions; new_keys is the union of
    previous and declared keys.
    """
    entity_key: str
    is_new: bool
    previous_shape: Optional[Shape]
    full_property_set: Dict[str, str]
    new_keys: List[str]
    has_key_changes: bool = False
    friendly_name_map: Dict[str, str] = field(default_factory=dict)


@dataclass
class DataPoint:
    source: str
    entity: str
    action: Action
    shape: DeclaredShape = field(default_factory=DeclaredShape)
    data: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, str] = field(default_factory=dict)

    @property
    def entity_key(self) -> str:
        return entity_key(self.source, self.entity)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "DataPoint":
        """
        Build a DataPoint from its JSON form.

        Raises:
            ProtocolError: unknown action, no source/entity, or a
                field of the wrong type
        """
        if not isinstance(raw, Mapping):
            raise ProtocolError(f"data point must be an object, got {type(raw).__name__}")

        try:
            action = Action(raw.get("action"))
        except ValueError:
            raise ProtocolError(f"unknown data point action {raw.get('action')!r}") from None

        source = str(raw.get("source") or "")
        entity = str(raw.get("entity") or "")
        if not source and not entity:
            raise ProtocolError("data point has neither source nor entity")

        shape = raw.get("shape") or {}
        data = raw.get("data") or {}
        meta = raw.get("meta") or {}
        if not isinstance(shape, Mapping) or not isinstance(data, Mapping) or not isinstance(meta, Mapping):
            raise ProtocolError("data point shape, data and meta must be objects")

        friendly = shape.get("friendlyNames") or {}
        if not isinstance(friendly, Mapping):
            raise ProtocolError("shape friendlyNames must be an object")

        return cls(
            source=source,
            entity=entity,
            action=action,
            shape=DeclaredShape(
                key_names=tuple(str(k) for k in shape.get("keyNames") or ()),
                properties=tuple(str(p) for p in shape.get("properties") or ()),
                friendly_names={str(k): str(v) for k, v in friendly.items()},
            ),
            data=dict(data),
            meta={str(k): str(v) for k, v in meta.items()},
        )
