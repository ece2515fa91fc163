# ==============================================
# ShapeAnalyzer
# ==============================================
#
# PURPOSE:
#   Compare the shape a data point declares with the shape the
#   registry last committed for the same entity and describe what
#   the database has to catch up on.
#
# WHY THIS CLASS EXISTS:
#   Data points carry their schema with them. The first one for an
#   entity means CREATE; a later one that brings new properties or
#   keys means ALTER. The analyzer decides which, and always hands
#   the DDL step the COMPLETE property set so the ALTER it renders
#   is a full, replayable resync rather than a minimal diff.
#
# CLASS: ShapeAnalyzer
# --------------------
#   Stateless.
#
#   Methods:
#   --------
#   - analyze(entity_key, declared, previous) -> ShapeDelta
#
#   Rules:
#   ------
#   no previous shape:
#       is_new=True, full set = declared properties,
#       new_keys = declared keys
#   previous shape:
#       is_new=False, full set = previous ∪ declared
#       (a known property keeps its committed type),
#       new_keys = previous keys ∪ declared keys (previous first),
#       has_key_changes = the union differs from previous keys
#   both:
#       a key that isn't a declared property becomes a string
#       property so PRIMARY KEY never names a missing column
#
# ==============================================

import logging
from typing import Dict, List, Optional

from shapesync.schema.shape import DeclaredShape, Shape, ShapeDelta
from shapesync.schema.types import STRING

logger = logging.getLogger(__name__)


class ShapeAnalyzer:
    """Turns a declared shape plus the last committed shape into a ShapeDelta."""

    def analyze(
        self,
        entity_key: str,
        declared: DeclaredShape,
        previous: Optional[Shape] = None,
    ) -> ShapeDelta:
        """
        Compute the delta for one entity.

        Args:
            entity_key: Entity the data point belongs to
            declared: Shape carried by the data point
            previous: Last committed shape, or None on first sighting

        Returns:
            ShapeDelta for the DDL synthesizer
        """
        declared_types = {
            name: prop.type for name, prop in declared.parsed_properties().items()
        }

        if previous is None:
            new_keys = _ordered_union([], declared.key_names)
            full = dict(declared_types)
            _add_key_columns(full, new_keys)
            friendly = {
                name: display
                for name, display in declared.friendly_names.items()
                if name in full
            }
            logger.debug("New shape %s: %d properties, keys %s", entity_key, len(full), new_keys)
            return ShapeDelta(
                entity_key=entity_key,
                is_new=True,
                previous_shape=None,
                full_property_set=full,
                new_keys=new_keys,
                has_key_changes=False,
                friendly_name_map=friendly,
            )

        full = previous.property_types()
        for name, type_ in declared_types.items():
            # Committed columns are never retyped
            full.setdefault(name, type_)

        new_keys = _ordered_union(previous.key_names, declared.key_names)
        _add_key_columns(full, new_keys)
        has_key_changes = set(new_keys) != set(previous.key_names)

        friendly = dict(previous.friendly_names)
        for name, display in declared.friendly_names.items():
            if name in full:
                friendly[name] = display

        added = [name for name in full if name not in previous.properties]
        logger.debug(
            "Shape %s changed: added %s, keys %s (changed=%s)",
            entity_key, added, new_keys, has_key_changes,
        )

        return ShapeDelta(
            entity_key=entity_key,
            is_new=False,
            previous_shape=previous,
            full_property_set=full,
            new_keys=new_keys,
            has_key_changes=has_key_changes,
            friendly_name_map=friendly,
        )


def _ordered_union(first, second) -> List[str]:
    return list(dict.fromkeys([*first, *second]))


def _add_key_columns(properties: Dict[str, str], keys: List[str]) -> None:
    for key in keys:
        properties.setdefault(key, STRING)
