# ==============================================
# ShapeRegistry
# ==============================================
#
# PURPOSE:
#   Remember, per entity key, the last shape whose DDL went
#   through, together with its rendered upsert (RenderCache).
#
# WHY THIS CLASS EXISTS:
#   Every data point asks "do we know this shape?". Answering from
#   memory keeps DDL off the hot path, and caching the rendered
#   upsert means repeat records only pay for value coercion.
#
# CLASS: ShapeRegistry
# --------------------
#   Shared by every record handler.
#
#   Methods:
#   --------
#   - lookup(entity_key) -> (KnownShape | None, bool)
#   - find_compatible(entity_key, declared) -> KnownShape | None
#       Known shape only if it already covers the declared shape.
#   - analyze(entity_key, declared) -> ShapeDelta
#   - apply_delta(delta) -> KnownShape
#       Commit after the DDL succeeded; re-renders the upsert.
#   - list_all_shapes() -> list[Shape]
#   - migration_lock(entity_key) -> context manager
#       Serializes lookup → analyze → DDL → apply_delta per entity.
#   - from_shapes(shapes) (classmethod)
#       Bootstrap from the live schema.
#
#   Concurrency:
#   ------------
#   _lock guards the two dicts and is only held for dict access.
#   KnownShape objects are replaced, never mutated, so a reader
#   holding one keeps a consistent shape + render cache.
#
# ==============================================

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from shapesync.schema.analyzer import ShapeAnalyzer
from shapesync.schema.shape import DeclaredShape, KnownShape, Property, Shape, ShapeDelta
from shapesync.sql.upsert import UpsertSynthesizer

logger = logging.getLogger(__name__)


class ShapeRegistry:
    """In-memory registry of committed shapes, safe to share between threads."""

    def __init__(
        self,
        analyzer: Optional[ShapeAnalyzer] = None,
        upsert_synthesizer: Optional[UpsertSynthesizer] = None,
    ):
        self._analyzer = analyzer or ShapeAnalyzer()
        self._upserts = upsert_synthesizer or UpsertSynthesizer()
        self._shapes: Dict[str, KnownShape] = {}
        self._migration_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_shapes(cls, shapes: Iterable[Shape], **kwargs) -> "ShapeRegistry":
        registry = cls(**kwargs)
        for shape in shapes:
            registry._commit(shape)
        logger.info("Registry loaded with %d shapes", len(registry))
        return registry

    def __len__(self) -> int:
        with self._lock:
            return len(self._shapes)

    def lookup(self, entity_key: str) -> Tuple[Optional[KnownShape], bool]:
        with self._lock:
            known = self._shapes.get(entity_key)
        return known, known is not None

    def find_compatible(self, entity_key: str, declared: DeclaredShape) -> Optional[KnownShape]:
        """The known shape, if it already has every declared property and key."""
        known, found = self.lookup(entity_key)
        if found and known.shape.covers(declared):
            return known
        return None

    def analyze(self, entity_key: str, declared: DeclaredShape) -> ShapeDelta:
        known, _ = self.lookup(entity_key)
        previous = known.shape if known is not None else None
        return self._analyzer.analyze(entity_key, declared, previous)

    def apply_delta(self, delta: ShapeDelta) -> KnownShape:
        """
        Commit a delta whose DDL has been executed.

        Args:
            delta: The delta that was applied to the store

        Returns:
            The new KnownShape with a freshly rendered upsert
        """
        properties = {
            name: Property(name=name, type=type_)
            for name, type_ in delta.full_property_set.items()
        }
        shape = Shape(
            entity_key=delta.entity_key,
            key_names=list(delta.new_keys),
            properties=properties,
            friendly_names=dict(delta.friendly_name_map),
        )
        known = self._commit(shape)
        logger.info(
            "Committed shape %s (%d properties, keys %s)",
            shape.entity_key, len(properties), shape.key_names,
        )
        return known

    def list_all_shapes(self) -> List[Shape]:
        with self._lock:
            return [known.shape for known in self._shapes.values()]

    @contextmanager
    def migration_lock(self, entity_key: str) -> Iterator[None]:
        """Hold the per-entity lock for a whole analyze → DDL → commit sequence."""
        with self._lock:
            lock = self._migration_locks.setdefault(entity_key, threading.Lock())
        with lock:
            yield

    def _commit(self, shape: Shape) -> KnownShape:
        known = KnownShape(shape=shape, render_cache=self._upserts.render(shape))
        with self._lock:
            self._shapes[shape.entity_key] = known
        return known
