# ==============================================
# UpsertSynthesizer
# ==============================================
#
# PURPOSE:
#   Render the parameterized INSERT ... ON DUPLICATE KEY UPDATE for
#   a known shape, and turn each data point into the matching
#   ordered parameter list.
#
# HOW IT IS SPLIT:
#   render(shape) -> RenderCache
#       Done once, when the registry commits a shape. Produces the
#       SQL text and the parameter plan: one ParameterSpec per data
#       column (sorted by name) followed by publisher, publishedAt,
#       shapeVersion. The plan order IS the column order in the SQL.
#
#   parameters(point, cache) -> list
#       Done per data point. Reads each slot of the plan out of the
#       point's data / meta and coerces it to its column type.
#
# METADATA DEFAULTS:
# ------------------
#   publisher     → "UNKNOWN"
#   publishedAt   → now, UTC
#   shapeVersion  → "UNKNOWN"
#
# ==============================================

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from shapesync.schema.coercion import format_value
from shapesync.schema.identifiers import quote
from shapesync.schema.shape import DataPoint, KnownShape, ParameterSpec, RenderCache, Shape
from shapesync.sql.model import BOUND_METADATA_COLUMNS, PUBLISHED_AT, build_table_model

logger = logging.getLogger(__name__)

# PyMySQL uses the "format" paramstyle
PLACEHOLDER = "%s"

UNKNOWN = "UNKNOWN"

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class UpsertSynthesizer:
    """Builds upsert SQL + parameter plans, and binds data points to them."""

    def render(self, shape: Shape) -> RenderCache:
        """
        Render the upsert statement and its parameter plan for a shape.

        Args:
            shape: Committed shape

        Returns:
            RenderCache to store on the KnownShape
        """
        model = build_table_model(
            name=shape.entity_key,
            properties=shape.property_types(),
            keys=shape.key_names,
        )

        plan = [
            ParameterSpec(
                column_name=c.name,
                sql_type=c.sql_type,
                is_metadata=False,
                source_name=c.source_name,
            )
            for c in model.columns
        ]
        plan += [
            ParameterSpec(
                column_name=m.name,
                sql_type=m.sql_type,
                is_metadata=True,
                source_name=m.name,
            )
            for m in BOUND_METADATA_COLUMNS
        ]

        column_list = ", ".join(quote(c.name) for c in model.columns)
        metadata_list = ", ".join(quote(m.name) for m in BOUND_METADATA_COLUMNS)
        if column_list:
            column_list += ", "
        placeholders = ", ".join([PLACEHOLDER] * len(plan))

        updates = [
            f"\t\t{quote(c.name)} = VALUES({quote(c.name)})"
            for c in model.non_key_columns
        ]
        updates += [
            f"\t\t{quote(m.name)} = VALUES({quote(m.name)})"
            for m in BOUND_METADATA_COLUMNS
        ]

        sql = (
            f"INSERT INTO {quote(model.name)} ({column_list}{metadata_list})\n"
            f"\tVALUES ({placeholders})\n"
            f"\tON DUPLICATE KEY UPDATE\n"
            + ",\n".join(updates)
            + ";"
        )

        logger.debug("Rendered upsert for %s:\n%s", shape.entity_key, sql)
        return RenderCache(upsert_sql=sql, parameter_plan=tuple(plan))

    def parameters(
        self,
        point: DataPoint,
        cache: RenderCache,
        now: Optional[datetime] = None,
    ) -> List[Any]:
        """
        Bind a data point to a parameter plan.

        Args:
            point: Data point being upserted
            cache: Render cache of the point's known shape
            now: Clock override for the publishedAt default

        Returns:
            Coerced parameters, in plan order
        """
        params = []
        for spec in cache.parameter_plan:
            if spec.is_metadata:
                value = point.meta.get(spec.source_name)
                if value is None:
                    value = self._metadata_default(spec, now)
            else:
                value = point.data.get(spec.source_name)
            params.append(format_value(spec.sql_type, value))
        return params

    def synthesize(self, point: DataPoint, known: KnownShape) -> Tuple[str, List[Any]]:
        """Statement text and parameters for one data point."""
        cache = known.render_cache
        return cache.upsert_sql, self.parameters(point, cache)

    @staticmethod
    def _metadata_default(spec: ParameterSpec, now: Optional[datetime]) -> str:
        if spec.column_name == PUBLISHED_AT.name:
            now = now or datetime.now(timezone.utc)
            return now.astimezone(timezone.utc).strftime(RFC3339_FORMAT)
        return UNKNOWN
