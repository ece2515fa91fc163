# ==============================================
# DDLSynthesizer
# ==============================================
#
# PURPOSE:
#   Render the schema statements that bring a table in line with
#   a ShapeDelta.
#
# WHY THIS CLASS EXISTS:
#   There is no predefined schema. The first data point for an
#   entity creates its table and a companion view; later data
#   points that bring new properties or keys extend the table.
#   Columns are only ever added, never dropped or retyped.
#
# STATEMENTS:
# -----------
#   New shape:
#     CREATE TABLE IF NOT EXISTS `t` (
#     	`col` TYPE [NOT ]NULL,
#     	... four metadata columns ...
#     	PRIMARY KEY (`k`, ...)          ← only when there are keys
#     );
#     CREATE OR REPLACE VIEW `v` (...) AS SELECT ... FROM `t`;
#
#   Known shape:
#     ALTER TABLE `t`
#     	ADD COLUMN IF NOT EXISTS `col` TYPE [NOT ]NULL
#     	,ADD COLUMN IF NOT EXISTS ...
#     	,DROP PRIMARY KEY               ← only when keys changed
#     	,ADD PRIMARY KEY (`k`, ...);
#     CREATE OR REPLACE VIEW `v` ...    ← picks up the new columns
#
#   Every statement is executed as its own round trip. Both new-shape
#   statements can be replayed, so a migration that failed half way
#   through is retried by running it again.
#
# ==============================================

import logging
from typing import List, Optional

from shapesync.schema.identifiers import quote, quote_all
from shapesync.schema.shape import ShapeDelta
from shapesync.sql.model import METADATA_COLUMNS, TableModel, build_table_model

logger = logging.getLogger(__name__)

INDENT = "\t"


class DDLSynthesizer:
    """Renders CREATE / ALTER / VIEW statements from a ShapeDelta."""

    def render(self, delta: ShapeDelta, view_name: Optional[str] = None) -> List[str]:
        """
        Render every statement needed to apply a delta, in execution order.

        Args:
            delta: Output of ShapeAnalyzer.analyze()
            view_name: Companion view name; no view statement when None

        Returns:
            List of statements, one round trip each
        """
        model = build_table_model(
            name=delta.entity_key,
            properties=delta.full_property_set,
            keys=delta.new_keys,
            friendly_names=delta.friendly_name_map,
            view_name=view_name,
        )

        statements: List[str] = []
        if delta.is_new:
            statements.append(self.render_create_table(model))
            if model.view_name is not None:
                statements.append(self.render_create_view(model))
        else:
            previous_keys = delta.previous_shape.key_names if delta.previous_shape else []
            alter = self.render_alter_table(
                model,
                change_keys=delta.has_key_changes,
                drop_existing_key=bool(previous_keys),
            )
            if alter is not None:
                statements.append(alter)
            if model.view_name is not None:
                statements.append(self.render_create_view(model))

        for statement in statements:
            logger.debug("Rendered DDL for %s:\n%s", delta.entity_key, statement)
        return statements

    def render_create_table(self, model: TableModel) -> str:
        rows = [
            f"{INDENT}{quote(c.name)} {c.sql_type} {_nullability(c.is_key)}"
            for c in model.columns
        ]
        rows += [
            f"{INDENT}{quote(m.name)} {m.sql_type} {m.definition}"
            for m in METADATA_COLUMNS
        ]
        if model.keys:
            rows.append(f"{INDENT}PRIMARY KEY ({quote_all(model.keys)})")

        body = ",\n".join(rows)
        return f"CREATE TABLE IF NOT EXISTS {quote(model.name)} (\n{body}\n);"

    def render_create_view(self, model: TableModel) -> str:
        """
        Render the companion view: every column under its display
        name, followed by the metadata columns.
        """
        if model.view_name is None:
            raise ValueError(f"table model {model.name!r} has no view name")

        metadata = [m.name for m in METADATA_COLUMNS]
        exposed = [v.name for v in model.virtual_columns] + metadata
        selected = [v.from_name for v in model.virtual_columns] + metadata

        exposed_list = ",\n".join(f"{INDENT}{quote(n)}" for n in exposed)
        selected_list = ",\n".join(f"{INDENT}{quote(n)}" for n in selected)
        return (
            f"CREATE OR REPLACE VIEW {quote(model.view_name)} (\n{exposed_list}\n)\n"
            f"AS SELECT\n{selected_list}\n"
            f"FROM {quote(model.name)};"
        )

    def render_alter_table(
        self,
        model: TableModel,
        change_keys: bool = False,
        drop_existing_key: bool = True,
    ) -> Optional[str]:
        """
        Render one ALTER TABLE re-adding every column with IF NOT EXISTS.

        Args:
            model: Table model over the complete property set
            change_keys: Append the primary key clauses
            drop_existing_key: Drop the old primary key before adding the
                new one; a table created without keys has none to drop

        Returns:
            The statement, or None when there is nothing to alter
        """
        clauses = [
            f"ADD COLUMN IF NOT EXISTS {quote(c.name)} {c.sql_type} {_nullability(c.is_key)}"
            for c in model.columns
        ]
        if change_keys and model.keys:
            if drop_existing_key:
                clauses.append("DROP PRIMARY KEY")
            clauses.append(f"ADD PRIMARY KEY ({quote_all(model.keys)})")

        if not clauses:
            return None

        body = f"\n{INDENT},".join(clauses)
        return f"ALTER TABLE {quote(model.name)}\n{INDENT}{body};"


def _nullability(is_key: bool) -> str:
    return "NOT NULL" if is_key else "NULL"
