# ==============================================
# Type Mapping (logical ⇄ SQL)
# ==============================================
#
# PURPOSE:
#   Translate the logical property types carried by data point
#   shapes into MySQL column types, and back again when the
#   registry is rebuilt from the columns of a live database.
#
# FUNCTIONS:
# ----------
# - to_sql_type(logical_type: str, is_key: bool) -> str
#     Total: unknown logical types fall through to VARCHAR.
#     Keys get VARCHAR(255) so they fit in a primary key index.
#
# - from_sql_type(sql_type: str) -> str
#     "VARCHAR(255)" → "string", "int(10) unsigned" → "integer", ...
#
# ==============================================

# Logical types a shape may declare
DATE = "date"
INTEGER = "integer"
FLOAT = "float"
BOOL = "bool"
TEXT = "text"
STRING = "string"

LOGICAL_TYPES = (DATE, INTEGER, FLOAT, BOOL, TEXT, STRING)

# SQL column types
SQL_DATETIME = "DATETIME"
SQL_INT = "INT(10)"
SQL_FLOAT = "FLOAT"
SQL_BIT = "BIT"
SQL_TEXT = "TEXT"
SQL_KEY_VARCHAR = "VARCHAR(255)"
SQL_VARCHAR = "VARCHAR(1000)"

_TO_SQL = {
    "date": SQL_DATETIME,
    "integer": SQL_INT,
    "int": SQL_INT,
    "float": SQL_FLOAT,
    "decimal": SQL_FLOAT,
    "double": SQL_FLOAT,
    "bool": SQL_BIT,
    "text": SQL_TEXT,
}

_FROM_SQL = {
    "datetime": DATE,
    "date": DATE,
    "time": DATE,
    "smalldatetime": DATE,
    "bigint": INTEGER,
    "int": INTEGER,
    "smallint": INTEGER,
    "tinyint": INTEGER,
    "decimal": FLOAT,
    "float": FLOAT,
    "money": FLOAT,
    "smallmoney": FLOAT,
    "bit": BOOL,
}


def to_sql_type(logical_type: str, is_key: bool = False) -> str:
    """
    Map a logical property type to the column type used in DDL.

    Args:
        logical_type: Type name from a "name:type" property string
        is_key: Whether the column is part of the primary key

    Returns:
        SQL column type, e.g. "INT(10)" or "VARCHAR(1000)"
    """
    sql_type = _TO_SQL.get(logical_type)
    if sql_type is not None:
        return sql_type
    return SQL_KEY_VARCHAR if is_key else SQL_VARCHAR


def from_sql_type(sql_type: str) -> str:
    """Map a column type reported by DESCRIBE back to a logical type."""
    # DESCRIBE reports modifiers after the size, e.g. "int(10) unsigned"
    base = sql_type.split("(", 1)[0].strip().lower().split(" ", 1)[0]
    return _FROM_SQL.get(base, STRING)
