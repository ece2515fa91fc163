# ==============================================
# Value Coercion
# ==============================================
#
# PURPOSE:
#   Turn a value taken from a data point into the form its
#   column expects before it is bound as a query parameter.
#
# RULES:
# ------
#   DATETIME + RFC3339 string  → "YYYY-MM-DD HH:MM:SS" in UTC
#   DATETIME + anything else   → unchanged
#   TEXT                       → unchanged
#   VARCHAR(n) + string        → first n characters (n defaults to 255
#                                 when the size can't be read)
#   everything else            → unchanged
#
#   format_value never raises. A value that can't be coerced is
#   bound as-is and the database gets the final word.
#
# ==============================================

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

MYSQL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_VARCHAR_SIZE = 255

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.\d+)?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)


def parse_rfc3339(value: str) -> Optional[datetime]:
    """Parse an RFC3339 timestamp into an aware datetime, or None."""
    match = _RFC3339.match(value)
    if match is None:
        return None

    year, month, day, hour, minute, second = (int(g) for g in match.group(1, 2, 3, 4, 5, 6))
    if match.group(7):
        tz = timezone.utc
    else:
        offset = timedelta(hours=int(match.group(9)), minutes=int(match.group(10)))
        if match.group(8) == "-":
            offset = -offset
        try:
            tz = timezone(offset)
        except ValueError:
            return None

    try:
        return datetime(year, month, day, hour, minute, second, tzinfo=tz)
    except ValueError:
        # 2017-02-30 and friends
        return None


def varchar_size(sql_type: str) -> int:
    """Read n out of "VARCHAR(n)"."""
    size = sql_type[len("VARCHAR("):].rstrip(")")
    try:
        n = int(size)
    except ValueError:
        return DEFAULT_VARCHAR_SIZE
    return n if n >= 0 else DEFAULT_VARCHAR_SIZE


def format_value(sql_type: str, value: Any) -> Any:
    """
    Coerce a value for binding against a column of the given type.

    Args:
        sql_type: Column type as rendered in DDL, e.g. "VARCHAR(255)"
        value: Raw value from the data point

    Returns:
        The coerced value, or the original value when no rule applies
    """
    if sql_type == "DATETIME":
        if isinstance(value, str):
            parsed = parse_rfc3339(value)
            if parsed is not None:
                return parsed.astimezone(timezone.utc).strftime(MYSQL_TIME_FORMAT)
        return value

    if sql_type == "TEXT":
        return value

    if sql_type.startswith("VARCHAR(") and isinstance(value, str):
        size = varchar_size(sql_type)
        if len(value) > size:
            return value[:size]

    return value
