# ==============================================
# Identifier Sanitizing
# ==============================================
#
# PURPOSE:
#   Table, view and column names are interpolated straight into
#   statement text (identifiers can't be bound as parameters), so
#   every one of them goes through sanitize() first.
#
#   Kept:    A-Z a-z 0-9 _ - . and space
#   Removed: everything else, backticks included
#
# ==============================================

import re
from typing import Iterable

_UNSAFE = re.compile(r"[^A-Za-z0-9_\-. ]|`")


def sanitize(name: str) -> str:
    """Strip every character that isn't safe inside a quoted identifier."""
    return _UNSAFE.sub("", name)


def quote(name: str) -> str:
    """Sanitize and wrap in backticks: quote("a`b") == "`ab`"."""
    return f"`{sanitize(name)}`"


def quote_all(names: Iterable[str]) -> str:
    return ", ".join(quote(n) for n in names)
