"""Helpers for classifying driver errors."""

from sqlalchemy.exc import DBAPIError

UNIQUE_VIOLATION = "23505"
UNDEFINED_FUNCTION = "42883"
INSUFFICIENT_PRIVILEGE = "42501"


def sqlstate(exc: DBAPIError) -> str | None:
    """SQLSTATE reported by the driver, when it exposes one."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return str(code) if code else None


def is_unique_violation(exc: DBAPIError) -> bool:
    if sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    return "unique" in str(exc.orig).lower()


def mentions_column(exc: DBAPIError, column: str) -> bool:
    """Whether the driver message names ``column`` (constraint or column name)."""
    return column in str(exc.orig)
