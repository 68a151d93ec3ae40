"""
Database compatibility helpers for SQLite and PostgreSQL.
"""
from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import ARRAY


# TEXT[] on PostgreSQL, JSON everywhere else. Values are plain list[str].
StringList = JSON().with_variant(ARRAY(String), "postgresql")

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so user input matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def prefix_pattern(value: str) -> str:
    """LIKE pattern matching strings that start with ``value``."""
    return f"{escape_like(value)}%"


def starts_with_ci(column, value: str):
    """Case-insensitive prefix filter (ILIKE on PostgreSQL, lower() LIKE on SQLite)."""
    return column.ilike(prefix_pattern(value), escape=LIKE_ESCAPE)
