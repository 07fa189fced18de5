"""
SQL Protection
Rejects write/DDL statements before execution
"""
from typing import Optional

# Substring denylist, matched case-insensitively anywhere in the query.
# Column names count too: "created_at" matches "create".
DANGEROUS_PATTERNS = ("drop", "delete", "truncate", "alter", "create", "insert", "update")


def find_dangerous_pattern(sql: str) -> Optional[str]:
    """Return the first denylisted substring found in sql, or None"""
    normalized = sql.lower()
    for pattern in DANGEROUS_PATTERNS:
        if pattern in normalized:
            return pattern
    return None


def is_dangerous(sql: str) -> bool:
    return find_dangerous_pattern(sql) is not None
