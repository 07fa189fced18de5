"""
SQL utilities (protection, execution backends)
"""
from analytics_dashboard.pipeline.sql.protector import (
    DANGEROUS_PATTERNS,
    find_dangerous_pattern,
    is_dangerous,
)
from analytics_dashboard.pipeline.sql.executor import (
    BackendResult,
    QueryBackend,
    ReadOnlySqlBackend,
    SampleDataBackend,
    SimulatedExecutionError,
    execute_readonly_on_conn,
)

__all__ = [
    "DANGEROUS_PATTERNS",
    "find_dangerous_pattern",
    "is_dangerous",
    "BackendResult",
    "QueryBackend",
    "ReadOnlySqlBackend",
    "SampleDataBackend",
    "SimulatedExecutionError",
    "execute_readonly_on_conn",
]
