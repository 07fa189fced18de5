"""
Workflow Results
Classifies the loosely-shaped execution result into one explicit variant
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LABEL = "Generated SQL query"


@dataclass
class WorkflowSucceeded:
    """Result data in the requested {data, metadata, visualization} shape"""
    query: str
    rows: List[Dict[str, Any]]
    metadata: Dict[str, Any] = field(default_factory=dict)
    visualization: Dict[str, Any] = field(default_factory=dict)

    @property
    def reported_execution_time(self) -> Optional[int]:
        value = self.metadata.get("executionTime")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
        return None


@dataclass
class WorkflowUnrecognized:
    """Successful run whose data did not match the requested shape"""
    payload: Any


@dataclass
class WorkflowFailed:
    error: str


@dataclass
class WorkflowEmpty:
    """Successful run (or no result at all) without data"""


WorkflowOutcome = Union[WorkflowSucceeded, WorkflowUnrecognized, WorkflowFailed, WorkflowEmpty]


def extract_sql(result: Dict[str, Any]) -> Optional[str]:
    """
    SQL of the first workflow step whose request body mentions SELECT

    JSON bodies contribute their ``query`` field; other bodies are used as-is.
    """
    config = result.get("config") or {}
    for step in config.get("steps") or []:
        body = ((step or {}).get("apiConfig") or {}).get("body")
        if not isinstance(body, str) or "select" not in body.lower():
            continue
        try:
            parsed = json.loads(body)
        except ValueError:
            return body
        if isinstance(parsed, dict) and parsed.get("query"):
            return str(parsed["query"])
        return body
    return None


def _is_row_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(row, dict) for row in value)


def parse_workflow_result(result: Optional[Dict[str, Any]]) -> WorkflowOutcome:
    """
    Args:
        result: Raw executeWorkflow payload ({success, data, error, config})

    Returns:
        Exactly one WorkflowOutcome variant
    """
    if not result:
        return WorkflowEmpty()

    if not result.get("success"):
        return WorkflowFailed(error=result.get("error") or "Unknown error")

    data = result.get("data")
    if not data:
        return WorkflowEmpty()

    if isinstance(data, dict):
        rows = data.get("data")
        metadata = data.get("metadata")
        visualization = data.get("visualization")
        if (
            (rows is None or _is_row_list(rows))
            and (metadata is None or isinstance(metadata, dict))
            and (visualization is None or isinstance(visualization, dict))
        ):
            query = extract_sql(result)
            if query is None and isinstance(data.get("query"), str):
                query = data["query"]
            return WorkflowSucceeded(
                query=query or DEFAULT_QUERY_LABEL,
                rows=rows or [],
                metadata=metadata or {},
                visualization=visualization or {},
            )

    logger.warning(f"Unrecognized workflow data shape: {type(data).__name__}")
    return WorkflowUnrecognized(payload=data)
