"""
Workflow service integration (client and result parsing)
"""
from analytics_dashboard.pipeline.workflow.client import (
    RESPONSE_SCHEMA,
    SuperglueClient,
    WorkflowBuildError,
    WorkflowExecutionError,
)
from analytics_dashboard.pipeline.workflow.results import (
    DEFAULT_QUERY_LABEL,
    WorkflowEmpty,
    WorkflowFailed,
    WorkflowOutcome,
    WorkflowSucceeded,
    WorkflowUnrecognized,
    extract_sql,
    parse_workflow_result,
)

__all__ = [
    "RESPONSE_SCHEMA",
    "SuperglueClient",
    "WorkflowBuildError",
    "WorkflowExecutionError",
    "DEFAULT_QUERY_LABEL",
    "WorkflowEmpty",
    "WorkflowFailed",
    "WorkflowOutcome",
    "WorkflowSucceeded",
    "WorkflowUnrecognized",
    "extract_sql",
    "parse_workflow_result",
]
