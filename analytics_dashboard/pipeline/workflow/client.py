"""
Workflow service client (Superglue GraphQL API)

Builds a workflow from a natural-language instruction, then executes it.
The service owns schema discovery and the actual database access.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from analytics_dashboard.core.config import settings
from analytics_dashboard.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class WorkflowBuildError(UpstreamError):
    """The service could not turn the instruction into a workflow"""


class WorkflowExecutionError(UpstreamError):
    """A built workflow could not be executed"""


BUILD_WORKFLOW_MUTATION = """
mutation BuildWorkflow($instruction: String!, $payload: JSON, $integrationIds: [ID!], $responseSchema: JSONSchema) {
  buildWorkflow(instruction: $instruction, payload: $payload, integrationIds: $integrationIds, responseSchema: $responseSchema) {
    id
    instruction
    integrationIds
    responseSchema
    finalTransform
    steps {
      id
      integrationId
      executionMode
      apiConfig { id instruction urlHost urlPath method body }
    }
  }
}
"""

EXECUTE_WORKFLOW_MUTATION = """
mutation ExecuteWorkflow($input: WorkflowInputRequest!, $payload: JSON, $options: RequestOptions) {
  executeWorkflow(input: $input, payload: $payload, options: $options) {
    id
    success
    data
    error
    startedAt
    completedAt
    config {
      id
      steps { id apiConfig { id body } }
    }
  }
}
"""

# Shape the workflow result is asked to take
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "query": {"type": "string"},
        "data": {"type": "array"},
        "metadata": {
            "type": "object",
            "properties": {
                "rowCount": {"type": "number"},
                "columns": {"type": "array"},
                "dataTypes": {"type": "array"},
                "executionTime": {"type": "number"},
            },
        },
        "visualization": {
            "type": "object",
            "properties": {
                "suggestedCharts": {"type": "array"},
                "chartConfig": {"type": "object"},
            },
        },
    },
}


class SuperglueClient:
    """
    Thin async GraphQL client for the workflow service

    Args:
        api_key: Service API key (sent as a bearer token)
        endpoint: GraphQL endpoint URL
        integration_ids: Integrations the built workflow may use
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        endpoint: Optional[str] = None,
        integration_ids: Optional[List[str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint or settings.SUPERGLUE_ENDPOINT
        self.integration_ids = integration_ids if integration_ids is not None else settings.SUPERGLUE_INTEGRATION_IDS
        self.timeout = timeout or settings.SUPERGLUE_TIMEOUT
        self.transport = transport

    async def _post(self, query: str, variables: Dict[str, Any], field: str, error_cls: type) -> Any:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.endpoint, headers=headers, json={"query": query, "variables": variables}
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            raise error_cls(f"{field} request failed: {e}") from e
        except ValueError as e:
            raise error_cls(f"{field} returned invalid JSON") from e

        if body.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in body["errors"])
            raise error_cls(messages)

        return (body.get("data") or {}).get(field)

    async def build_workflow(self, instruction: str, response_schema: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        variables = {
            "instruction": instruction,
            "payload": {},
            "integrationIds": self.integration_ids,
            "responseSchema": response_schema or RESPONSE_SCHEMA,
        }
        workflow = await self._post(BUILD_WORKFLOW_MUTATION, variables, "buildWorkflow", WorkflowBuildError)
        if not isinstance(workflow, dict):
            raise WorkflowBuildError("buildWorkflow returned no workflow")
        logger.info(f"Built workflow '{workflow.get('id')}' with {len(workflow.get('steps') or [])} step(s)")
        return workflow

    async def execute_workflow(self, workflow: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        variables = {
            "input": {"workflow": workflow},
            "payload": {},
            "options": {"verbose": True},
        }
        return await self._post(EXECUTE_WORKFLOW_MUTATION, variables, "executeWorkflow", WorkflowExecutionError)

    async def run(self, instruction: str) -> Optional[Dict[str, Any]]:
        """Build, then execute. Returns the raw execution result"""
        workflow = await self.build_workflow(instruction)
        return await self.execute_workflow(workflow)
