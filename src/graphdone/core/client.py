"""GraphQL client for the remote graph service.

The service transmits ``settings``, ``permissions`` and ``shareSettings`` as
JSON-encoded strings. They are decoded and encoded here and nowhere else; the
rest of the core only ever sees structured models.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import RemoteServiceError
from .interfaces import IGraphService
from .schemas import GraphRecord, SyncState

logger = logging.getLogger(__name__)

JSON_FIELDS = ("settings", "permissions", "shareSettings")

GRAPH_FIELDS = """
      id
      name
      description
      type
      status
      parentGraphId
      teamId
      createdBy
      tags
      defaultRole
      depth
      path
      isShared
      nodeCount
      edgeCount
      contributorCount
      lastActivity
      settings
      permissions
      shareSettings
      createdAt
      updatedAt
"""

GET_GRAPHS = f"""
  query GetGraphs {{
    graphs {{{GRAPH_FIELDS}    }}
  }}
"""

GET_GRAPHS_BY_TEAM = f"""
  query GetGraphsByTeam($teamId: String!) {{
    graphs(where: {{ teamId: $teamId }}) {{{GRAPH_FIELDS}    }}
  }}
"""

CREATE_GRAPH = f"""
  mutation CreateGraph($input: GraphCreateInput!) {{
    createGraphs(input: [$input]) {{
      graphs {{{GRAPH_FIELDS}      }}
    }}
  }}
"""

UPDATE_GRAPH = f"""
  mutation UpdateGraph($id: ID!, $input: GraphUpdateInput!) {{
    updateGraphs(where: {{ id: $id }}, update: $input) {{
      graphs {{{GRAPH_FIELDS}      }}
    }}
  }}
"""

DELETE_GRAPH = """
  mutation DeleteGraph($id: ID!) {
    deleteGraphs(where: { id: $id }) {
      nodesDeleted
    }
  }
"""


def decode_json_fields(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Replace JSON-string sub-objects with dicts. Empty or null values are dropped."""
    data = dict(raw)
    for key in JSON_FIELDS:
        value = data.get(key)
        if isinstance(value, str):
            value = json.loads(value) if value.strip() else None
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
    return data


def encode_json_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Serialize structured sub-objects back to JSON strings for the wire."""
    data = dict(payload)
    for key in JSON_FIELDS:
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            data[key] = json.dumps(value)
    return data


def parse_graph(raw: Dict[str, Any]) -> GraphRecord:
    """Build a synced GraphRecord from a raw service object.

    Records stored without a permission block get one owned by their creator.
    """
    data = decode_json_fields(raw)
    data.setdefault("permissions", {"owner": data.get("createdBy") or ""})
    graph = GraphRecord.model_validate(data)
    graph.sync_state = SyncState.SYNCED
    return graph


class GraphQLGraphService(IGraphService):
    """Graph service reached over GraphQL/HTTP."""

    def __init__(
        self,
        api_url: str,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the service client.

        Args:
            api_url: GraphQL endpoint URL
            token: Bearer token sent with every request (optional)
            timeout: Request timeout in seconds, None for no timeout
            client: Pre-built httpx client, used as-is when given
        """
        self.api_url = api_url
        self.token = token
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings) -> GraphQLGraphService:
        return cls(settings.api_url, token=settings.api_token, timeout=settings.request_timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _post(self, client: httpx.AsyncClient, body: Dict[str, Any]) -> httpx.Response:
        response = await client.post(self.api_url, json=body, headers=self._headers())
        response.raise_for_status()
        return response

    async def _execute(
        self,
        operation: str,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object.

        Raises:
            RemoteServiceError: On transport errors, non-2xx responses, GraphQL
                errors, or a body that is not a JSON object.
        """
        body = {"query": query, "variables": variables or {}}
        try:
            if self._client is not None:
                response = await self._post(self._client, body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, body)
            payload = response.json()
        except httpx.HTTPStatusError as e:
            error_detail = e.response.text[:200] if e.response.text else str(e)
            raise RemoteServiceError(
                f"HTTP {e.response.status_code}: {error_detail}",
                operation=operation,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"{operation} request failed: {e}", operation=operation) from e
        except ValueError as e:
            raise RemoteServiceError(f"{operation} returned invalid JSON: {e}", operation=operation) from e

        if not isinstance(payload, dict):
            raise RemoteServiceError(
                f"{operation} returned an unexpected body: {type(payload).__name__}",
                operation=operation,
            )

        if payload.get("errors"):
            messages = "; ".join(
                str(error.get("message", "unknown error")) for error in payload["errors"]
            )
            raise RemoteServiceError(f"{operation} failed: {messages}", operation=operation)

        return payload.get("data") or {}

    def _parse_many(self, operation: str, raw_graphs: List[Dict[str, Any]]) -> List[GraphRecord]:
        try:
            return [parse_graph(raw) for raw in raw_graphs]
        except ValueError as e:
            raise RemoteServiceError(
                f"{operation} returned a malformed graph: {e}", operation=operation
            ) from e

    def _first_graph(self, operation: str, data: Dict[str, Any], key: str) -> GraphRecord:
        graphs = (data.get(key) or {}).get("graphs") or []
        if not graphs:
            raise RemoteServiceError(f"{operation} returned no graph", operation=operation)
        return self._parse_many(operation, graphs[:1])[0]

    async def list_graphs(self, team_id: Optional[str] = None) -> List[GraphRecord]:
        if team_id:
            data = await self._execute("listGraphs", GET_GRAPHS_BY_TEAM, {"teamId": team_id})
        else:
            data = await self._execute("listGraphs", GET_GRAPHS)
        graphs = self._parse_many("listGraphs", data.get("graphs") or [])
        logger.debug(f"Loaded {len(graphs)} graphs from {self.api_url}")
        return graphs

    async def create_graph(self, payload: dict) -> GraphRecord:
        data = await self._execute(
            "createGraph", CREATE_GRAPH, {"input": encode_json_fields(payload)}
        )
        return self._first_graph("createGraph", data, "createGraphs")

    async def update_graph(self, graph_id: str, changes: dict) -> GraphRecord:
        data = await self._execute(
            "updateGraph", UPDATE_GRAPH, {"id": graph_id, "input": encode_json_fields(changes)}
        )
        return self._first_graph("updateGraph", data, "updateGraphs")

    async def delete_graph(self, graph_id: str) -> int:
        data = await self._execute("deleteGraph", DELETE_GRAPH, {"id": graph_id})
        return int((data.get("deleteGraphs") or {}).get("nodesDeleted") or 0)


__all__ = [
    "GraphQLGraphService",
    "decode_json_fields",
    "encode_json_fields",
    "parse_graph",
]
