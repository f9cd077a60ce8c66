"""Async object-graph client for Linear.

Mirrors the shape of Linear's official SDK: ``issues()`` returns a connection
of ``Issue`` objects whose scalar fields are loaded eagerly while the
``state``, ``assignee`` and ``project`` relations are fetched lazily, one
request per relation, when awaited.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .config import LINEAR_API_URL
from .linear_client import graphql_error_messages

logger = logging.getLogger(__name__)

ISSUES_QUERY = """
query Issues($filter: IssueFilter, $first: Int) {
    issues(filter: $filter, first: $first) {
        nodes {
            id
            identifier
            title
            description
            url
        }
    }
}
"""

RELATIONS = ("state", "assignee", "project")


class LinearSdkError(Exception):
    """Raised for any failed request made through ``LinearSdkClient``."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: str = "",
        body: str = "",
        errors: Optional[list[str]] = None,
        connection_failed: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.errors = errors or []
        self.connection_failed = connection_failed


@dataclass(frozen=True)
class NamedEntity:
    """A related record (workflow state, user, project) reduced to its name."""
    id: Optional[str]
    name: Optional[str]


class Issue:
    """An issue node with lazily-resolved relations."""

    def __init__(self, client: "LinearSdkClient", node: dict):
        self._client = client
        self.id: str = node["id"]
        self.identifier: str = node.get("identifier") or ""
        self.title: str = node.get("title") or ""
        self.description: Optional[str] = node.get("description")
        self.url: str = node.get("url") or ""

    def __repr__(self) -> str:
        return f"Issue({self.identifier!r})"

    async def state(self) -> Optional[NamedEntity]:
        return await self._client.fetch_relation(self.id, "state")

    async def assignee(self) -> Optional[NamedEntity]:
        return await self._client.fetch_relation(self.id, "assignee")

    async def project(self) -> Optional[NamedEntity]:
        return await self._client.fetch_relation(self.id, "project")


@dataclass
class IssueConnection:
    nodes: list[Issue]


class LinearSdkClient:
    """Async Linear client returning live ``Issue`` objects.

    A fresh ``httpx.AsyncClient`` is opened per request; nothing is pooled
    between calls.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = LINEAR_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self._transport = transport

    async def _request(self, query: str, variables: Optional[dict] = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={
                        "Authorization": self.api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            raise LinearSdkError(
                f"Request to Linear failed: {e}", body=str(e), connection_failed=True
            )

        if not response.is_success:
            raise LinearSdkError(
                f"Linear API error {response.status_code}",
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            )

        try:
            result = response.json()
        except ValueError:
            raise LinearSdkError("Linear API returned a non-JSON body", body=response.text)

        if not isinstance(result, dict):
            raise LinearSdkError("Linear API returned an unexpected payload", body=response.text)
        if result.get("errors"):
            messages = graphql_error_messages(result["errors"])
            raise LinearSdkError(", ".join(messages), errors=messages)
        data = result.get("data")
        if not isinstance(data, dict):
            raise LinearSdkError("Linear API response has no data", body=response.text)
        return data

    async def issues(self, issue_filter: Optional[dict] = None, first: int = 50) -> IssueConnection:
        """Query issues, returning nodes with unresolved relations."""
        variables: dict[str, Any] = {"first": first}
        if issue_filter:
            variables["filter"] = issue_filter
        data = await self._request(ISSUES_QUERY, variables)
        try:
            nodes = data["issues"]["nodes"]
            return IssueConnection(nodes=[Issue(self, node) for node in nodes or []])
        except (KeyError, TypeError, AttributeError):
            raise LinearSdkError("Linear API response has no issues.nodes")

    async def fetch_relation(self, issue_id: str, relation: str) -> Optional[NamedEntity]:
        """Load one named relation (state, assignee, project) of an issue."""
        if relation not in RELATIONS:
            raise ValueError(f"Unknown issue relation: {relation}")
        query = f"""
        query IssueRelation($id: String!) {{
            issue(id: $id) {{
                id
                {relation} {{
                    id
                    name
                }}
            }}
        }}
        """
        data = await self._request(query, {"id": issue_id})
        issue = data.get("issue") or {}
        node = issue.get(relation)
        if not node:
            return None
        return NamedEntity(id=node.get("id"), name=node.get("name"))
