"""Linear GraphQL client (raw query/response)."""

import http.client
import json
import logging
from typing import Optional
import urllib.request
import urllib.error

from .config import LinearConfig
from .errors import (
    MalformedResponseError,
    MissingCredentialError,
    ServiceError,
    TransportError,
)

logger = logging.getLogger(__name__)

ISSUE_SEARCH_QUERY = """
query Issues($filter: IssueFilter, $first: Int) {
    issues(filter: $filter, first: $first) {
        nodes {
            id
            title
            identifier
            description
            state { name }
            assignee { name }
            project { name }
            url
        }
    }
}
"""


def build_issue_filter(description: str) -> dict:
    """Case-insensitive substring match against title or body."""
    return {
        "or": [
            {"title": {"containsIgnoreCase": description}},
            {"description": {"containsIgnoreCase": description}},
        ]
    }


def graphql_error_messages(errors) -> list[str]:
    """Extract ``message`` strings from a GraphQL ``errors`` array."""
    messages = []
    for error in errors or []:
        if isinstance(error, dict) and error.get("message"):
            messages.append(str(error["message"]))
        else:
            messages.append(json.dumps(error))
    return messages


class LinearClient:
    """Client for the Linear GraphQL API.

    Every failure is raised as a ``RetrievalError`` subclass so callers can
    tell a transport problem from a GraphQL error or a malformed payload.
    """

    def __init__(self, config: LinearConfig):
        self.config = config

    def _request(self, query: str, variables: Optional[dict] = None) -> dict:
        """Make GraphQL request to Linear API and return its ``data`` object."""
        if not self.config.api_key:
            raise MissingCredentialError()

        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        data = json.dumps(payload).encode("utf-8")

        req = urllib.request.Request(
            self.config.api_url,
            data=data,
            headers={
                "Authorization": self.config.api_key,
                "Content-Type": "application/json",
            },
        )

        try:
            with urllib.request.urlopen(req) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8", errors="replace")
            logger.error("Linear API error: %s %s - %s", e.code, e.reason, error_body)
            raise TransportError(e.code, error_body, reason=str(e.reason or ""))
        except urllib.error.URLError as e:
            logger.error("Linear API unreachable: %s", e.reason)
            raise TransportError(None, str(e.reason))
        except http.client.HTTPException as e:
            # e.g. IncompleteRead when the connection drops mid-body
            logger.error("Linear API response interrupted: %r", e)
            raise TransportError(None, str(e) or type(e).__name__)
        except UnicodeDecodeError as e:
            raise MalformedResponseError(f"response body is not UTF-8 ({e.reason})")

        try:
            result = json.loads(body)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"response body is not JSON ({e.msg})")

        if not isinstance(result, dict):
            raise MalformedResponseError("response body is not a JSON object")
        if result.get("errors"):
            logger.error("Linear API GraphQL error: %s", json.dumps(result["errors"]))
            raise ServiceError(graphql_error_messages(result["errors"]))
        if not isinstance(result.get("data"), dict):
            raise MalformedResponseError("missing 'data' in response")
        return result["data"]

    def search_issues(self, description: str, limit: int) -> list[dict]:
        """Search issues whose title or description contains ``description``.

        Returns the raw issue nodes in service order.
        """
        result = self._request(
            ISSUE_SEARCH_QUERY,
            {"filter": build_issue_filter(description), "first": limit},
        )
        issues = result.get("issues")
        if not isinstance(issues, dict):
            raise MalformedResponseError("missing 'data.issues' in response")
        if "nodes" not in issues:
            raise MalformedResponseError("missing 'data.issues.nodes' in response")
        nodes = issues["nodes"]
        if nodes is None:
            return []
        if not isinstance(nodes, list):
            raise MalformedResponseError("'data.issues.nodes' is not a list")
        return nodes
