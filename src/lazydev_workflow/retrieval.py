"""Ticket retrieval strategies.

Both strategies implement ``TicketRetriever.retrieve`` and return a
``RetrievalResult``; they never raise for service-side failures.
"""

import asyncio
import logging
from typing import Optional, Protocol

from .config import LinearConfig, STRATEGY_SDK
from .errors import (
    MalformedResponseError,
    MissingCredentialError,
    RetrievalError,
    ServiceError,
    TransportError,
)
from .linear_client import LinearClient, build_issue_filter
from .linear_sdk import Issue, LinearSdkClient, LinearSdkError, NamedEntity
from .models import RetrievalResult, TicketSummary

logger = logging.getLogger(__name__)

MAX_RESULTS = 5


class TicketRetriever(Protocol):
    """Search Linear for tickets matching a free-text description."""

    async def retrieve(self, description: str) -> RetrievalResult:
        ...


def _relation_name(node) -> Optional[str]:
    if isinstance(node, dict):
        return node.get("name")
    return None


def _outcome(tickets) -> RetrievalResult:
    if not tickets:
        logger.info("No Linear tickets found.")
        return RetrievalResult.no_matches()
    logger.info("Found %d ticket(s).", len(tickets))
    return RetrievalResult.found(tickets)


def summary_from_node(node: dict) -> TicketSummary:
    """Normalize a raw GraphQL issue node."""
    if not isinstance(node, dict) or not node.get("identifier"):
        raise MalformedResponseError("issue node is missing 'identifier'")
    return TicketSummary.from_fields(
        identifier=node["identifier"],
        title=node.get("title") or "",
        url=node.get("url") or "",
        description=node.get("description"),
        status=_relation_name(node.get("state")),
        assignee=_relation_name(node.get("assignee")),
        project=_relation_name(node.get("project")),
    )


class GraphQLTicketRetriever:
    """Raw query strategy: hand-built filter, explicit payload parsing."""

    def __init__(self, config: LinearConfig, client: Optional[LinearClient] = None):
        self.config = config
        self.client = client or LinearClient(config)

    def _search(self, description: str) -> RetrievalResult:
        if not self.config.api_key:
            return RetrievalResult.failure(MissingCredentialError())
        try:
            nodes = self.client.search_issues(description, MAX_RESULTS)
            tickets = [summary_from_node(node) for node in nodes[:MAX_RESULTS]]
        except RetrievalError as e:
            logger.error("Failed to fetch issues from Linear: %s", e)
            return RetrievalResult.failure(e)
        return _outcome(tickets)

    async def retrieve(self, description: str) -> RetrievalResult:
        logger.info('Fetching Linear tickets for: "%s"', description)
        # urllib blocks; keep the event loop free for the stdio transport
        return await asyncio.to_thread(self._search, description)


def map_sdk_error(error: LinearSdkError) -> RetrievalError:
    """Translate an SDK failure into the retrieval error taxonomy."""
    if error.status_code is not None:
        return TransportError(error.status_code, error.body, reason=error.reason)
    if error.errors:
        return ServiceError(error.errors)
    if error.connection_failed:
        return TransportError(None, error.body)
    return MalformedResponseError(str(error))


class SdkTicketRetriever:
    """Object-graph strategy: relations resolved lazily and concurrently."""

    def __init__(self, config: LinearConfig, client: Optional[LinearSdkClient] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> LinearSdkClient:
        if self._client is None:
            self._client = LinearSdkClient(self.config.api_key, api_url=self.config.api_url)
        return self._client

    async def _summarize(self, issue: Issue) -> TicketSummary:
        state, assignee, project = await asyncio.gather(
            issue.state(), issue.assignee(), issue.project(), return_exceptions=True
        )
        for relation, value in (("state", state), ("assignee", assignee), ("project", project)):
            if isinstance(value, BaseException):
                logger.warning("Could not resolve %s for %s: %s", relation, issue.identifier, value)

        def name(value) -> Optional[str]:
            return value.name if isinstance(value, NamedEntity) else None

        return TicketSummary.from_fields(
            identifier=issue.identifier,
            title=issue.title,
            url=issue.url,
            description=issue.description,
            status=name(state),
            assignee=name(assignee),
            project=name(project),
        )

    async def retrieve(self, description: str) -> RetrievalResult:
        if not self.config.api_key:
            return RetrievalResult.failure(MissingCredentialError())

        logger.info('Fetching Linear tickets for: "%s"', description)
        try:
            connection = await self.client.issues(
                issue_filter=build_issue_filter(description), first=MAX_RESULTS
            )
        except LinearSdkError as e:
            logger.error("Failed to fetch issues from Linear: %s", e)
            return RetrievalResult.failure(map_sdk_error(e))

        issues = connection.nodes[:MAX_RESULTS]
        if any(not issue.identifier for issue in issues):
            error = MalformedResponseError("issue node is missing 'identifier'")
            logger.error("Failed to fetch issues from Linear: %s", error)
            return RetrievalResult.failure(error)
        tickets = await asyncio.gather(*(self._summarize(issue) for issue in issues))
        return _outcome(tickets)


def build_retriever(config: LinearConfig) -> TicketRetriever:
    """Pick the retrieval strategy named in the config."""
    if config.strategy == STRATEGY_SDK:
        return SdkTicketRetriever(config)
    return GraphQLTicketRetriever(config)
