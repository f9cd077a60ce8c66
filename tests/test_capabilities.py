"""Tests for the advertised capabilities."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from lazydev_workflow.capabilities import (
    COMMIT_PROMPT,
    START_TASK_PROMPT,
    STATUS_URI,
    TICKETS_TOOL,
    build_registry,
    slugify,
)
from lazydev_workflow.dispatcher import Dispatcher, ToolInvocation
from lazydev_workflow.errors import InvalidArgumentsError, ServiceError
from lazydev_workflow.models import RetrievalResult
from lazydev_workflow.registry import CapabilityKind


@pytest.fixture
def retriever():
    mock = AsyncMock()
    mock.retrieve.return_value = RetrievalResult.no_matches()
    return mock


@pytest.fixture
def dispatcher(retriever):
    clock = lambda: datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    return Dispatcher(build_registry(retriever, clock=clock))


def _handle(dispatcher, kind, name, arguments=None):
    return asyncio.run(dispatcher.handle(ToolInvocation(kind, name, arguments or {})))


class TestSlugify:

    @pytest.mark.parametrize("text,expected", [
        ("Fix Login Bug", "fix-login-bug"),
        ("  Add  OAuth  support!  ", "add-oauth-support"),
        ("v2: new API -- fast", "v2-new-api-fast"),
        ("already-slugged", "already-slugged"),
    ])
    def test_slugify(self, text, expected):
        """Should lowercase and hyphenate task text for branch names."""
        assert slugify(text) == expected


class TestRegistry:

    def test_advertised_capabilities(self, retriever):
        """Should register exactly one tool, one resource and two prompts."""
        registry = build_registry(retriever)
        assert [d.name for d in registry.list(CapabilityKind.TOOL)] == [TICKETS_TOOL]
        assert [d.uri for d in registry.list(CapabilityKind.RESOURCE)] == [STATUS_URI]
        assert [d.name for d in registry.list(CapabilityKind.PROMPT)] == [COMMIT_PROMPT, START_TASK_PROMPT]


class TestTicketTool:

    def test_no_matches_text(self, dispatcher, retriever):
        """Should render an empty search as the no-matches text."""
        envelope = _handle(dispatcher, CapabilityKind.TOOL, TICKETS_TOOL, {"description": "login"})
        assert envelope.joined_text == 'No Linear tickets found for: "login"'
        retriever.retrieve.assert_awaited_once_with("login")

    def test_failure_rendered_as_text(self, dispatcher, retriever):
        """Should return retrieval failures as text, not raise."""
        retriever.retrieve.return_value = RetrievalResult.failure(ServiceError(["a", "b"]))
        envelope = _handle(dispatcher, CapabilityKind.TOOL, TICKETS_TOOL, {"description": "login"})
        assert envelope.joined_text == "Linear API GraphQL Error: a, b"

    def test_unexpected_exception_rendered_as_text(self, dispatcher, retriever):
        """Should turn an unexpected retriever exception into text."""
        retriever.retrieve.side_effect = RuntimeError("socket closed")
        envelope = _handle(dispatcher, CapabilityKind.TOOL, TICKETS_TOOL, {"description": "login"})
        assert "socket closed" in envelope.joined_text

    def test_missing_description(self, dispatcher):
        """Should reject a call without a description."""
        with pytest.raises(InvalidArgumentsError) as exc:
            _handle(dispatcher, CapabilityKind.TOOL, TICKETS_TOOL, {})
        assert exc.value.fields == ["description"]


class TestStatusResource:

    def test_reports_ok_and_timestamp(self, dispatcher):
        """Should report OK with the clock's ISO timestamp."""
        envelope = _handle(dispatcher, CapabilityKind.RESOURCE, STATUS_URI)
        assert envelope.joined_text == "Server status: OK, 2024-05-01T12:30:00+00:00"


class TestPrompts:

    def test_commit_message(self, dispatcher):
        """Should embed the task description in the commit prompt."""
        envelope = _handle(dispatcher, CapabilityKind.PROMPT, COMMIT_PROMPT, {"taskDescription": "Add login"})
        assert envelope.role == "user"
        assert len(envelope.blocks) == 1
        assert '"Add login"' in envelope.joined_text
        assert "conventional commit" in envelope.joined_text

    @pytest.mark.parametrize("branch_type", ["feature", "bugfix"])
    def test_start_task_checklist(self, dispatcher, branch_type):
        """Should list the four start-task steps with the branch name."""
        envelope = _handle(
            dispatcher,
            CapabilityKind.PROMPT,
            START_TASK_PROMPT,
            {"taskDescription": "Fix Login Bug", "branchType": branch_type},
        )
        text = envelope.joined_text
        steps = [line for line in text.splitlines() if line[:2] in ("1.", "2.", "3.", "4.")]
        assert len(steps) == 4
        assert TICKETS_TOOL in steps[0]
        assert "choose" in steps[1]
        assert f"{branch_type}/<ticket-id>-fix-login-bug" in steps[2]
        assert steps[3].startswith("4. Begin work")

    @pytest.mark.parametrize("branch_type", ["hotfix", "Feature", "", "feature "])
    def test_start_task_rejects_other_branch_types(self, dispatcher, branch_type):
        """Should reject branch types other than feature and bugfix."""
        with pytest.raises(InvalidArgumentsError) as exc:
            _handle(
                dispatcher,
                CapabilityKind.PROMPT,
                START_TASK_PROMPT,
                {"taskDescription": "x", "branchType": branch_type},
            )
        assert exc.value.fields == ["branchType"]
