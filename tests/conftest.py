"""Shared fixtures."""

import pytest

from lazydev_workflow.config import LinearConfig
from lazydev_workflow.models import TicketSummary


@pytest.fixture
def config():
    return LinearConfig(api_key="lin_api_test", api_url="https://linear.test/graphql")


@pytest.fixture
def make_node():
    """Build a raw GraphQL issue node."""

    def _make(n: int, **overrides) -> dict:
        node = {
            "id": f"uuid-{n}",
            "identifier": f"LAZY-{n}",
            "title": f"Fix login bug {n}",
            "description": f"Users cannot log in ({n})",
            "state": {"name": "In Progress"},
            "assignee": {"name": "Sam"},
            "project": {"name": "Auth"},
            "url": f"https://linear.app/lazy/issue/LAZY-{n}",
        }
        node.update(overrides)
        return node

    return _make


@pytest.fixture
def ticket():
    return TicketSummary.from_fields(
        identifier="LAZY-1",
        title="Fix login bug",
        url="https://linear.app/lazy/issue/LAZY-1",
        description="Users cannot log in",
        status="Todo",
        assignee="Sam",
        project="Auth",
    )
