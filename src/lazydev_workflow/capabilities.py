"""Tools, resources and prompts served by LazyDevWorkflowServer."""

import re
from datetime import datetime, timezone
from typing import Callable, Optional

from .output import render_result
from .registry import CapabilityDescriptor, CapabilityKind, CapabilityRegistry, Parameter
from .retrieval import TicketRetriever

TICKETS_TOOL = "get-linear-tickets"
STATUS_RESOURCE = "statusCheck"
STATUS_URI = "status://check"
COMMIT_PROMPT = "generateCommitMessage"
START_TASK_PROMPT = "start-task"
BRANCH_TYPES = ("feature", "bugfix")


def slugify(text: str) -> str:
    """Lowercase, dash-separated slug safe for branch names."""
    text = str(text).lower().strip()
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[^\w-]+", "", text)
    return re.sub(r"--+", "-", text)


def make_ticket_tool(retriever: TicketRetriever):
    async def get_linear_tickets(description: str) -> str:
        result = await retriever.retrieve(description)
        return render_result(description, result)

    return get_linear_tickets


def make_status_check(clock: Optional[Callable[[], datetime]] = None):
    now = clock or (lambda: datetime.now(timezone.utc))

    def status_check() -> str:
        return f"Server status: OK, {now().isoformat()}"

    return status_check


def generate_commit_message(taskDescription: str) -> str:
    return (
        f'Based on the task: "{taskDescription}", please suggest a concise and '
        "informative commit message following conventional commit standards."
    )


def start_task(taskDescription: str, branchType: str) -> str:
    branch = f"{branchType}/<ticket-id>-{slugify(taskDescription)}"
    return f"""I want to start working on this task: "{taskDescription}".

Follow these steps in order:
1. Call the `{TICKETS_TOOL}` tool with the description "{taskDescription}" to fetch matching Linear tickets.
2. Show me the tickets you found and let me choose the one to work on.
3. Create a new git branch for the chosen ticket named `{branch}`, replacing <ticket-id> with the ticket's ID in lowercase.
4. Begin work on the task described by the chosen ticket."""


def build_registry(
    retriever: TicketRetriever,
    clock: Optional[Callable[[], datetime]] = None,
) -> CapabilityRegistry:
    """Register every capability the server advertises."""
    registry = CapabilityRegistry()
    registry.register(CapabilityDescriptor(
        name=TICKETS_TOOL,
        kind=CapabilityKind.TOOL,
        description="Fetches Linear tickets based on a description.",
        parameters=(
            Parameter(
                "description",
                description="A description of the feature, bug, or topic to search for in Linear tickets.",
                non_empty=True,
            ),
        ),
        handler=make_ticket_tool(retriever),
    ))
    registry.register(CapabilityDescriptor(
        name=STATUS_RESOURCE,
        kind=CapabilityKind.RESOURCE,
        description="Server liveness and current time.",
        uri=STATUS_URI,
        handler=make_status_check(clock),
    ))
    registry.register(CapabilityDescriptor(
        name=COMMIT_PROMPT,
        kind=CapabilityKind.PROMPT,
        description="Generates a commit message based on a task description.",
        parameters=(
            Parameter("taskDescription", description="A description of the task or changes made."),
        ),
        handler=generate_commit_message,
    ))
    registry.register(CapabilityDescriptor(
        name=START_TASK_PROMPT,
        kind=CapabilityKind.PROMPT,
        description="Start a task: find its Linear ticket, create a branch, begin work.",
        parameters=(
            Parameter("taskDescription", description="A description of the task to start."),
            Parameter(
                "branchType",
                description="Kind of branch to create.",
                choices=BRANCH_TYPES,
            ),
        ),
        handler=start_task,
    ))
    return registry
