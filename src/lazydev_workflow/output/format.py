"""Digest formatting for ticket search results."""

from typing import Sequence

from ..errors import RetrievalError
from ..models import RetrievalResult, TicketSummary

SEPARATOR = "\n\n---\n\n"


def format_ticket(ticket: TicketSummary) -> str:
    """Render one ticket as a fixed block of labelled lines."""
    return (
        f"Ticket ID: {ticket.identifier}\n"
        f"Title: {ticket.title}\n"
        f"Status: {ticket.status_label}\n"
        f"Assignee: {ticket.assignee_label}\n"
        f"Project: {ticket.project_label}\n"
        f"URL: {ticket.url}\n"
        f"Description: {ticket.description}"
    )


def format_digest(description: str, tickets: Sequence[TicketSummary]) -> str:
    """Header line plus ticket blocks, in input order."""
    if not tickets:
        raise ValueError("format_digest requires at least one ticket")
    blocks = SEPARATOR.join(format_ticket(t) for t in tickets)
    return f'Found {len(tickets)} ticket(s) for "{description}":\n\n{blocks}'


def format_no_matches(description: str) -> str:
    return f'No Linear tickets found for: "{description}"'


def format_failure(error: RetrievalError) -> str:
    return error.describe()


def render_result(description: str, result: RetrievalResult) -> str:
    """Turn any retrieval outcome into the text returned to the caller."""
    if result.error is not None:
        return format_failure(result.error)
    if not result.tickets:
        return format_no_matches(description)
    return format_digest(description, result.tickets)
