"""Ticket data models."""

from dataclasses import dataclass
from typing import Optional

from ..errors import RetrievalError

# Characters of the ticket body kept in a summary
DESCRIPTION_LIMIT = 200

STATUS_PLACEHOLDER = "N/A"
ASSIGNEE_PLACEHOLDER = "Unassigned"
PROJECT_PLACEHOLDER = "N/A"
NO_DESCRIPTION = "No description"


def truncate_description(text: Optional[str], limit: int = DESCRIPTION_LIMIT) -> str:
    """Keep the first ``limit`` characters, marking truncation with ``...``."""
    if not text:
        return NO_DESCRIPTION
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


@dataclass(frozen=True)
class TicketSummary:
    """A Linear issue reduced to the fields shown in a digest."""

    identifier: str
    title: str
    url: str
    description: str = NO_DESCRIPTION
    status: Optional[str] = None
    assignee: Optional[str] = None
    project: Optional[str] = None

    @classmethod
    def from_fields(
        cls,
        identifier: str,
        title: str,
        url: str,
        description: Optional[str] = None,
        status: Optional[str] = None,
        assignee: Optional[str] = None,
        project: Optional[str] = None,
    ) -> "TicketSummary":
        """Build a summary from raw issue fields, truncating the description."""
        return cls(
            identifier=identifier,
            title=title,
            url=url,
            description=truncate_description(description),
            status=status or None,
            assignee=assignee or None,
            project=project or None,
        )

    @property
    def status_label(self) -> str:
        return self.status or STATUS_PLACEHOLDER

    @property
    def assignee_label(self) -> str:
        return self.assignee or ASSIGNEE_PLACEHOLDER

    @property
    def project_label(self) -> str:
        return self.project or PROJECT_PLACEHOLDER


@dataclass(frozen=True)
class RetrievalResult:
    """Outcome of a ticket search.

    Exactly one of three shapes:
    - ``tickets`` non-empty: matches found
    - ``tickets`` empty and no ``error``: the search matched nothing
    - ``error`` set: the search failed
    """

    tickets: tuple[TicketSummary, ...] = ()
    error: Optional[RetrievalError] = None

    def __post_init__(self):
        if self.error is not None and self.tickets:
            raise ValueError("A failed result cannot carry tickets")

    @classmethod
    def found(cls, tickets) -> "RetrievalResult":
        return cls(tickets=tuple(tickets))

    @classmethod
    def no_matches(cls) -> "RetrievalResult":
        return cls()

    @classmethod
    def failure(cls, error: RetrievalError) -> "RetrievalResult":
        return cls(error=error)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        return not self.failed and not self.tickets

    @property
    def ok(self) -> bool:
        return bool(self.tickets)
