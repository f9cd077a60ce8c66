"""Error types for the LazyDev workflow server.

Retrieval errors are returned as values inside a ``RetrievalResult`` and
rendered to text by the tool handler. Capability errors are raised and
surface to the MCP client as protocol errors.
"""

from typing import Optional


class LazyDevError(Exception):
    """Base class for all server errors."""


# ============================================================================
# Retrieval failures
# ============================================================================


class RetrievalError(LazyDevError):
    """A ticket lookup that could not produce results."""

    def describe(self) -> str:
        """Human-readable text returned to the caller."""
        return f"Failed to fetch issues from Linear: {self}"


class MissingCredentialError(RetrievalError):
    """No Linear API key configured."""

    def __init__(self, env_var: str = "LINEAR_API_KEY"):
        super().__init__(f"{env_var} environment variable is not set.")
        self.env_var = env_var

    def describe(self) -> str:
        return str(self)


class TransportError(RetrievalError):
    """The HTTP exchange failed or returned a non-success status."""

    def __init__(self, status_code: Optional[int], body: str, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        if status_code is None:
            super().__init__(body)
        else:
            status = f"{status_code} {reason}" if reason else str(status_code)
            super().__init__(f"{status} - {body}")

    def describe(self) -> str:
        if self.status_code is None:
            return f"Failed to fetch issues from Linear: {self.body}"
        return f"Error fetching from Linear API: {self}"


class ServiceError(RetrievalError):
    """Linear answered with a GraphQL ``errors`` array."""

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))

    def describe(self) -> str:
        return f"Linear API GraphQL Error: {self}"


class MalformedResponseError(RetrievalError):
    """Response did not have the expected ``data.issues.nodes`` shape."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def describe(self) -> str:
        return f"Unexpected response from Linear API: {self.detail}"


# ============================================================================
# Capability registry / dispatch errors
# ============================================================================


class CapabilityError(LazyDevError):
    """Malformed request against the capability registry."""


class InvalidArgumentsError(CapabilityError):
    """Arguments failed schema validation."""

    def __init__(self, fields: list[str], details: Optional[list[str]] = None):
        self.fields = list(fields)
        self.details = list(details or [])
        message = f"Invalid arguments: {', '.join(self.fields)}"
        if self.details:
            message += f" ({'; '.join(self.details)})"
        super().__init__(message)


class UnknownCapabilityError(CapabilityError):
    """No capability registered under the requested kind and name."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"Unknown {kind}: {name}")
        self.kind = kind
        self.name = name


class DuplicateCapabilityError(CapabilityError):
    """A capability with the same kind and name is already registered."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"Duplicate {kind}: {name}")
        self.kind = kind
        self.name = name
