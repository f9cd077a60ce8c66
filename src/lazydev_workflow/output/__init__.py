"""Text output for tool responses."""

from .format import format_digest, format_no_matches, format_failure, format_ticket, render_result

__all__ = ["format_digest", "format_no_matches", "format_failure", "format_ticket", "render_result"]
