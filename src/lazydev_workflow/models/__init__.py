"""Data models for the LazyDev workflow server."""

from .ticket import TicketSummary, RetrievalResult

__all__ = ["TicketSummary", "RetrievalResult"]
