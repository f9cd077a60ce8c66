"""LazyDev workflow server: Linear ticket lookup over MCP."""

__version__ = "0.1.0"
