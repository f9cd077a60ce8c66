"""MCP Server for LazyDev - Linear ticket lookup for development workflows.

Exposes one tool (``get-linear-tickets``), one resource (``status://check``)
and two prompts (``generateCommitMessage``, ``start-task``) over stdio.

stdout carries the protocol; all logging goes to stderr.
"""

import asyncio
import logging
import os
import sys
from typing import Any, Optional

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import (
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    CallToolRequest,
    CallToolResult,
    ErrorData,
    GetPromptResult,
    Prompt,
    PromptArgument,
    PromptMessage,
    Resource,
    ServerResult,
    TextContent,
    Tool,
)

from . import __version__
from .capabilities import TICKETS_TOOL, build_registry
from .config import LOG_LEVEL_ENV, LinearConfig
from .dispatcher import Dispatcher, ResponseEnvelope, ToolInvocation
from .errors import InvalidArgumentsError, UnknownCapabilityError
from .registry import CapabilityKind, CapabilityRegistry
from .retrieval import build_retriever

logger = logging.getLogger(__name__)

SERVER_NAME = "LazyDevWorkflowServer"


def configure_logging(level: Optional[str] = None) -> None:
    """Send log records to stderr; stdout is reserved for MCP messages."""
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ============================================================================
# Registry <-> MCP type mapping
# ============================================================================


def list_tools(registry: CapabilityRegistry) -> list[Tool]:
    return [
        Tool(name=d.name, description=d.description, inputSchema=d.input_schema())
        for d in registry.list(CapabilityKind.TOOL)
    ]


def list_resources(registry: CapabilityRegistry) -> list[Resource]:
    return [
        Resource(uri=d.uri, name=d.name, description=d.description, mimeType=d.mime_type)
        for d in registry.list(CapabilityKind.RESOURCE)
    ]


def list_prompts(registry: CapabilityRegistry) -> list[Prompt]:
    return [
        Prompt(
            name=d.name,
            description=d.description,
            arguments=[
                PromptArgument(name=p.name, description=p.description, required=p.required)
                for p in d.parameters
            ],
        )
        for d in registry.list(CapabilityKind.PROMPT)
    ]


def to_text_content(envelope: ResponseEnvelope) -> list[TextContent]:
    return [TextContent(type=block.type, text=block.text) for block in envelope.blocks]


def to_mcp_error(error: Exception) -> McpError:
    """Map registry and validation failures onto protocol error codes."""
    if isinstance(error, UnknownCapabilityError):
        return McpError(ErrorData(code=METHOD_NOT_FOUND, message=str(error)))
    if isinstance(error, InvalidArgumentsError):
        return McpError(ErrorData(
            code=INVALID_PARAMS, message=str(error), data={"fields": error.fields}
        ))
    return McpError(ErrorData(code=INVALID_PARAMS, message=str(error)))


async def call_tool(dispatcher: Dispatcher, name: str, arguments: Optional[dict[str, Any]]) -> list[TextContent]:
    try:
        envelope = await dispatcher.handle(ToolInvocation(CapabilityKind.TOOL, name, arguments or {}))
    except (UnknownCapabilityError, InvalidArgumentsError) as e:
        raise to_mcp_error(e)
    return to_text_content(envelope)


async def read_resource(dispatcher: Dispatcher, uri: Any) -> list[ReadResourceContents]:
    try:
        descriptor = dispatcher.registry.resolve(CapabilityKind.RESOURCE, str(uri).rstrip("/"))
        envelope = await dispatcher.handle(ToolInvocation(CapabilityKind.RESOURCE, descriptor.name))
    except (UnknownCapabilityError, InvalidArgumentsError) as e:
        raise to_mcp_error(e)
    return [ReadResourceContents(content=envelope.joined_text, mime_type=descriptor.mime_type)]


async def get_prompt(dispatcher: Dispatcher, name: str, arguments: Optional[dict[str, str]]) -> GetPromptResult:
    try:
        descriptor = dispatcher.registry.resolve(CapabilityKind.PROMPT, name)
        envelope = await dispatcher.handle(ToolInvocation(CapabilityKind.PROMPT, name, arguments or {}))
    except (UnknownCapabilityError, InvalidArgumentsError) as e:
        raise to_mcp_error(e)
    return GetPromptResult(
        description=descriptor.description,
        messages=[
            PromptMessage(role=envelope.role or "user", content=content)
            for content in to_text_content(envelope)
        ],
    )


# ============================================================================
# Server
# ============================================================================


def create_server(registry: CapabilityRegistry) -> Server:
    """Build an MCP server whose handlers delegate to the dispatcher."""
    server = Server(SERVER_NAME, version=__version__)
    dispatcher = Dispatcher(registry)

    @server.list_tools()
    async def handle_list_tools() -> list[Tool]:
        return list_tools(registry)

    # Registered directly: @server.call_tool() folds McpError into an
    # isError result. Unknown tools and bad arguments are JSON-RPC errors.
    async def handle_call_tool(req: CallToolRequest) -> ServerResult:
        content = await call_tool(dispatcher, req.params.name, req.params.arguments)
        return ServerResult(CallToolResult(content=content, isError=False))

    server.request_handlers[CallToolRequest] = handle_call_tool

    @server.list_resources()
    async def handle_list_resources() -> list[Resource]:
        return list_resources(registry)

    @server.read_resource()
    async def handle_read_resource(uri: Any) -> list[ReadResourceContents]:
        return await read_resource(dispatcher, uri)

    @server.list_prompts()
    async def handle_list_prompts() -> list[Prompt]:
        return list_prompts(registry)

    @server.get_prompt()
    async def handle_get_prompt(name: str, arguments: Optional[dict[str, str]] = None) -> GetPromptResult:
        return await get_prompt(dispatcher, name, arguments)

    return server


async def serve(config: LinearConfig) -> None:
    registry = build_registry(build_retriever(config))
    server = create_server(registry)
    if not config.has_credential:
        logger.warning("No Linear API key configured; %s will report it on each call", TICKETS_TOOL)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("%s for Linear Tickets running on stdio.", SERVER_NAME)
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main(log_level: Optional[str] = None) -> None:
    """Run the MCP server. Exits 1 on any startup failure."""
    configure_logging(log_level)
    try:
        config = LinearConfig.load()
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Shutting down")
    except Exception:
        logger.critical("Fatal error in main()", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
