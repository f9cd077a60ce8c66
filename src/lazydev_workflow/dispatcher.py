"""Resolve, validate and run capability invocations."""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .errors import InvalidArgumentsError
from .registry import CapabilityDescriptor, CapabilityKind, CapabilityRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolInvocation:
    """One inbound request: which capability, with which arguments."""
    kind: CapabilityKind
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TextBlock:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class ResponseEnvelope:
    """Content returned to the client. Prompt responses carry a ``role``."""
    blocks: tuple[TextBlock, ...]
    role: Optional[str] = None

    @classmethod
    def text(cls, text: str, role: Optional[str] = None) -> "ResponseEnvelope":
        return cls(blocks=(TextBlock(text=text),), role=role)

    @property
    def joined_text(self) -> str:
        return "\n".join(block.text for block in self.blocks)


def validate_arguments(descriptor: CapabilityDescriptor, arguments: Optional[Mapping[str, Any]]) -> dict:
    """Check arguments against the descriptor's parameters.

    Raises InvalidArgumentsError naming every offending field: unknown
    names, missing required values, wrong types and values outside the
    allowed choices.
    """
    arguments = dict(arguments or {})
    bad_fields: list[str] = []
    details: list[str] = []

    for name in arguments:
        if descriptor.parameter(name) is None:
            bad_fields.append(name)
            details.append(f"{name}: unexpected argument")

    validated = {}
    for param in descriptor.parameters:
        if param.name not in arguments or arguments[param.name] is None:
            if param.required:
                bad_fields.append(param.name)
                details.append(f"{param.name}: required")
            continue
        value = arguments[param.name]
        if not param.accepts(value):
            bad_fields.append(param.name)
            if param.choices is not None:
                allowed = ", ".join(repr(c) for c in param.choices)
                details.append(f"{param.name}: must be one of {allowed}")
            elif isinstance(value, str):
                details.append(f"{param.name}: must not be empty")
            else:
                details.append(f"{param.name}: expected {param.type}")
            continue
        validated[param.name] = value

    if bad_fields:
        raise InvalidArgumentsError(bad_fields, details)
    return validated


class Dispatcher:
    """Route invocations through the registry and wrap handler output."""

    def __init__(self, registry: CapabilityRegistry):
        self.registry = registry

    async def handle(self, invocation: ToolInvocation) -> ResponseEnvelope:
        descriptor = self.registry.resolve(invocation.kind, invocation.name)
        arguments = validate_arguments(descriptor, invocation.arguments)
        logger.debug("Dispatching %s %s", descriptor.kind.value, descriptor.name)

        if descriptor.kind is CapabilityKind.TOOL:
            try:
                return self._wrap(await self._invoke(descriptor, arguments))
            except Exception as e:
                # Tool failures are reported as content, not protocol errors
                logger.error("Tool %s failed", descriptor.name, exc_info=True)
                return ResponseEnvelope.text(f"Tool '{descriptor.name}' failed: {e}")

        result = await self._invoke(descriptor, arguments)
        role = "user" if descriptor.kind is CapabilityKind.PROMPT else None
        return self._wrap(result, role=role)

    async def _invoke(self, descriptor: CapabilityDescriptor, arguments: dict) -> Any:
        result = descriptor.handler(**arguments)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _wrap(self, result: Any, role: Optional[str] = None) -> ResponseEnvelope:
        if isinstance(result, ResponseEnvelope):
            return result
        if isinstance(result, str):
            return ResponseEnvelope.text(result, role=role)
        raise TypeError(f"Handler returned unsupported type: {type(result).__name__}")
