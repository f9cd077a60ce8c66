"""Capability registry: the tools, resources and prompts the server advertises."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from .errors import DuplicateCapabilityError, UnknownCapabilityError


class CapabilityKind(str, Enum):
    TOOL = "tool"
    RESOURCE = "resource"
    PROMPT = "prompt"


# JSON-schema type name -> accepted Python types
PARAMETER_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
}


@dataclass(frozen=True)
class Parameter:
    """A named, typed argument of a capability."""
    name: str
    type: str = "string"
    required: bool = True
    description: str = ""
    choices: Optional[tuple[Any, ...]] = None
    non_empty: bool = False

    def __post_init__(self):
        if self.type not in PARAMETER_TYPES:
            raise ValueError(f"Unsupported parameter type: {self.type}")

    def accepts(self, value: Any) -> bool:
        """Check the value's type and, if declared, its allowed choices."""
        # bool is an int subclass; keep them apart
        if isinstance(value, bool) and self.type != "boolean":
            return False
        if not isinstance(value, PARAMETER_TYPES[self.type]):
            return False
        if self.non_empty and isinstance(value, str) and not value.strip():
            return False
        return self.choices is None or value in self.choices

    def to_json_schema(self) -> dict:
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if self.choices is not None:
            schema["enum"] = list(self.choices)
        if self.non_empty:
            schema["minLength"] = 1
        return schema


@dataclass(frozen=True)
class CapabilityDescriptor:
    """One registered capability.

    ``handler`` receives validated arguments as keyword arguments and may be
    sync or async. Tool handlers return text; prompt handlers return the
    instructional text; resource handlers return the resource content.
    """
    name: str
    kind: CapabilityKind
    handler: Callable[..., Any]
    description: str = ""
    parameters: tuple[Parameter, ...] = ()
    uri: Optional[str] = None
    mime_type: str = "text/plain"

    def __post_init__(self):
        if self.kind is CapabilityKind.RESOURCE and not self.uri:
            raise ValueError(f"Resource {self.name!r} needs a uri")
        if self.kind is CapabilityKind.RESOURCE and self.parameters:
            raise ValueError(f"Resource {self.name!r} cannot take arguments")

    @property
    def key(self) -> tuple[CapabilityKind, str]:
        return (self.kind, self.name)

    def parameter(self, name: str) -> Optional[Parameter]:
        return next((p for p in self.parameters if p.name == name), None)

    def input_schema(self) -> dict:
        """JSON schema for the arguments, as advertised for tools."""
        return {
            "type": "object",
            "properties": {p.name: p.to_json_schema() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
            "additionalProperties": False,
        }


@dataclass
class CapabilityRegistry:
    """Process-wide mapping of (kind, name) to capability.

    Populated once at startup, read-only afterwards.
    """
    _capabilities: dict[tuple[CapabilityKind, str], CapabilityDescriptor] = field(default_factory=dict)
    _resource_uris: dict[str, CapabilityDescriptor] = field(default_factory=dict)

    def register(self, descriptor: CapabilityDescriptor) -> CapabilityDescriptor:
        if descriptor.key in self._capabilities:
            raise DuplicateCapabilityError(descriptor.kind.value, descriptor.name)
        if descriptor.uri and descriptor.uri in self._resource_uris:
            raise DuplicateCapabilityError(descriptor.kind.value, descriptor.uri)
        self._capabilities[descriptor.key] = descriptor
        if descriptor.uri:
            self._resource_uris[descriptor.uri] = descriptor
        return descriptor

    def resolve(self, kind: CapabilityKind, name: str) -> CapabilityDescriptor:
        """Look up by name; resources also resolve by URI."""
        try:
            kind = CapabilityKind(kind)
        except ValueError:
            raise UnknownCapabilityError(str(kind), name)
        descriptor = self._capabilities.get((kind, name))
        if descriptor is None and kind is CapabilityKind.RESOURCE:
            descriptor = self._resource_uris.get(name)
        if descriptor is None:
            raise UnknownCapabilityError(kind.value, name)
        return descriptor

    def list(self, kind: CapabilityKind) -> list[CapabilityDescriptor]:
        """Descriptors of one kind, in registration order."""
        return [d for d in self._capabilities.values() if d.kind is kind]

    def __len__(self) -> int:
        return len(self._capabilities)

    def __contains__(self, key: tuple[CapabilityKind, str]) -> bool:
        return key in self._capabilities
