"""Deterministic tool registration and argument validation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

ToolHandler = Callable[[Any], dict[str, object]]


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Represents deterministic tool dispatch failures."""

    code: str
    message: str


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """A registered tool: its argument model and handler."""

    name: str
    description: str
    arguments_model: type[BaseModel]
    handler: ToolHandler

    def describe(self) -> dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.arguments_model.model_json_schema(by_alias=True),
        }


def _format_validation_error(name: str, error: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or 'arguments'}: {item['msg']}"
        for item in error.errors()
    )
    return f"Invalid arguments for {name}: {details}"


@dataclass(slots=True)
class ToolRegistry:
    """In-memory tool registry preserving deterministic insertion order."""

    _tools: dict[str, ToolSpec] = field(default_factory=dict)

    def register(
        self,
        name: str,
        description: str,
        arguments_model: type[BaseModel],
        handler: ToolHandler,
    ) -> None:
        """Register a named handler with its argument model."""
        self._tools[name] = ToolSpec(
            name=name,
            description=description,
            arguments_model=arguments_model,
            handler=handler,
        )

    def get(self, name: str) -> ToolSpec | None:
        """Return a tool by name."""
        return self._tools.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered tool names in deterministic order."""
        return tuple(self._tools.keys())

    def describe(self) -> list[dict[str, object]]:
        """Return name, description and JSON schema for every tool."""
        return [spec.describe() for spec in self._tools.values()]

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        """Validate arguments and dispatch to a registered tool by name."""
        spec = self.get(name)
        if spec is None:
            raise ToolDispatchError(code="UNKNOWN_TOOL", message=f"Unknown tool: {name}")
        try:
            parsed = spec.arguments_model.model_validate(arguments)
        except ValidationError as error:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message=_format_validation_error(name, error),
            ) from error
        return spec.handler(parsed)
