"""Tool registry: name -> descriptor lookup, argument validation and the response envelope."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ValidationError

from veracode_tools.agent.context import ToolContext
from veracode_tools.core.errors import (
    AmbiguousMatchError,
    NotFoundError,
    PaginationError,
    UnknownToolError,
)

logger = logging.getLogger("veracode_tools")

VALIDATION_TROUBLESHOOTING = (
    "Check that all required parameters are provided",
    "Verify parameter types match the expected schema",
    "Use 'vctools schema <tool>' to inspect the expected arguments",
)


class ToolCategory(str, Enum):
    APPLICATION = "application"
    FINDINGS = "findings"
    STATIC_ANALYSIS = "static-analysis"
    SCA = "sca"
    SCAN = "scan"
    SANDBOX = "sandbox"
    POLICY = "policy"


@dataclass
class ToolResponse:
    success: bool
    data: Optional[dict] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        return result


Handler = Callable[[Any, ToolContext], Awaitable[dict]]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    category: ToolCategory
    handler: Handler
    schema: Optional[type[BaseModel]] = None
    error_message: str = "Tool execution failed"
    troubleshooting: tuple[str, ...] = field(default_factory=tuple)

    def definition(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "description": self.description,
            "input_schema": self.schema.model_json_schema() if self.schema else {"type": "object"},
        }


class ToolRegistry:
    """Holds tool descriptors and executes them against a shared :class:`ToolContext`."""

    def __init__(self, context: ToolContext):
        self.context = context
        self._tools: dict[str, ToolDescriptor] = {}

    def register(self, descriptor: ToolDescriptor) -> None:
        if descriptor.name in self._tools:
            raise ValueError(f"Tool already registered: {descriptor.name}")
        self._tools[descriptor.name] = descriptor

    def register_all(self, descriptors: list[ToolDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def by_category(self, category: ToolCategory) -> list[ToolDescriptor]:
        return [t for t in self._tools.values() if t.category == category]

    def category_summary(self) -> dict[str, int]:
        summary: dict[str, int] = {}
        for tool in self._tools.values():
            summary[tool.category.value] = summary.get(tool.category.value, 0) + 1
        return summary

    def definitions(self) -> list[dict[str, Any]]:
        return [t.definition() for t in self._tools.values()]

    async def execute(self, name: str, args: Optional[dict] = None) -> ToolResponse:
        """Run tool ``name`` with ``args``.

        Unknown names raise :class:`UnknownToolError`. Every other failure,
        invalid arguments included, comes back as an unsuccessful
        :class:`ToolResponse`.
        """
        descriptor = self._tools.get(name)
        if descriptor is None:
            raise UnknownToolError(name)

        params: Any = args or {}
        if descriptor.schema is not None:
            try:
                params = descriptor.schema.model_validate(args or {})
            except ValidationError as e:
                logger.debug("Invalid arguments for %s: %s", name, e)
                return ToolResponse(
                    success=False,
                    error="Invalid arguments provided",
                    data={
                        "details": f"{e.error_count()} validation error(s) for {name}",
                        "validation_errors": [
                            {
                                "field": ".".join(str(p) for p in err["loc"]),
                                "message": err["msg"],
                                "type": err["type"],
                            }
                            for err in e.errors()
                        ],
                        "troubleshooting": list(VALIDATION_TROUBLESHOOTING),
                    },
                )

        try:
            data = await descriptor.handler(params, self.context)
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e)
            return ToolResponse(
                success=False,
                error=f"{descriptor.error_message}: {e}",
                data=self._failure_data(descriptor, e),
            )

        if not isinstance(data, dict):
            logger.error("Tool %s returned %s instead of a mapping", name, type(data).__name__)
            return ToolResponse(
                success=False,
                error=f"{descriptor.error_message}: handler returned no data",
                data={"troubleshooting": list(descriptor.troubleshooting)},
            )
        return ToolResponse(success=True, data=data)

    @staticmethod
    def _failure_data(descriptor: ToolDescriptor, error: Exception) -> dict[str, Any]:
        data: dict[str, Any] = {
            "details": str(error),
            "error_type": type(error).__name__,
            "troubleshooting": list(descriptor.troubleshooting),
        }
        if isinstance(error, NotFoundError) and error.suggestions:
            data["suggestions"] = error.suggestions
        if isinstance(error, AmbiguousMatchError):
            data["candidates"] = error.candidates
        if isinstance(error, PaginationError) and error.partial is not None:
            data["partial"] = error.partial.to_dict()
        return data
