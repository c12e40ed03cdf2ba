from __future__ import annotations

from typing import Any

from tools.base import ToolArgumentError, ToolContext, ToolExecutionError, ToolHandler, ToolResult, is_blank
from tools.definitions import TOOL_DEFINITIONS, ToolSchema


class ToolRegistry:
    def __init__(self):
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        if name not in TOOL_DEFINITIONS:
            raise ValueError(f"Tool has no catalog schema: {name}")
        if name in self._handlers:
            raise ValueError(f"Tool already registered: {name}")
        self._handlers[name] = handler

    def list_specs(self) -> list[ToolSchema]:
        return [TOOL_DEFINITIONS[name] for name in TOOL_DEFINITIONS if name in self._handlers]

    def get_spec(self, name: str) -> ToolSchema | None:
        if name not in self._handlers:
            return None
        return TOOL_DEFINITIONS.get(name)

    def missing_handlers(self) -> list[str]:
        return [name for name in TOOL_DEFINITIONS if name not in self._handlers]

    def execute(self, name: str, args: dict[str, Any], ctx: ToolContext) -> ToolResult:
        spec = self.get_spec(name)
        handler = self._handlers.get(name)
        if not spec or not handler:
            raise ToolExecutionError(f"Unknown tool: {name}")

        for key in spec.required:
            if is_blank(args.get(key)):
                return ToolResult.fail(f"{key} is required")

        try:
            return handler(args, ctx)
        except ToolArgumentError as exc:
            return ToolResult.fail(str(exc))
