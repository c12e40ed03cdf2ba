"""Tool call execution boundary.

``execute_tool_call`` is the single entry point the orchestrator uses for a
model-requested tool.  It rejects unknown names before touching the store,
dispatches through ``tool_registry`` with the caller's identity, and catches
every failure exactly once so the model only ever receives a
``{success, data | error}`` result with a human-readable message.

Provider output parsing (``parse_openai_tool_calls`` /
``parse_gemini_function_calls``) and the batch ``DirectToolCallExecutor``
sit on top of that entry point.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from services.record_store import HealthRecordStore, RecordStoreError
from tools import tool_registry
from tools.base import ToolArgumentError, ToolContext, ToolResult
from tools.definitions import is_known_tool
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

GENERIC_TOOL_ERROR = "Tool execution failed"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class ToolCallRequest:
    """A single tool call requested by the model."""
    tool: str
    args: Any
    call_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])


@dataclass
class ToolCallResult:
    """Outcome of one ``ToolCallRequest``."""
    call_id: str
    tool: str
    result: ToolResult

    @property
    def success(self) -> bool:
        return self.result.success


# ---------------------------------------------------------------------------
# Argument decoding
# ---------------------------------------------------------------------------

def decode_tool_arguments(raw: Any) -> dict[str, Any]:
    """Normalize model-supplied arguments into a dict.

    Providers hand arguments over either as an object or as JSON text;
    ``None`` and empty text mean "no arguments".
    """
    if raw is None:
        return {}
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ToolArgumentError("Tool arguments must be a JSON object") from exc
    if not isinstance(raw, dict):
        raise ToolArgumentError("Tool arguments must be a JSON object")
    return raw


# ---------------------------------------------------------------------------
# Single call
# ---------------------------------------------------------------------------

def execute_tool_call(
    tool_name: str,
    arguments: Any,
    user_id: str,
    store: HealthRecordStore,
    *,
    reference_utc: datetime | None = None,
    registry: ToolRegistry | None = None,
) -> ToolResult:
    """Run one tool on behalf of ``user_id`` and return a normalized result.

    ``user_id`` comes from the authenticated caller; any identity inside
    ``arguments`` is ignored.  Never raises.
    """
    if not is_known_tool(tool_name):
        logger.warning("Model requested unknown tool: %s", tool_name)
        return ToolResult.fail(f"Unknown tool: {tool_name}")

    active_registry = registry or tool_registry
    try:
        args = decode_tool_arguments(arguments)
        ctx = ToolContext(store=store, user_id=user_id, reference_utc=reference_utc)
        result = active_registry.execute(tool_name, args, ctx)
    except ToolArgumentError as exc:
        result = ToolResult.fail(str(exc))
    except RecordStoreError as exc:
        logger.warning("Tool %s store failure: %s", tool_name, exc)
        result = ToolResult.fail(str(exc) or GENERIC_TOOL_ERROR)
    except Exception as exc:
        logger.exception("Tool %s unexpected error", tool_name)
        result = ToolResult.fail(str(exc) or GENERIC_TOOL_ERROR)

    if result.success:
        logger.debug("Tool %s succeeded", tool_name)
    else:
        logger.info("Tool %s returned error: %s", tool_name, result.error)
    return result


# ---------------------------------------------------------------------------
# Provider output parsing
# ---------------------------------------------------------------------------

def parse_openai_tool_calls(output: list[Any]) -> list[ToolCallRequest]:
    """Extract function calls from OpenAI output items.

    Accepts Responses API items (``{"type": "function_call", "call_id", "name",
    "arguments"}``) and Chat Completions tool calls (``{"id", "type":
    "function", "function": {"name", "arguments"}}``).  Built-in tool items
    such as web search are skipped.
    """
    requests: list[ToolCallRequest] = []
    for item in output or []:
        if not isinstance(item, dict):
            continue
        if item.get("type") == "function_call":
            name = str(item.get("name") or "").strip()
            call_id = item.get("call_id") or item.get("id")
            args = item.get("arguments")
        elif item.get("type") == "function" and isinstance(item.get("function"), dict):
            name = str(item["function"].get("name") or "").strip()
            call_id = item.get("id")
            args = item["function"].get("arguments")
        else:
            continue
        if not name:
            logger.warning("Skipping function call with no name")
            continue
        request = ToolCallRequest(tool=name, args=args)
        if call_id:
            request.call_id = str(call_id)
        requests.append(request)
    return requests


def parse_gemini_function_calls(parts: list[Any]) -> list[ToolCallRequest]:
    """Extract ``functionCall`` parts from a Gemini candidate's content parts."""
    requests: list[ToolCallRequest] = []
    for part in parts or []:
        if not isinstance(part, dict) or not isinstance(part.get("functionCall"), dict):
            continue
        call = part["functionCall"]
        name = str(call.get("name") or "").strip()
        if not name:
            logger.warning("Skipping functionCall part with no name")
            continue
        request = ToolCallRequest(tool=name, args=call.get("args"))
        if call.get("id"):
            request.call_id = str(call["id"])
        requests.append(request)
    return requests


# ---------------------------------------------------------------------------
# Batch executor
# ---------------------------------------------------------------------------

@runtime_checkable
class ToolCallExecutor(Protocol):
    async def execute(
        self,
        requests: list[ToolCallRequest],
        user_id: str,
        store: HealthRecordStore,
    ) -> list[ToolCallResult]:
        ...


class DirectToolCallExecutor:
    """Execute a turn's tool calls in-process, one after another on the same store.

    Calls are independent; running them sequentially keeps a single
    SQLAlchemy session off multiple threads.
    """

    def __init__(self, registry: ToolRegistry | None = None):
        self._registry = registry or tool_registry

    async def execute(
        self,
        requests: list[ToolCallRequest],
        user_id: str,
        store: HealthRecordStore,
    ) -> list[ToolCallResult]:
        results: list[ToolCallResult] = []
        for req in requests:
            outcome = execute_tool_call(req.tool, req.args, user_id, store, registry=self._registry)
            results.append(ToolCallResult(call_id=req.call_id, tool=req.tool, result=outcome))
        return results
