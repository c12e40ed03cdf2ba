"""Static catalog of health-record tools and its provider wire formats.

One ``ToolSchema`` per tool; serializers wrap the same ``parameters`` object
in each provider's envelope.  Result helpers at the bottom shape a
``ToolResult`` the way each provider expects it back in the conversation.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from tools.base import ToolResult


EVENT_TYPES: tuple[str, ...] = (
    "lab_result",
    "doctor_visit",
    "medication",
    "intervention",
    "metric",
    "vice",
)

PROFILE_SECTIONS: tuple[str, ...] = (
    "demographics",
    "medical_history",
    "medications",
    "allergies",
    "family_history",
    "lifestyle",
    "all",
)


@dataclass(frozen=True)
class ToolSchema:
    name: str
    description: str
    parameters: dict[str, Any]

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(self.parameters.get("required", ()))

    def parameters_copy(self) -> dict[str, Any]:
        return copy.deepcopy(self.parameters)


_SCHEMAS: tuple[ToolSchema, ...] = (
    ToolSchema(
        name="search_events",
        description=(
            "Search the user's health timeline for events matching criteria. Returns matching events "
            "sorted by date (most recent first). Use this to find specific health events, doctor visits, "
            "medications, or any health-related entries."
        ),
        parameters={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search text to match against event titles, notes, doctor names, medication names, lab names, etc.",
                },
                "event_types": {
                    "type": "array",
                    "description": "Filter by event types. Omit to search all types.",
                    "items": {"type": "string", "enum": list(EVENT_TYPES)},
                },
                "start_date": {
                    "type": "string",
                    "description": "Start date in YYYY-MM-DD format. Only return events on or after this date.",
                },
                "end_date": {
                    "type": "string",
                    "description": "End date in YYYY-MM-DD format. Only return events on or before this date.",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of events to return. Default 20, max 50.",
                },
            },
        },
    ),
    ToolSchema(
        name="get_biomarker_history",
        description=(
            "Get historical values for a specific biomarker across all lab results. Use this to track "
            "trends over time for biomarkers like cholesterol, glucose, HbA1c, TSH, vitamin D, etc."
        ),
        parameters={
            "type": "object",
            "properties": {
                "biomarker_name": {
                    "type": "string",
                    "description": 'Name or code of the biomarker (e.g., "Glucose", "HbA1c", "LDL", "TSH", "Vitamin D")',
                },
                "start_date": {
                    "type": "string",
                    "description": "Start date in YYYY-MM-DD format. Omit for all history.",
                },
                "end_date": {
                    "type": "string",
                    "description": "End date in YYYY-MM-DD format. Omit for all history.",
                },
            },
            "required": ["biomarker_name"],
        },
    ),
    ToolSchema(
        name="get_profile",
        description=(
            "Get the user's health profile including demographics, medical history, current medications, "
            "allergies, family history, and lifestyle factors. Use this to understand the user's health context."
        ),
        parameters={
            "type": "object",
            "properties": {
                "sections": {
                    "type": "array",
                    "description": 'Which sections to retrieve. Omit or include "all" for complete profile.',
                    "items": {"type": "string", "enum": list(PROFILE_SECTIONS)},
                },
            },
        },
    ),
    ToolSchema(
        name="get_recent_labs",
        description=(
            "Get recent lab results with all biomarker values. Use this to see what labs the user has "
            "had recently and their results."
        ),
        parameters={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "integer",
                    "description": "Number of recent lab results to return. Default 5, max 20.",
                },
            },
        },
    ),
    ToolSchema(
        name="get_medications",
        description=(
            "Get the user's medications. Can filter for currently active medications only or include "
            "discontinued ones."
        ),
        parameters={
            "type": "object",
            "properties": {
                "active_only": {
                    "type": "boolean",
                    "description": "If true, only return currently active medications. Default true.",
                },
            },
        },
    ),
    ToolSchema(
        name="get_event_details",
        description=(
            "Get full details of a specific health event by ID. Use this when you need more information "
            "about an event mentioned in search results."
        ),
        parameters={
            "type": "object",
            "properties": {
                "event_id": {
                    "type": "string",
                    "description": "The unique ID of the event to retrieve",
                },
            },
            "required": ["event_id"],
        },
    ),
)

TOOL_DEFINITIONS: MappingProxyType[str, ToolSchema] = MappingProxyType({s.name: s for s in _SCHEMAS})


def list_tool_schemas() -> list[ToolSchema]:
    return list(TOOL_DEFINITIONS.values())


def get_tool_names() -> list[str]:
    return list(TOOL_DEFINITIONS.keys())


def is_known_tool(name: Any) -> bool:
    return isinstance(name, str) and name in TOOL_DEFINITIONS


# ---------------------------------------------------------------------------
# Provider tool formats
# ---------------------------------------------------------------------------

def to_openai_tools(include_web_search: bool = True) -> list[dict[str, Any]]:
    tools: list[dict[str, Any]] = []
    if include_web_search:
        tools.append({"type": "web_search_preview"})
    for schema in TOOL_DEFINITIONS.values():
        tools.append(
            {
                "type": "function",
                "function": {
                    "name": schema.name,
                    "description": schema.description,
                    "parameters": schema.parameters_copy(),
                },
            }
        )
    return tools


def to_gemini_tools(include_google_search: bool = True) -> list[dict[str, Any]]:
    tools: list[dict[str, Any]] = []
    if include_google_search:
        tools.append({"googleSearch": {}})
    declarations = [
        {
            "name": schema.name,
            "description": schema.description,
            "parameters": schema.parameters_copy(),
        }
        for schema in TOOL_DEFINITIONS.values()
    ]
    if declarations:
        tools.append({"functionDeclarations": declarations})
    return tools


def to_anthropic_tools() -> list[dict[str, Any]]:
    return [
        {
            "name": schema.name,
            "description": schema.description,
            "input_schema": schema.parameters_copy(),
        }
        for schema in TOOL_DEFINITIONS.values()
    ]


# ---------------------------------------------------------------------------
# Provider result formats
# ---------------------------------------------------------------------------

def result_json(result: ToolResult) -> str:
    """Serialize a result deterministically (sorted keys) for text-based provider channels."""
    return json.dumps(result.to_dict(), sort_keys=True, ensure_ascii=False, default=str)


def to_openai_tool_output(call_id: str, result: ToolResult) -> dict[str, Any]:
    return {
        "type": "function_call_output",
        "call_id": call_id,
        "output": result_json(result),
    }


def to_gemini_function_response(name: str, result: ToolResult) -> dict[str, Any]:
    return {
        "functionResponse": {
            "name": name,
            "response": result.to_dict(),
        }
    }


def to_anthropic_tool_result(tool_use_id: str, result: ToolResult) -> dict[str, Any]:
    return {
        "type": "tool_result",
        "tool_use_id": tool_use_id,
        "content": result_json(result),
        "is_error": not result.success,
    }
