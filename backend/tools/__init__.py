from tools.registry import ToolRegistry
from tools.health_record_tools import register_health_record_tools

tool_registry = ToolRegistry()
register_health_record_tools(tool_registry)

__all__ = ["tool_registry", "ToolRegistry"]
