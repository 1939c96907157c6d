"""Tool-facing host layer.

Submodules:
    service: GameHost, the tool operations over the session store
    tools: Tool registry and OpenAI-style schemas
"""

from rpg_host.host.service import GameHost, ToolReply
from rpg_host.host.tools import (
    ToolDefinition,
    execute_tool,
    get_all_tools,
    get_tool,
    get_tools_as_openai_schema,
)

__all__ = [
    "GameHost",
    "ToolReply",
    "ToolDefinition",
    "execute_tool",
    "get_all_tools",
    "get_tool",
    "get_tools_as_openai_schema",
]
