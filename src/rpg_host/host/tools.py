"""Tool registry for LLM-driven clients.

Each host operation is registered as a tool with a description written
for the calling model and a pydantic request model that doubles as its
argument schema. Clients fetch the schemas with
``get_tools_as_openai_schema`` and send calls back through
``execute_tool``.

Tools:
    new_game: Start a game from agreed setup choices
    get_state: Load the latest state
    roll_dice: Roll a dice formula
    update_state: Apply HP/MP, inventory, location or combat updates
    combat_action: Take one combat action
    reset_game: Reset the game to a fresh setup state
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from rpg_host.core.exceptions import RpgHostError
from rpg_host.core.logging import get_logger
from rpg_host.host.service import GameHost, ToolReply
from rpg_host.models.requests import (
    GameCombatActionRequest,
    GetStateRequest,
    NewGameRequest,
    ResetGameRequest,
    RollDiceRequest,
    UpdateStateRequest,
)


logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., ToolReply])


# =============================================================================
# Tool Registry
# =============================================================================


@dataclass
class ToolDefinition:
    """Definition of a host tool for AI binding.

    Attributes:
        name: Tool name seen by the client.
        description: Human-readable description for the model.
        request_model: Pydantic model validating the arguments.
        handler: Function called with the host and the validated request.
    """

    name: str
    description: str
    request_model: type[BaseModel]
    handler: Callable[[GameHost, Any], ToolReply]

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON schema for the arguments."""
        return self.request_model.model_json_schema()


# Global tool registry
_tool_registry: dict[str, ToolDefinition] = {}


def tool(*, description: str, request_model: type[BaseModel]) -> Callable[[F], F]:
    """Decorator to register a function as a host tool.

    Args:
        description: Description for the calling model.
        request_model: Argument model for the tool.

    Returns:
        Decorator function.
    """

    def decorator(func: F) -> F:
        _tool_registry[func.__name__] = ToolDefinition(
            name=func.__name__,
            description=description,
            request_model=request_model,
            handler=func,
        )
        return func

    return decorator


def get_tool(name: str) -> ToolDefinition | None:
    """Get a tool definition by name."""
    return _tool_registry.get(name)


def get_all_tools() -> list[ToolDefinition]:
    """Get all registered tools."""
    return list(_tool_registry.values())


def get_tools_as_openai_schema() -> list[dict[str, Any]]:
    """Get all tools in OpenAI function calling schema format."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool_def.name,
                "description": tool_def.description,
                "parameters": tool_def.parameters,
            },
        }
        for tool_def in _tool_registry.values()
    ]


# =============================================================================
# Tools
# =============================================================================


@tool(
    description="Start a new game from setup choices already agreed with the player.",
    request_model=NewGameRequest,
)
def new_game(host: GameHost, request: NewGameRequest) -> ToolReply:
    return host.new_game(request)


@tool(description="Load the latest game state.", request_model=GetStateRequest)
def get_state(host: GameHost, request: GetStateRequest) -> ToolReply:
    return host.get_state(request)


@tool(
    description="Roll dice using a formula like d20, 2d6+1, or 3d4-2.",
    request_model=RollDiceRequest,
)
def roll_dice(host: GameHost, request: RollDiceRequest) -> ToolReply:
    return host.roll_dice(request)


@tool(
    description="Apply HP/MP changes, inventory updates, location changes, or combat updates.",
    request_model=UpdateStateRequest,
)
def update_state(host: GameHost, request: UpdateStateRequest) -> ToolReply:
    return host.update_state(request)


@tool(
    description=(
        "Take one combat action for the combatant whose turn it is: move, attack, "
        "defend, dodge, use_skill or end_turn. Enemy turns are resolved automatically."
    ),
    request_model=GameCombatActionRequest,
)
def combat_action(host: GameHost, request: GameCombatActionRequest) -> ToolReply:
    return host.combat_action(request)


@tool(description="Reset the game back to a fresh setup state.", request_model=ResetGameRequest)
def reset_game(host: GameHost, request: ResetGameRequest) -> ToolReply:
    return host.reset_game(request)


# =============================================================================
# Execution
# =============================================================================


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "arguments"
    return f"{location}: {first['msg']}"


def execute_tool(host: GameHost, name: str, arguments: dict[str, Any] | None = None) -> ToolReply:
    """Validate arguments and run a tool.

    Args:
        host: Host the tool operates on.
        name: Registered tool name.
        arguments: Raw arguments from the client.

    Returns:
        The tool's reply, or an ``ok=False`` reply for unknown tools,
        invalid arguments and host errors.
    """
    tool_def = get_tool(name)
    if tool_def is None:
        return ToolReply(ok=False, message=f"Unknown tool: {name}")

    try:
        request = tool_def.request_model.model_validate(arguments or {})
    except ValidationError as exc:
        logger.info("Tool arguments rejected", tool=name, errors=exc.error_count())
        return ToolReply(ok=False, message=f"Invalid arguments for {name}: {_describe_validation_error(exc)}")

    try:
        return tool_def.handler(host, request)
    except RpgHostError as exc:
        logger.exception("Tool execution failed", tool=name)
        return ToolReply(ok=False, message=exc.message)


__all__ = [
    "ToolDefinition",
    "tool",
    "get_tool",
    "get_all_tools",
    "get_tools_as_openai_schema",
    "execute_tool",
]
