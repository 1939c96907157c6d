"""Tests for the host tool registry."""

from __future__ import annotations

from rpg_host.host.service import GameHost
from rpg_host.host.tools import (
    execute_tool,
    get_all_tools,
    get_tool,
    get_tools_as_openai_schema,
)
from rpg_host.models.requests import RollDiceRequest


EXPECTED_TOOLS = {"new_game", "get_state", "roll_dice", "update_state", "combat_action", "reset_game"}


class TestToolRegistry:
    """Tests for tool registration."""

    def test_all_tools_registered(self) -> None:
        """Test every host operation is exposed as a tool."""
        assert {tool_def.name for tool_def in get_all_tools()} == EXPECTED_TOOLS

    def test_get_tool(self) -> None:
        """Test looking up a tool by name."""
        tool_def = get_tool("roll_dice")

        assert tool_def is not None
        assert tool_def.request_model is RollDiceRequest
        assert "d20" in tool_def.description
        assert get_tool("cast_fireball") is None

    def test_parameters_schema(self) -> None:
        """Test tool parameters are the request model's JSON schema."""
        parameters = get_tool("roll_dice").parameters

        assert parameters["type"] == "object"
        assert set(parameters["required"]) == {"game_id", "formula"}

    def test_openai_schema(self) -> None:
        """Test tools convert to the function calling format."""
        schemas = get_tools_as_openai_schema()

        assert len(schemas) == len(EXPECTED_TOOLS)
        for schema in schemas:
            assert schema["type"] == "function"
            assert schema["function"]["name"] in EXPECTED_TOOLS
            assert "properties" in schema["function"]["parameters"]


class TestExecuteTool:
    """Tests for execute_tool."""

    def test_unknown_tool(self, host: GameHost) -> None:
        """Test unknown tools are refused."""
        reply = execute_tool(host, "cast_fireball", {})

        assert reply.ok is False
        assert reply.message == "Unknown tool: cast_fireball"

    def test_invalid_arguments(self, host: GameHost) -> None:
        """Test argument validation errors become replies."""
        reply = execute_tool(host, "roll_dice", {"formula": "d20"})

        assert reply.ok is False
        assert reply.message.startswith("Invalid arguments for roll_dice: game_id: ")

    def test_unknown_action(self, host: GameHost) -> None:
        """Test invalid combat action names are refused."""
        reply = execute_tool(host, "combat_action", {"game_id": "game_1", "action": "flee"})

        assert reply.ok is False
        assert reply.message.startswith("Invalid arguments for combat_action: action: ")

    def test_full_flow(self, host: GameHost) -> None:
        """Test a game driven entirely through tool calls."""
        started = execute_tool(host, "new_game", {"game_id": "game_tools", "pc": {"name": "Ayla"}})
        assert started.ok is True

        combat = execute_tool(
            host,
            "update_state",
            {
                "game_id": "game_tools",
                "combat": {
                    "active": True,
                    "enemies": [{"id": "enemy_1", "name": "Goblin", "hp": 3, "hp_max": 3}],
                    "initiative": [
                        {"id": "pc_game_tools", "score": 18},
                        {"id": "enemy_1", "score": 4},
                    ],
                },
            },
        )
        assert combat.message == "Game state updated. Combat begins with Goblin."

        attack = execute_tool(
            host,
            "combat_action",
            {"game_id": "game_tools", "action": "attack", "target_id": "enemy_1", "damage": 5},
        )
        assert attack.ok is True
        assert attack.message == "Ayla attacks Goblin with Default Melee for 3 damage. Combat ends in victory."
        assert attack.state["phase"] == "exploration"

        state = execute_tool(host, "get_state", {"game_id": "game_tools"})
        assert state.state["combat"] is None

    def test_not_found_through_tool(self, host: GameHost) -> None:
        """Test host replies pass through unchanged."""
        reply = execute_tool(host, "get_state", {"game_id": "game_missing"})

        assert reply.ok is False
        assert reply.state is None
