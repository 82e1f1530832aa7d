"""MCP server/client pair used by the chat orchestrator.

The scenario and action tools are served by a low-level MCP ``Server`` built
once per bridge. Each call opens its own in-memory client session against
that server, so concurrent calls are independent round-trips and the bridge
does not hold on to any event loop. Results travel as a text rendering plus
the structured payload under ``TOOL_RESULT_KEY``.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.shared.memory import create_connected_server_and_client_session

from services.ai.chat.action_tools import create_action_tools
from services.ai.chat.errors import (
    DuplicateToolError,
    ToolCallError,
    ToolNotInitializedError,
    UnknownToolError,
)
from services.ai.chat.scenario_tools import create_scenario_tools
from services.ai.chat.tool_registry import ActiveScenarioGetter, RegisteredTool
from services.scenarios.scenario_models import dump_record

logger = logging.getLogger(__name__)

SERVER_NAME = "PortfolioContextServer"
SERVER_VERSION = "1.0.0"
TOOL_RESULT_KEY = "result"


def tool_definition(tool: RegisteredTool) -> types.Tool:
    return types.Tool(
        name=tool.name,
        title=tool.title,
        description=tool.description,
        inputSchema=tool.input_model.model_json_schema(by_alias=True),
    )


def tool_content(payload: Any):
    safe = dump_record(payload)
    text = safe if isinstance(safe, str) else json.dumps(safe, indent=2, default=str)
    return [types.TextContent(type="text", text=text)], {TOOL_RESULT_KEY: safe}


def build_tool_server(tools: Dict[str, RegisteredTool]) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def _list_tools() -> List[types.Tool]:
        return [tool_definition(t) for t in tools.values()]

    # RegisteredTool.invoke does the strict validation, so the SDK's check is off.
    @server.call_tool(validate_input=False)
    async def _call_tool(name: str, arguments: Dict[str, Any]):
        tool = tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        try:
            payload = await tool.invoke(arguments)
        except Exception as exc:
            logger.warning("tool_server.call_failed tool=%s err=%s", name, exc)
            raise
        return tool_content(payload)

    return server


def unwrap_tool_result(result: types.CallToolResult) -> Any:
    structured = result.structuredContent
    if structured and TOOL_RESULT_KEY in structured:
        return structured[TOOL_RESULT_KEY]
    text = next(
        (chunk.text for chunk in result.content if isinstance(chunk, types.TextContent)),
        None,
    )
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def error_text(result: types.CallToolResult) -> str:
    return next(
        (chunk.text for chunk in result.content if isinstance(chunk, types.TextContent)),
        "",
    )


class ToolBridge:
    """Lazily wires scenario + action tools behind an MCP server."""

    def __init__(
        self,
        *,
        data_dir: Optional[str] = None,
        get_active_scenario_id: Optional[ActiveScenarioGetter] = None,
        extra_tools: Optional[List[RegisteredTool]] = None,
    ):
        self._data_dir = data_dir
        self._get_active_scenario_id = get_active_scenario_id
        self._extra_tools = list(extra_tools or [])
        self._tools: Dict[str, RegisteredTool] = {}
        self._server: Optional[Server] = None

    @property
    def server(self) -> Optional[Server]:
        return self._server

    def register_tool(self, tool: RegisteredTool) -> None:
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool

    async def ensure_ready(self) -> None:
        # No awaits inside: the first caller finishes wiring before anyone else runs.
        if self._server is not None:
            return
        tool_options = {
            "data_dir": self._data_dir,
            "get_active_scenario_id": self._get_active_scenario_id,
        }
        for tool in [
            *create_scenario_tools(**tool_options),
            *create_action_tools(**tool_options),
            *self._extra_tools,
        ]:
            self.register_tool(tool)

        self._server = build_tool_server(self._tools)
        logger.info("tool_bridge.ready tools=%s", len(self._tools))

    async def list_tools(self) -> List[types.Tool]:
        await self.ensure_ready()
        async with create_connected_server_and_client_session(self._require_server()) as session:
            listed = await session.list_tools()
        return listed.tools

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        await self.ensure_ready()
        async with create_connected_server_and_client_session(self._require_server()) as session:
            result = await session.call_tool(name, arguments or {})
        if result.isError:
            raise ToolCallError(name, error_text(result) or f"Tool {name} failed")
        return unwrap_tool_result(result)

    def _require_server(self) -> Server:
        if self._server is None:
            raise ToolNotInitializedError()
        return self._server
