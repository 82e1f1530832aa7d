import asyncio
import os
import unittest

import mcp.types as types
from pydantic import BaseModel, ConfigDict

from services.ai.chat.errors import DuplicateToolError, ToolCallError
from services.ai.chat.tool_bridge import (
    TOOL_RESULT_KEY,
    ToolBridge,
    tool_content,
    unwrap_tool_result,
)
from services.ai.chat.tool_registry import RegisteredTool

SCENARIOS_DIR = os.path.join(os.path.dirname(__file__), "fixtures", "scenarios")

DEFAULT_TOOLS = ["list_scenarios", "get_scenario", "get_action_items", "generate_report_mockup"]


class _EchoInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = ""


def _tool(name: str, handler) -> RegisteredTool:
    return RegisteredTool(
        name=name,
        title=name,
        description=f"{name} tool",
        input_model=_EchoInput,
        handler=handler,
    )


async def _echo(args: _EchoInput):
    return args.text


async def _boom(_args: _EchoInput):
    raise RuntimeError("boom")


def _bridge(*extra):
    return ToolBridge(data_dir=SCENARIOS_DIR, extra_tools=list(extra))


class ToolResultTests(unittest.TestCase):
    def test_structured_payload_is_preferred(self):
        content, structured = tool_content({"a": 1})
        result = types.CallToolResult(content=content, structuredContent=structured)

        self.assertEqual(structured, {TOOL_RESULT_KEY: {"a": 1}})
        self.assertIn('"a": 1', content[0].text)
        self.assertEqual(unwrap_tool_result(result), {"a": 1})

    def test_string_payload_is_sent_as_is(self):
        content, _structured = tool_content("plain")
        self.assertEqual(content[0].text, "plain")

    def test_text_fallbacks(self):
        as_json = types.CallToolResult(content=[types.TextContent(type="text", text='{"b": 2}')])
        as_text = types.CallToolResult(content=[types.TextContent(type="text", text="not json")])
        empty = types.CallToolResult(content=[])

        self.assertEqual(unwrap_tool_result(as_json), {"b": 2})
        self.assertEqual(unwrap_tool_result(as_text), "not json")
        self.assertIsNone(unwrap_tool_result(empty))


class ToolCallTests(unittest.TestCase):
    def test_round_trip(self):
        bridge = _bridge(_tool("echo", _echo))
        self.assertEqual(asyncio.run(bridge.call_tool("echo", {"text": "hi"})), "hi")

    def test_unknown_tool_is_an_error(self):
        with self.assertRaises(ToolCallError) as ctx:
            asyncio.run(_bridge().call_tool("missing"))
        self.assertIn("Tool missing not found", str(ctx.exception))

    def test_handler_failure_is_an_error(self):
        with self.assertRaises(ToolCallError) as ctx:
            asyncio.run(_bridge(_tool("boom", _boom)).call_tool("boom"))
        self.assertIn("boom", str(ctx.exception))
        self.assertEqual(ctx.exception.tool_name, "boom")

    def test_invalid_input_is_an_error(self):
        bridge = _bridge(_tool("echo", _echo))
        with self.assertRaises(ToolCallError) as ctx:
            asyncio.run(bridge.call_tool("echo", {"nope": 1}))
        self.assertIn("Invalid arguments for echo", str(ctx.exception))

    def test_duplicate_registration_is_rejected(self):
        bridge = ToolBridge()
        bridge.register_tool(_tool("echo", _echo))
        with self.assertRaises(DuplicateToolError):
            bridge.register_tool(_tool("echo", _echo))

    def test_extra_tool_cannot_shadow_a_default_tool(self):
        bridge = _bridge(_tool("get_scenario", _echo))
        with self.assertRaises(DuplicateToolError):
            asyncio.run(bridge.ensure_ready())

    def test_concurrent_calls_are_independent(self):
        async def _slow_echo(args: _EchoInput):
            await asyncio.sleep(0.01 if args.text == "first" else 0)
            return args.text

        bridge = _bridge(_tool("echo", _slow_echo))

        async def _run():
            return await asyncio.gather(
                bridge.call_tool("echo", {"text": "first"}),
                bridge.call_tool("echo", {"text": "second"}),
            )

        self.assertEqual(asyncio.run(_run()), ["first", "second"])


class ToolBridgeTests(unittest.TestCase):
    def test_ready_once_with_default_tools(self):
        bridge = _bridge()

        async def _run():
            await bridge.ensure_ready()
            server = bridge.server
            await bridge.ensure_ready()
            return server, await bridge.list_tools()

        server, tools = asyncio.run(_run())
        self.assertIs(server, bridge.server)
        self.assertEqual([t.name for t in tools], DEFAULT_TOOLS)

    def test_listed_schemas_reject_unknown_keys(self):
        tools = {t.name: t for t in asyncio.run(_bridge().list_tools())}

        self.assertFalse(tools["get_scenario"].inputSchema.get("additionalProperties", True))
        self.assertIn("reportType", tools["generate_report_mockup"].inputSchema["properties"])

    def test_concurrent_first_calls_share_one_server(self):
        bridge = _bridge()

        async def _run():
            await asyncio.gather(*(bridge.ensure_ready() for _ in range(5)))

        asyncio.run(_run())
        self.assertIsNotNone(bridge.server)
        self.assertEqual(len(asyncio.run(bridge.list_tools())), 4)

    def test_results_are_json_safe(self):
        bridge = ToolBridge(data_dir=SCENARIOS_DIR, get_active_scenario_id=lambda: "alpha")

        scenario = asyncio.run(bridge.call_tool("get_scenario", {"id": "alpha"}))
        items = asyncio.run(bridge.call_tool("get_action_items"))

        self.assertEqual(scenario["name"], "Alpha Scenario")
        self.assertEqual(scenario["current"]["month"], "January")
        self.assertEqual(items[0]["borrowerEmail"], "first.last@example.com")

    def test_empty_list_result_survives_the_transport(self):
        bridge = ToolBridge(data_dir=SCENARIOS_DIR)
        self.assertEqual(asyncio.run(bridge.call_tool("get_action_items", {"id": "beta"})), [])


if __name__ == "__main__":
    unittest.main()
