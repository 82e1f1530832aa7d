import asyncio
import os
import unittest

from services.ai.chat.errors import ScenarioIdRequiredError, ToolInputError
from services.ai.chat.scenario_tools import create_scenario_tools, register_scenario_tools
from services.scenarios.scenario_store import InvalidScenarioIdError

SCENARIOS_DIR = os.path.join(os.path.dirname(__file__), "fixtures", "scenarios")
INVALID_DIR = os.path.join(os.path.dirname(__file__), "fixtures", "scenarios-invalid")


def _tools(**options):
    return {t.name: t for t in create_scenario_tools(data_dir=SCENARIOS_DIR, **options)}


class _FakeRegistry:
    def __init__(self):
        self.names = []

    def register_tool(self, tool):
        self.names.append(tool.name)


class ScenarioToolsTests(unittest.TestCase):
    def test_registers_three_tools(self):
        registry = _FakeRegistry()
        register_scenario_tools(registry, data_dir=SCENARIOS_DIR)
        self.assertEqual(registry.names, ["list_scenarios", "get_scenario", "get_action_items"])

    def test_list_scenarios_uses_live_active_id(self):
        state = {"active": "alpha"}
        tools = _tools(get_active_scenario_id=lambda: state["active"])

        first = asyncio.run(tools["list_scenarios"].invoke({}))
        state["active"] = "beta"
        second = asyncio.run(tools["list_scenarios"].invoke({}))

        self.assertEqual({s.id for s in first if s.active}, {"alpha"})
        self.assertEqual({s.id for s in second if s.active}, {"beta"})

    def test_get_scenario_returns_full_record(self):
        tools = _tools()
        scenario = asyncio.run(tools["get_scenario"].invoke({"id": "alpha"}))
        self.assertEqual(scenario.name, "Alpha Scenario")

    def test_get_scenario_rejects_extra_keys(self):
        tools = _tools()
        with self.assertRaises(ToolInputError) as ctx:
            asyncio.run(tools["get_scenario"].invoke({"id": "alpha", "extra": 1}))
        self.assertIn("extra", ctx.exception.fields)

    def test_get_scenario_rejects_path_ids(self):
        tools = {t.name: t for t in create_scenario_tools(data_dir=INVALID_DIR)}
        with self.assertRaises(InvalidScenarioIdError):
            asyncio.run(tools["get_scenario"].invoke({"id": "../scenarios/alpha"}))

    def test_get_scenario_requires_id(self):
        tools = _tools()
        with self.assertRaises(ToolInputError):
            asyncio.run(tools["get_scenario"].invoke({}))
        with self.assertRaises(ToolInputError):
            asyncio.run(tools["get_scenario"].invoke({"id": ""}))

    def test_get_action_items_without_active_scenario(self):
        tools = _tools()
        with self.assertRaises(ScenarioIdRequiredError) as ctx:
            asyncio.run(tools["get_action_items"].invoke({}))
        self.assertIn("Scenario id is required", str(ctx.exception))

    def test_get_action_items_falls_back_to_resolver(self):
        tools = _tools(get_active_scenario_id=lambda: "alpha")
        items = asyncio.run(tools["get_action_items"].invoke({}))
        self.assertEqual([i.id for i in items], ["LN-1"])
        self.assertEqual(items[0].borrower, "Last, First")

    def test_get_action_items_static_active_id(self):
        tools = _tools(active_scenario_id="alpha")
        items = asyncio.run(tools["get_action_items"].invoke({}))
        self.assertEqual(len(items), 1)

    def test_get_action_items_rejects_null_id(self):
        tools = _tools(active_scenario_id="alpha")
        with self.assertRaises(ToolInputError) as ctx:
            asyncio.run(tools["get_action_items"].invoke({"id": None}))
        self.assertEqual(ctx.exception.fields, ["id"])

    def test_get_action_items_explicit_id_wins(self):
        tools = _tools(get_active_scenario_id=lambda: "alpha")
        items = asyncio.run(tools["get_action_items"].invoke({"id": "beta"}))
        self.assertEqual(items, [])


if __name__ == "__main__":
    unittest.main()
