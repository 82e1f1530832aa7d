from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.ai.chat.errors import ScenarioIdRequiredError
from services.ai.chat.tool_registry import (
    ActiveScenarioGetter,
    RegisteredTool,
    ScenarioToolOptions,
    ToolRegistry,
    create_active_scenario_getter,
    reject_null,
)
from services.scenarios.scenario_models import ActionItem, Scenario, ScenarioSummary
from services.scenarios.scenario_store import list_scenarios, load_scenario

logger = logging.getLogger(__name__)


class NoArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ScenarioIdInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)


class ActionItemsInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(default=None, min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def _id_not_null(cls, value):
        return reject_null(value)


def create_scenario_tools(
    *,
    data_dir: Optional[str] = None,
    active_scenario_id: Optional[str] = None,
    get_active_scenario_id: Optional[ActiveScenarioGetter] = None,
) -> List[RegisteredTool]:
    options = ScenarioToolOptions(
        data_dir=data_dir,
        active_scenario_id=active_scenario_id,
        get_active_scenario_id=get_active_scenario_id,
    )
    active_getter = create_active_scenario_getter(options)

    async def tool_list_scenarios(_args: NoArgs) -> List[ScenarioSummary]:
        return await asyncio.to_thread(
            list_scenarios,
            data_dir=options.data_dir,
            active_scenario_id=active_getter(),
        )

    async def tool_get_scenario(args: ScenarioIdInput) -> Scenario:
        return await asyncio.to_thread(load_scenario, args.id, data_dir=options.data_dir)

    async def tool_get_action_items(args: ActionItemsInput) -> List[ActionItem]:
        scenario_id = args.id if args.id is not None else active_getter()
        if not scenario_id:
            raise ScenarioIdRequiredError(
                "Scenario id is required when no active scenario is configured"
            )
        scenario = await asyncio.to_thread(load_scenario, scenario_id, data_dir=options.data_dir)
        return list(scenario.current.action_items or [])

    return [
        RegisteredTool(
            name="list_scenarios",
            title="List Scenarios",
            description="List all available scenarios with metadata and active flag.",
            input_model=NoArgs,
            handler=tool_list_scenarios,
        ),
        RegisteredTool(
            name="get_scenario",
            title="Get Scenario Detail",
            description="Load the full payload for a specific scenario.",
            input_model=ScenarioIdInput,
            handler=tool_get_scenario,
        ),
        RegisteredTool(
            name="get_action_items",
            title="Get Scenario Action Items",
            description="Return current action items for a scenario (defaults to active).",
            input_model=ActionItemsInput,
            handler=tool_get_action_items,
        ),
    ]


def register_scenario_tools(registry: ToolRegistry, **options: Any) -> List[RegisteredTool]:
    tools = create_scenario_tools(**options)
    for tool in tools:
        registry.register_tool(tool)
    return tools
