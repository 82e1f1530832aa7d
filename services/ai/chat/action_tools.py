from __future__ import annotations

import logging
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.ai.chat.errors import ScenarioIdRequiredError
from services.ai.chat.tool_registry import (
    ActiveScenarioGetter,
    RegisteredTool,
    ScenarioToolOptions,
    create_active_scenario_getter,
    reject_null,
)

logger = logging.getLogger(__name__)

ReportType = Literal["late_notices", "borrower_statement", "escrow_analysis"]

REPORT_LINK_PREFIX = "/reports/mock"


class ReportInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(default=None, min_length=1)
    report_type: ReportType = Field(default="late_notices", alias="reportType")

    @field_validator("id", mode="before")
    @classmethod
    def _id_not_null(cls, value):
        return reject_null(value)


def create_report_id(factory: Optional[Callable[[], Any]] = uuid.uuid4) -> str:
    if factory is not None:
        try:
            return str(factory())
        except Exception as exc:
            logger.warning("report_id.factory_failed err=%s", exc)
    # Timestamp + random suffix only needs to be unique within the process.
    return f"{int(time.time() * 1000)}-{random.getrandbits(48):x}"


def build_report_link(scenario_id: str, report_type: str, report_id: str) -> str:
    return f"{REPORT_LINK_PREFIX}/{scenario_id}/{report_type}/{report_id}"


def create_action_tools(
    *,
    data_dir: Optional[str] = None,
    active_scenario_id: Optional[str] = None,
    get_active_scenario_id: Optional[ActiveScenarioGetter] = None,
    id_factory: Optional[Callable[[], Any]] = uuid.uuid4,
) -> List[RegisteredTool]:
    active_getter = create_active_scenario_getter(
        ScenarioToolOptions(
            data_dir=data_dir,
            active_scenario_id=active_scenario_id,
            get_active_scenario_id=get_active_scenario_id,
        )
    )

    async def tool_generate_report_mockup(args: ReportInput) -> Dict[str, Any]:
        scenario_id = args.id if args.id is not None else active_getter()
        if not scenario_id:
            raise ScenarioIdRequiredError("Scenario id is required to generate a report mockup")

        report_id = create_report_id(id_factory)
        return {
            "reportId": report_id,
            "scenarioId": scenario_id,
            "reportType": args.report_type,
            "generatedAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "link": build_report_link(scenario_id, args.report_type, report_id),
        }

    return [
        RegisteredTool(
            name="generate_report_mockup",
            title="Generate Report Mockup",
            description="Create a shareable report preview link for the active scenario.",
            input_model=ReportInput,
            handler=tool_generate_report_mockup,
        )
    ]
