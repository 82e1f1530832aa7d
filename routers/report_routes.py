# report_routes.py
"""Mock report previews behind the links produced by ``generate_report_mockup``."""
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from config.app_config import AppConfig
from routers.scenario_routes import get_app_config
from services.ai.chat.action_tools import ReportType
from services.scenarios.scenario_models import dump_record
from services.scenarios.scenario_store import ScenarioStoreError, load_scenario

logger = logging.getLogger(__name__)

router = APIRouter()

REPORT_TITLES = {
    "late_notices": "Late Notices",
    "borrower_statement": "Borrower Statement",
    "escrow_analysis": "Escrow Analysis",
}


@router.get("/{scenario_id}/{report_type}/{report_id}")
async def get_mock_report(
    scenario_id: str,
    report_type: ReportType,
    report_id: str,
    config: AppConfig = Depends(get_app_config),
):
    try:
        scenario = await asyncio.to_thread(load_scenario, scenario_id, data_dir=config.data_dir)
    except (ScenarioStoreError, ValueError):
        raise HTTPException(status_code=404, detail="Scenario not found")

    current = scenario.current
    items = current.action_items or []
    if report_type == "late_notices":
        items = [a for a in items if (a.days_past_due or 0) > 0]

    logger.info("report.preview type=%s scenario=%s rows=%s", report_type, scenario_id, len(items))
    return {
        "reportId": report_id,
        "scenarioId": scenario_id,
        "reportType": report_type,
        "title": REPORT_TITLES[report_type],
        "scenarioName": scenario.name,
        "period": f"{current.month} {current.year}",
        "mock": True,
        "rows": dump_record(items),
    }
