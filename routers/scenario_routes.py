# scenario_routes.py
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from config.app_config import AppConfig
from services.scenarios.active_scenario import ActiveScenario
from services.scenarios.scenario_models import dump_record
from services.scenarios.scenario_store import (
    ScenarioStoreError,
    list_scenarios,
    load_scenario,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---- Dependencies (per-app state set up in main.create_app) ----
def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_active_scenario(request: Request) -> ActiveScenario:
    return request.app.state.active_scenario


# ---------- Routes ----------
@router.get("/scenarios")
async def get_scenarios(
    config: AppConfig = Depends(get_app_config),
    active: ActiveScenario = Depends(get_active_scenario),
):
    try:
        scenarios = await asyncio.to_thread(
            list_scenarios, data_dir=config.data_dir, active_scenario_id=active.get()
        )
    except (ScenarioStoreError, ValueError, OSError) as e:
        logger.exception("scenarios.list_failed")
        raise HTTPException(status_code=500, detail=f"Failed to list scenarios: {e}")
    return {"scenarios": [s.model_dump() for s in scenarios]}


@router.get("/scenarios/current")
async def get_current_scenario(active: ActiveScenario = Depends(get_active_scenario)):
    return {"scenario": active.get()}


@router.post("/scenarios/{scenario_id}")
async def switch_scenario(
    scenario_id: str,
    config: AppConfig = Depends(get_app_config),
    active: ActiveScenario = Depends(get_active_scenario),
):
    try:
        await asyncio.to_thread(load_scenario, scenario_id, data_dir=config.data_dir)
    except (ScenarioStoreError, ValueError) as e:
        logger.warning("scenarios.switch_rejected scenario=%s err=%s", scenario_id, e)
        raise HTTPException(status_code=404, detail="Scenario not found")

    active.set(scenario_id)
    logger.info("scenarios.switched scenario=%s", scenario_id)
    return {"success": True, "scenario": scenario_id}


@router.get("/portfolio")
async def get_portfolio(
    config: AppConfig = Depends(get_app_config),
    active: ActiveScenario = Depends(get_active_scenario),
):
    scenario_id = active.get()
    try:
        scenario = await asyncio.to_thread(load_scenario, scenario_id, data_dir=config.data_dir)
    except (ScenarioStoreError, ValueError) as e:
        logger.exception("portfolio.load_failed scenario=%s", scenario_id)
        raise HTTPException(status_code=500, detail=f"Failed to load portfolio data: {e}")

    return {
        "scenario": scenario_id,
        "name": scenario.name,
        "sentiment": scenario.sentiment,
        "current": dump_record(scenario.current),
        "historical": dump_record(scenario.historical),
    }
