# services/scenarios/scenario_store.py
"""
Read-through access to scenario JSON documents on disk.

Every call re-reads and re-validates the file; nothing is cached, so an edit
made out-of-band is visible on the next load.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from services.scenarios.scenario_models import Scenario, ScenarioSummary

logger = logging.getLogger(__name__)

RESERVED_FILENAMES = {"messages.json"}
REQUIRED_ROOT_FIELDS = ("name", "description", "current", "historical")


class ScenarioStoreError(Exception):
    """Domain-level error for scenario loading."""


class InvalidScenarioIdError(ScenarioStoreError):
    pass


class ScenarioReadError(ScenarioStoreError):
    pass


class InvalidScenarioError(ScenarioStoreError):
    pass


def get_data_dir() -> str:
    return os.getenv("SCENARIO_DATA_DIR") or os.path.join(os.getcwd(), "data")


def _resolve_data_dir(data_dir: Optional[str]) -> str:
    return data_dir or get_data_dir()


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_plain_name(value: str) -> bool:
    return (
        value not in (".", "..")
        and "/" not in value
        and "\\" not in value
        and os.path.basename(value) == value
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _missing_fields(data: Dict[str, Any]) -> List[str]:
    missing: List[str] = []
    for field in REQUIRED_ROOT_FIELDS:
        if field not in data:
            missing.append(field)
        elif field == "current":
            if not isinstance(data["current"], dict):
                missing.append(field)
        elif field == "historical":
            if not isinstance(data["historical"], list):
                missing.append(field)
        elif data[field] is None:
            missing.append(field)
    return missing


def validate_scenario_data(data: Any, scenario_id: str) -> Scenario:
    if not isinstance(data, dict):
        raise InvalidScenarioError(f'Scenario "{scenario_id}" is not a valid object')

    missing = _missing_fields(data)
    if missing:
        raise InvalidScenarioError(
            f'Scenario "{scenario_id}" is missing fields: {", ".join(missing)}'
        )

    if not _non_empty_str(data["name"]) or not _non_empty_str(data["description"]):
        raise InvalidScenarioError(
            f'Scenario "{scenario_id}" requires non-empty name and description'
        )

    current = data["current"]
    if not _non_empty_str(current.get("month")) or not _is_number(current.get("year")):
        raise InvalidScenarioError(f'Scenario "{scenario_id}" current period is invalid')

    try:
        return Scenario.model_validate(data)
    except ValidationError as exc:
        raise InvalidScenarioError(f'Scenario "{scenario_id}" is malformed: {exc}') from exc


def load_scenario(scenario_id: str, *, data_dir: Optional[str] = None) -> Scenario:
    if not _non_empty_str(scenario_id):
        raise InvalidScenarioIdError("scenario_id must be a non-empty string")
    if not _is_plain_name(scenario_id):
        raise InvalidScenarioIdError(f"scenario_id must be a plain file name: {scenario_id!r}")

    path = os.path.join(_resolve_data_dir(data_dir), f"{scenario_id}.json")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            content = fh.read()
    except OSError as exc:
        raise ScenarioReadError(f'Unable to read scenario "{scenario_id}": {exc}') from exc

    parsed = json.loads(content)
    return validate_scenario_data(parsed, scenario_id)


def list_scenarios(
    *,
    data_dir: Optional[str] = None,
    active_scenario_id: Optional[str] = None,
) -> List[ScenarioSummary]:
    """Summaries for every scenario file; one bad file fails the whole listing."""
    resolved = _resolve_data_dir(data_dir)
    files = [
        f for f in os.listdir(resolved)
        if f.endswith(".json") and f not in RESERVED_FILENAMES
    ]

    out: List[ScenarioSummary] = []
    for filename in files:
        scenario_id = filename[: -len(".json")]
        scenario = load_scenario(scenario_id, data_dir=resolved)
        out.append(
            ScenarioSummary(
                id=scenario_id,
                name=scenario.name,
                description=scenario.description,
                sentiment=scenario.sentiment if scenario.sentiment is not None else "neutral",
                active=scenario_id == active_scenario_id,
            )
        )
    logger.debug("scenario_store.list dir=%s count=%s", resolved, len(out))
    return out
