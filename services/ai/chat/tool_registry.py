"""Tool definitions shared by the scenario and action tool sets.

A ``RegisteredTool`` pairs a strict pydantic input model with an async
handler. ``invoke`` validates raw arguments (unknown keys are rejected) and
then runs the handler with the parsed model.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from pydantic import BaseModel, ValidationError

from services.ai.chat.errors import ToolInputError

ActiveScenarioGetter = Callable[[], Optional[str]]


@dataclass(frozen=True)
class RegisteredTool:
    name: str
    title: str
    description: str
    input_model: type[BaseModel]
    handler: Callable[[Any], Awaitable[Any]]

    async def invoke(self, arguments: Optional[Dict[str, Any]] = None) -> Any:
        try:
            parsed = self.input_model.model_validate(arguments or {})
        except ValidationError as exc:
            fields = _error_fields(exc)
            detail = "; ".join(
                f"{'.'.join(str(p) for p in err.get('loc', ())) or '<root>'}: {err.get('msg')}"
                for err in exc.errors()
            )
            raise ToolInputError(self.name, fields, detail) from exc
        return await self.handler(parsed)


class ToolRegistry(Protocol):
    def register_tool(self, tool: RegisteredTool) -> None: ...


@dataclass(frozen=True)
class ScenarioToolOptions:
    data_dir: Optional[str] = None
    active_scenario_id: Optional[str] = None
    get_active_scenario_id: Optional[ActiveScenarioGetter] = None


def create_active_scenario_getter(options: ScenarioToolOptions) -> ActiveScenarioGetter:
    if callable(options.get_active_scenario_id):
        return options.get_active_scenario_id
    fallback = options.active_scenario_id
    return lambda: fallback


def _error_fields(exc: ValidationError) -> List[str]:
    out: List[str] = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        name = ".".join(str(p) for p in loc) or "<root>"
        if name not in out:
            out.append(name)
    return out


def reject_null(value: Any) -> Any:
    """Before-validator for optional fields: omitting the key is fine, ``null`` is not."""
    if value is None:
        raise ValueError("must be a non-empty string when provided")
    return value
