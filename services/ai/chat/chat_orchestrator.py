"""Chat orchestrator for portfolio questions.

Flow for one ``chat`` call:
  1. Resolve the OpenAI client (fatal if missing)
  2. Resolve the active scenario and the tool ids to run
  3. Call each tool through the in-process bridge, in order, isolating failures
  4. Derive current / historical / action-item context
  5. Build the prompt and ask the model for a JSON reply
  6. Add deterministic CTAs (follow-up, report, scenario list), merge and dedup
  7. Format the answer and return a ``ChatResult``
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from services.ai.chat.chat_models import ChatCTA, ChatMessage, ChatResult, CTAAction
from services.ai.chat.chat_prompts import (
    FALLBACK_SUGGESTIONS,
    build_chat_system_prompt,
    build_chat_user_prompt,
)
from services.ai.chat.errors import (
    LLMNotConfiguredError,
    LLMResponseError,
    PortfolioDataRequiredError,
)
from services.ai.chat.intent_parser import (
    display_borrower_name,
    format_answer,
    should_list_scenarios,
    should_suggest_follow_up,
    should_suggest_report,
)
from services.ai.chat.tool_bridge import ToolBridge
from services.ai.chat.tool_registry import ActiveScenarioGetter
from services.helpers.ai.json_helpers import parse_json_object
from services.openai.client import complete_text
from services.scenarios.scenario_models import ActionItem, PortfolioPeriod, ScenarioSummary

logger = logging.getLogger(__name__)

DEFAULT_TOOL_IDS = ["get_action_items"]
SCENARIO_SCOPED_TOOLS = {"get_scenario", "get_action_items"}
REPORT_CTA_TYPE = "borrower_statement"

PeriodLike = Union[PortfolioPeriod, Dict[str, Any]]
MessageLike = Union[ChatMessage, Dict[str, Any]]


def _is_tool_error(output: Any) -> bool:
    return isinstance(output, dict) and "error" in output


def _tool_succeeded(outputs: Dict[str, Any], tool_id: str) -> bool:
    output = outputs.get(tool_id)
    return output is not None and not _is_tool_error(output)


def _as_period(value: Optional[PeriodLike]) -> Optional[PortfolioPeriod]:
    if value is None or isinstance(value, PortfolioPeriod):
        return value
    return PortfolioPeriod.model_validate(value)


def _as_periods(values: Optional[Sequence[PeriodLike]]) -> List[PortfolioPeriod]:
    return [p for p in (_as_period(v) for v in values or []) if p is not None]


def _as_action_items(raw: Any) -> List[ActionItem]:
    if not isinstance(raw, list):
        return []
    out: List[ActionItem] = []
    for item in raw:
        if isinstance(item, ActionItem):
            out.append(item)
            continue
        try:
            out.append(ActionItem.model_validate(item))
        except ValidationError:
            logger.warning("chat.action_item_skip reason=invalid")
    return out


def _parse_model_ctas(raw: Any) -> List[ChatCTA]:
    if not isinstance(raw, list):
        return []
    out: List[ChatCTA] = []
    for item in raw:
        try:
            out.append(ChatCTA.model_validate(item))
        except ValidationError:
            logger.warning("chat.model_cta_skip reason=invalid")
    return out


def dedupe_ctas(ctas: Sequence[ChatCTA]) -> List[ChatCTA]:
    """First occurrence per identity key wins; order is preserved."""
    seen: set[str] = set()
    out: List[ChatCTA] = []
    for cta in ctas:
        key = cta.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        out.append(cta)
    return out


def format_scenario_list(scenarios: Sequence[ScenarioSummary]) -> str:
    lines = [
        f"- {s.name} ({s.id}){' [active]' if s.active else ''}: {s.description}"
        for s in scenarios
    ]
    return "Available Scenarios:\n" + "\n".join(lines) + "\n\n"


class ChatOrchestrator:
    def __init__(
        self,
        *,
        data_dir: Optional[str] = None,
        openai_factory: Optional[Callable[[], Any]] = None,
        get_active_scenario_id: Optional[ActiveScenarioGetter] = None,
        model: str = "gpt-4o",
        max_tokens: int = 1000,
        bridge: Optional[ToolBridge] = None,
    ):
        self._openai_factory = openai_factory
        self._get_active_scenario_id = get_active_scenario_id
        self.model = model
        self.max_tokens = int(max_tokens)
        self.bridge = bridge or ToolBridge(
            data_dir=data_dir,
            get_active_scenario_id=get_active_scenario_id,
        )

    # ── tool access ─────────────────────────────────────────────────

    async def ensure_ready(self) -> None:
        await self.bridge.ensure_ready()

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        return await self.bridge.call_tool(name, arguments or {})

    async def _gather_tool_outputs(
        self,
        tool_ids: Sequence[str],
        active_scenario_id: Optional[str],
    ) -> Dict[str, Any]:
        outputs: Dict[str, Any] = {}
        for tool_id in tool_ids:
            args: Dict[str, Any] = {}
            if tool_id in SCENARIO_SCOPED_TOOLS and active_scenario_id:
                args["id"] = active_scenario_id
            try:
                outputs[tool_id] = await self.call_tool(tool_id, args)
            except Exception as exc:
                logger.warning("chat.tool_error tool=%s err=%s", tool_id, exc)
                outputs[tool_id] = {"error": str(exc) or "Unknown error"}
        return outputs

    # ── CTA helpers ─────────────────────────────────────────────────

    def _follow_up_cta(self, item: ActionItem) -> ChatCTA:
        return ChatCTA(
            label=f"Message {display_borrower_name(item.borrower or '')}",
            icon="send",
            action=CTAAction(
                type="send_message",
                borrower_id=item.id,
                borrower_email=item.borrower_email,
                borrower_name=item.borrower,
            ),
        )

    async def _report_ctas(self, active_scenario_id: str, existing: Sequence[ChatCTA]) -> List[ChatCTA]:
        out: List[ChatCTA] = []
        try:
            report = await self.call_tool(
                "generate_report_mockup",
                {"id": active_scenario_id, "reportType": REPORT_CTA_TYPE},
            )
            link = report.get("link") if isinstance(report, dict) else None
            out.append(
                ChatCTA(
                    label="Open Statement Report",
                    icon="file",
                    action=CTAAction(type="view_report", report_type=REPORT_CTA_TYPE, report_link=link),
                )
            )
        except Exception as exc:
            logger.warning("chat.report_mockup_failed scenario=%s err=%s", active_scenario_id, exc)
            out.append(
                ChatCTA(
                    label="Generate Late Notices",
                    icon="alert",
                    action=CTAAction(type="late_notices"),
                )
            )

        if not any(c.action.type == "view_report" for c in [*existing, *out]):
            out.append(
                ChatCTA(
                    label="Open Statement Report",
                    icon="file",
                    action=CTAAction(type="view_report", report_type=REPORT_CTA_TYPE),
                )
            )
        return out

    async def _scenario_list(self) -> List[ScenarioSummary]:
        try:
            raw = await self.call_tool("list_scenarios")
        except Exception as exc:
            logger.error("chat.list_scenarios_failed err=%s", exc)
            return []
        if not isinstance(raw, list):
            return []
        out: List[ScenarioSummary] = []
        for item in raw:
            try:
                out.append(ScenarioSummary.model_validate(item))
            except ValidationError:
                logger.warning("chat.scenario_summary_skip reason=invalid")
        return out

    # ── LLM ─────────────────────────────────────────────────────────

    async def _complete(self, client: Any, messages: List[Dict[str, str]]) -> str:
        return await complete_text(client, model=self.model, max_tokens=self.max_tokens, messages=messages)

    # ── main entry point ────────────────────────────────────────────

    async def chat(
        self,
        *,
        question: str,
        portfolio_data: Optional[PeriodLike] = None,
        historical_data: Optional[Sequence[PeriodLike]] = None,
        conversation_history: Optional[Sequence[MessageLike]] = None,
        scenario_id: Optional[str] = None,
        tool_ids: Optional[Sequence[str]] = None,
    ) -> ChatResult:
        client = self._openai_factory() if self._openai_factory else None
        if not client:
            raise LLMNotConfiguredError()

        active_scenario_id = scenario_id
        if active_scenario_id is None and self._get_active_scenario_id is not None:
            active_scenario_id = self._get_active_scenario_id()
        resolved_tool_ids = list(tool_ids) if tool_ids else list(DEFAULT_TOOL_IDS)

        outputs = await self._gather_tool_outputs(resolved_tool_ids, active_scenario_id)

        scenario_data = outputs.get("get_scenario") if _tool_succeeded(outputs, "get_scenario") else None
        if not isinstance(scenario_data, dict):
            scenario_data = None

        if scenario_data and scenario_data.get("current"):
            current = _as_period(scenario_data["current"])
        else:
            current = _as_period(portfolio_data)

        if scenario_data and scenario_data.get("historical") is not None:
            historical = _as_periods(scenario_data["historical"])
        else:
            historical = _as_periods(historical_data)

        if _tool_succeeded(outputs, "get_action_items"):
            action_items = _as_action_items(outputs["get_action_items"])
        else:
            action_items = list(current.action_items or []) if current else []

        if current is None:
            raise PortfolioDataRequiredError()

        messages: List[Dict[str, str]] = [
            {
                "role": "system",
                "content": build_chat_system_prompt(
                    current=current,
                    historical=historical,
                    action_items=action_items,
                    tool_ids=resolved_tool_ids,
                ),
            }
        ]
        for msg in conversation_history or []:
            m = msg if isinstance(msg, ChatMessage) else ChatMessage.model_validate(msg)
            messages.append({"role": m.role, "content": m.content})
        messages.append({"role": "user", "content": build_chat_user_prompt(question)})

        content = await self._complete(client, messages)
        try:
            parsed = parse_json_object(content)
        except ValueError as exc:
            raise LLMResponseError(f"Model response was not valid JSON: {exc}") from exc

        raw_suggestions = parsed.get("suggestions")
        suggestions = (
            [str(s) for s in raw_suggestions]
            if isinstance(raw_suggestions, list) and raw_suggestions
            else list(FALLBACK_SUGGESTIONS)
        )

        is_report_question = should_suggest_report(question)
        scenario_list = await self._scenario_list() if should_list_scenarios(question) else []

        auto_ctas: List[ChatCTA] = []
        if should_suggest_follow_up(question) and action_items:
            auto_ctas.append(self._follow_up_cta(action_items[0]))
        if is_report_question and active_scenario_id:
            auto_ctas.extend(await self._report_ctas(active_scenario_id, auto_ctas))

        model_ctas = _parse_model_ctas(parsed.get("ctas"))
        if is_report_question:
            model_ctas = [c for c in model_ctas if c.action.type == "view_report"]
        merged = dedupe_ctas([*model_ctas, *auto_ctas])

        report_ctas = [c for c in auto_ctas if c.action.type == "view_report"]
        final_ctas = report_ctas if report_ctas else merged

        prefix = format_scenario_list(scenario_list) if scenario_list else ""
        answer = parsed.get("answer") or ""
        result = ChatResult(
            answer=format_answer(f"{prefix}{answer if isinstance(answer, str) else str(answer)}"),
            suggestions=suggestions,
            chart=parsed.get("chart") or None,
            ctas=final_ctas,
        )

        logger.info(
            "chat.done question=%s is_report=%s suggestions=%s ctas=%s",
            (question or "")[:60],
            is_report_question,
            len(result.suggestions),
            [c.action.type for c in result.ctas],
        )
        return result
