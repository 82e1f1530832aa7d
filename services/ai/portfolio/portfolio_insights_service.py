# services/ai/portfolio/portfolio_insights_service.py
"""
One-shot AI helpers for the dashboard: monthly summary, insight cards,
structured reports and borrower message drafts.
Each call is a single OpenAI completion that must come back as JSON.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from services.ai.chat.errors import LLMNotConfiguredError, LLMResponseError
from services.ai.portfolio.portfolio_prompts import (
    DraftKind,
    ReportStyle,
    build_draft_prompt,
    build_insights_prompt,
    build_report_prompt,
    build_summary_prompt,
)
from services.helpers.ai.json_helpers import parse_json_array, parse_json_object
from services.openai.client import complete_text
from services.scenarios.scenario_models import PortfolioPeriod

logger = logging.getLogger(__name__)

SUMMARY_MAX_TOKENS = 500
INSIGHTS_MAX_TOKENS = 800
REPORT_MAX_TOKENS = 2000
EMAIL_DRAFT_MAX_TOKENS = 600
MESSAGE_DRAFT_MAX_TOKENS = 300

SENTIMENTS = ("good", "neutral", "bad")


class PortfolioInsightsService:
    def __init__(self, *, openai_factory: Callable[[], Any], model: str = "gpt-4o"):
        self._openai_factory = openai_factory
        self.model = model

    async def _ask(self, prompt: str, *, max_tokens: int, kind: str) -> str:
        client = self._openai_factory() if self._openai_factory else None
        if not client:
            raise LLMNotConfiguredError()
        logger.info("insights.request kind=%s max_tokens=%s", kind, max_tokens)
        return await complete_text(
            client,
            model=self.model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )

    async def _ask_object(self, prompt: str, *, max_tokens: int, kind: str) -> Dict[str, Any]:
        content = await self._ask(prompt, max_tokens=max_tokens, kind=kind)
        try:
            return parse_json_object(content)
        except ValueError as exc:
            raise LLMResponseError(f"Model response was not valid JSON: {exc}") from exc

    async def summarize(
        self,
        current: PortfolioPeriod,
        historical: Optional[Sequence[PortfolioPeriod]] = None,
    ) -> Dict[str, Any]:
        parsed = await self._ask_object(
            build_summary_prompt(current, historical or []),
            max_tokens=SUMMARY_MAX_TOKENS,
            kind="summary",
        )
        sentiment = parsed.get("sentiment")
        return {
            "summary": parsed.get("summary") or "",
            "sentiment": sentiment if sentiment in SENTIMENTS else "neutral",
            "keyTakeaway": parsed.get("keyTakeaway") or "",
        }

    async def insights(self, current: PortfolioPeriod) -> List[Any]:
        content = await self._ask(
            build_insights_prompt(current),
            max_tokens=INSIGHTS_MAX_TOKENS,
            kind="insights",
        )
        try:
            return parse_json_array(content)
        except ValueError as exc:
            raise LLMResponseError(f"Model response was not a JSON array: {exc}") from exc

    async def report(
        self,
        current: PortfolioPeriod,
        historical: Optional[Sequence[PortfolioPeriod]] = None,
        style: ReportStyle = "executive",
    ) -> Dict[str, Any]:
        parsed = await self._ask_object(
            build_report_prompt(current, historical or [], style),
            max_tokens=REPORT_MAX_TOKENS,
            kind=f"report:{style}",
        )
        return {
            "title": parsed.get("title") or f"Portfolio Report - {current.month} {current.year}",
            "generatedAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "executiveSummary": parsed.get("executiveSummary") or "",
            "sections": parsed.get("sections") or [],
            "recommendations": parsed.get("recommendations") or [],
        }

    async def draft(
        self,
        *,
        short: bool,
        kind: DraftKind = "general",
        loan_id: Optional[str] = None,
        borrower_name: Optional[str] = None,
        amount: Optional[float] = None,
        days_past_due: Optional[int] = None,
    ) -> Dict[str, str]:
        prompt = build_draft_prompt(
            short=short,
            kind=kind,
            loan_id=loan_id,
            borrower_name=borrower_name,
            amount=amount,
            days_past_due=days_past_due,
        )
        parsed = await self._ask_object(
            prompt,
            max_tokens=MESSAGE_DRAFT_MAX_TOKENS if short else EMAIL_DRAFT_MAX_TOKENS,
            kind="draft_message" if short else "draft_email",
        )
        fallback = f"Re: Loan {loan_id or ''}" if short else f"Regarding Your Loan {loan_id or ''}"
        return {
            "subject": parsed.get("subject") or fallback.strip(),
            "body": parsed.get("body") or "",
        }
