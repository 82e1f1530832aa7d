from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.scenarios.scenario_models import PortfolioPeriod


Role = Literal["system", "user", "assistant"]
CTAType = Literal["late_notices", "send_message", "view_report"]
CTAIcon = Literal["mail", "file", "alert", "send"]


class ChatMessage(BaseModel):
    role: Role
    content: str = Field(max_length=8000)

    @field_validator("content")
    @classmethod
    def _strip_content(cls, v: str) -> str:
        return (v or "").strip()


class CTAAction(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: CTAType
    borrower_id: Optional[str] = Field(default=None, alias="borrowerId")
    borrower_email: Optional[str] = Field(default=None, alias="borrowerEmail")
    borrower_name: Optional[str] = Field(default=None, alias="borrowerName")
    report_type: Optional[str] = Field(default=None, alias="reportType")
    report_link: Optional[str] = Field(default=None, alias="reportLink")


class ChatCTA(BaseModel):
    label: str
    icon: CTAIcon
    action: CTAAction

    def dedup_key(self) -> str:
        if self.action.type == "send_message":
            return f"{self.action.type}:{self.action.borrower_id or ''}"
        if self.action.type == "view_report":
            return f"{self.action.type}:{self.action.report_type or ''}"
        return self.action.type


class ChatRequest(BaseModel):
    """Body of ``POST /api/ai/chat``."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(max_length=4000)
    portfolio_data: Optional[PortfolioPeriod] = Field(default=None, alias="portfolioData")
    historical_data: Optional[List[PortfolioPeriod]] = Field(default=None, alias="historicalData")
    conversation_history: List[ChatMessage] = Field(
        default_factory=list, alias="conversationHistory", max_length=40
    )
    scenario_id: Optional[str] = Field(default=None, alias="scenarioId")
    tool_ids: List[str] = Field(default_factory=list, alias="toolIds")

    @field_validator("question")
    @classmethod
    def _strip_question(cls, v: str) -> str:
        return (v or "").strip()


class ChatResult(BaseModel):
    answer: str
    suggestions: List[str] = Field(default_factory=list)
    chart: Optional[Any] = None
    ctas: List[ChatCTA] = Field(default_factory=list)

    def to_response(self) -> dict:
        # chart stays an explicit null; unset CTA action fields are omitted.
        body = self.model_dump(by_alias=True, exclude={"ctas"})
        body["ctas"] = [cta.model_dump(by_alias=True, exclude_none=True) for cta in self.ctas]
        return body
