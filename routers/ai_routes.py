import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from services.ai.chat.errors import ChatAgentError
from services.ai.portfolio.portfolio_insights_service import PortfolioInsightsService
from services.ai.portfolio.portfolio_prompts import DraftKind, ReportStyle
from services.scenarios.scenario_models import PortfolioPeriod

logger = logging.getLogger(__name__)

router = APIRouter()


class SummaryReq(BaseModel):
    current: PortfolioPeriod
    historical: List[PortfolioPeriod] = Field(default_factory=list)


class ReportReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    portfolio_data: PortfolioPeriod = Field(alias="portfolioData")
    historical_data: List[PortfolioPeriod] = Field(default_factory=list, alias="historicalData")
    report_type: ReportStyle = Field(default="executive", alias="reportType")


class DraftReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    loan_id: Optional[str] = Field(default=None, alias="loanId")
    borrower_name: Optional[str] = Field(default=None, alias="borrowerName")
    amount: Optional[float] = None
    days_past_due: Optional[int] = Field(default=None, alias="daysPastDue")
    email_type: DraftKind = Field(default="general", alias="emailType")


def get_insights_service(request: Request) -> PortfolioInsightsService:
    return request.app.state.insights_service


async def _run(kind: str, request: Request, call):
    req_id = getattr(request.state, "request_id", None)
    try:
        return await call
    except ChatAgentError as exc:
        logger.warning("ai.%s_failed req_id=%s err=%s", kind, req_id, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    except Exception as exc:
        logger.exception("ai.%s_crashed req_id=%s", kind, req_id)
        raise HTTPException(status_code=500, detail=str(exc) or f"Failed to generate {kind}")


@router.post("/summary")
async def summary_endpoint(
    req: SummaryReq,
    request: Request,
    service: PortfolioInsightsService = Depends(get_insights_service),
):
    return await _run("summary", request, service.summarize(req.current, req.historical))


@router.post("/insights")
async def insights_endpoint(
    req: PortfolioPeriod,
    request: Request,
    service: PortfolioInsightsService = Depends(get_insights_service),
):
    insights = await _run("insights", request, service.insights(req))
    return {"insights": insights}


@router.post("/report")
async def report_endpoint(
    req: ReportReq,
    request: Request,
    service: PortfolioInsightsService = Depends(get_insights_service),
):
    return await _run(
        "report",
        request,
        service.report(req.portfolio_data, req.historical_data, req.report_type),
    )


@router.post("/draft-email")
async def draft_email_endpoint(
    req: DraftReq,
    request: Request,
    service: PortfolioInsightsService = Depends(get_insights_service),
):
    return await _run("draft_email", request, _draft(service, req, short=False))


@router.post("/draft-message")
async def draft_message_endpoint(
    req: DraftReq,
    request: Request,
    service: PortfolioInsightsService = Depends(get_insights_service),
):
    return await _run("draft_message", request, _draft(service, req, short=True))


def _draft(service: PortfolioInsightsService, req: DraftReq, *, short: bool):
    return service.draft(
        short=short,
        kind=req.email_type,
        loan_id=req.loan_id,
        borrower_name=req.borrower_name,
        amount=req.amount,
        days_past_due=req.days_past_due,
    )
