# services/ai/portfolio/portfolio_prompts.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Sequence

from services.ai.chat.chat_prompts import format_currency, format_percent
from services.scenarios.scenario_models import PortfolioPeriod

ReportStyle = Literal["executive", "detailed", "recommendations"]
DraftKind = Literal[
    "general",
    "collection_followup",
    "check_in",
    "refinance_offer",
    "checks_due",
    "pending_billing",
    "payment_adjustment",
]

ANALYST_INTRO = "You are a financial analyst assistant for a mortgage servicing company."
SERVICER_INTRO = "You are a professional loan servicer."

REPORT_STYLE_INSTRUCTIONS: Dict[str, str] = {
    "executive": "Focus on high-level metrics, trends, and key takeaways for executives. Keep sections concise.",
    "detailed": (
        "Provide comprehensive analysis of all metrics with detailed explanations and "
        "comparisons to historical data."
    ),
    "recommendations": "Focus primarily on actionable recommendations based on the data, with supporting analysis.",
}

EMAIL_DRAFT_INSTRUCTIONS: Dict[str, str] = {
    "general": "Draft a professional email regarding the borrower's loan account.",
    "collection_followup": (
        "Draft a compassionate but professional collection follow-up email. Be empathetic, offer to "
        "discuss payment options, and maintain a positive, helpful tone. Do not be threatening or aggressive."
    ),
    "check_in": "Draft a brief, friendly check-in email to maintain the borrower relationship. Keep it warm and professional.",
    "refinance_offer": (
        "Draft a professional email offering refinancing options. Highlight potential benefits "
        "based on good payment history."
    ),
    "checks_due": (
        "Draft a concise email about a check/disbursement due related to the borrower's loan. Explain what "
        "the check is for, any required approvals, and next steps. Keep the tone clear and professional."
    ),
    "pending_billing": (
        "Draft a concise email about pending billing or payoff processing for the borrower's loan. "
        "Ask for any missing information and provide a clear next step."
    ),
    "payment_adjustment": (
        "Draft a professional notice about a payment adjustment (e.g., escrow analysis or rate change). "
        "Explain the reason, effective date, and the updated payment amount. Offer to discuss questions."
    ),
}

MESSAGE_DRAFT_INSTRUCTIONS: Dict[str, str] = {
    "general": "Draft a SHORT, conversational message regarding the borrower's loan account.",
    "collection_followup": (
        "Draft a SHORT, conversational payment follow-up message. Be empathetic and offer to "
        "discuss payment options."
    ),
    "check_in": "Draft a SHORT, friendly check-in message to maintain the borrower relationship.",
    "refinance_offer": "Draft a SHORT message offering refinancing options and invite the borrower to learn more.",
    "checks_due": "Draft a SHORT message about a check/disbursement due. Explain the purpose and next step.",
    "pending_billing": (
        "Draft a SHORT message about pending billing or payoff processing. Ask for any needed information."
    ),
    "payment_adjustment": (
        "Draft a SHORT message about a payment adjustment. Mention the change and invite questions."
    ),
}


def _val(value: Any) -> str:
    return "N/A" if value is None else str(value)


def _cash(period: PortfolioPeriod, attr: str) -> Any:
    return getattr(period.cash_flow, attr) if period.cash_flow else None


def _delinquent(period: PortfolioPeriod, attr: str) -> Any:
    return getattr(period.delinquent, attr) if period.delinquent else None


def _breakdown(period: PortfolioPeriod, attr: str) -> Any:
    breakdown = period.delinquent.breakdown if period.delinquent else None
    return getattr(breakdown, attr) if breakdown else None


def _trend(period: PortfolioPeriod, attr: str) -> Any:
    return getattr(period.trends, attr) if period.trends else None


def _history_lines(historical: Sequence[PortfolioPeriod], *, empty: str) -> str:
    chunks: List[str] = []
    for h in historical:
        chunks.append(
            f"\n{h.month} {h.year}:\n"
            f"- Active Loans: {_val(h.active_loans)}\n"
            f"- Principal Balance: {format_currency(h.principal_balance)}\n"
            f"- Collections: {format_currency(_cash(h, 'money_in'))} ({format_percent(_cash(h, 'money_in_change'))})\n"
            f"- Delinquency Rate: {_val(_delinquent(h, 'percentage'))}%"
        )
    return "\n".join(chunks) or empty


def build_summary_prompt(current: PortfolioPeriod, historical: Sequence[PortfolioPeriod]) -> str:
    return f"""{ANALYST_INTRO} Based on the following current and historical portfolio data, provide an analysis.

CURRENT PORTFOLIO DATA ({current.month} {current.year}):
- Total Loans: {_val(current.total_loans)}
- Active Loans: {_val(current.active_loans)}
- Principal Balance: {format_currency(current.principal_balance)}
- Money In (Collections): {format_currency(_cash(current, 'money_in'))} ({format_percent(_cash(current, 'money_in_change'))} vs last month)
- Delinquent Loans: {_val(_delinquent(current, 'total'))} ({_val(_delinquent(current, 'percentage'))}%)
- 30 Days Past Due: {_val(_breakdown(current, 'thirty_days'))}
- 60 Days Past Due: {_val(_breakdown(current, 'sixty_days'))}
- 90+ Days Past Due: {_val(_breakdown(current, 'ninety_plus_days'))}

HISTORICAL DATA (Past Periods):
{_history_lines(historical, empty="No historical data available")}

Respond with a JSON object containing exactly these three fields:
1. "summary": A concise 2-3 sentence summary of the current month's portfolio performance. Keep it factual and data-driven.
2. "sentiment": Compare current performance to the historical trend. Return EXACTLY one of: "good" (portfolio is doing better), "bad" (portfolio is doing worse), or "neutral" (no significant change).
3. "keyTakeaway": A single sentence highlighting the most important trend when comparing current vs historical data.

Return ONLY the JSON object, no other text or markdown."""


def build_insights_prompt(current: PortfolioPeriod) -> str:
    return f"""{ANALYST_INTRO} Based on the following portfolio data, generate exactly 4 actionable insights.

Portfolio Data for {current.month} {current.year}:
- Total Loans: {_val(current.total_loans)}
- Active Loans: {_val(current.active_loans)}
- Principal Balance: {format_currency(current.principal_balance)}
- Money In (Collections): {format_currency(_cash(current, 'money_in'))}
- Delinquent Loans: {_val(_delinquent(current, 'total'))} ({_val(_delinquent(current, 'percentage'))}%)

Return a JSON array with exactly 4 insights. Each insight must have:
- id: a unique string (1, 2, 3, 4)
- title: a short title (5-7 words)
- description: a 1-2 sentence explanation
- category: one of "Performance", "Delinquency", "Risk", or "Opportunity"

Return ONLY the JSON array, no other text."""


def build_report_prompt(
    current: PortfolioPeriod,
    historical: Sequence[PortfolioPeriod],
    style: ReportStyle,
) -> str:
    return f"""Generate a professional portfolio report based on this data:

CURRENT PORTFOLIO ({current.month} {current.year}):
- Total Loans: {_val(current.total_loans)}, Active: {_val(current.active_loans)}
- Principal Balance: {format_currency(current.principal_balance)}
- Unpaid Interest: {format_currency(current.unpaid_interest)}
- Late Charges: {format_currency(current.total_late_charges)}
- Collections: {format_currency(_cash(current, 'money_in'))} ({format_percent(_cash(current, 'money_in_change'))})
- Disbursements: {format_currency(_cash(current, 'money_out'))}
- Net Cash Flow: {format_currency(_cash(current, 'net_cash_flow'))}
- Delinquent: {_val(_delinquent(current, 'total'))} loans ({_val(_delinquent(current, 'percentage'))}%)
  - 30 days: {_val(_breakdown(current, 'thirty_days'))}
  - 60 days: {_val(_breakdown(current, 'sixty_days'))}
  - 90+ days: {_val(_breakdown(current, 'ninety_plus_days'))}
- Trends: Collections {format_percent(_trend(current, 'collections'))}, Delinquency {format_percent(_trend(current, 'delinquency'))}

HISTORICAL DATA:
{_history_lines(historical, empty="No historical data")}

Report Type: {style.upper()}
Instructions: {REPORT_STYLE_INSTRUCTIONS[style]}

Return a JSON object with:
- "title": Report title (e.g., "Portfolio Performance Report - January 2026")
- "executiveSummary": 2-3 paragraph summary of portfolio health and key findings
- "sections": Array of 3-4 sections, each with:
  - "title": Section title
  - "content": 1-2 paragraphs of analysis
  - "metrics": Array of key metrics (optional), each with "label", "value", and optional "change"
- "recommendations": Array of 3-5 recommendations, each with:
  - "priority": 1 (high), 2 (medium), or 3 (low)
  - "title": Short recommendation title
  - "description": 1-2 sentence explanation

Return ONLY the JSON object."""


def _draft_context(
    *,
    loan_id: Optional[str],
    borrower_name: Optional[str],
    amount: Optional[float],
    days_past_due: Optional[int],
) -> str:
    lines: List[str] = []
    if borrower_name:
        lines.append(f"Borrower Name: {borrower_name}")
    if loan_id:
        lines.append(f"Loan ID: {loan_id}")
    if amount:
        lines.append(f"Outstanding Balance: {format_currency(amount)}")
    if days_past_due:
        lines.append(f"Days Past Due: {days_past_due}")
    return "\n".join(lines)


def build_draft_prompt(
    *,
    short: bool,
    kind: DraftKind = "general",
    loan_id: Optional[str] = None,
    borrower_name: Optional[str] = None,
    amount: Optional[float] = None,
    days_past_due: Optional[int] = None,
) -> str:
    """Email drafts (``short=False``) or brief portal messages (``short=True``)."""
    table = MESSAGE_DRAFT_INSTRUCTIONS if short else EMAIL_DRAFT_INSTRUCTIONS
    context = _draft_context(
        loan_id=loan_id,
        borrower_name=borrower_name,
        amount=amount,
        days_past_due=days_past_due,
    )
    if short:
        shape = (
            '- "subject": A very short subject line (few words, e.g. "Quick check-in" or "Regarding loan LN-2024-001")\n'
            '- "body": A short message body: 1-3 sentences max. Conversational tone. Offer to help or ask a '
            "quick question. Use \\n for line breaks if needed.\n\n"
            "Keep it concise, portal messages should be brief. Return ONLY the JSON object, no markdown."
        )
    else:
        shape = (
            '- "subject": A professional email subject line\n'
            '- "body": The email body (use \\n for line breaks between paragraphs)\n\n'
            "Keep the email concise (3-4 paragraphs max). Be professional but warm.\n"
            "Return ONLY the JSON object, no markdown or extra text."
        )
    return f"""{SERVICER_INTRO} {table.get(kind, table['general'])}

Context:
{context}

Return a JSON object with:
{shape}"""
