from __future__ import annotations

from typing import Any, List, Optional, Sequence

from services.scenarios.scenario_models import ActionItem, PortfolioPeriod

FALLBACK_SUGGESTIONS = [
    "What is the trend in delinquent loans over the last few months?",
    "Can we compare collections and disbursements recently?",
    "Which borrowers need immediate follow-up?",
]

CHAT_INSTRUCTIONS = """FORMAT INSTRUCTIONS:
- Present action items or borrower follow-ups as a bulleted list with one borrower per line.
- Insert a blank line between distinct sections/paragraphs for readability.

CHART INSTRUCTIONS:
When the user asks for a graph, chart, visualization, or comparison across time periods, include a "chart" object in your response.

SINGLE METRIC (one line of bars or one trend):
- type: "bar", "line", or "area"
- title, xAxisLabel, yAxisLabel: strings
- data: Array of { label: "Month YYYY", value: number } - one value per period

COMPARISON (e.g. "money in vs money out", "collections vs disbursements", "X and Y"):
- type: "bar"
- title, xAxisLabel, yAxisLabel: strings
- data: Array of objects with label PLUS one key per series, e.g. { label: "October 2025", moneyIn: 2050000, moneyOut: 145000 }
- series: Array of { dataKey: "moneyIn", name: "Money In" }, { dataKey: "moneyOut", name: "Money Out" }
Use exact dataKey strings that match the keys in each data object. Populate from historical data: Collections = cashFlow.moneyIn, Disbursements = cashFlow.moneyOut for each month.

CTA INSTRUCTIONS:
When your answer relates to actionable items, include a "ctas" array with suggested actions. Each CTA should have:
- label: Button text (e.g., "Generate Late Notices")
- icon: One of "alert", "mail", "send", "file"
- action: An object with type and optional context

Include CTAs for these topics:
- Delinquency/lateness/past due discussions -> { label: "Generate Late Notices", icon: "alert", action: { type: "late_notices" } }
- Discussing specific borrowers or collections -> { label: "Message Borrower", icon: "send", action: { type: "send_message", borrowerId: "...", borrowerEmail: "..." } }
- Reports/statements requests -> { label: "View Report", icon: "file", action: { type: "view_report", reportType: "late_notices" or "borrower_statement" or "escrow_analysis" } }

Be proactive about suggesting relevant CTAs based on the conversation context."""

RESPONSE_FORMAT_INSTRUCTIONS = """After answering, suggest 2-3 follow-up questions the user might want to ask. Format your response as JSON with these fields:
- "answer": Your detailed answer to the question
- "suggestions": An array of 2-3 suggested follow-up questions
- "chart": (optional) If a chart/graph was requested, include the chart object as described in CHART INSTRUCTIONS. Set to null if no chart is needed.
- "ctas": (optional) An array of contextual action buttons as described in CTA INSTRUCTIONS. Set to [] if no actions are relevant.

Return ONLY the JSON object, no other text or markdown."""


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _plain_number(num: float) -> str:
    return str(int(num)) if num.is_integer() else f"{num:g}"


def format_currency(value: Any) -> str:
    num = _to_number(value)
    if num is None:
        return "N/A"
    if num.is_integer():
        return f"${int(num):,}"
    return f"${num:,.2f}"


def format_percent(value: Any) -> str:
    num = _to_number(value)
    if num is None:
        return "N/A"
    prefix = "+" if num > 0 else ""
    return f"{prefix}{_plain_number(num)}%"


def _val(value: Any) -> str:
    return "N/A" if value is None else str(value)


def _historical_block(history: Sequence[PortfolioPeriod]) -> str:
    chunks: List[str] = []
    for h in history:
        cash = h.cash_flow
        delinquent = h.delinquent
        chunks.append(
            f"\n{h.month} {h.year}:\n"
            f"- Active Loans: {_val(h.active_loans)}\n"
            f"- Principal Balance: {format_currency(h.principal_balance)}\n"
            f"- Collections: {format_currency(cash.money_in if cash else None)} "
            f"({format_percent(cash.money_in_change if cash else None)})\n"
            f"- Disbursements: {format_currency(cash.money_out if cash else None)} "
            f"({format_percent(cash.money_out_change if cash else None)})\n"
            f"- Delinquency Rate: {_val(delinquent.percentage if delinquent else None)}%"
        )
    return "\n".join(chunks) or "No historical data available"


def _action_items_block(items: Sequence[ActionItem]) -> str:
    if not items:
        return "None listed."
    return "\n".join(
        f"- Loan {_val(a.id)}: {_val(a.borrower)}, {format_currency(a.amount)}, "
        f"{a.days_past_due or 0} days past due, priority {a.priority or 'N/A'}"
        for a in items
    )


def build_chat_system_prompt(
    *,
    current: PortfolioPeriod,
    historical: Sequence[PortfolioPeriod],
    action_items: Sequence[ActionItem],
    tool_ids: Sequence[str],
) -> str:
    tools_text = "\n".join(f"- {t}" for t in tool_ids) if tool_ids else "None provided."
    cash = current.cash_flow
    delinquent = current.delinquent
    breakdown = delinquent.breakdown if delinquent else None
    trends = current.trends

    metrics = "\n".join(
        [
            f"- Total Loans: {_val(current.total_loans)}",
            f"- Active Loans: {_val(current.active_loans)}",
            f"- Principal Balance: {format_currency(current.principal_balance)}",
            f"- Unpaid Interest: {format_currency(current.unpaid_interest)}",
            f"- Total Late Charges: {format_currency(current.total_late_charges)}",
            f"- Money In (Collections): {format_currency(cash.money_in if cash else None)} "
            f"({format_percent(cash.money_in_change if cash else None)} vs last month)",
            f"- Money Out (Disbursements): {format_currency(cash.money_out if cash else None)} "
            f"({format_percent(cash.money_out_change if cash else None)} vs last month)",
            f"- Net Cash Flow: {format_currency(cash.net_cash_flow if cash else None)}",
            f"- Delinquent Loans: {_val(delinquent.total if delinquent else None)} "
            f"({_val(delinquent.percentage if delinquent else None)}%)",
            f"- 30 Days Past Due: {_val(breakdown.thirty_days if breakdown else None)}",
            f"- 60 Days Past Due: {_val(breakdown.sixty_days if breakdown else None)}",
            f"- 90+ Days Past Due: {_val(breakdown.ninety_plus_days if breakdown else None)}",
            f"- Collections Trend: {format_percent(trends.collections if trends else None)}",
            f"- Disbursements Trend: {format_percent(trends.disbursements if trends else None)}",
            f"- Delinquency Trend: {format_percent(trends.delinquency if trends else None)}",
            f"- New Loans This Month: {_val(trends.new_loans if trends else None)}",
            f"- Loans Paid Off: {_val(trends.paid_off if trends else None)}",
        ]
    )

    return (
        "You are a financial analyst assistant for a mortgage servicing company. "
        f"You have access to portfolio tools with these identifiers:\n{tools_text}\n\n"
        f"CURRENT PORTFOLIO DATA ({current.month} {current.year}):\n{metrics}\n\n"
        f"ACTION ITEMS (from portfolio tools when available):\n{_action_items_block(action_items)}\n\n"
        f"HISTORICAL DATA (Past Periods):\n{_historical_block(historical)}\n\n"
        f"{CHAT_INSTRUCTIONS}"
    )


def build_chat_user_prompt(question: str) -> str:
    return f"{question}\n\n{RESPONSE_FORMAT_INSTRUCTIONS}"
