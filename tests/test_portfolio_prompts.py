import unittest

from services.ai.portfolio.portfolio_prompts import (
    build_draft_prompt,
    build_insights_prompt,
    build_report_prompt,
    build_summary_prompt,
)
from services.scenarios.scenario_models import PortfolioPeriod


def _period(**overrides):
    data = {
        "month": "January",
        "year": 2026,
        "totalLoans": 120,
        "principalBalance": 1500000.5,
        "cashFlow": {"moneyIn": 200000, "moneyInChange": -2},
        "delinquent": {"total": 4, "percentage": 3.3, "breakdown": {"thirtyDays": 2}},
        "trends": {"collections": 1.5},
    }
    data.update(overrides)
    return PortfolioPeriod.model_validate(data)


class PortfolioPromptTests(unittest.TestCase):
    def test_summary_prompt_handles_missing_values(self):
        prompt = build_summary_prompt(_period(), [])

        self.assertIn("- Principal Balance: $1,500,000.50", prompt)
        self.assertIn("(-2% vs last month)", prompt)
        self.assertIn("- 30 Days Past Due: 2", prompt)
        self.assertIn("- 60 Days Past Due: N/A", prompt)
        self.assertIn("No historical data available", prompt)

    def test_insights_prompt_asks_for_an_array(self):
        prompt = build_insights_prompt(_period(activeLoans=None))
        self.assertIn("Portfolio Data for January 2026", prompt)
        self.assertIn("- Active Loans: N/A", prompt)
        self.assertIn("Return ONLY the JSON array", prompt)

    def test_report_prompt_uses_style_instructions(self):
        prompt = build_report_prompt(_period(), [_period(month="December", year=2025)], "detailed")
        self.assertIn("Report Type: DETAILED", prompt)
        self.assertIn("comprehensive analysis", prompt)
        self.assertIn("Collections +1.5%", prompt)
        self.assertIn("December 2025:", prompt)

    def test_draft_prompt_falls_back_to_general(self):
        short = build_draft_prompt(short=True, kind="unknown", borrower_name="First Last")
        long = build_draft_prompt(short=False, kind="collection_followup", days_past_due=30)

        self.assertIn("SHORT, conversational message", short)
        self.assertIn("Borrower Name: First Last", short)
        self.assertIn("compassionate but professional", long)
        self.assertIn("Days Past Due: 30", long)
        self.assertIn("3-4 paragraphs", long)


if __name__ == "__main__":
    unittest.main()
