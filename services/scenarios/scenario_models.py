from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator


class _ExtensibleModel(BaseModel):
    """Typed record that keeps unknown JSON keys in ``extensions``.

    Unknown keys are collected on the way in and written back flat on the way
    out, so a scenario file round-trips without the typed fields swallowing
    data the dashboard still needs.
    """

    model_config = ConfigDict(populate_by_name=True)

    extensions: Dict[str, Any] = Field(default_factory=dict, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _collect_extensions(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known: set[str] = set()
        for name, info in cls.model_fields.items():
            if name == "extensions":
                continue
            known.add(name)
            if info.alias:
                known.add(info.alias)
        out: Dict[str, Any] = {}
        extensions = dict(data.get("extensions") or {})
        for key, value in data.items():
            if key == "extensions":
                continue
            if key in known:
                out[key] = value
            else:
                extensions[key] = value
        out["extensions"] = extensions
        return out

    @model_serializer(mode="wrap")
    def _flatten_extensions(self, handler):
        data = handler(self)
        if isinstance(data, dict):
            for key, value in self.extensions.items():
                data.setdefault(key, value)
        return data


class ActionItem(_ExtensibleModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = None
    borrower: Optional[str] = None
    borrower_email: Optional[str] = Field(default=None, alias="borrowerEmail")
    amount: Optional[float] = None
    days_past_due: Optional[int] = Field(default=None, alias="daysPastDue")
    priority: Optional[str] = None


class CashFlow(_ExtensibleModel):
    money_in: Optional[float] = Field(default=None, alias="moneyIn")
    money_in_change: Optional[float] = Field(default=None, alias="moneyInChange")
    money_out: Optional[float] = Field(default=None, alias="moneyOut")
    money_out_change: Optional[float] = Field(default=None, alias="moneyOutChange")
    net_cash_flow: Optional[float] = Field(default=None, alias="netCashFlow")


class DelinquencyBreakdown(_ExtensibleModel):
    thirty_days: Optional[int] = Field(default=None, alias="thirtyDays")
    sixty_days: Optional[int] = Field(default=None, alias="sixtyDays")
    ninety_plus_days: Optional[int] = Field(default=None, alias="ninetyPlusDays")


class Delinquency(_ExtensibleModel):
    total: Optional[int] = None
    percentage: Optional[float] = None
    breakdown: Optional[DelinquencyBreakdown] = None


class Trends(_ExtensibleModel):
    collections: Optional[float] = None
    disbursements: Optional[float] = None
    delinquency: Optional[float] = None
    new_loans: Optional[int] = Field(default=None, alias="newLoans")
    paid_off: Optional[int] = Field(default=None, alias="paidOff")


class PortfolioPeriod(_ExtensibleModel):
    """One month of portfolio metrics."""

    month: str = Field(min_length=1)
    year: int
    total_loans: Optional[int] = Field(default=None, alias="totalLoans")
    active_loans: Optional[int] = Field(default=None, alias="activeLoans")
    principal_balance: Optional[float] = Field(default=None, alias="principalBalance")
    unpaid_interest: Optional[float] = Field(default=None, alias="unpaidInterest")
    total_late_charges: Optional[float] = Field(default=None, alias="totalLateCharges")
    cash_flow: Optional[CashFlow] = Field(default=None, alias="cashFlow")
    delinquent: Optional[Delinquency] = None
    trends: Optional[Trends] = None
    action_items: Optional[List[ActionItem]] = Field(default=None, alias="actionItems")


class Scenario(_ExtensibleModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    sentiment: Optional[str] = None
    current: PortfolioPeriod
    historical: List[PortfolioPeriod] = Field(default_factory=list)


class ScenarioSummary(BaseModel):
    id: str
    name: str
    description: str
    sentiment: str = "neutral"
    active: bool = False


def dump_record(value: Any) -> Any:
    """JSON-safe view of models (camelCase keys), lists and dicts."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json", exclude_none=True)
    if isinstance(value, dict):
        return {k: dump_record(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [dump_record(v) for v in value]
    return value
