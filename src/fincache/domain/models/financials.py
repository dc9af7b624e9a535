"""Financial statement bundle returned by the data source and stored in the cache."""

from dataclasses import dataclass, field, fields, asdict
from typing import Any, Optional


def _known_fields(cls, raw: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in raw.items() if k in names}


@dataclass
class IncomeStatement:
    """One reported income statement."""

    date: str
    revenue: float = 0.0
    operating_income: float = 0.0
    net_income: float = 0.0
    eps: float = 0.0
    shares_outstanding: float = 0.0
    gross_profit: Optional[float] = None
    ebitda: Optional[float] = None
    interest_expense: Optional[float] = None
    income_tax_expense: Optional[float] = None


@dataclass
class BalanceSheet:
    """One reported balance sheet."""

    date: str
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    total_equity: float = 0.0
    book_value_per_share: float = 0.0
    current_assets: Optional[float] = None
    cash_and_equivalents: Optional[float] = None
    current_liabilities: Optional[float] = None
    long_term_debt: Optional[float] = None
    goodwill: Optional[float] = None
    intangible_assets: Optional[float] = None


@dataclass
class CashFlowStatement:
    """One reported cash flow statement."""

    date: str
    operating_cash_flow: float = 0.0
    capital_expenditure: float = 0.0
    free_cash_flow: float = 0.0
    dividends_paid: float = 0.0


@dataclass
class CompanyFinancials:
    """
    Financial statement bundle for one company.

    Statement lists are ordered most recent first, as the data source returns them.
    """

    symbol: str
    name: str
    current_price: Optional[float] = None
    shares_outstanding: Optional[float] = None
    income_statement: list[IncomeStatement] = field(default_factory=list)
    balance_sheet: list[BalanceSheet] = field(default_factory=list)
    cash_flow_statement: list[CashFlowStatement] = field(default_factory=list)

    def filing_dates(self) -> list[str]:
        """Return the de-duplicated, sorted dates of every statement in the bundle."""
        dates = {s.date for s in self.income_statement}
        dates.update(s.date for s in self.balance_sheet)
        dates.update(s.date for s in self.cash_flow_statement)
        return sorted(d for d in dates if d)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CompanyFinancials":
        return cls(
            symbol=raw["symbol"],
            name=raw.get("name", raw["symbol"]),
            current_price=raw.get("current_price"),
            shares_outstanding=raw.get("shares_outstanding"),
            income_statement=[
                IncomeStatement(**_known_fields(IncomeStatement, s))
                for s in raw.get("income_statement") or []
            ],
            balance_sheet=[
                BalanceSheet(**_known_fields(BalanceSheet, s))
                for s in raw.get("balance_sheet") or []
            ],
            cash_flow_statement=[
                CashFlowStatement(**_known_fields(CashFlowStatement, s))
                for s in raw.get("cash_flow_statement") or []
            ],
        )
