"""Stub financial data provider for offline/testing use."""

import random
from datetime import datetime
from typing import Callable

from fincache.core.timezone import now_eastern
from fincache.domain.models import (
    BalanceSheet,
    CashFlowStatement,
    CompanyFinancials,
    IncomeStatement,
)
from fincache.services.earnings_detection import get_quarter, quarter_end_date

# Deterministic names and prices for common symbols
_STUB_COMPANIES: dict[str, tuple[str, float]] = {
    "AAPL": ("Apple Inc.", 185.50),
    "GOOGL": ("Alphabet Inc.", 142.75),
    "MSFT": ("Microsoft Corporation", 378.25),
    "AMZN": ("Amazon.com, Inc.", 178.50),
    "TSLA": ("Tesla, Inc.", 248.75),
    "NVDA": ("NVIDIA Corporation", 485.25),
    "META": ("Meta Platforms, Inc.", 505.50),
}

QUARTERS = 8


class StubFinancialDataProvider:
    """
    Stub provider with deterministic fake statements for offline operation.

    Generates eight quarterly filings ending at the most recently completed
    quarter, so earnings detection sees a clean quarterly cadence.
    """

    def __init__(self, seed: int = 42, clock: Callable[[], datetime] = now_eastern):
        self._seed = seed
        self._clock = clock

    async def fetch_financials(self, symbol: str) -> CompanyFinancials:
        symbol = symbol.strip().upper()
        # Per-symbol generator keeps output stable regardless of call order
        rng = random.Random(f"{self._seed}:{symbol}")
        name, price = _STUB_COMPANIES.get(symbol, (f"{symbol} Corp.", round(50 + rng.random() * 200, 2)))
        shares = float(rng.randint(500, 5000)) * 1_000_000

        income, balance, cash_flow = [], [], []
        revenue = float(rng.randint(1_000, 50_000)) * 1_000_000
        for filed in self._quarter_ends():
            date = filed.strftime("%Y-%m-%d")
            revenue *= 1 + (rng.random() - 0.4) * 0.05
            net_income = revenue * (0.08 + rng.random() * 0.1)
            equity = revenue * (1.5 + rng.random())
            capex = revenue * 0.05

            income.append(IncomeStatement(
                date=date,
                revenue=round(revenue, 2),
                operating_income=round(net_income * 1.3, 2),
                net_income=round(net_income, 2),
                eps=round(net_income / shares, 4),
                shares_outstanding=shares,
            ))
            balance.append(BalanceSheet(
                date=date,
                total_assets=round(equity * 2.2, 2),
                total_liabilities=round(equity * 1.2, 2),
                total_equity=round(equity, 2),
                book_value_per_share=round(equity / shares, 4),
            ))
            cash_flow.append(CashFlowStatement(
                date=date,
                operating_cash_flow=round(net_income * 1.4, 2),
                capital_expenditure=round(capex, 2),
                free_cash_flow=round(net_income * 1.4 - capex, 2),
                dividends_paid=round(net_income * 0.2, 2),
            ))

        return CompanyFinancials(
            symbol=symbol,
            name=name,
            current_price=price,
            shares_outstanding=shares,
            income_statement=income,
            balance_sheet=balance,
            cash_flow_statement=cash_flow,
        )

    def _quarter_ends(self) -> list[datetime]:
        """Ends of the last eight completed quarters, most recent first."""
        now = self._clock()
        quarter, year = get_quarter(now), now.year
        ends = []
        for _ in range(QUARTERS):
            quarter -= 1
            if quarter == 0:
                quarter, year = 4, year - 1
            ends.append(quarter_end_date(quarter, year))
        return ends
