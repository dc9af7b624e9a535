"""Financial Modeling Prep data provider."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from fincache.core.exceptions import DataSourceError
from fincache.domain.models import (
    BalanceSheet,
    CashFlowStatement,
    CompanyFinancials,
    IncomeStatement,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://financialmodelingprep.com/api/v3"
STATEMENT_LIMIT = 10


def _number(item: dict[str, Any], key: str) -> float:
    return float(item.get(key) or 0)


def _optional(item: dict[str, Any], key: str) -> Optional[float]:
    value = item.get(key)
    return float(value) if value is not None else None


def _most_recent_first(statements: list) -> list:
    return sorted(statements, key=lambda s: s.date, reverse=True)


class FmpFinancialDataProvider:
    """
    Provider backed by the Financial Modeling Prep REST API.

    The profile and the three statement endpoints are requested concurrently.
    Pass an httpx.AsyncClient to share a connection pool or to inject a mock
    transport; otherwise one client is opened per fetch.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 12.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError("FMP API key is required")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def fetch_financials(self, symbol: str) -> CompanyFinancials:
        symbol = symbol.strip().upper()
        if self._client is not None:
            return await self._fetch_all(self._client, symbol)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._fetch_all(client, symbol)

    async def _fetch_all(self, client: httpx.AsyncClient, symbol: str) -> CompanyFinancials:
        profile, income, balance, cash_flow = await asyncio.gather(
            self._get(client, f"profile/{symbol}"),
            self._get(client, f"income-statement/{symbol}", limit=STATEMENT_LIMIT),
            self._get(client, f"balance-sheet-statement/{symbol}", limit=STATEMENT_LIMIT),
            self._get(client, f"cash-flow-statement/{symbol}", limit=STATEMENT_LIMIT),
        )

        if not isinstance(profile, list) or not profile:
            raise DataSourceError(
                f"Company profile not found for symbol: {symbol}. "
                "Please check the ticker symbol and try again."
            )
        company = profile[0]
        if not company.get("symbol") or not company.get("companyName"):
            raise DataSourceError(f"Invalid company data received for symbol: {symbol}")

        price = _number(company, "price")
        shares = _number(company, "sharesOutstanding")
        if not shares and price:
            shares = _number(company, "mktCap") / price

        return CompanyFinancials(
            symbol=company["symbol"],
            name=company["companyName"],
            current_price=price,
            shares_outstanding=shares,
            income_statement=_most_recent_first([self._income(i) for i in income or []]),
            balance_sheet=_most_recent_first([self._balance(i) for i in balance or []]),
            cash_flow_statement=_most_recent_first([self._cash_flow(i) for i in cash_flow or []]),
        )

    async def _get(self, client: httpx.AsyncClient, path: str, **params: Any) -> Any:
        url = f"{self._base_url}/{path}"
        logger.debug("FMP request: %s", url)
        try:
            response = await client.get(url, params={**params, "apikey": self._api_key})
        except httpx.HTTPError as exc:
            raise DataSourceError(f"Network error calling FMP {path}: {exc}") from exc

        if response.is_error:
            raise DataSourceError(
                f"API request failed: {response.reason_phrase} ({response.status_code})",
                status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise DataSourceError(f"Invalid JSON from FMP {path}") from exc

        if isinstance(data, dict):
            message = data.get("error") or data.get("Error Message")
            if message:
                raise DataSourceError(str(message))
        return data

    @staticmethod
    def _income(item: dict[str, Any]) -> IncomeStatement:
        return IncomeStatement(
            date=item.get("date", ""),
            revenue=_number(item, "revenue"),
            operating_income=_number(item, "operatingIncome"),
            net_income=_number(item, "netIncome"),
            eps=_number(item, "eps"),
            shares_outstanding=_number(item, "weightedAverageShsOut"),
            gross_profit=_optional(item, "grossProfit"),
            ebitda=_optional(item, "ebitda"),
            interest_expense=_optional(item, "interestExpense"),
            income_tax_expense=_optional(item, "incomeTaxExpense"),
        )

    @staticmethod
    def _balance(item: dict[str, Any]) -> BalanceSheet:
        total_equity = _number(item, "totalStockholdersEquity")
        common_stock = _number(item, "commonStock") or 1
        return BalanceSheet(
            date=item.get("date", ""),
            total_assets=_number(item, "totalAssets"),
            total_liabilities=_number(item, "totalLiabilities"),
            total_equity=total_equity,
            book_value_per_share=total_equity / common_stock,
            current_assets=_optional(item, "totalCurrentAssets"),
            cash_and_equivalents=_optional(item, "cashAndCashEquivalents"),
            current_liabilities=_optional(item, "totalCurrentLiabilities"),
            long_term_debt=_optional(item, "longTermDebt"),
            goodwill=_optional(item, "goodwill"),
            intangible_assets=_optional(item, "intangibleAssets"),
        )

    @staticmethod
    def _cash_flow(item: dict[str, Any]) -> CashFlowStatement:
        return CashFlowStatement(
            date=item.get("date", ""),
            operating_cash_flow=_number(item, "netCashProvidedByOperatingActivities"),
            capital_expenditure=abs(_number(item, "capitalExpenditure")),
            free_cash_flow=_number(item, "freeCashFlow"),
            dividends_paid=abs(_number(item, "dividendsPaid")),
        )
