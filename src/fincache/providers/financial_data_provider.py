"""Financial data provider protocol."""

from typing import Protocol

from fincache.domain.models import CompanyFinancials


class FinancialDataProvider(Protocol):
    """
    Protocol for upstream sources of company financials.

    Implementations return dated income, balance sheet and cash flow
    statements, most recent first, and raise DataSourceError on network or
    lookup failures.
    """

    async def fetch_financials(self, symbol: str) -> CompanyFinancials:
        """Fetch the financial statement bundle for one symbol."""
        ...
