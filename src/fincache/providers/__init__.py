"""Financial data providers module."""

from fincache.providers.financial_data_provider import FinancialDataProvider
from fincache.providers.fmp_provider import FmpFinancialDataProvider
from fincache.providers.stub_provider import StubFinancialDataProvider

__all__ = [
    "FinancialDataProvider",
    "FmpFinancialDataProvider",
    "StubFinancialDataProvider",
]
