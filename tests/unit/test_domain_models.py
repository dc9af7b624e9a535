"""
Unit tests for cache domain models.

Tests cover:
- CacheMetadata creation and validation
- Entry serialization
- Filing date extraction
- Tier selection and config from settings
"""

from datetime import timedelta

import pytest

from fincache.config.settings import Settings
from fincache.core.exceptions import ValidationError
from fincache.domain.models import (
    CACHE_VERSION,
    CacheConfig,
    CacheEntry,
    CacheMetadata,
    CacheTier,
    CompanyFinancials,
    DataSource,
    IncomeStatement,
)

from tests.conftest import make_financials


class TestCacheMetadata:
    """Tests for CacheMetadata.create."""

    def test_defaults(self, fixed_now):
        metadata = CacheMetadata.create(fixed_now)

        assert metadata.cached_at == fixed_now
        assert metadata.expires_at == fixed_now + timedelta(days=90)
        assert metadata.data_source == DataSource.API
        assert metadata.schema_version == CACHE_VERSION

    def test_overrides_replace_defaults(self, fixed_now):
        metadata = CacheMetadata.create(
            fixed_now,
            overrides={"data_source": "manual", "expires_at": fixed_now + timedelta(days=1)},
        )

        assert metadata.data_source == DataSource.MANUAL
        assert metadata.expires_at == fixed_now + timedelta(days=1)

    def test_expiry_must_follow_cached_at(self, fixed_now):
        with pytest.raises(ValidationError):
            CacheMetadata.create(fixed_now, overrides={"expires_at": fixed_now - timedelta(seconds=1)})

    def test_unknown_field_rejected(self, fixed_now):
        with pytest.raises(ValidationError, match="Unknown"):
            CacheMetadata.create(fixed_now, overrides={"ttl": 5})


class TestCacheEntry:
    """Tests for CacheEntry serialization."""

    def test_dict_form_is_json_safe_and_restorable(self, fixed_now):
        """
        GIVEN an entry with earnings metadata
        WHEN I convert it to a dict and back
        THEN timestamps are ISO strings and the entry is restored exactly
        """
        metadata = CacheMetadata.create(
            fixed_now,
            overrides={"next_earnings_estimate": fixed_now + timedelta(days=30)},
        )
        entry = CacheEntry(owner="u1", symbol="ACME", data=make_financials(), metadata=metadata)

        raw = entry.to_dict()

        assert raw["metadata"]["cached_at"] == fixed_now.isoformat()
        assert raw["metadata"]["last_earnings_date"] is None
        assert CacheEntry.from_dict(raw) == entry

    def test_stored_version(self):
        assert CacheEntry.stored_version({"metadata": {"schema_version": "0.9.0"}}) == "0.9.0"
        assert CacheEntry.stored_version({"metadata": "broken"}) is None
        assert CacheEntry.stored_version({}) is None


class TestCompanyFinancials:
    """Tests for filing date extraction."""

    def test_filing_dates_are_unique_and_sorted(self):
        data = make_financials(dates=["2024-05-01", "2024-02-01"])
        data.income_statement.append(IncomeStatement(date=""))

        assert data.filing_dates() == ["2024-02-01", "2024-05-01"]

    def test_from_dict_ignores_unknown_statement_fields(self):
        raw = make_financials().to_dict()
        raw["income_statement"][0]["legacy_field"] = 1

        restored = CompanyFinancials.from_dict(raw)

        assert restored.income_statement[0].date == "2024-11-01"


class TestCacheTier:
    """Tests for CacheTier.from_flags."""

    @pytest.mark.parametrize(
        "use_local,use_remote,tier",
        [(True, True, CacheTier.HYBRID), (True, False, CacheTier.LOCAL), (False, True, CacheTier.REMOTE)],
    )
    def test_flags_map_to_tier(self, use_local, use_remote, tier):
        assert CacheTier.from_flags(use_local, use_remote) == tier

    def test_no_tier_rejected(self):
        with pytest.raises(ValueError):
            CacheTier.from_flags(False, False)


class TestCacheConfig:
    """Tests for CacheConfig.from_settings."""

    def test_from_settings_converts_units(self):
        settings = Settings(
            cache_default_ttl_days=30,
            cache_max_age_days=60,
            cache_use_remote_storage=False,
            cache_enable_background_refresh=False,
        )

        config = CacheConfig.from_settings(settings)

        assert config.default_ttl == timedelta(days=30)
        assert config.max_age == timedelta(days=60)
        assert config.use_local_storage is True
        assert config.use_remote_storage is False
        assert config.enable_background_refresh is False
