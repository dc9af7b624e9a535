"""Enumerations for domain models."""

from enum import Enum


class DataSource(str, Enum):
    """Provenance of a cached financial bundle."""

    API = "api"
    MANUAL = "manual"
    ESTIMATED = "estimated"


class DetectionMethod(str, Enum):
    """How an earnings estimate was produced."""

    PATTERN = "pattern"
    API = "api"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class CacheTier(str, Enum):
    """Storage tier selection for the cache orchestrator."""

    LOCAL = "local"
    REMOTE = "remote"
    HYBRID = "hybrid"

    @classmethod
    def from_flags(cls, use_local: bool, use_remote: bool) -> "CacheTier":
        """Map the config's tier-enablement flags to a tier."""
        if use_local and use_remote:
            return cls.HYBRID
        if use_local:
            return cls.LOCAL
        if use_remote:
            return cls.REMOTE
        raise ValueError("At least one cache tier must be enabled")
