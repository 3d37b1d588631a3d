"""Configuration for the cve-search lookup."""

import os
from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_HOST = "https://cve.circl.lu"


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class SearchConfig:
    """Settings of the API client and the guessing levels."""

    host: str = DEFAULT_HOST
    vendor_threshold: int = 1
    product_threshold: int = 0
    cutoff: int = 6
    timeout: int = 30
    max_retries: int = 2

    @classmethod
    def from_env(cls, **overrides: Optional[object]) -> 'SearchConfig':
        """
        Build the configuration from CVE_SEARCH_* environment variables.

        Keyword arguments that are not None take precedence over the
        environment, e.g. values given on the command line.
        """
        config = cls(
            host=os.getenv("CVE_SEARCH_HOST", DEFAULT_HOST),
            vendor_threshold=_env_int("CVE_SEARCH_VENDOR_THRESHOLD", cls.vendor_threshold),
            product_threshold=_env_int("CVE_SEARCH_PRODUCT_THRESHOLD", cls.product_threshold),
            cutoff=_env_int("CVE_SEARCH_CUTOFF", cls.cutoff),
            timeout=_env_int("CVE_SEARCH_TIMEOUT", cls.timeout),
            max_retries=_env_int("CVE_SEARCH_MAX_RETRIES", cls.max_retries),
        )
        config = replace(config, **{key: value for key, value in overrides.items() if value is not None})
        config.validate()
        return config

    def validate(self) -> None:
        """Raise ValueError for settings the lookup cannot work with."""
        if not self.host:
            raise ValueError("cve-search host must not be empty")
        if self.vendor_threshold < 0 or self.product_threshold < 0:
            raise ValueError("Thresholds must not be negative")
        if self.cutoff < 1:
            raise ValueError("Cutoff must be at least 1")
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")
        if self.max_retries < 0:
            raise ValueError("Retries must not be negative")
