"""
Runtime settings for the Lambdas.

Values come from the function environment set by the CDK stack.
"""

from dataclasses import dataclass
import os
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class RuntimeSettings:
    """Table names and read-path tuning."""

    environment: str = "dev"

    # DynamoDB
    orders_table_name: str = "packprod-weborders"
    cache_table_name: Optional[str] = None  # None disables the cache read path
    customer_index_name: str = "contactID-index"

    # Metrics cache
    metrics_ttl_days: int = 90
    populate_cache_on_miss: bool = True

    # Read path
    default_list_limit: int = 50
    max_list_limit: int = 500
    slow_query_ms: int = 1000

    @property
    def cache_enabled(self) -> bool:
        return bool(self.cache_table_name)

    @classmethod
    def from_environment(cls) -> "RuntimeSettings":
        """Load settings from environment variables."""
        return cls(
            environment=os.environ.get("ENVIRONMENT", "dev"),
            orders_table_name=os.environ.get("ORDERS_TABLE_NAME", cls.orders_table_name),
            cache_table_name=os.environ.get("CACHE_TABLE_NAME") or None,
            customer_index_name=os.environ.get(
                "ORDERS_CUSTOMER_INDEX", cls.customer_index_name
            ),
            metrics_ttl_days=_env_int("METRICS_TTL_DAYS", cls.metrics_ttl_days),
            populate_cache_on_miss=_env_bool(
                "CACHE_POPULATE_ON_MISS", cls.populate_cache_on_miss
            ),
            default_list_limit=_env_int("DEFAULT_LIST_LIMIT", cls.default_list_limit),
            max_list_limit=_env_int("MAX_LIST_LIMIT", cls.max_list_limit),
            slow_query_ms=_env_int("SLOW_QUERY_MS", cls.slow_query_ms),
        )
