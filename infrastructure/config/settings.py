"""
Environment-specific configuration settings.

Cost-optimized defaults for development/testing.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Deployment settings with cost-optimized defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "ap-southeast-2"

    # DynamoDB
    orders_table_name: str = "packprod-weborders"
    cache_table_name: str = "packprod-customer-metrics-cache"
    customer_index_name: str = "contactID-index"

    # Metrics cache
    metrics_ttl_days: int = 90
    stream_batch_size: int = 100
    stream_max_batching_window_seconds: int = 5
    stream_retry_attempts: int = 2

    # Lambda Configuration
    lambda_memory_mb: int = 512
    lambda_timeout_seconds: int = 30
    backfill_timeout_seconds: int = 300
    # 0 disables the scheduled cache rebuild
    backfill_schedule_hours: int = 24

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        region = os.environ.get("AWS_REGION", cls.aws_region)

        # Production overrides
        if env == "prod":
            return cls(
                environment="prod",
                aws_region=region,
                lambda_memory_mb=1024,
                lambda_timeout_seconds=60,
                backfill_timeout_seconds=900,
            )

        return cls(
            environment=env,
            aws_region=region,
            orders_table_name=f"packprod-weborders-{env}",
            cache_table_name=f"packprod-customer-metrics-cache-{env}",
        )
