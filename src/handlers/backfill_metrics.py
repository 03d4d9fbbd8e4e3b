"""
Manual backfill of the customer metrics cache.

Invoke directly (console/CLI) after creating the cache table, or whenever
the cache needs to be rebuilt for every customer at once.
"""

import json

from utils.logging_config import get_logger

logger = get_logger(__name__)


def lambda_handler(event, context):
    """Recompute and store metrics for every customer with orders."""
    from services.metrics_cache_service import MetricsCacheMaintainer

    try:
        result = MetricsCacheMaintainer.from_settings().rebuild_all()
    except Exception as exc:
        logger.exception("Metrics backfill failed")
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"message": "Metrics backfill failed", "error": str(exc)}),
        }

    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {
                "status": "completed",
                "processed": len(result.processed_customers),
                "failed": result.failed,
            }
        ),
    }
