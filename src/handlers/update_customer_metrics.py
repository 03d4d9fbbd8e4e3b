"""
Metrics cache updater triggered by the orders table DynamoDB stream.

Each invocation receives a batch of INSERT/MODIFY/REMOVE records and
refreshes the cached metrics of every customer touched by the batch.
"""

from __future__ import annotations

import json
from typing import Dict, Optional

from utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy-loaded maintainer so cold starts don't build clients until needed
_maintainer: Optional["MetricsCacheMaintainer"] = None


def _get_maintainer():
    """Lazy-load MetricsCacheMaintainer."""
    global _maintainer
    if _maintainer is None:
        from services.metrics_cache_service import MetricsCacheMaintainer
        _maintainer = MetricsCacheMaintainer.from_settings()
    return _maintainer


def lambda_handler(event, context) -> Dict:
    """Process a stream batch; per-record failures never fail the invocation."""
    records = event.get("Records") or []
    logger.info("Processing stream records", extra={"record_count": len(records)})

    result = _get_maintainer().process_records(records)

    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "message": f"Processed {len(result.processed_customers)} customers",
                "processedCustomers": result.processed_customers,
                "skipped": result.skipped + result.skipped_empty,
                "failed": result.failed,
            }
        ),
    }
