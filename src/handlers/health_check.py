"""Lightweight health check handler."""

import os
import json
from datetime import datetime, timezone


def lambda_handler(event, context):
    """Return a 200 response with the deployed environment and cache wiring."""
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {
                "status": "ok",
                "environment": os.environ.get("ENVIRONMENT", "dev"),
                "ordersTable": os.environ.get("ORDERS_TABLE_NAME"),
                "cacheEnabled": bool(os.environ.get("CACHE_TABLE_NAME")),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ),
    }
