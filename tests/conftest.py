"""
Pytest configuration to ensure paths are set up correctly for tests.

This allows imports like `from handlers import customers` to work
when running tests, simulating the Lambda environment where code
is deployed from the src/ directory.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import boto3
import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add repository root AND src/ to sys.path if missing.

    The src/ directory is added to simulate Lambda's import behavior,
    where Code.from_asset("src") makes src/ the root of the package.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"

    root_str = str(repo_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

    # Shared fakes below are imported by test modules as `conftest`.
    tests_str = str(repo_root / "tests")
    if tests_str not in sys.path:
        sys.path.insert(0, tests_str)


_ensure_paths_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "ap-southeast-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "ap-southeast-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")

# Lambda environment variables used by handlers
os.environ.setdefault("ORDERS_TABLE_NAME", "test-orders-table")
os.environ.setdefault("CACHE_TABLE_NAME", "test-metrics-cache-table")
os.environ.setdefault("ORDERS_CUSTOMER_INDEX", "contactID-index")

# Create a default boto3 session so resources/clients do not error during import.
boto3.setup_default_session(region_name="ap-southeast-2")

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeOrdersRepository:
    """In-memory stand-in for OrdersRepository."""

    def __init__(self, orders=None):
        self.orders = list(orders or [])
        self.queries = []
        self.scans = 0

    def query_by_customer(self, contact_id, newest_first=True, limit=None):
        self.queries.append(contact_id)
        matches = [o for o in self.orders if o.get("contactID") == contact_id]
        matches.sort(key=lambda o: o.get("createdAt") or "", reverse=newest_first)
        return matches[:limit] if limit is not None else matches

    def scan_all(self):
        self.scans += 1
        return iter(list(self.orders))


class FakeCacheRepository:
    """In-memory stand-in for MetricsCacheRepository."""

    def __init__(self, items=None):
        self.items = {i["contactID"]: i for i in (items or [])}
        self.puts = []

    def get(self, contact_id):
        return self.items.get(contact_id)

    def put(self, item):
        self.puts.append(item)
        self.items[item["contactID"]] = item

    def scan_all(self):
        return iter(list(self.items.values()))


def make_order(contact_id, days_ago, total, reference=None, now=FIXED_NOW, **customer):
    """Build an order document as stored in DynamoDB."""
    created = now - timedelta(days=days_ago)
    return {
        "orderID": f"{contact_id}-{reference or days_ago}",
        "contactID": contact_id,
        "createdAt": created.isoformat().replace("+00:00", "Z"),
        "order_reference": reference or f"REF-{days_ago}",
        "customer": {
            "firstName": customer.get("firstName", "Jane"),
            "lastName": customer.get("lastName", "Doe"),
            "email": customer.get("email", "jane@example.com"),
            "phone": customer.get("phone", "0400 000 000"),
            "company": customer.get("company", "Example Packaging"),
            "account_name": customer.get("account_name", "Example Packaging Pty Ltd"),
            "account_code": customer.get("account_code", "EXP001"),
            **({"contact_name": customer["contact_name"]} if "contact_name" in customer else {}),
        },
        "totals": {"subtotal": str(total), "freight": "0.00", "gst": "", "total": str(total)},
        "items": [],
    }


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
