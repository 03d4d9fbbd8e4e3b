"""DynamoDB repositories for orders and the customer metrics cache."""

from typing import Any, Dict, Iterator, List, Optional

import boto3
from boto3.dynamodb.conditions import Key


def _table(table_name: str, dynamodb=None):
    return (dynamodb or boto3.resource("dynamodb")).Table(table_name)


class OrdersRepository:
    """Read access to the orders table and its contactID index."""

    def __init__(self, table_name: str, customer_index_name: str = "contactID-index", dynamodb=None):
        self.table = _table(table_name, dynamodb)
        self.customer_index_name = customer_index_name

    def query_by_customer(
        self,
        contact_id: str,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Return a customer's orders, following pagination until done or ``limit``."""
        params: Dict[str, Any] = {
            "IndexName": self.customer_index_name,
            "KeyConditionExpression": Key("contactID").eq(contact_id),
            "ScanIndexForward": not newest_first,
        }
        items: List[Dict[str, Any]] = []
        while True:
            if limit is not None:
                params["Limit"] = limit - len(items)
            resp = self.table.query(**params)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key or (limit is not None and len(items) >= limit):
                return items
            params["ExclusiveStartKey"] = last_key

    def scan_all(self) -> Iterator[Dict[str, Any]]:
        """Yield every order in the table."""
        yield from _scan(self.table)


class MetricsCacheRepository:
    """Get/put access to the customer metrics cache table."""

    def __init__(self, table_name: str, dynamodb=None):
        self.table = _table(table_name, dynamodb)

    def get(self, contact_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one cached record by contactID."""
        resp = self.table.get_item(Key={"contactID": contact_id})
        return resp.get("Item")

    def put(self, item: Dict[str, Any]) -> None:
        """Replace the whole record for the item's contactID."""
        self.table.put_item(Item=item)

    def scan_all(self) -> Iterator[Dict[str, Any]]:
        """Yield every cached record."""
        yield from _scan(self.table)


def _scan(table) -> Iterator[Dict[str, Any]]:
    params: Dict[str, Any] = {}
    while True:
        resp = table.scan(**params)
        yield from resp.get("Items", [])
        last_key = resp.get("LastEvaluatedKey")
        if not last_key:
            return
        params["ExclusiveStartKey"] = last_key
