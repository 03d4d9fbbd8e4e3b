"""Metrics cache maintainer: stream batch processing and backfill."""

from datetime import timedelta

from conftest import FIXED_NOW, FakeCacheRepository, FakeOrdersRepository, make_order
from models.customer import CustomerFilters, Segment
from services.customer_service import CustomerService
from services.metrics_cache_service import MetricsCacheMaintainer
from services.metrics_service import build_metrics_record
from utils.settings import RuntimeSettings


def stream_record(event_name, contact_id, image="NewImage"):
    return {
        "eventID": f"{event_name}-{contact_id}",
        "eventName": event_name,
        "dynamodb": {
            image: {
                "orderID": {"S": f"order-{contact_id}"},
                "contactID": {"S": contact_id},
                "totals": {"M": {"total": {"S": "10.00"}}},
            }
        },
    }


def build(orders=None, cache_items=None, now=FIXED_NOW):
    orders_repo = FakeOrdersRepository(orders)
    cache_repo = FakeCacheRepository(cache_items)
    maintainer = MetricsCacheMaintainer(orders_repo, cache_repo, clock=lambda: now)
    return maintainer, orders_repo, cache_repo


class FlakyOrdersRepository(FakeOrdersRepository):
    """Fails the first N queries for the given customer."""

    def __init__(self, orders, fail_for, failures=1):
        super().__init__(orders)
        self.fail_for = fail_for
        self.failures = failures

    def query_by_customer(self, contact_id, newest_first=True, limit=None):
        if contact_id == self.fail_for and self.failures > 0:
            self.failures -= 1
            raise RuntimeError("ProvisionedThroughputExceededException")
        return super().query_by_customer(contact_id, newest_first, limit)


def test_insert_writes_full_record():
    maintainer, _, cache = build([make_order("C1", 2, "150.00"), make_order("C1", 40, "50.00")])

    result = maintainer.process_records([stream_record("INSERT", "C1")])

    assert result.processed_customers == ["C1"]
    item = cache.items["C1"]
    assert item["orderCount"] == 2
    assert str(item["totalSpend"]) == "200.00"
    assert item["segment"] == "Active"


def test_remove_reads_old_image():
    maintainer, orders, cache = build([make_order("C1", 2, "150.00")])

    result = maintainer.process_records([stream_record("REMOVE", "C1", image="OldImage")])

    assert orders.queries == ["C1"]
    assert result.processed_customers == ["C1"]
    assert "C1" in cache.items


def test_removing_last_order_keeps_existing_record():
    stale = {"contactID": "C1", "orderCount": 1, "segment": "New"}
    maintainer, _, cache = build(orders=[], cache_items=[stale])

    result = maintainer.process_records([stream_record("REMOVE", "C1", image="OldImage")])

    assert result.skipped_empty == 1
    assert result.processed_customers == []
    assert cache.puts == []
    assert cache.items["C1"] is stale


def test_customer_recomputed_once_per_batch():
    maintainer, orders, cache = build([make_order("C1", 2, "10"), make_order("C2", 3, "10")])

    result = maintainer.process_records(
        [
            stream_record("INSERT", "C1"),
            stream_record("MODIFY", "C1"),
            stream_record("INSERT", "C2"),
            stream_record("REMOVE", "C1", image="OldImage"),
        ]
    )

    assert orders.queries == ["C1", "C2"]
    assert len(cache.puts) == 2
    assert result.skipped == 2


def test_malformed_records_are_skipped():
    maintainer, orders, cache = build([make_order("C1", 2, "10")])
    no_contact = stream_record("INSERT", "C1")
    del no_contact["dynamodb"]["NewImage"]["contactID"]
    wrong_image = stream_record("REMOVE", "C1", image="NewImage")
    numeric_id = stream_record("INSERT", "C1")
    numeric_id["dynamodb"]["NewImage"]["contactID"] = {"N": "42"}

    result = maintainer.process_records(
        [no_contact, wrong_image, numeric_id, {"eventName": "INSERT"}, {"eventName": "TTL"}]
    )

    assert result.skipped == 5
    assert orders.queries == []
    assert cache.puts == []


def test_failure_does_not_abort_batch():
    orders_repo = FlakyOrdersRepository([make_order("C2", 1, "10")], fail_for="C1", failures=5)
    cache = FakeCacheRepository()
    maintainer = MetricsCacheMaintainer(orders_repo, cache, clock=lambda: FIXED_NOW)

    result = maintainer.process_records(
        [stream_record("INSERT", "C1"), stream_record("INSERT", "C2")]
    )

    assert result.failed == 1
    assert result.processed_customers == ["C2"]
    assert set(cache.items) == {"C2"}


def test_failed_customer_retried_by_later_record():
    orders_repo = FlakyOrdersRepository([make_order("C1", 1, "10")], fail_for="C1", failures=1)
    cache = FakeCacheRepository()
    maintainer = MetricsCacheMaintainer(orders_repo, cache, clock=lambda: FIXED_NOW)

    result = maintainer.process_records(
        [stream_record("INSERT", "C1"), stream_record("MODIFY", "C1")]
    )

    assert result.failed == 1
    assert result.processed_customers == ["C1"]


def test_write_failure_is_logged_and_skipped():
    maintainer, _, cache = build([make_order("C1", 1, "10"), make_order("C2", 1, "10")])
    original_put = cache.put

    def put(item):
        if item["contactID"] == "C1":
            raise RuntimeError("ConditionalCheckFailed")
        original_put(item)

    cache.put = put

    result = maintainer.process_records(
        [stream_record("INSERT", "C1"), stream_record("INSERT", "C2")]
    )

    assert result.failed == 1
    assert result.processed_customers == ["C2"]


def test_reprocessing_same_batch_is_idempotent():
    maintainer, _, cache = build([make_order("C1", 5, "75.25"), make_order("C1", 50, "24.75")])
    batch = [stream_record("INSERT", "C1")]

    maintainer.process_records(batch)
    maintainer.process_records(batch)

    assert cache.puts[0] == cache.puts[1]


def test_interleaved_recomputes_converge():
    orders = FakeOrdersRepository([make_order("C1", 10, "100")])
    cache = FakeCacheRepository()
    early = MetricsCacheMaintainer(orders, cache, clock=lambda: FIXED_NOW)
    late = MetricsCacheMaintainer(orders, cache, clock=lambda: FIXED_NOW + timedelta(hours=1))

    # Second order lands before either invocation reads the table.
    orders.orders.append(make_order("C1", 2, "300"))
    late.process_records([stream_record("INSERT", "C1")])
    early.process_records([stream_record("INSERT", "C1")])

    fresh = MetricsCacheMaintainer(orders, FakeCacheRepository(), clock=lambda: FIXED_NOW)
    expected = fresh.recompute("C1").to_item()
    stored = cache.items["C1"]
    for volatile in ("lastUpdated", "ttl"):
        expected.pop(volatile)
        stored = {k: v for k, v in stored.items() if k != volatile}
    assert stored == expected
    assert stored["orderCount"] == 2


def test_rebuild_all_writes_every_customer():
    orphan = make_order("C9", 1, "10")
    del orphan["contactID"]
    maintainer, orders, cache = build(
        [make_order("C1", 1, "10"), make_order("C1", 8, "10"), make_order("C2", 3, "99"), orphan]
    )

    result = maintainer.rebuild_all()

    assert sorted(result.processed_customers) == ["C1", "C2"]
    assert orders.scans == 1
    assert orders.queries == []
    assert cache.items["C1"]["orderCount"] == 2


def test_order_without_totals_object_is_cached():
    bare = make_order("C2", 3, "0")
    bare["totals"] = "100.00"
    maintainer, _, cache = build([bare])

    result = maintainer.process_records([stream_record("INSERT", "C2")])

    assert result.failed == 0
    assert result.processed_customers == ["C2"]
    assert str(cache.items["C2"]["totalSpend"]) == "0.00"


def test_rebuild_renews_records_of_idle_customers():
    orders = [make_order("C1", 120, "40"), make_order("C2", 3, "10")]
    written_long_ago = FIXED_NOW - timedelta(days=95)
    stale = build_metrics_record("C1", orders[:1], now=written_long_ago).to_item()
    maintainer, orders_repo, cache = build(orders, cache_items=[stale])

    maintainer.rebuild_all()

    assert cache.items["C1"]["ttl"] > int(FIXED_NOW.timestamp())
    assert cache.items["C1"]["segment"] == "Dormant"
    svc = CustomerService(
        settings=RuntimeSettings(cache_table_name="metrics-cache"),
        orders_repo=orders_repo,
        cache_repo=cache,
        clock=lambda: FIXED_NOW,
    )
    result = svc.list_customers(CustomerFilters(segment=Segment.DORMANT))
    assert result.cache_hit is True
    assert [c.contact_id for c in result.customers] == ["C1"]
