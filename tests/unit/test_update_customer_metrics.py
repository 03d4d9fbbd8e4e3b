import json

from conftest import FIXED_NOW, FakeCacheRepository, FakeOrdersRepository, make_order
from handlers import backfill_metrics, update_customer_metrics
from services.metrics_cache_service import MetricsCacheMaintainer


def _maintainer(orders):
    return MetricsCacheMaintainer(
        FakeOrdersRepository(orders), FakeCacheRepository(), clock=lambda: FIXED_NOW
    )


def test_stream_handler_reports_batch(monkeypatch):
    maintainer = _maintainer([make_order("C1", 1, "10")])
    monkeypatch.setattr(update_customer_metrics, "_maintainer", maintainer)
    event = {
        "Records": [
            {"eventName": "INSERT", "dynamodb": {"NewImage": {"contactID": {"S": "C1"}}}},
            {"eventName": "REMOVE", "dynamodb": {"OldImage": {"contactID": {"S": "C2"}}}},
            {"eventName": "MODIFY", "dynamodb": {"NewImage": {}}},
        ]
    }

    resp = update_customer_metrics.lambda_handler(event, None)

    assert resp["statusCode"] == 200
    body = json.loads(resp["body"])
    assert body["processedCustomers"] == ["C1"]
    assert body["skipped"] == 2
    assert body["failed"] == 0
    assert "C1" in maintainer.cache_repo.items


def test_stream_handler_empty_event(monkeypatch):
    monkeypatch.setattr(update_customer_metrics, "_maintainer", _maintainer([]))

    resp = update_customer_metrics.lambda_handler({}, None)

    assert json.loads(resp["body"])["processedCustomers"] == []


def test_backfill_handler(monkeypatch):
    maintainer = _maintainer([make_order("C1", 1, "10"), make_order("C2", 4, "20")])
    monkeypatch.setattr(
        "services.metrics_cache_service.MetricsCacheMaintainer.from_settings",
        lambda *args, **kwargs: maintainer,
    )

    resp = backfill_metrics.lambda_handler({}, None)

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {"status": "completed", "processed": 2, "failed": 0}


def test_backfill_handler_scan_failure(monkeypatch):
    maintainer = _maintainer([])

    def boom():
        raise RuntimeError("scan denied")

    maintainer.orders_repo.scan_all = boom
    monkeypatch.setattr(
        "services.metrics_cache_service.MetricsCacheMaintainer.from_settings",
        lambda *args, **kwargs: maintainer,
    )

    resp = backfill_metrics.lambda_handler({}, None)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"])["message"] == "Metrics backfill failed"
