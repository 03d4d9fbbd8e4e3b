"""Handlers for GET /customers, GET /customers/{contactID} and its orders."""

from __future__ import annotations

import time
from typing import Optional

from models.customer import CustomerFilters, Segment
from utils.error_handling import AppError, ValidationError, to_response
from utils.http import elapsed_ms, json_response
from utils.logging_config import get_logger, log_if_slow
from utils.settings import RuntimeSettings
from utils.validators import ensure_present, parse_limit

logger = get_logger(__name__)

SEGMENT_NAMES = {s.value for s in Segment}
INTERNAL_ERROR = "Internal server error"

# Lazy-loaded service to avoid import-time boto3 resources
_customer_service: Optional["CustomerService"] = None


def _get_customer_service():
    """Lazy-load CustomerService."""
    global _customer_service
    if _customer_service is None:
        from services.customer_service import CustomerService
        _customer_service = CustomerService()
    return _customer_service


def _contact_id(event) -> str:
    contact_id = (event.get("pathParameters") or {}).get("contactID")
    ensure_present(contact_id, "contactID")
    return contact_id


def _filters(params, settings: RuntimeSettings) -> CustomerFilters:
    segment = params.get("segment") or None
    if segment is not None and segment not in SEGMENT_NAMES:
        raise ValidationError(f"Unknown segment: {segment}")
    return CustomerFilters(
        search=params.get("search") or None,
        segment=segment,
        limit=parse_limit(
            params.get("limit"), settings.default_list_limit, settings.max_list_limit
        ),
    )


def lambda_handler(event, context):
    """List customers with metrics, highest spend first."""
    start = time.perf_counter()
    service = _get_customer_service()
    settings: RuntimeSettings = service.settings
    params = event.get("queryStringParameters") or {}

    try:
        filters = _filters(params, settings)
        result = service.list_customers(filters)
    except AppError as exc:
        return to_response(exc)
    except Exception:
        logger.exception("List customers failed")
        return json_response(None, status_code=500, error=INTERNAL_ERROR)

    response_time = elapsed_ms(start)
    log_if_slow(
        logger,
        "listCustomers",
        response_time,
        settings.slow_query_ms,
        cache_hit=result.cache_hit,
    )
    return json_response(
        [c.model_dump(mode="json", by_alias=True) for c in result.customers],
        count=len(result.customers),
        total=result.total,
        cache_hit=result.cache_hit,
        response_time_ms=response_time,
    )


def detail_handler(event, context):
    """Return one customer with metrics, or 404 when they have no orders."""
    start = time.perf_counter()
    service = _get_customer_service()

    try:
        contact_id = _contact_id(event)
        customer, cache_hit = service.get_customer(contact_id)
    except AppError as exc:
        return to_response(exc, response_time_ms=elapsed_ms(start))
    except Exception:
        logger.exception("Get customer failed")
        return json_response(None, status_code=500, error=INTERNAL_ERROR)

    response_time = elapsed_ms(start)
    log_if_slow(
        logger,
        "getCustomer",
        response_time,
        service.settings.slow_query_ms,
        contact_id=contact_id,
        cache_hit=cache_hit,
    )
    logger.info(
        "Customer served", extra={"contact_id": contact_id, "cache_hit": cache_hit}
    )
    return json_response(
        customer.model_dump(mode="json", by_alias=True),
        cache_hit=cache_hit,
        response_time_ms=response_time,
    )


def orders_handler(event, context):
    """Return a customer's orders, most recent first."""
    start = time.perf_counter()
    service = _get_customer_service()
    settings: RuntimeSettings = service.settings
    params = event.get("queryStringParameters") or {}

    try:
        contact_id = _contact_id(event)
        limit = parse_limit(
            params.get("limit"), settings.default_list_limit, settings.max_list_limit
        )
        orders = service.get_customer_orders(contact_id, limit)
    except AppError as exc:
        return to_response(exc)
    except Exception:
        logger.exception("Get customer orders failed")
        return json_response(None, status_code=500, error=INTERNAL_ERROR)

    response_time = elapsed_ms(start)
    log_if_slow(
        logger, "getCustomerOrders", response_time, settings.slow_query_ms, contact_id=contact_id
    )
    return json_response(
        [o.model_dump(mode="json", by_alias=True) for o in orders],
        count=len(orders),
        response_time_ms=response_time,
    )
