"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

Routes are matched on method plus path template; ``{name}`` segments are
copied into ``pathParameters`` when API Gateway has not already set them.
"""

from typing import Dict, Optional, Tuple

from utils.http import json_response

from . import customers, health_check

# More specific templates first.
ROUTE_TABLE: Tuple[Tuple[str, str, str, str], ...] = (
    ("GET", "/health", "health_check", "lambda_handler"),
    ("GET", "/customers/{contactID}/orders", "customers", "orders_handler"),
    ("GET", "/customers/{contactID}", "customers", "detail_handler"),
    ("GET", "/customers", "customers", "lambda_handler"),
)

_MODULES = {"health_check": health_check, "customers": customers}


def _match(template: str, path: str) -> Optional[Dict[str, str]]:
    """Return path parameters if ``path`` fits ``template``, else None."""
    template_parts = template.strip("/").split("/")
    path_parts = path.strip("/").split("/")
    if len(template_parts) != len(path_parts):
        return None

    params: Dict[str, str] = {}
    for expected, actual in zip(template_parts, path_parts):
        if expected.startswith("{") and expected.endswith("}"):
            if not actual:
                return None
            params[expected[1:-1]] = actual
        elif expected != actual:
            return None
    return params


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API.

    The event contains the HTTP method and path; we route it to the correct
    handler while keeping shared setup (logging, error handling) centralized.
    """
    http = event.get("requestContext", {}).get("http", {})
    method = http.get("method", "").upper()
    path = http.get("path", "")

    for route_method, template, module_name, attr in ROUTE_TABLE:
        if method != route_method:
            continue
        params = _match(template, path)
        if params is None:
            continue
        if params:
            event = {
                **event,
                "pathParameters": {**params, **(event.get("pathParameters") or {})},
            }
        handler = getattr(_MODULES[module_name], attr)
        return handler(event, context)

    return json_response(None, status_code=404, error=f"Route not found: {method} {path}")
