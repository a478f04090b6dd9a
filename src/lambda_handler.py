"""AWS Lambda entry point serving the order API through Mangum."""

import json
import logging
import os
from typing import Any

from mangum import Mangum

from lambda_dependencies import get_fastapi_app, initialize_lambda_environment
from restaurant_order_service.observability import setup_observability

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"

# Built once per container on cold start; tests import the module without AWS
if os.getenv("ENVIRONMENT") == "test":
    app = None  # type: ignore
    mangum_handler = None  # type: ignore
else:
    initialize_lambda_environment()
    app = get_fastapi_app()
    setup_observability(app)
    mangum_handler = Mangum(app, lifespan="off")


def describe_request(event: dict[str, Any]) -> str:
    """``METHOD /path`` for HTTP API (v2) and REST API (v1) proxy events."""
    http = event.get("requestContext", {}).get("http", {})
    method = http.get("method") or event.get("httpMethod") or "?"
    path = event.get("rawPath") or event.get("path") or "?"
    return f"{method} {path}"


def internal_error_response() -> dict[str, Any]:
    return {
        "statusCode": 500,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"error": INTERNAL_ERROR_MESSAGE}),
    }


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Route an API Gateway proxy event into the FastAPI app.

    Errors the app itself did not turn into a response become a bare 500
    with the standard error body.
    """
    request = describe_request(event)
    logger.info(f"{request} (request_id: {context.aws_request_id})")

    try:
        result: dict[str, Any] = mangum_handler(event, context)
    except Exception as e:
        logger.exception(f"Unhandled error serving {request}: {e}")
        return internal_error_response()

    return result
