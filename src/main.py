"""Local development server for the restaurant order service.

Runs the same FastAPI app the Lambda serves, against whatever DynamoDB the
environment points at (DynamoDB Local when DYNAMODB_ENDPOINT is set).

    $ ENVIRONMENT=development python src/main.py
"""

import logging
import os

from fastapi import FastAPI

from lambda_dependencies import get_fastapi_app
from restaurant_order_service.observability import configure_logging, setup_observability

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8001


def create_application() -> FastAPI:
    """Build the order API with JSON logging and telemetry."""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    app = get_fastapi_app()
    setup_observability(app)

    logger.info(
        "Order API ready",
        extra={
            "table_prefix": os.getenv("DYNAMODB_TABLE_PREFIX", "restaurant-"),
            "dynamodb_endpoint": os.getenv("DYNAMODB_ENDPOINT", "aws"),
        },
    )
    return app


def serve() -> None:
    """Run the app under uvicorn, reloading on code changes in development."""
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", str(DEFAULT_PORT)))
    reload = os.getenv("ENVIRONMENT", "development") == "development"

    logger.info(f"Serving order API on http://{host}:{port} (docs at /docs, reload={reload})")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if os.getenv("ENVIRONMENT") == "test":
    app = FastAPI()
else:
    app = create_application()


if __name__ == "__main__":
    serve()
