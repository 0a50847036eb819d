from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from lifedash.api.middleware.error_handler import (
    handle_dashboard_error,
    handle_database_error,
    handle_generic_error,
    handle_validation_error,
)
from lifedash.api.middleware.logging import RequestLoggingMiddleware, configure_logging
from lifedash.api.v1 import router as v1_router
from lifedash.api.v1.health import router as health_router
from lifedash.config import settings
from lifedash.core.exceptions import DashboardError
from lifedash.db.session import init_models


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.log_level, json_format=settings.log_json)
    if settings.auto_create_tables:
        await init_models()
    app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    yield
    # Shutdown
    await app.state.http_client.aclose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Life Dashboard API",
        description="Health metrics and monthly budgets synced from third-party providers",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(DashboardError, handle_dashboard_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
