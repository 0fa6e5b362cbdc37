"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from bills_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from bills_gateway.api.v1 import amortization, bills, recurrence
from bills_gateway.infrastructure.observability.logging import setup_logging
from bills_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Bills Gateway",
        description="Obligation scheduling, amortization and Bills view aggregation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(bills.router, prefix="/v1", tags=["bills"])
    app.include_router(recurrence.router, prefix="/v1", tags=["recurrence"])
    app.include_router(amortization.router, prefix="/v1", tags=["amortization"])

    return app


app = create_app()
