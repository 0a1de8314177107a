"""FastAPI application for pricewatch."""

import re
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, field_validator

from ..exceptions import ExtractionError, StoreIOError
from ..orchestrator.coordinator import PriceMonitor
from ..orchestrator.scheduler import JobScheduler
from ..storage.models import AddResult, RemovalResult

EMAIL_PATTERN = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}")


class SubscriptionRequest(BaseModel):
    """Subscribe/unsubscribe request body."""

    email: str
    link: str

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_PATTERN.fullmatch(value):
            raise ValueError("invalid e-mail address")
        return value

    @field_validator("link")
    @classmethod
    def _check_link(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("link must be an http(s) URL")
        return value


def create_app(monitor: PriceMonitor, scheduler: Optional[JobScheduler] = None) -> FastAPI:
    """Build the API around a price monitor.

    Args:
        monitor: Price monitor owning the subscription store
        scheduler: Optional scheduler started and stopped with the app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("pricewatch API starting up")
        if scheduler is not None:
            scheduler.configure_jobs()
            scheduler.start()
        yield
        if scheduler is not None:
            scheduler.stop()
        logger.info("pricewatch API shutting down")

    app = FastAPI(
        title="pricewatch API",
        description="Subscribe to price drops of product pages",
        version="0.1.0",
        lifespan=lifespan,
    )
    store = monitor.store

    @app.exception_handler(StoreIOError)
    async def store_error_handler(request, exc: StoreIOError):
        logger.error(f"Store error: {exc}")
        return JSONResponse(status_code=500, content={"detail": "subscription store unavailable"})

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
        }

    @app.get("/items")
    async def list_items():
        """Current contents of the store."""
        return store.snapshot().model_dump(mode="json")

    @app.post("/subscriptions")
    async def subscribe(request: SubscriptionRequest):
        """Subscribe an address to price drops of a link."""
        try:
            result = await store.add_subscription(request.link, request.email)
        except ExtractionError as e:
            logger.warning(f"Could not seed price for {request.link}: {e.reason}")
            return JSONResponse(
                status_code=502,
                content={"result": "extraction_failed", "detail": e.reason},
            )

        status_code = 201 if result is AddResult.CREATED else 200
        return JSONResponse(status_code=status_code, content={"result": result.value})

    @app.post("/subscriptions/remove")
    async def unsubscribe(request: SubscriptionRequest):
        """Remove an address from a link's subscribers."""
        result = store.remove_subscription(request.link, request.email)
        status_code = 200 if result is RemovalResult.REMOVED else 404
        return JSONResponse(status_code=status_code, content={"result": result.value})

    return app
