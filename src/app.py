"""Storefront checkout FastAPI application.

Serves the checkout flow over HTTP. Each request runs inside the checkout
domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

import structlog

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay.
from checkout.domain import checkout
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

checkout.init()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load pricing from the backend's site settings; close the backend client on shutdown."""
    from checkout.api.dependencies import get_services
    from checkout.pricing.settings import fetch_pricing_settings

    services = get_services()
    if services.backend is not None:
        services.machine.pricing = await fetch_pricing_settings(services.backend, services.machine.pricing)
        logger.info(
            "Pricing settings loaded",
            flat_rate=str(services.machine.pricing.flat_rate),
            free_threshold=str(services.machine.pricing.free_threshold),
            tax_rate=str(services.machine.pricing.tax_rate),
        )
    yield
    if services.backend is not None:
        await services.backend.aclose()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Checkout API",
    description="Checkout and payment orchestration",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the checkout domain context for checkout requests."""
    if request.url.path.startswith("/checkout"):
        with checkout.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api import checkout_router  # noqa: E402

app.include_router(checkout_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "checkout": {"name": checkout.name},
            },
        }
    )
