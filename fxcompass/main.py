"""
FX Compass — FastAPI application entry point.

Configures the app, middleware, and registers all API routers.  The rate
service lives for the duration of the app's lifespan.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fxcompass import __version__
from fxcompass.api import calculator, rates, transactions
from fxcompass.config import settings
from fxcompass.services.rate_service import build_rate_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: one rate session per app, optionally kept warm by the poller
    service = build_rate_service(settings)
    app.state.rate_service = service

    poller = None
    if settings.FX_RATE_POLL_ENABLED:
        poller = service.build_poller(settings.FX_RATE_POLL_INTERVAL_SECONDS)
        await poller.start()
    app.state.rate_poller = poller

    yield

    # Shutdown: stop polling
    if poller is not None:
        await poller.stop()


app = FastAPI(
    title=settings.APP_NAME,
    description="Exchange-rate aggregation, cost pricing, and arbitrage calculation.",
    version=__version__,
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(rates.router, prefix="/api/v1/rates", tags=["Rates"])
app.include_router(calculator.router, prefix="/api/v1/calculator", tags=["Calculator"])
app.include_router(transactions.router, prefix="/api/v1/transactions", tags=["Transactions"])


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__,
    }
