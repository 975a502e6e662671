"""Main application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from ninjascope.api.error_handlers import (
    unhandled_exception_handler,
    upstream_error_handler,
    validation_exception_handler,
)
from ninjascope.api.routes import router
from ninjascope.services.cache import TTLCache
from ninjascope.services.errors import UpstreamError
from ninjascope.services.indexer_client import IndexerClient
from ninjascope.services.registry import build_services
from ninjascope.services.status_service import VERSION
from ninjascope.utils.config import config
from ninjascope.utils.logger import StructuredLogger
from ninjascope.utils.request_context import begin_request, end_request

logger = StructuredLogger("App")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup
    try:
        config.validate()
    except ValueError as e:
        logger.critical("Configuration error", exception=e)
        raise

    cache = TTLCache(sweep_interval=config.cache.sweep_interval)
    provider = IndexerClient(config.network.indexer_url, timeout=config.network.request_timeout)
    app.state.services = build_services(provider, cache, config.cache, config.network.name)
    cache.start_sweeper()
    logger.info(
        "NinjaScope API started",
        context={"network": config.network.name, "indexer_url": config.network.indexer_url},
    )
    yield
    # Shutdown
    cache.stop_sweeper()
    cache.flush()
    await provider.aclose()
    logger.info("NinjaScope API stopped")


# Create FastAPI app
app = FastAPI(
    title="NinjaScope",
    description="Market intelligence over exchange markets: spreads, depth, volatility, health and rankings",
    version=VERSION,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.add_exception_handler(UpstreamError, upstream_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Open a request context carrying the trace id and cache outcome."""
    ctx = begin_request(request.headers.get("X-Request-ID"))
    try:
        response = await call_next(request)
    finally:
        end_request()
    response.headers["X-Request-ID"] = ctx.trace_id
    return response


app.include_router(router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.server.host, port=config.server.port)
