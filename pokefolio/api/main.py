"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from pokefolio.core.config import settings
from pokefolio.core.exceptions import ServiceError
from pokefolio.core.telemetry import configure_telemetry, instrument_app
from pokefolio.api.routes import admin, cards, dashboard, portfolio, wishlist
from pokefolio.db.session import AsyncSessionLocal

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Pokefolio API"
SERVICE_VERSION = "0.1.0"

if settings.otel_enabled:
    configure_telemetry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for startup and shutdown events."""
    # Startup
    logger.info(f"Starting {SERVICE_NAME}...")
    logger.info(f"Environment: {'Development' if settings.debug else 'Production'}")
    logger.info(f"Card catalog: {settings.tcgdex_base_url} "
                f"({settings.catalog_default_language}, fallback {settings.catalog_fallback_language})")
    if not settings.pokemon_tcg_api_key:
        logger.warning("Pokemon TCG API key not configured, pricing requests are limited to 20/minute")
    yield
    # Shutdown
    logger.info(f"Shutting down {SERVICE_NAME}...")


# Create FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="Pokemon TCG collection manager: portfolio, dashboard, catalog search and wishlist",
    version=SERVICE_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.otel_enabled:
    instrument_app(app)


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code.value} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.error_code.value} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "errorCode": exc.error_code.value,
            "errors": exc.errors
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"}
    )

# Include routers
app.include_router(portfolio.router)
app.include_router(dashboard.router)
app.include_router(cards.router)
app.include_router(wishlist.router)
app.include_router(admin.router)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic service info."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Verifies database connectivity (executes SELECT 1).
    Returns 200 when the database answers, 503 otherwise.
    """
    health_status = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "checks": {}
    }

    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            health_status["checks"]["database"] = {
                "status": "healthy",
                "message": "Connected"
            }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Connection failed: {str(e)}"
        }

    health_status["checks"]["catalog"] = {
        "status": "configured",
        "message": settings.tcgdex_base_url
    }

    status_code = status.HTTP_200_OK if health_status["status"] == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(content=health_status, status_code=status_code)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pokefolio.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )
