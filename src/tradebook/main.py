"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tradebook.config.settings import get_settings
from tradebook.config.logging_config import setup_logging
from tradebook.repositories.sqlalchemy.database import init_db
from tradebook.api.routers import cash_ledger_router, positions_router, orders_router
from tradebook.core.exceptions import AppError

# AppError.code -> HTTP status
ERROR_STATUS_CODES: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "INVARIANT_VIOLATION": 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging()
    init_db()
    yield


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Trading positions, pending orders and cash ledger bookkeeping",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(cash_ledger_router)
app.include_router(positions_router)
app.include_router(orders_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(exc.code, 400),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
