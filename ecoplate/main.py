"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ecoplate.config import get_settings
from ecoplate.errors import EcoPlateError
from ecoplate.state.manager import get_state_manager
from ecoplate.utils.logging import get_logger, setup_logging

# Setup logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("application_starting")

    state_manager = await get_state_manager()
    logger.info("state_manager_initialized")

    yield

    logger.info("application_shutting_down")
    await state_manager.disconnect()


app = FastAPI(
    title="EcoPlate",
    description="Reservation and pickup engine for surplus dining-hall meal drops",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EcoPlateError)
async def ecoplate_error_handler(request: Request, exc: EcoPlateError) -> JSONResponse:
    """Translate engine errors into their HTTP status and a stable error code."""
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "ecoplate"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": "EcoPlate API",
        "docs": "/docs",
        "health": "/health",
    }


from ecoplate.api.routes import router  # noqa: E402

app.include_router(router, prefix="/api/v1", tags=["api"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ecoplate.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
