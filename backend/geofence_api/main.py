"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from geofence_api.config import get_settings
from geofence_api.api.v1 import router as api_v1_router
from geofence_api.exceptions import GeofenceError, ValidationError

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting %s...", settings.APP_NAME)
    yield
    # Shutdown
    logger.info("Shutting down %s...", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Named geofence alert zones built from polygons and circles",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GeofenceError)
async def geofence_error_handler(request: Request, exc: GeofenceError):
    """Translate domain errors into JSON responses."""
    content = {"detail": exc.message}
    if isinstance(exc, ValidationError) and exc.path:
        content["path"] = list(exc.path)
    return JSONResponse(status_code=exc.status_code, content=content)


# Include API routers
app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.APP_NAME}
