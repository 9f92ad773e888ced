from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from database.mongodb import db
from config import get_settings
from routes import aircraft, components
from services.errors import (
    ConcurrentUpdateError,
    ConfigError,
    NotFoundError,
    StorageError,
    UsageValidationError,
)
import logging

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for the app"""
    # Startup
    await db.connect(settings.mongo_url, settings.db_name)
    await db.ensure_indexes()
    logger.info("Fleet Semaforo Backend started")
    yield
    # Shutdown
    await db.disconnect()
    logger.info("Fleet Semaforo Backend stopped")

# Create FastAPI app
app = FastAPI(
    title="Fleet Semaforo API",
    description="Usage-based maintenance thresholds and semaforo alerts for aircraft fleets",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict to specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Domain errors -> HTTP (same body shape as HTTPException)
ERROR_STATUS = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UsageValidationError, status.HTTP_400_BAD_REQUEST),
    (ConfigError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConcurrentUpdateError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
]

def _make_handler(status_code: int):
    async def handler(request: Request, exc):
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler

for error_class, status_code in ERROR_STATUS:
    app.add_exception_handler(error_class, _make_handler(status_code))

# Include routers
app.include_router(aircraft.router)
app.include_router(components.router)

@app.get("/")
async def root():
    return {
        "message": "Fleet Semaforo API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
