"""
Main FastAPI application.
This is the entry point for the backend server.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from flowboard.core.config import settings
from flowboard.core.errors import register_exception_handlers
from flowboard.db.database import init_db
from flowboard.api.endpoints import dashboard, widgets

# Set up logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    logger.info("Starting %s %s (%s)", settings.APP_NAME, settings.VERSION, settings.ENVIRONMENT)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Company-scoped widget dashboards over device readings",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(dashboard.router)
app.include_router(widgets.router)


@app.get("/")
async def root():
    """Root endpoint - health check"""
    return {
        "message": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
