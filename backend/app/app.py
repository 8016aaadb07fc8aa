"""
StudyMaster Backend
FastAPI application for study progress, gamification and AI study content
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from contextlib import asynccontextmanager

from app.routes.progress import router as progress_router
from app.services.database import init_database_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info("Starting up StudyMaster API...")
    db_service = init_database_service()
    logger.info(f"Using database at {db_service.db_path}")
    yield
    logger.info("Shutting down StudyMaster API...")
    await db_service.engine.dispose()
    logger.info("Shutdown complete.")


# Create FastAPI app
app = FastAPI(
    title="StudyMaster API",
    description="Backend API for StudyMaster progress and gamification",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict to the web client origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(progress_router, prefix="/api/progress", tags=["progress"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "StudyMaster API is running", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
