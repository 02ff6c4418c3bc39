"""Main FastAPI application for the Progress Engine."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
from prometheus_fastapi_instrumentator import Instrumentator

from progress_engine.core.config import settings
from progress_engine.core.logging import setup_logging
from progress_engine.core.database import build_engine, build_session_factory, init_db
from progress_engine.progress.persistence import InMemoryStore, KeyValueStore, SQLAlchemyStore
from progress_engine.progress.session import SessionRegistry
from progress_engine.routers import progress, gamification, dashboard

# Setup structured logging
setup_logging()
logger = structlog.get_logger()


def build_store() -> KeyValueStore:
    """Create the persistence adapter selected by DATABASE_URL."""
    if settings.uses_memory_storage():
        logger.warning("Using in-memory storage, progress is lost on restart")
        return InMemoryStore()

    engine = build_engine()
    init_db(engine)
    return SQLAlchemyStore(build_session_factory(engine))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    # Startup
    logger.info("Starting Progress Engine", version=settings.APP_VERSION)

    if getattr(app.state, "sessions", None) is None:
        app.state.sessions = SessionRegistry(build_store(), autosave=False)

    logger.info(
        "Progress engine initialized successfully",
        badges=len(app.state.sessions.engine.catalogue)
    )

    yield

    # Shutdown
    logger.info("Shutting down Progress Engine")


def create_app(
    sessions: Optional[SessionRegistry] = None,
    enable_metrics: Optional[bool] = None
) -> FastAPI:
    """Build the application; ``sessions`` overrides the startup registry."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Experience, levels, streaks and achievements for learners",
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    )
    app.state.sessions = sessions

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup Prometheus metrics
    if settings.ENABLE_METRICS if enable_metrics is None else enable_metrics:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    # Include routers
    app.include_router(progress.router, prefix="/api/progress", tags=["progress"])
    app.include_router(gamification.router, prefix="/api/gamification", tags=["gamification"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint."""
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "status": "operational"
        }

    @app.get("/health", tags=["health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        health_status = {
            "status": "healthy",
            "service": settings.SERVICE_NAME,
            "version": settings.APP_VERSION,
            "checks": {}
        }

        try:
            request.app.state.sessions.store.load("health_check")
            health_status["checks"]["storage"] = "healthy"
        except Exception as e:
            health_status["checks"]["storage"] = f"unhealthy: {str(e)}"
            health_status["status"] = "degraded"

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(content=health_status, status_code=status_code)

    @app.get("/config", tags=["debug"])
    async def get_config():
        """Get current configuration (development only)."""
        if settings.is_production():
            return JSONResponse(
                content={"error": "Not available in production"},
                status_code=403
            )

        return {
            "environment": settings.ENVIRONMENT,
            "experience": {
                "concept_completed": settings.XP_CONCEPT_COMPLETED,
                "concept_per_minute": settings.XP_CONCEPT_PER_MINUTE,
                "project_started": settings.XP_PROJECT_STARTED,
                "project_per_minute": settings.XP_PROJECT_PER_MINUTE,
            },
            "level_thresholds": settings.LEVEL_THRESHOLDS,
            "daily_goal_minutes": settings.DAILY_GOAL_MINUTES
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "progress_engine.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
        reload=settings.ENVIRONMENT == "development",
        log_config=None  # Use structlog instead
    )
