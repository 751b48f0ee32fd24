"""
Task Allocation Planner - Main Application Entry Point

Schedules tasks onto users' weekly work and hobby calendars.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from planning.core.config import get_settings
from planning.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Task Allocation Planner in {settings.ENVIRONMENT} mode...")

    from planning.infrastructure.local.database import dispose_db, init_db

    await init_db()

    yield

    # Shutdown
    logger.info("Shutting down Task Allocation Planner...")
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Task Allocation Planner",
        description="Capacity-aware day-by-day task scheduling",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    from planning.api import allocations, calendars, child_allocations, planning

    app.include_router(allocations.router, prefix="/api/task-allocations", tags=["task_allocations"])
    app.include_router(
        child_allocations.router, prefix="/api/task-child-allocations", tags=["task_child_allocations"]
    )
    app.include_router(planning.router, prefix="/api/planning", tags=["planning"])
    app.include_router(calendars.router, prefix="/api/users", tags=["calendars"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
