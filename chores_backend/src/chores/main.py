import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .clock import Clock, SystemClock
from .completion import TaskCompletionWorkflow
from .errors import PersistenceError, TaskNotFound
from .logging_config import setup_logging
from .repositories import Repository, get_repository
from .routers import tasks as tasks_router
from .settings import Settings, get_settings
from .sweeper import DueDateSweeper
from .visibility import TaskVisibilityPolicy

logger = logging.getLogger("chores.app")

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Household chores: visibility-scoped listing, completion and deletion.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the due-date sweeper with the app and stop it on shutdown."""
    settings: Settings = app.state.settings
    sweeper: DueDateSweeper = app.state.sweeper
    if settings.sweep_enabled:
        await sweeper.start()
    yield
    await sweeper.stop()


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[Repository] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the FastAPI application and its process-scoped services.

    The repository, clock, visibility policy, completion workflow and sweeper
    are created once and kept on app.state for the request handlers.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_dir)

    repository = repository or get_repository(settings)
    clock = clock or SystemClock()

    app = FastAPI(
        title="Chores Backend",
        description="Household chores API with recurring due dates and a periodic sweep.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository
    app.state.visibility = TaskVisibilityPolicy(repository)
    app.state.workflow = TaskCompletionWorkflow(repository, clock)
    app.state.sweeper = DueDateSweeper(repository, clock, settings.sweep_interval_seconds)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                # pydantic error contexts may hold exception instances
                "detail": jsonable_encoder(exc.errors(), custom_encoder={ValueError: str}),
            },
        )

    @app.exception_handler(TaskNotFound)
    async def not_found_handler(request: Request, exc: TaskNotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Task not found"})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "PersistenceError", "message": "Storage operation failed"},
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {
            "message": "Healthy",
            "backend": settings.persistence_backend,
            "sweeper": "running" if app.state.sweeper.running else "stopped",
        }

    if not settings.enable_basic_auth:
        logger.warning("basic auth disabled: request usernames are trusted without a password check")
    app.include_router(tasks_router.router)
    logger.info("app created (backend=%s, sweep_enabled=%s)", settings.persistence_backend, settings.sweep_enabled)
    return app


app = create_app()
