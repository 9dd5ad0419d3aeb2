import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import structlog

from .config import settings
from .db import Base, engine
from .errors import register_exception_handlers
from .logging import setup_logging, RequestIdMiddleware
from .models import models  # noqa: F401  (registers tables on Base.metadata)
from .routes.users import router as users_router
from .routes.projects import router as projects_router
from .routes.files import router as files_router
from .routes.contractors import router as contractors_router
from .routes.fiber_teams import router as fiber_teams_router
from .routes.leave_requests import router as leave_requests_router
from .routes.training_requests import router as training_requests_router
from .routes.procurement import router as procurement_router
from .routes.hr_documents import router as hr_documents_router
from .routes.project_documents import router as project_documents_router
from .routes.shifts import router as shifts_router


logger = structlog.get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_exception_handlers(app)

    # Routers
    app.include_router(users_router)
    app.include_router(projects_router)
    app.include_router(files_router)
    app.include_router(contractors_router)
    app.include_router(fiber_teams_router)
    app.include_router(leave_requests_router)
    app.include_router(training_requests_router)
    app.include_router(procurement_router)
    app.include_router(hr_documents_router)
    app.include_router(project_documents_router)
    app.include_router(shifts_router)

    @app.get("/health")
    def health():
        return {"status": "ok", "environment": settings.environment}

    # Metrics
    Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
            logger.info("database_tables_ready", tables=len(Base.metadata.tables))
        logger.info("startup_complete", app=settings.app_name, environment=settings.environment)

    return app


app = create_app()
