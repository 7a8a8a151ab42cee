# jobportal/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from jobportal.core.config import settings
from jobportal.core.logging import configure_logging
from jobportal.db.session import engine
from jobportal.db.base import Base
from jobportal.errors import BackendError

# Import models so SQLAlchemy knows about them (for create_all)
import jobportal.models.registry  # noqa: F401

# Routers
from jobportal.api.routes import router as api_router
from jobportal.api.rest_routes import router as rest_router
from jobportal.api.storage_routes import router as storage_router

logger = logging.getLogger(__name__)

# BackendError.code -> HTTP status
STATUS_BY_CODE = {
    "not_authenticated": 401,
    "forbidden": 403,
    "invalid_credentials": 400,
    "email_not_confirmed": 400,
    "weak_password": 422,
    "invalid_column": 400,
    "invalid_value": 400,
    "invalid_filter": 400,
    "invalid_bucket": 400,
    "invalid_path": 400,
    "not_found": 404,
    "unknown_table": 404,
    "multiple_rows": 406,
    "conflict": 409,
}


async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    status = STATUS_BY_CODE.get(exc.code, 500)
    if status >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": {"code": exc.code, "message": exc.message}})


def create_app(create_tables: bool = True) -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME)

    # Root -> redirect to Swagger UI
    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")

    # CORS
    origins = [o.strip() for o in settings.BACKEND_CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BackendError, backend_error_handler)

    # Ensure tables exist (uses the database from .env)
    if create_tables:
        Base.metadata.create_all(bind=engine)

    # API routes
    app.include_router(api_router)       # /health, /auth/v1/*
    app.include_router(rest_router)      # /rest/v1/{table}
    app.include_router(storage_router)   # /storage/v1/*

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("jobportal.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
