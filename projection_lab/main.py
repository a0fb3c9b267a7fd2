"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from projection_lab.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from projection_lab.api.routes import metrics, organizations, users
from projection_lab.core.config import get_settings
from projection_lab.core.database import engine, init_schema
from projection_lab.core.errors import (
    ConcurrentUpdateError,
    EntityNotFoundError,
    UserAlreadyExistsError,
)
from projection_lab.core.structured_logging import configure_logging
from projection_lab.schemas.errors import ErrorResponse

settings = get_settings()
docs_enabled = settings.api_docs_enabled
if docs_enabled is None:
    docs_enabled = settings.environment != "production"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    if settings.create_schema_on_startup:
        await init_schema(engine)
    yield
    await engine.dispose()


app = FastAPI(
    title="Projection Lab API",
    description="Organizations and supervised users, created and read through alternative projection strategies",
    version="1.0.0",
    docs_url="/docs" if docs_enabled else None,
    redoc_url="/redoc" if docs_enabled else None,
    openapi_url="/openapi.json" if docs_enabled else None,
    lifespan=lifespan,
)

# Middleware configuration (order matters - applied in reverse order)
# 1. Request logging (outermost - logs all requests and counts round trips)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    expose_headers=[settings.round_trip_header] if settings.round_trip_header else [],
)


@app.exception_handler(EntityNotFoundError)
async def entity_not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    body = ErrorResponse(
        error=exc.error_code,
        message=str(exc),
        details={"entity": exc.entity_kind, "id": exc.entity_id},
    )
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=body.model_dump())


@app.exception_handler(UserAlreadyExistsError)
@app.exception_handler(ConcurrentUpdateError)
async def conflict_handler(
    request: Request,
    exc: UserAlreadyExistsError | ConcurrentUpdateError,
) -> JSONResponse:
    body = ErrorResponse(
        error=exc.error_code,
        message=str(exc),
        details={"entity": "user", "id": exc.user_id},
    )
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump())


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(organizations.router, prefix="/organization", tags=["organizations"])
app.include_router(users.router, prefix="/organization/{org_id}/users", tags=["users"])
app.include_router(metrics.router, tags=["metrics"])
