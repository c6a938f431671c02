"""Main FastAPI application for LinkPage."""

import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy import text

from . import __version__
from .api import analytics, auth, links, users
from .api.middleware import (
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
    register_exception_handlers,
)
from .config import get_config, validate_startup_security
from .db.database import get_db
from .repositories.memory_impl import create_memory_container
from .utils.logging_config import get_logger, initialize_logging

config = get_config()

# Create FastAPI app
app = FastAPI(
    title=config.app.app_name,
    description=config.app.description,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

register_exception_handlers(app)

# Add custom middleware in correct order (innermost first)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)

if config.app.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
    )

# Register API routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(links.router)
app.include_router(analytics.router)

# Set on startup when the in-memory backend is configured
app.state.repositories = None


@app.on_event("startup")
async def startup_event():
    """Validate security settings, start logging and pick the storage backend."""
    validate_startup_security()
    initialize_logging()
    logger = get_logger('main')

    backend = get_config().app.repository_backend
    app.state.repositories = create_memory_container() if backend == "memory" else None
    logger.info(f"Repository backend: {backend}")


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to the API docs."""
    return RedirectResponse(url="/docs")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "linkpage", "version": __version__}


@app.get("/ready")
async def readiness_check():
    """Readiness check endpoint that validates storage and configuration."""
    start_time = time.time()
    checks = {"database": False, "config": False}
    errors = []

    try:
        current = get_config()
        if current:
            checks["config"] = True
    except Exception as e:
        errors.append(f"Config check failed: {str(e)}")

    if app.state.repositories is not None:
        # In-memory storage has nothing to connect to
        checks["database"] = True
    else:
        db_gen = get_db()
        try:
            db = next(db_gen)
            db.execute(text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            errors.append(f"Database check failed: {str(e)}")
        finally:
            db_gen.close()

    response_time_ms = round((time.time() - start_time) * 1000, 2)
    all_ready = all(checks.values())

    response = {
        "status": "ready" if all_ready else "not_ready",
        "service": "linkpage",
        "version": __version__,
        "checks": checks,
        "response_time_ms": response_time_ms,
    }

    if errors:
        response["errors"] = errors

    status_code = 200 if all_ready else 503
    return JSONResponse(content=response, status_code=status_code)
