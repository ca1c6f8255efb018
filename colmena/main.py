"""
Colmena Visits API
Main application file
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import uvicorn

from sqlalchemy.orm import Session

from colmena.core.config import settings
from colmena.core.database import engine, get_db, test_database_connection
from colmena.core.init_db import init_db
from colmena.core.error_handlers import register_exception_handlers
from colmena.routers import auth, visit
import colmena.models  # noqa: F401  registers every table on Base.metadata

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.log_format
)
logger = logging.getLogger(__name__)

# ============================================================================
# FastAPI Application
# ============================================================================

# Disable docs in production
docs_url = "/docs" if not settings.is_production else None
redoc_url = "/redoc" if not settings.is_production else None

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Condominium visitor registration and QR check-in/check-out",
    docs_url=docs_url,
    redoc_url=redoc_url,
)

register_exception_handlers(app)

# ============================================================================
# CORS Configuration
# ============================================================================

def cors_policy(extra: Optional[str], defaults: List[str]) -> Tuple[List[str], bool]:
    """
    Allowed origins plus the credentials flag.

    ``API_CORS_ORIGINS=*`` opens the API to any origin, in which case
    browsers refuse credentialed requests, so credentials are switched off.
    Otherwise the comma separated value extends the default origin list.
    """
    if extra and extra.strip() == "*":
        return ["*"], False
    origins = list(defaults)
    if extra:
        origins.extend(o.strip() for o in extra.split(",") if o.strip())
    return origins, True


origins, allow_credentials = cors_policy(settings.API_CORS_ORIGINS, settings.cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# Root & Health Endpoints
# ============================================================================

@app.get("/", tags=["Root"])
def root():
    """Service name, version and entry points"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "documentation": docs_url,
        "endpoints": {
            "health": "/health",
            "auth": "/api/auth",
            "visits": "/api/visits"
        }
    }

@app.get("/health", tags=["Health"])
def health_check(db: Session = Depends(get_db)):
    """Liveness plus a database round trip"""
    database_ok = test_database_connection(db.get_bind())
    return {
        "status": "ok" if database_ok else "degraded",
        "database": "up" if database_ok else "down",
        "version": settings.app_version,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

# ============================================================================
# Event Handlers
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Actions to perform on application startup"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {engine.url.render_as_string(hide_password=True)}")
    logger.info(f"CORS Origins: {origins}")
    logger.info(f"JWT Expiration: {settings.JWT_EXPIRATION_HOURS} hours")
    if settings.visit_pending_ttl_hours:
        logger.info(f"Pending visit QR tokens expire {settings.visit_pending_ttl_hours}h after the expected time")
    else:
        logger.info("Pending visit QR tokens never expire")
    logger.info("=" * 60)

    try:
        init_db(engine)
    except Exception as e:
        logger.error(f"Could not create tables: {e}")
        logger.warning("Starting anyway; requests touching the database will fail until it is reachable")

@app.on_event("shutdown")
async def shutdown_event():
    """Actions to perform on application shutdown"""
    logger.info(f"Shutting down {settings.app_name}")

# ============================================================================
# Router Registration
# ============================================================================

app.include_router(auth.router)  # Login and current user
app.include_router(visit.router)  # Visit registration and QR scanning

if __name__ == "__main__":
    uvicorn.run(
        "colmena.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.LOG_LEVEL.lower()
    )
