from contextlib import asynccontextmanager
from pathlib import Path
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from wpd_portal.api.routes import admin, health, traffic, upload, users
from wpd_portal.core.config import settings
from wpd_portal.core.errors import PortalError
from wpd_portal.core.logging import setup_logging
from wpd_portal.db.session import SessionLocal, init_db

# Setup logging
setup_logging(settings)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    logger.info("🚀 Starting World Pest Day Portal...")

    logger.info("📦 Creating database tables...")
    init_db()

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        logger.info("✅ Database connection successful")
    except SQLAlchemyError as e:
        logger.error(f"❌ Database connection failed: {e}")
        raise

    yield

    logger.info("👋 Shutting down...")

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="World Pest Day registration, video submission and certificate portal",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Origin"],
)


# ---------- Error bodies: {"message": ...} everywhere ----------
@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    detail = first.get("msg", "Invalid request")
    message = f"{field}: {detail}" if field else detail
    return JSONResponse(status_code=400, content={"message": message, "errors": len(errors)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"{request.method} {request.url.path} database error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": f"Database error: {exc}"})


# Include routers
app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(users.router, prefix="/api/users", tags=["Registration"])
app.include_router(upload.router, prefix="/api/upload", tags=["Upload"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(traffic.router, prefix="/api", tags=["Traffic"])

if settings.STORAGE_BACKEND == "local":
    media_root = Path(settings.MEDIA_ROOT)
    media_root.mkdir(parents=True, exist_ok=True)
    app.mount(settings.MEDIA_URL.rstrip("/"), StaticFiles(directory=media_root), name="media")

@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "health": "/api/health",
            "register": "/api/users/register",
            "check_status": "/api/users/check",
            "verify": "/api/users/verify",
            "upload": "/api/upload",
            "admin_login": "/api/admin/login",
            "track_visit": "/api/track-visit",
        },
    }

@app.get("/test")
async def test():
    return {"message": "API is working!"}

def run():
    uvicorn.run("wpd_portal.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)

if __name__ == "__main__":
    run()
