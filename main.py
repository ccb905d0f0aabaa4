import json
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from db import dispose_db
from core.logger import logger
from core.notifications import build_notifier
from core.uploads import PUBLIC_PREFIX, UPLOAD_DIR

from api.auth.views import router as auth_router
from api.complaints.views import router as complaints_router
from api.admin.views import router as admin_router
from api.users.views import router as users_router


def get_cors_origins() -> list[str]:
    """Get CORS origins from environment variable or use defaults."""
    cors_env = os.environ.get("CORS_ORIGINS", "")

    # Try to parse as JSON array
    if cors_env:
        try:
            origins = json.loads(cors_env)
            if isinstance(origins, list):
                return origins
        except json.JSONDecodeError:
            # If not valid JSON, treat as comma-separated
            return [o.strip() for o in cors_env.split(",") if o.strip()]

    # Default origins for the web client in development
    return [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Civic Complaint Reporting API ({settings.APP_ENV})")
    app.state.notifier = build_notifier()
    yield
    await dispose_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Civic Complaint Reporting API",
    description="Citizens report local infrastructure problems; administrators triage and resolve them",
    version="1.0.0",
    lifespan=lifespan,
)

# Get CORS origins from environment or use defaults
cors_origins = get_cors_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Error envelope ----------

def error_response(status_code: int, message: str, error=None, headers=None) -> JSONResponse:
    body = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        # Raised by the router itself, not by an endpoint
        message = "Route not found"
    return error_response(
        exc.status_code,
        message,
        getattr(exc, "error", None),
        getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return error_response(400, "Please provide all required fields correctly", details)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(
        500,
        "Something went wrong!",
        None if settings.is_production else str(exc),
    )


# ---------- Routes ----------

app.include_router(auth_router, prefix="/api")
app.include_router(complaints_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(users_router, prefix="/api")

# Uploaded complaint photos
app.mount(PUBLIC_PREFIX, StaticFiles(directory=UPLOAD_DIR), name="uploads")


# Health check endpoint
@app.get("/health", tags=["system"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "environment": settings.APP_ENV}
