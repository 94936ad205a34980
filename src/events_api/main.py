import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import EventTrackerError
from .logging_config import configure_logging
from .repositories import Repository, get_repository
from .routers import accounts as accounts_router
from .routers import admin as admin_router
from .routers import events as events_router
from .settings import get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "events",
        "description": "Event listings with scope, date and type filters and cursor pagination.",
    },
    {"name": "auth", "description": "Registration, login and the current user."},
    {"name": "admin", "description": "Create, edit and delete events (admin role only)."},
]

app = FastAPI(
    title="Event Tracker",
    description="Dated homework, quiz and assignment tracking with per-user completion.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

_settings = get_settings()
configure_logging(_settings.log_level, log_path=_settings.log_file)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _first_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Request validation failed"
    first = errors[0]
    msg = str(first.get("msg", ""))
    if msg.startswith("Value error, "):
        return msg[len("Value error, "):]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    return f"{loc[-1]}: {msg}" if loc else msg


def _jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the raised ValueError, which is not JSON serializable
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


@app.exception_handler(EventTrackerError)
async def event_tracker_error_handler(request: Request, exc: EventTrackerError) -> JSONResponse:
    """Render domain errors as {"error": message} with their status code."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request body validation errors.

    Response format:
        {
            "error": "<first human-readable message>",
            "message": "Request validation failed",
            "detail": [... pydantic/fastapi error details ...]
        }
    """
    return JSONResponse(
        status_code=400,
        content={
            "error": _first_error_message(exc),
            "message": "Request validation failed",
            "detail": _jsonable_errors(exc),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error."})


# PUBLIC_INTERFACE
@app.get("/api/health", summary="Health Check", tags=["health"])
def health_check(repo: Repository = Depends(get_repository)):
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health and the storage backend in use.
    """
    return {"status": "ok", "backend": repo.backend_name}


# Include routers
app.include_router(accounts_router.router)
app.include_router(events_router.router)
app.include_router(admin_router.router)
