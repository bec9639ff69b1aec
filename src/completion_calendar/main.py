import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import StoreError
from .repositories import get_store
from .routers import calendar as calendar_router
from .routers import entries as entries_router
from .routers import templates as templates_router
from .settings import get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "entries", "description": "Add, edit, complete and delete a day's entries."},
    {"name": "templates", "description": "Reusable entry presets and their application to a day."},
    {"name": "calendar", "description": "Month grid and per-day completion summaries."},
]

_settings = get_settings()


def configure_logging(level_name: str) -> None:
    """Install the root log format; only the running server calls this."""
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(_settings.log_level)
    # Open the store up front; a store that cannot be opened is fatal
    get_store()
    yield


app = FastAPI(
    title="Completion Calendar",
    description="Local API for a month calendar of daily entries, completion stars and reusable templates.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def field_errors(exc: RequestValidationError) -> list:
    """Flatten validation errors to {field, message, type} rows."""
    return [
        {
            "field": ".".join(str(loc) for loc in err["loc"] if loc != "body"),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Answer bad input (empty titles, unparseable dates, out-of-range weekdays)
    with 422 and one row per offending field under "detail".
    """
    content = {
        "error": "ValidationError",
        "message": "Request validation failed",
        "detail": field_errors(exc),
    }
    return JSONResponse(status_code=422, content=content)


@app.exception_handler(StoreError)
async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store fault on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=500,
        content={"error": "StoreError", "message": exc.message},
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


app.include_router(entries_router.router)
app.include_router(templates_router.router)
app.include_router(calendar_router.router)
