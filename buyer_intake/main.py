import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from buyer_intake.api.v1.router import router as api_v1_router
from buyer_intake.core.config import settings as app_settings
from buyer_intake.core.exceptions import (
    AuthenticationError,
    BuyerNotFoundError,
    ImportLimitError,
    ImportValidationError,
    InvalidBuyerDataError,
    InvalidImportFileError,
    NotBuyerOwnerError,
    PersistenceError,
    StaleBuyerVersionError,
)
from buyer_intake.core.rate_limit import limiter
from buyer_intake.schemas.imports import ImportRejectedOut

# Configure logging
logging.basicConfig(
    level=app_settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Buyer Lead Intake",
    description="Capture, track and bulk-manage property buyer leads",
    version="0.1.0",
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


def _wire_path(loc) -> str:
    """Dotted field path with the request section (body/query/path) stripped."""
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts) or "request"


@app.exception_handler(InvalidBuyerDataError)
async def invalid_buyer_data_handler(request: Request, exc: InvalidBuyerDataError):
    logger.warning(
        "Invalid buyer data: %s", [f"{e.field}: {e.message}" for e in exc.errors]
    )
    return JSONResponse(
        status_code=422,
        content={
            "detail": exc.detail,
            "type": "validation_error",
            "errors": [e.model_dump() for e in exc.errors],
        },
    )


@app.exception_handler(BuyerNotFoundError)
async def buyer_not_found_handler(request: Request, exc: BuyerNotFoundError):
    logger.warning("Buyer not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "buyer_not_found"},
    )


@app.exception_handler(NotBuyerOwnerError)
async def not_owner_handler(request: Request, exc: NotBuyerOwnerError):
    logger.warning("Ownership check failed: %s", exc.detail)
    return JSONResponse(
        status_code=403,
        content={"detail": exc.detail, "type": "not_owner"},
    )


@app.exception_handler(StaleBuyerVersionError)
async def stale_version_handler(request: Request, exc: StaleBuyerVersionError):
    logger.info("Version conflict on %s: %s", request.url.path, exc.detail)
    return JSONResponse(
        status_code=409,
        content={"detail": exc.detail, "type": "version_conflict"},
    )


@app.exception_handler(ImportLimitError)
async def import_limit_handler(request: Request, exc: ImportLimitError):
    logger.warning("Import limit exceeded: %s", exc.detail)
    return JSONResponse(
        status_code=413,
        content={"detail": exc.detail, "type": "import_limit_exceeded"},
    )


@app.exception_handler(InvalidImportFileError)
async def invalid_import_file_handler(request: Request, exc: InvalidImportFileError):
    logger.warning("Invalid import file: %s", exc.detail)
    return JSONResponse(
        status_code=400,
        content={"detail": exc.detail, "type": "invalid_import_file"},
    )


@app.exception_handler(ImportValidationError)
async def import_rejected_handler(request: Request, exc: ImportValidationError):
    logger.warning(
        "Import rejected: %d invalid of %d rows",
        exc.invalid_count,
        exc.invalid_count + exc.valid_count,
    )
    body = ImportRejectedOut(
        detail=exc.detail,
        errors=[row.summary for row in exc.row_errors],
        row_errors=exc.row_errors,
        valid_count=exc.valid_count,
        invalid_count=exc.invalid_count,
    )
    return JSONResponse(
        status_code=400,
        content=body.model_dump(mode="json", by_alias=True),
    )


@app.exception_handler(AuthenticationError)
async def authentication_handler(request: Request, exc: AuthenticationError):
    logger.info("Authentication failed on %s: %s", request.url.path, exc.detail)
    return JSONResponse(
        status_code=401,
        content={"detail": exc.detail, "type": "unauthenticated"},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure on %s: %s", request.url.path, exc.detail)
    return JSONResponse(
        status_code=500,
        content={"detail": exc.detail, "type": "persistence_error"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": [
                {"field": _wire_path(err.get("loc", ())), "message": err.get("msg", "")}
                for err in exc.errors()
            ],
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
