"""Main FastAPI application for the Feedback Hub backend."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from src.api import health, support
from src.config import get_site_config
from src.lib.i18n import get_translator
from src.lib.logging_config import configure_logging, create_request_context_middleware

configure_logging()

logger = logging.getLogger(__name__)

site = get_site_config()

app = FastAPI(
    title=f"{site.name} Feedback API",
    description=site.description,
    version="1.0.0",
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic 422 validation errors to 400 with the error envelope.

    Only applies to /support endpoints - other endpoints still get 422.
    """
    if request.url.path.startswith(support.router.prefix):
        details = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
            details.append({"field": field, "message": error["msg"]})

        logger.warning('Validation error on %s: %s', request.url.path, details)
        t = get_translator(request)
        return JSONResponse(
            status_code=400,
            content={"error": t("errors", "validation"), "details": details},
        )

    return await request_validation_exception_handler(request, exc)


app.add_middleware(
    CORSMiddleware,
    allow_origins=site.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# Added after CORS so the request id wraps every response, preflights included
create_request_context_middleware(app)

# Support ticket endpoints (under /support)
app.include_router(support.router)

app.include_router(health.router, tags=["Health"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": f"{site.name} Feedback API",
        "version": "1.0.0",
        "site": site.url,
        "links": site.links,
        "docs": "/docs",
        "health": "/health",
    }
