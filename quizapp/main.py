"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from quizapp.config import settings
from quizapp.api import (
    health_router,
    quizzes_router,
    attempts_router,
    stats_router,
)
from quizapp.core.exceptions import InvalidConfig, QuizEngineError
from quizapp.schemas.common import ErrorResponse

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Quiz session engine starting…")
    yield
    logger.info("✅ Quiz session engine shut down")


app = FastAPI(
    title="Quiz Session Engine API",
    description="Question selection, timed attempts and scoring for multiple-choice quizzes",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Errors ────────────────────────────────────────────────────────────────────


@app.exception_handler(QuizEngineError)
async def quiz_engine_error_handler(request: Request, exc: QuizEngineError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    body = ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


GENERATE_PATH = "/api/quizzes/generate"


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed quiz configurations get the same envelope as engine-rejected ones."""
    if request.url.path.rstrip("/") != GENERATE_PATH:
        return await request_validation_exception_handler(request, exc)

    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    first = errors[0] if errors else {"loc": [], "msg": "invalid request"}
    field = ".".join(part for part in first["loc"] if part != "body") or "body"
    error = InvalidConfig(
        f"Invalid quiz configuration: {field}: {first['msg']}",
        details={"field": field, "errors": errors},
    )
    return await quiz_engine_error_handler(request, error)


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(health_router, tags=["Health"])
app.include_router(quizzes_router, prefix="/api/quizzes", tags=["Quizzes"])
app.include_router(attempts_router, prefix="/api/attempts", tags=["Attempts"])
app.include_router(stats_router, prefix="/api/stats", tags=["Stats"])


@app.get("/")
async def root():
    return {
        "name": "Quiz Session Engine API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
