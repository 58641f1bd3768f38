"""
quizgen — AI Quiz Generator
============================
FastAPI entry point.
  • Global exception handlers — every failure returns a JSON envelope
  • /api/quizzes — generate, play, and review quizzes
  • Topic or document (PDF / DOCX / TXT) as the quiz source
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quizgen import __version__
from quizgen.ai_engine import QuestionGenerator
from quizgen.api.v1.endpoints.quizzes import get_quiz_service, router as quizzes_router
from quizgen.core.config import settings
from quizgen.core.errors import QuizError
from quizgen.db import build_engine, build_session_factory, init_db
from quizgen.schemas.common import ErrorResponse, HealthResponse
from quizgen.services.quiz_service import QuizService
from quizgen.storage.quiz_store import QuizStore

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ─────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)
    store = QuizStore(build_session_factory(engine), max_retries=settings.STORE_MAX_RETRIES)
    app.state.quiz_service = QuizService(store, QuestionGenerator(settings), settings)
    logger.info(f"[STARTUP] ✓ quizgen {__version__} ready")
    yield
    engine.dispose()


# ── App ──────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="quizgen — AI Quiz Generator",
    description=(
        "Generate a quiz from a topic or a document, answer it one question "
        "at a time, and review past results."
    ),
    version=__version__,
    lifespan=lifespan,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    """Known failures: status code and message come from the error class."""
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message} ({exc.detail})")
    body = ErrorResponse(status="error", message=exc.message, detail=exc.detail)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all: every unhandled exception returns a clean JSON envelope."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    body = ErrorResponse(
        status="error",
        message="An internal server error occurred.",
        detail=str(exc),
    )
    return JSONResponse(status_code=500, content=body.model_dump())


# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Health Check ─────────────────────────────────────────────────────────────
@app.get("/", response_model=HealthResponse, tags=["System"])
def health_check(service: QuizService = Depends(get_quiz_service)):
    return HealthResponse(
        status="operational",
        service="quizgen",
        version=__version__,
        database="ok" if service.store.ping() else "unavailable",
    )


app.include_router(quizzes_router)
