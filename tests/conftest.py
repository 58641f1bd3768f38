# =============================================================================
# CONFTEST - shared fixtures
# =============================================================================
# In-memory SQLite store, a fake question generator, and a TestClient wired
# to both. No test ever reaches a real LLM provider.
# =============================================================================

import asyncio
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from quizgen.core.config import Settings
from quizgen.db import build_engine, build_session_factory, init_db
from quizgen.schemas.quiz import GeneratedQuestion, Question, Quiz, QuizType
from quizgen.services.quiz_service import QuizService
from quizgen.storage.quiz_store import QuizStore


def make_questions(amount: int, quiz_type: QuizType) -> List[GeneratedQuestion]:
    """Deterministic questions: True/False answers are always "True",
    multiple-choice answers are always the second option."""
    questions = []
    for i in range(1, amount + 1):
        tf = quiz_type == QuizType.true_false or (quiz_type == QuizType.hybrid and i % 2 == 0)
        if tf:
            questions.append(GeneratedQuestion(
                question_text=f"Statement {i} is true?",
                answer_choices=["True", "False"],
                correct_answer="True",
                explanation=f"Statement {i} holds.",
            ))
        else:
            questions.append(GeneratedQuestion(
                question_text=f"Question {i}?",
                answer_choices=[f"A{i}", f"B{i}", f"C{i}", f"D{i}"],
                correct_answer=f"B{i}",
                explanation=f"B{i} is right.",
            ))
    return questions


class FakeGenerator:
    """Stands in for QuestionGenerator and records every call."""

    def __init__(self, error: Optional[Exception] = None, delay: float = 0):
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate(self, text: str, amount: int, quiz_type: QuizType) -> List[GeneratedQuestion]:
        self.calls.append((text, amount, quiz_type))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return make_questions(amount, quiz_type)


def make_quiz(topic: str = "Volcanoes", n: int = 3, quiz_type: QuizType = QuizType.true_false) -> Quiz:
    return Quiz(
        topic=topic,
        type=quiz_type,
        question_count=n,
        questions=[
            Question(
                question_text=q.question_text,
                answer_choices=q.answer_choices,
                correct_answer=q.correct_answer,
                explanation=q.explanation,
            )
            for q in make_questions(n, quiz_type)
        ],
    )


@pytest.fixture
def test_settings(tmp_path):
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        UPLOAD_DIR=str(upload_dir),
        AI_TIMEOUT_SECONDS=5,
        GROQ_API_KEY=None,
        GOOGLE_API_KEY=None,
    )


@pytest.fixture
def store(test_settings):
    engine = build_engine(test_settings.DATABASE_URL)
    init_db(engine)
    yield QuizStore(build_session_factory(engine), max_retries=test_settings.STORE_MAX_RETRIES)
    engine.dispose()


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def service(store, fake_generator, test_settings):
    return QuizService(store, fake_generator, test_settings)


@pytest.fixture
def client(service):
    """TestClient with the service dependency overridden (lifespan not run)."""
    from quizgen.api.v1.endpoints.quizzes import get_quiz_service
    from quizgen.main import app

    app.dependency_overrides[get_quiz_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
