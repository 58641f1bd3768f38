"""
quizgen — Quiz Store
=====================
SQLAlchemy-backed persistence for the Quiz aggregate. Questions are embedded
as a JSON column, so each quiz is written and read as one row.

Mutations after creation go through ``update()``, which guards the write with
the row's version counter and re-applies the mutation on conflict.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Callable, Iterator, List, TypeVar

from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from quizgen.core.errors import NotFoundError, StoreError
from quizgen.models import QuizRecord
from quizgen.schemas.quiz import Question, Quiz, QuizStatus, QuizSummary, QuizType

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _new_id() -> str:
    return uuid.uuid4().hex


def _dump_questions(questions: List[Question]) -> list:
    return [q.model_dump(by_alias=True, mode="json") for q in questions]


def _to_quiz(record: QuizRecord) -> Quiz:
    return Quiz(
        id=record.id,
        topic=record.topic,
        type=QuizType(record.type),
        question_count=record.question_count,
        questions=[Question.model_validate(q) for q in record.questions],
        score=record.score,
        status=QuizStatus(record.status),
        created_at=record.created_at,
    )


class QuizStore:
    """Single-aggregate CRUD over the ``quizzes`` table."""

    def __init__(self, session_factory: sessionmaker, max_retries: int = 3):
        self._session_factory = session_factory
        self.max_retries = max(1, max_retries)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"[STORE] Database error: {e}")
            raise StoreError(detail=str(e)) from e
        finally:
            session.close()

    # ── Create / Read ────────────────────────────────────────────────────────

    def create(self, quiz: Quiz) -> str:
        """Assign ids, then persist the quiz and all its questions in one commit."""
        quiz_id = _new_id()
        questions = [q.model_copy(update={"id": _new_id()}) for q in quiz.questions]

        with self._session() as session:
            record = QuizRecord(
                id=quiz_id,
                topic=quiz.topic,
                type=quiz.type.value,
                question_count=quiz.question_count,
                questions=_dump_questions(questions),
                score=quiz.score,
                status=quiz.status.value,
            )
            session.add(record)
            session.commit()

        logger.info(f"[STORE] ✓ Created quiz {quiz_id} ({len(questions)} questions)")
        return quiz_id

    def get_by_id(self, quiz_id: str) -> Quiz:
        with self._session() as session:
            record = session.get(QuizRecord, quiz_id)
            if record is None:
                raise NotFoundError(detail=f"No quiz with id '{quiz_id}'")
            return _to_quiz(record)

    def list_recent(self, limit: int = 20) -> List[QuizSummary]:
        """Newest first. Selects summary columns only, never question bodies."""
        stmt = (
            select(
                QuizRecord.id,
                QuizRecord.topic,
                QuizRecord.type,
                QuizRecord.score,
                QuizRecord.status,
                QuizRecord.question_count,
                QuizRecord.created_at,
            )
            .order_by(QuizRecord.created_at.desc())
            .limit(limit)
        )
        with self._session() as session:
            rows = session.execute(stmt).all()
        return [
            QuizSummary(
                id=row.id,
                topic=row.topic,
                type=QuizType(row.type),
                score=row.score,
                status=QuizStatus(row.status),
                question_count=row.question_count,
                created_at=row.created_at,
            )
            for row in rows
        ]

    # ── Update ───────────────────────────────────────────────────────────────

    def update(self, quiz_id: str, mutate: Callable[[Quiz], T]) -> T:
        """
        Read-modify-write one quiz under an optimistic lock.

        ``mutate`` receives the current aggregate, changes it in place and may
        return a value, which is passed through. If another writer commits
        first, the quiz is reloaded and ``mutate`` runs again on fresh state.
        Exceptions raised by ``mutate`` abort the write and propagate.
        """
        for attempt in range(1, self.max_retries + 1):
            with self._session() as session:
                record = session.get(QuizRecord, quiz_id)
                if record is None:
                    raise NotFoundError(detail=f"No quiz with id '{quiz_id}'")

                quiz = _to_quiz(record)
                result = mutate(quiz)

                record.questions = _dump_questions(quiz.questions)
                record.score = quiz.score
                record.status = quiz.status.value
                try:
                    session.commit()
                    return result
                except StaleDataError:
                    session.rollback()
                    logger.warning(
                        f"[STORE] Concurrent write on quiz {quiz_id} "
                        f"(attempt {attempt}/{self.max_retries}), retrying..."
                    )

        raise StoreError(
            message="Quiz was modified concurrently, please retry.",
            detail=f"Gave up on quiz '{quiz_id}' after {self.max_retries} attempts",
        )

    # ── Delete ───────────────────────────────────────────────────────────────

    def delete_by_id(self, quiz_id: str) -> None:
        with self._session() as session:
            result = session.execute(delete(QuizRecord).where(QuizRecord.id == quiz_id))
            session.commit()
        if not result.rowcount:
            raise NotFoundError(detail=f"No quiz with id '{quiz_id}'")
        logger.info(f"[STORE] Deleted quiz {quiz_id}")

    def delete_all(self) -> int:
        with self._session() as session:
            result = session.execute(delete(QuizRecord))
            session.commit()
        removed = result.rowcount or 0
        logger.info(f"[STORE] Cleared history ({removed} quizzes)")
        return removed

    def ping(self) -> bool:
        try:
            with self._session() as session:
                session.execute(text("SELECT 1"))
            return True
        except StoreError:
            return False
