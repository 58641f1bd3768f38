"""
quizgen — Quiz Lifecycle Service
=================================
Orchestrates the two flows with invariants:
  1. Generation: resolve source text → generate questions → persist once
  2. Answer submission: score one question → recompute score/status → persist

Plus history reads and deletions, which delegate to the store.
"""

import asyncio
import logging
from typing import List, Optional

from quizgen.core.config import Settings
from quizgen.core.errors import (
    AlreadyAnsweredError,
    GenerationTimeoutError,
    NotFoundError,
    ValidationError,
)
from quizgen.schemas.quiz import AnswerResult, Question, Quiz, QuizSummary, QuizType
from quizgen.services.file_service import UploadedDocument, extract_text_from_upload, validate_upload
from quizgen.services.scoring import apply_answer
from quizgen.storage.quiz_store import QuizStore

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "Custom Topic"


class QuizService:

    def __init__(self, store: QuizStore, generator, config: Settings):
        self.store = store
        self.generator = generator
        self.config = config

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # GENERATION
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def _resolve_source(
        self, topic: Optional[str], upload: Optional[UploadedDocument]
    ) -> tuple[str, str]:
        """Return (source_text, quiz_topic). An upload wins over a topic."""
        if upload is None:
            return topic or "", topic or DEFAULT_TOPIC

        validate_upload(upload.content, self.config.MAX_FILE_SIZE_MB)
        text = await extract_text_from_upload(
            upload.content,
            upload.filename,
            upload.content_type,
            upload_dir=self.config.UPLOAD_DIR,
        )
        return text, upload.filename or DEFAULT_TOPIC

    async def generate(
        self,
        quiz_type: QuizType,
        amount: int,
        topic: Optional[str] = None,
        upload: Optional[UploadedDocument] = None,
    ) -> str:
        """
        Create a quiz from a topic or an uploaded document and return its id.
        Nothing is written unless the generator succeeds.
        """
        text, quiz_topic = await self._resolve_source(topic, upload)
        if not text or not text.strip():
            logger.warning("[GENERATE] No usable source text")
            raise ValidationError("No text provided.")

        source = text[: self.config.MAX_SOURCE_CHARS]
        logger.info(
            f"[GENERATE] '{quiz_topic}' — {amount} × {quiz_type.value}, "
            f"{len(source)} source chars"
        )

        try:
            generated = await asyncio.wait_for(
                self.generator.generate(source, amount, quiz_type),
                timeout=self.config.AI_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            raise GenerationTimeoutError(
                detail=f"No response within {self.config.AI_TIMEOUT_SECONDS}s."
            )

        quiz = Quiz(
            topic=quiz_topic,
            type=quiz_type,
            question_count=amount,
            questions=[
                Question(
                    question_text=q.question_text,
                    answer_choices=q.answer_choices,
                    correct_answer=q.correct_answer,
                    explanation=q.explanation,
                )
                for q in generated
            ],
        )
        quiz_id = await asyncio.to_thread(self.store.create, quiz)
        logger.info(f"[GENERATE] ✓ Quiz saved with id {quiz_id}")
        return quiz_id

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # ANSWER SUBMISSION
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def submit_answer(self, quiz_id: str, question_id: str, user_answer: str) -> AnswerResult:
        """
        Record an answer and return the feedback plus the running score.
        A resubmission overwrites the previous answer unless
        ALLOW_ANSWER_CHANGES is off.
        """
        allow_changes = self.config.ALLOW_ANSWER_CHANGES

        def _answer(quiz: Quiz) -> AnswerResult:
            question = quiz.find_question(question_id)
            if question is None:
                raise NotFoundError(
                    "Question not found.",
                    detail=f"Quiz '{quiz_id}' has no question '{question_id}'",
                )
            if not allow_changes and question.user_answer is not None:
                raise AlreadyAnsweredError(detail=f"Question '{question_id}' was already answered")

            apply_answer(quiz, question, user_answer)
            return AnswerResult(
                is_correct=question.is_correct,
                correct_answer=question.correct_answer,
                explanation=question.explanation,
                current_score=quiz.score,
            )

        result = self.store.update(quiz_id, _answer)
        logger.info(
            f"[ANSWER] quiz={quiz_id} question={question_id} "
            f"correct={result.is_correct} score={result.current_score}"
        )
        return result

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # HISTORY
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_quiz(self, quiz_id: str) -> Quiz:
        return self.store.get_by_id(quiz_id)

    def list_recent(self, limit: Optional[int] = None) -> List[QuizSummary]:
        return self.store.list_recent(limit or self.config.HISTORY_LIMIT)

    def delete_quiz(self, quiz_id: str) -> None:
        self.store.delete_by_id(quiz_id)

    def clear_history(self) -> int:
        return self.store.delete_all()
