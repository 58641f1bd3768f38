from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


DEFAULT_EXPLANATION = "No explanation provided."
TRUE_FALSE_CHOICES = ["True", "False"]


class QuizType(str, Enum):
    multiple_choice = "Multiple Choice"
    true_false = "True/False"
    hybrid = "Hybrid"


class QuizStatus(str, Enum):
    in_progress = "InProgress"
    completed = "Completed"


class CamelModel(BaseModel):
    """Base for every model that crosses the HTTP boundary (camelCase JSON)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Generator Output ─────────────────────────────────────────────────────────

class GeneratedQuestion(CamelModel):
    """A question as produced by the LLM, before the store assigns an id."""
    question_text: str = Field(..., min_length=1)
    answer_choices: List[str] = Field(..., min_length=1)
    correct_answer: str
    explanation: str = DEFAULT_EXPLANATION

    @model_validator(mode="before")
    @classmethod
    def normalize_true_false(cls, data: Any) -> Any:
        """Map lower-case or boolean true/false answers onto ["True", "False"]."""
        if not isinstance(data, dict):
            return data
        choices = data.get("answerChoices", data.get("answer_choices"))
        if not isinstance(choices, list):
            return data
        if [str(c).strip().lower() for c in choices] != ["true", "false"]:
            return data

        data = dict(data)
        data.pop("answer_choices", None)
        data["answerChoices"] = list(TRUE_FALSE_CHOICES)
        answer = data.pop("correct_answer", data.get("correctAnswer"))
        if str(answer).strip().lower() in ("true", "false"):
            answer = str(answer).strip().capitalize()
        data["correctAnswer"] = answer
        return data

    @field_validator("explanation", mode="before")
    @classmethod
    def default_explanation(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_EXPLANATION
        return v

    @model_validator(mode="after")
    def correct_answer_is_a_choice(self) -> "GeneratedQuestion":
        if self.correct_answer not in self.answer_choices:
            raise ValueError(
                f"correctAnswer '{self.correct_answer}' is not one of the answer choices"
            )
        return self

    @property
    def is_true_false(self) -> bool:
        return self.answer_choices == TRUE_FALSE_CHOICES


class GeneratedQuiz(BaseModel):
    """Top-level object the generator is asked to return."""
    questions: List[GeneratedQuestion] = Field(..., min_length=1)


# ── Aggregate ────────────────────────────────────────────────────────────────

class Question(CamelModel):
    id: Optional[str] = None  # assigned by the store on create
    question_text: str
    answer_choices: List[str]
    correct_answer: str
    explanation: str = DEFAULT_EXPLANATION
    user_answer: Optional[str] = None
    is_correct: Optional[bool] = None


class Quiz(CamelModel):
    """The persisted root aggregate. ``id`` and ``created_at`` are store-assigned."""
    id: Optional[str] = None
    topic: str
    type: QuizType
    question_count: int
    questions: List[Question]
    score: float = 0.0
    status: QuizStatus = QuizStatus.in_progress
    created_at: Optional[datetime] = None

    def find_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


# ── Client Views ─────────────────────────────────────────────────────────────

class QuestionView(CamelModel):
    """
    A question as shown to the client. Answer key fields stay null until the
    question has been answered, so active play never leaks the solution.
    """
    id: str
    question_text: str
    answer_choices: List[str]
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None
    user_answer: Optional[str] = None
    is_correct: Optional[bool] = None

    @classmethod
    def from_question(cls, question: Question) -> "QuestionView":
        view = cls(
            id=question.id,
            question_text=question.question_text,
            answer_choices=question.answer_choices,
        )
        if question.user_answer is not None:
            view.correct_answer = question.correct_answer
            view.explanation = question.explanation
            view.user_answer = question.user_answer
            view.is_correct = question.is_correct
        return view


class QuizView(CamelModel):
    id: str
    topic: str
    type: QuizType
    question_count: int
    questions: List[QuestionView]
    score: float
    status: QuizStatus
    created_at: datetime

    @classmethod
    def from_quiz(cls, quiz: Quiz) -> "QuizView":
        return cls(
            id=quiz.id,
            topic=quiz.topic,
            type=quiz.type,
            question_count=quiz.question_count,
            questions=[QuestionView.from_question(q) for q in quiz.questions],
            score=quiz.score,
            status=quiz.status,
            created_at=quiz.created_at,
        )


class QuizSummary(CamelModel):
    """History-list entry: never carries question bodies."""
    id: str
    topic: str
    type: QuizType
    score: float
    status: QuizStatus
    question_count: int
    created_at: datetime


# ── Request / Response ───────────────────────────────────────────────────────

class GenerateResponse(CamelModel):
    quiz_id: str


class AnswerRequest(CamelModel):
    """Body of the answer PATCH. The answer is compared verbatim."""
    user_answer: str


class AnswerResult(CamelModel):
    is_correct: bool
    correct_answer: str
    explanation: str
    current_score: float
