"""Pure scoring rules for the Quiz aggregate."""

from typing import List

from quizgen.schemas.quiz import Question, Quiz, QuizStatus

SCORE_PRECISION = 2


def is_correct(user_answer: str, correct_answer: str) -> bool:
    """Exact comparison: case-sensitive, no trimming."""
    return user_answer == correct_answer


def compute_score(questions: List[Question]) -> float:
    """100 × correct / total, over every question. Unanswered counts as wrong."""
    if not questions:
        return 0.0
    correct = sum(1 for q in questions if q.is_correct is True)
    return round(correct / len(questions) * 100, SCORE_PRECISION)


def compute_status(questions: List[Question]) -> QuizStatus:
    if questions and all(q.user_answer is not None for q in questions):
        return QuizStatus.completed
    return QuizStatus.in_progress


def apply_answer(quiz: Quiz, question: Question, user_answer: str) -> None:
    """Record ``user_answer`` on ``question`` and refresh the quiz's derived fields."""
    question.user_answer = user_answer
    question.is_correct = is_correct(user_answer, question.correct_answer)
    quiz.score = compute_score(quiz.questions)
    quiz.status = compute_status(quiz.questions)
