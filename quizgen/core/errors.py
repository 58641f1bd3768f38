"""
quizgen — Error Taxonomy
=========================
Every failure the service can report is a ``QuizError``. Services raise them,
routes let them propagate, and the handler in ``quizgen.main`` renders them
as an ``ErrorResponse`` envelope with the matching HTTP status.
"""

from typing import Optional


class QuizError(Exception):
    """Base class. ``status_code`` is the HTTP status it maps to."""

    status_code: int = 500
    default_message: str = "An internal server error occurred."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(QuizError):
    """No usable source text, or otherwise unusable input."""

    status_code = 400
    default_message = "No text provided."


class ExtractionError(ValidationError):
    """Uploaded document could not be read."""

    default_message = "Text extraction failed."


class PayloadTooLargeError(ValidationError):
    status_code = 413
    default_message = "Uploaded file is too large."


class GenerationError(QuizError):
    """The question generator failed or returned unusable content."""

    status_code = 500
    default_message = "Failed to generate quiz."


class GenerationTimeoutError(GenerationError):
    status_code = 504
    default_message = "Quiz generation timed out."


class NotFoundError(QuizError):
    status_code = 404
    default_message = "Quiz not found."


class AlreadyAnsweredError(QuizError):
    status_code = 409
    default_message = "Question has already been answered."


class StoreError(QuizError):
    status_code = 500
    default_message = "Database operation failed."
