from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from quizgen.schemas.common import MessageResponse
from quizgen.schemas.quiz import (
    AnswerRequest,
    AnswerResult,
    GenerateResponse,
    QuizSummary,
    QuizType,
    QuizView,
)
from quizgen.services.file_service import UploadedDocument
from quizgen.services.quiz_service import QuizService


router = APIRouter(prefix="/api/quizzes", tags=["Quizzes"])

MAX_QUESTIONS = 50
MAX_HISTORY_LIMIT = 100


def get_quiz_service(request: Request) -> QuizService:
    """The service instance built at startup (overridden in tests)."""
    return request.app.state.quiz_service


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. GENERATE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/generate", response_model=GenerateResponse)
async def generate_quiz(
    quiz_type: QuizType = Form(..., alias="type"),
    amount: int = Form(5, ge=1, le=MAX_QUESTIONS),
    topic: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    service: QuizService = Depends(get_quiz_service),
):
    """Generate a quiz from a topic or an uploaded PDF/DOCX/TXT document."""
    upload = None
    if file is not None and file.filename:
        content = await file.read()
        upload = UploadedDocument(
            filename=file.filename,
            content_type=file.content_type,
            content=content,
        )

    quiz_id = await service.generate(quiz_type, amount, topic=topic, upload=upload)
    return GenerateResponse(quiz_id=quiz_id)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. PLAY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/{quiz_id}", response_model=QuizView)
def get_quiz(quiz_id: str, service: QuizService = Depends(get_quiz_service)):
    """Fetch a quiz. Unanswered questions come without their answer key."""
    return QuizView.from_quiz(service.get_quiz(quiz_id))


@router.patch("/{quiz_id}/question/{question_id}", response_model=AnswerResult)
def submit_answer(
    quiz_id: str,
    question_id: str,
    body: AnswerRequest,
    service: QuizService = Depends(get_quiz_service),
):
    return service.submit_answer(quiz_id, question_id, body.user_answer)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. HISTORY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("", response_model=List[QuizSummary])
def list_quizzes(
    limit: Optional[int] = Query(None, ge=1, le=MAX_HISTORY_LIMIT),
    service: QuizService = Depends(get_quiz_service),
):
    """Recent quizzes, newest first."""
    return service.list_recent(limit)


@router.delete("/{quiz_id}", response_model=MessageResponse)
def delete_quiz(quiz_id: str, service: QuizService = Depends(get_quiz_service)):
    service.delete_quiz(quiz_id)
    return MessageResponse(message="Quiz deleted")


@router.delete("", response_model=MessageResponse)
def clear_history(service: QuizService = Depends(get_quiz_service)):
    removed = service.clear_history()
    return MessageResponse(message=f"History cleared ({removed} quizzes removed)")
