# =============================================================================
# TESTS - Quiz Store
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest

from quizgen.core.errors import NotFoundError, StoreError
from quizgen.db import build_engine, build_session_factory, init_db
from quizgen.models import QuizRecord
from quizgen.schemas.quiz import QuizStatus, QuizType
from quizgen.services.scoring import apply_answer
from quizgen.storage.quiz_store import QuizStore

from conftest import make_quiz


class TestCreateAndGet:

    def test_create_assigns_ids_and_timestamp(self, store):
        quiz_id = store.create(make_quiz())

        quiz = store.get_by_id(quiz_id)

        assert quiz.id == quiz_id
        assert quiz.created_at is not None
        assert quiz.topic == "Volcanoes"
        assert quiz.type == QuizType.true_false
        assert quiz.score == 0.0
        assert quiz.status == QuizStatus.in_progress
        ids = [q.id for q in quiz.questions]
        assert all(ids)
        assert len(set(ids)) == 3

    def test_question_order_is_preserved(self, store):
        quiz_id = store.create(make_quiz(n=5, quiz_type=QuizType.multiple_choice))

        texts = [q.question_text for q in store.get_by_id(quiz_id).questions]

        assert texts == [f"Question {i}?" for i in range(1, 6)]

    def test_new_questions_are_unanswered(self, store):
        quiz = store.get_by_id(store.create(make_quiz()))

        assert all(q.user_answer is None and q.is_correct is None for q in quiz.questions)

    def test_get_missing_quiz_raises(self, store):
        with pytest.raises(NotFoundError):
            store.get_by_id("does-not-exist")


class TestListRecent:

    def _age(self, store, quiz_id, minutes):
        with store._session_factory() as session:
            record = session.get(QuizRecord, quiz_id)
            record.created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes)
            session.commit()

    def test_newest_first(self, store):
        old = store.create(make_quiz(topic="Old"))
        mid = store.create(make_quiz(topic="Mid"))
        new = store.create(make_quiz(topic="New"))
        self._age(store, old, 30)
        self._age(store, mid, 20)
        self._age(store, new, 10)

        topics = [s.topic for s in store.list_recent()]

        assert topics == ["New", "Mid", "Old"]

    def test_limit(self, store):
        for i in range(5):
            store.create(make_quiz(topic=f"T{i}"))

        assert len(store.list_recent(limit=2)) == 2

    def test_summaries_carry_no_questions(self, store):
        store.create(make_quiz())

        summary = store.list_recent()[0].model_dump(by_alias=True)

        assert "questions" not in summary
        assert summary["questionCount"] == 3

    def test_empty(self, store):
        assert store.list_recent() == []


class TestUpdate:

    def test_update_persists_mutation(self, store):
        quiz_id = store.create(make_quiz())

        def answer_first(quiz):
            apply_answer(quiz, quiz.questions[0], "True")
            return quiz.score

        assert store.update(quiz_id, answer_first) == pytest.approx(33.33)

        stored = store.get_by_id(quiz_id)
        assert stored.questions[0].user_answer == "True"
        assert stored.score == pytest.approx(33.33)

    def test_update_missing_quiz_raises(self, store):
        with pytest.raises(NotFoundError):
            store.update("missing", lambda quiz: None)

    def test_error_in_mutation_writes_nothing(self, store):
        quiz_id = store.create(make_quiz())

        def fail(quiz):
            apply_answer(quiz, quiz.questions[0], "True")
            raise NotFoundError("Question not found.")

        with pytest.raises(NotFoundError):
            store.update(quiz_id, fail)

        assert store.get_by_id(quiz_id).questions[0].user_answer is None


class TestOptimisticLocking:
    """A second writer committing between read and write forces a re-apply."""

    @pytest.fixture
    def file_store(self, tmp_path):
        # Separate connections per session, unlike the shared in-memory pool
        engine = build_engine(f"sqlite:///{tmp_path / 'quizzes.db'}")
        init_db(engine)
        yield QuizStore(build_session_factory(engine), max_retries=3)
        engine.dispose()

    def test_conflict_is_retried_on_fresh_state(self, file_store):
        quiz_id = file_store.create(make_quiz(n=2))
        calls = []

        def answer_second(quiz):
            calls.append(len(calls))
            if len(calls) == 1:
                file_store.update(quiz_id, lambda q: apply_answer(q, q.questions[0], "True"))
            apply_answer(quiz, quiz.questions[1], "True")

        file_store.update(quiz_id, answer_second)

        stored = file_store.get_by_id(quiz_id)
        assert len(calls) == 2
        assert [q.user_answer for q in stored.questions] == ["True", "True"]
        assert stored.score == 100.0
        assert stored.status == QuizStatus.completed

    def test_gives_up_after_max_retries(self, file_store):
        quiz_id = file_store.create(make_quiz(n=2))
        answers = iter(["True", "False", "True", "False"])

        def always_conflicting(quiz):
            file_store.update(quiz_id, lambda q: apply_answer(q, q.questions[0], next(answers)))
            apply_answer(quiz, quiz.questions[1], "True")

        with pytest.raises(StoreError):
            file_store.update(quiz_id, always_conflicting)


class TestDelete:

    def test_delete_by_id(self, store):
        keep = store.create(make_quiz(topic="Keep"))
        drop = store.create(make_quiz(topic="Drop"))

        store.delete_by_id(drop)

        with pytest.raises(NotFoundError):
            store.get_by_id(drop)
        assert store.get_by_id(keep).topic == "Keep"

    def test_delete_missing_raises_and_leaves_others(self, store):
        keep = store.create(make_quiz())

        with pytest.raises(NotFoundError):
            store.delete_by_id("missing")

        assert store.get_by_id(keep).id == keep

    def test_delete_all(self, store):
        for _ in range(3):
            store.create(make_quiz())

        assert store.delete_all() == 3
        assert store.list_recent() == []

    def test_ping(self, store):
        assert store.ping() is True
