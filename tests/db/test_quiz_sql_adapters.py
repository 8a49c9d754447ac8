from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from lesson_quiz.assessment.adapters import SqlAttemptLedger, SqlQuestionBank
from lesson_quiz.assessment.errors import AttemptConflictError, QuizFetchError
from lesson_quiz.assessment.service import QuizSession, QuizSessionConfig
from lesson_quiz.assessment.types import PersistenceStatus, SessionState
from lesson_quiz.db.repo.quiz_attempts_repo import QuizAttemptsRepo
from tests.assessment.quiz_fakes import park_sleep
from tests.db.lesson_quiz_db_fixtures import _seed_quiz


class _BrokenSession:
    async def __aenter__(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


@pytest.mark.asyncio
async def test_question_bank_maps_quiz_and_orders_questions(session_factory) -> None:
    lesson_id = uuid4()
    seeded = await _seed_quiz(session_factory, lesson_id=lesson_id, display_orders=(2, None, 1))
    bank = SqlQuestionBank(session_factory)

    quiz = await bank.fetch_quiz(str(lesson_id))
    assert quiz is not None
    assert quiz.quiz_id == str(seeded.id)
    assert quiz.title == "Fractions"
    assert quiz.passing_score == 70

    questions = await bank.fetch_questions(quiz.quiz_id)
    assert [question.prompt for question in questions] == [
        "Question text 3",
        "Question text 1",
        "Question text 2",
    ]
    assert [question.position for question in questions] == [0, 1, 2]
    first = questions[0]
    assert [option.text for option in first.options] == [
        "Q3 answer 1",
        "Q3 answer 2",
        "Q3 answer 3",
    ]
    assert [option.is_correct for option in first.options] == [True, False, False]


@pytest.mark.asyncio
async def test_question_bank_defaults_missing_passing_score(session_factory) -> None:
    lesson_id = uuid4()
    await _seed_quiz(session_factory, lesson_id=lesson_id, passing_score=None)

    quiz = await SqlQuestionBank(session_factory, default_passing_score=55).fetch_quiz(str(lesson_id))

    assert quiz is not None
    assert quiz.passing_score == 55


@pytest.mark.asyncio
@pytest.mark.parametrize("lesson_id", ("not-a-uuid", str(uuid4())))
async def test_question_bank_returns_none_for_unknown_lesson(session_factory, lesson_id: str) -> None:
    assert await SqlQuestionBank(session_factory).fetch_quiz(lesson_id) is None


@pytest.mark.asyncio
async def test_question_bank_wraps_database_errors() -> None:
    bank = SqlQuestionBank(lambda: _BrokenSession())

    with pytest.raises(QuizFetchError):
        await bank.fetch_quiz(str(uuid4()))


@pytest.mark.asyncio
async def test_session_persists_attempt_through_sql_ledger(session_factory) -> None:
    lesson_id = uuid4()
    seeded = await _seed_quiz(session_factory, lesson_id=lesson_id, max_attempts=2, time_limit_minutes=10)
    ledger = SqlAttemptLedger(session_factory)
    session = QuizSession(
        lesson_id=str(lesson_id),
        learner_id="learner-42",
        enrollment_id="enrollment-7",
        question_bank=SqlQuestionBank(session_factory),
        attempt_ledger=ledger,
        config=QuizSessionConfig(ledger_retry_delay_seconds=0),
        sleep=park_sleep,
    )
    assert await session.load() == SessionState.PRESENTING

    for index, question in enumerate(session.questions):
        session.select_answer(question.options[0 if index < 2 else 1].option_id)
        session.go_next()
    session.submit()
    assert await session.wait_for_persistence() == PersistenceStatus.SAVED

    async with session_factory() as db_session:
        attempts = await QuizAttemptsRepo.list_for_user(db_session, quiz_id=seeded.id, user_id="learner-42")
    assert len(attempts) == 1
    attempt = attempts[0]
    assert attempt.attempt_number == 1
    assert attempt.score_percentage == 67
    assert attempt.passed is False
    assert attempt.enrollment_id == "enrollment-7"
    assert attempt.time_taken_seconds == 0
    assert attempt.idempotency_key == f"{seeded.id}:learner-42:1:{session.session_id}"
    assert len(attempt.answers_data) == 3
    assert await ledger.max_attempt_number(str(seeded.id), "learner-42") == 1

    session.retake()
    assert session.attempt_number == 2
    await session.close()


@pytest.mark.asyncio
async def test_ledger_append_is_idempotent(session_factory) -> None:
    lesson_id = uuid4()
    seeded = await _seed_quiz(session_factory, lesson_id=lesson_id)
    session = QuizSession(
        lesson_id=str(lesson_id),
        learner_id="learner-1",
        question_bank=SqlQuestionBank(session_factory),
        attempt_ledger=SqlAttemptLedger(session_factory),
        sleep=park_sleep,
    )
    await session.load()
    session.go_next()
    session.go_next()
    session.submit()
    await session.wait_for_persistence()
    record = session.last_record
    assert record is not None

    await SqlAttemptLedger(session_factory).append_attempt(record)

    async with session_factory() as db_session:
        attempts = await QuizAttemptsRepo.list_for_user(db_session, quiz_id=seeded.id, user_id="learner-1")
    assert [attempt.attempt_number for attempt in attempts] == [1]
    assert attempts[0].answers_data[record.answers[0].question_id]["selected"] is None
    await session.close()


@pytest.mark.asyncio
async def test_ledger_max_attempt_number_defaults_to_zero(session_factory) -> None:
    ledger = SqlAttemptLedger(session_factory)

    assert await ledger.max_attempt_number(str(uuid4()), "nobody") == 0
    assert await ledger.max_attempt_number("not-a-uuid", "nobody") == 0


def _sql_session(session_factory, lesson_id, session_id: str) -> QuizSession:
    return QuizSession(
        lesson_id=str(lesson_id),
        learner_id="learner-9",
        question_bank=SqlQuestionBank(session_factory),
        attempt_ledger=SqlAttemptLedger(session_factory),
        config=QuizSessionConfig(ledger_retry_delay_seconds=0),
        sleep=park_sleep,
        session_id=session_id,
    )


@pytest.mark.asyncio
async def test_second_session_for_same_attempt_number_is_not_reported_saved(session_factory) -> None:
    lesson_id = uuid4()
    seeded = await _seed_quiz(session_factory, lesson_id=lesson_id)
    first = _sql_session(session_factory, lesson_id, "session-a")
    second = _sql_session(session_factory, lesson_id, "session-b")
    await first.load()
    await second.load()
    assert first.attempt_number == second.attempt_number == 1

    statuses = []
    for session, option_index in ((first, 1), (second, 0)):
        for question in session.questions:
            session.select_answer(question.options[option_index].option_id)
            session.go_next()
        session.submit()
        statuses.append(await session.wait_for_persistence())

    assert statuses == [PersistenceStatus.SAVED, PersistenceStatus.FAILED]
    assert second.verdict.score_percentage == 100
    assert "quiz_passed" not in [notice.code for notice in second.notices]

    async with session_factory() as db_session:
        attempts = await QuizAttemptsRepo.list_for_user(db_session, quiz_id=seeded.id, user_id="learner-9")
    assert [(attempt.attempt_number, attempt.score_percentage) for attempt in attempts] == [(1, 0)]

    with pytest.raises(AttemptConflictError):
        await SqlAttemptLedger(session_factory).append_attempt(second.last_record)
    await first.close()
    await second.close()
