from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lesson_quiz.assessment.constants import DEFAULT_PASSING_SCORE
from lesson_quiz.assessment.errors import AttemptConflictError, AttemptLedgerError, QuizFetchError
from lesson_quiz.assessment.types import AnswerOption, AttemptRecord, Question, Quiz
from lesson_quiz.db.models.lesson_quizzes import LessonQuiz
from lesson_quiz.db.models.quiz_answers import QuizAnswer
from lesson_quiz.db.models.quiz_attempts import QuizAttempt
from lesson_quiz.db.models.quiz_questions import QuizQuestion
from lesson_quiz.db.repo.quiz_attempts_repo import QuizAttemptsRepo
from lesson_quiz.db.repo.quiz_bank_repo import QuizBankRepo

logger = structlog.get_logger("lesson_quiz.assessment.adapters")


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _quiz_from_model(row: LessonQuiz, *, default_passing_score: int) -> Quiz:
    return Quiz(
        quiz_id=str(row.id),
        lesson_id=str(row.lesson_id),
        title=row.title,
        description=row.description,
        passing_score=row.passing_score if row.passing_score is not None else default_passing_score,
        max_attempts=row.max_attempts or None,
        time_limit_minutes=row.time_limit_minutes or None,
    )


def _question_from_model(row: QuizQuestion, answers: list[QuizAnswer], *, position: int) -> Question:
    return Question(
        question_id=str(row.id),
        position=position,
        prompt=row.question_text,
        explanation=row.explanation,
        options=tuple(
            AnswerOption(
                option_id=str(answer.id),
                position=answer_position,
                text=answer.answer_text,
                is_correct=bool(answer.is_correct),
            )
            for answer_position, answer in enumerate(answers)
        ),
    )


class SqlQuestionBank:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        default_passing_score: int = DEFAULT_PASSING_SCORE,
    ) -> None:
        self._session_factory = session_factory
        self._default_passing_score = default_passing_score

    async def fetch_quiz(self, lesson_id: str) -> Quiz | None:
        lesson_uuid = _parse_uuid(lesson_id)
        if lesson_uuid is None:
            return None
        try:
            async with self._session_factory() as session:
                row = await QuizBankRepo.get_quiz_by_lesson_id(session, lesson_uuid)
        except SQLAlchemyError as exc:
            raise QuizFetchError(f"failed to fetch quiz for lesson {lesson_id!r}") from exc
        if row is None:
            return None
        return _quiz_from_model(row, default_passing_score=self._default_passing_score)

    async def fetch_questions(self, quiz_id: str) -> list[Question]:
        quiz_uuid = _parse_uuid(quiz_id)
        if quiz_uuid is None:
            return []
        try:
            async with self._session_factory() as session:
                rows = await QuizBankRepo.list_questions(session, quiz_uuid)
                answers_by_question = await QuizBankRepo.list_answers_for_questions(
                    session,
                    [row.id for row in rows],
                )
        except SQLAlchemyError as exc:
            raise QuizFetchError(f"failed to fetch questions for quiz {quiz_id!r}") from exc
        return [
            _question_from_model(row, answers_by_question.get(row.id, []), position=position)
            for position, row in enumerate(rows)
        ]


class SqlAttemptLedger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def max_attempt_number(self, quiz_id: str, learner_id: str) -> int:
        quiz_uuid = _parse_uuid(quiz_id)
        if quiz_uuid is None:
            return 0
        async with self._session_factory() as session:
            return await QuizAttemptsRepo.get_max_attempt_number(
                session,
                quiz_id=quiz_uuid,
                user_id=learner_id,
            )

    async def append_attempt(self, record: AttemptRecord) -> None:
        quiz_uuid = _parse_uuid(record.quiz_id)
        if quiz_uuid is None:
            raise AttemptLedgerError(f"invalid quiz id {record.quiz_id!r}")
        try:
            async with self._session_factory.begin() as session:
                existing = await QuizAttemptsRepo.get_by_idempotency_key(session, record.idempotency_key)
                if existing is not None:
                    logger.info(
                        "quiz_attempt_idempotent_replay",
                        quiz_id=record.quiz_id,
                        attempt_number=record.attempt_number,
                    )
                    return
                await QuizAttemptsRepo.create(
                    session,
                    attempt=QuizAttempt(
                        quiz_id=quiz_uuid,
                        user_id=record.learner_id,
                        enrollment_id=record.enrollment_id,
                        attempt_number=record.attempt_number,
                        started_at=record.started_at,
                        completed_at=record.completed_at,
                        score_percentage=record.score_percentage,
                        passed=record.passed,
                        answers_data=record.answers_data(),
                        time_taken_seconds=record.time_taken_seconds,
                        idempotency_key=record.idempotency_key,
                    ),
                )
        except IntegrityError as exc:
            raise AttemptConflictError(
                f"attempt {record.attempt_number} already recorded for quiz {record.quiz_id!r}"
            ) from exc
        except SQLAlchemyError as exc:
            raise AttemptLedgerError(f"failed to append attempt for quiz {record.quiz_id!r}") from exc
