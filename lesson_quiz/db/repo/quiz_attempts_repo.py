from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lesson_quiz.db.models.quiz_attempts import QuizAttempt


class QuizAttemptsRepo:
    @staticmethod
    async def get_by_idempotency_key(session: AsyncSession, idempotency_key: str) -> QuizAttempt | None:
        stmt = select(QuizAttempt).where(QuizAttempt.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, attempt: QuizAttempt) -> QuizAttempt:
        session.add(attempt)
        await session.flush()
        return attempt

    @staticmethod
    async def get_max_attempt_number(
        session: AsyncSession,
        *,
        quiz_id: UUID,
        user_id: str,
    ) -> int:
        stmt = select(func.max(QuizAttempt.attempt_number)).where(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.user_id == user_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() or 0)

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        quiz_id: UUID,
        user_id: str,
    ) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttempt)
            .where(
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.user_id == user_id,
            )
            .order_by(QuizAttempt.attempt_number.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
