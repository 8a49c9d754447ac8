from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lesson_quiz.db.models.lesson_quizzes import LessonQuiz
from lesson_quiz.db.models.quiz_answers import QuizAnswer
from lesson_quiz.db.models.quiz_questions import QuizQuestion


class QuizBankRepo:
    @staticmethod
    async def get_quiz_by_lesson_id(session: AsyncSession, lesson_id: UUID) -> LessonQuiz | None:
        stmt = select(LessonQuiz).where(LessonQuiz.lesson_id == lesson_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_questions(session: AsyncSession, quiz_id: UUID) -> list[QuizQuestion]:
        stmt = (
            select(QuizQuestion)
            .where(QuizQuestion.quiz_id == quiz_id)
            .order_by(
                QuizQuestion.display_order.asc().nulls_last(),
                QuizQuestion.created_at.asc(),
                QuizQuestion.id.asc(),
            )
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_answers_for_questions(
        session: AsyncSession,
        question_ids: Sequence[UUID],
    ) -> dict[UUID, list[QuizAnswer]]:
        if not question_ids:
            return {}
        stmt = (
            select(QuizAnswer)
            .where(QuizAnswer.question_id.in_(list(question_ids)))
            .order_by(
                QuizAnswer.question_id.asc(),
                QuizAnswer.display_order.asc().nulls_last(),
                QuizAnswer.created_at.asc(),
                QuizAnswer.id.asc(),
            )
        )
        result = await session.execute(stmt)
        answers_by_question: dict[UUID, list[QuizAnswer]] = {question_id: [] for question_id in question_ids}
        for answer in result.scalars().all():
            answers_by_question[answer.question_id].append(answer)
        return answers_by_question
