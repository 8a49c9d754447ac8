from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lesson_quiz.db.models.lesson_quizzes import LessonQuiz
from lesson_quiz.db.models.quiz_answers import QuizAnswer
from lesson_quiz.db.models.quiz_questions import QuizQuestion

UTC = timezone.utc
SEEDED_AT = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


async def _seed_quiz(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    lesson_id: UUID,
    passing_score: int | None = 70,
    max_attempts: int | None = None,
    time_limit_minutes: int | None = None,
    display_orders: tuple[int | None, ...] = (1, 2, 3),
) -> LessonQuiz:
    quiz = LessonQuiz(
        id=uuid4(),
        lesson_id=lesson_id,
        title="Fractions",
        description="Lesson 4 check",
        passing_score=passing_score,
        max_attempts=max_attempts,
        time_limit_minutes=time_limit_minutes,
        created_at=SEEDED_AT,
        updated_at=SEEDED_AT,
    )
    async with session_factory.begin() as session:
        session.add(quiz)
        await session.flush()
        for number, display_order in enumerate(display_orders, start=1):
            question = QuizQuestion(
                id=uuid4(),
                quiz_id=quiz.id,
                question_text=f"Question text {number}",
                explanation=f"Because {number}",
                display_order=display_order,
                created_at=SEEDED_AT + timedelta(seconds=number),
            )
            session.add(question)
            await session.flush()
            # Stored out of display order; the first displayed answer is the correct one.
            for answer_order, is_correct in ((2, False), (1, True), (3, None)):
                session.add(
                    QuizAnswer(
                        id=uuid4(),
                        question_id=question.id,
                        answer_text=f"Q{number} answer {answer_order}",
                        is_correct=is_correct,
                        display_order=answer_order,
                        created_at=SEEDED_AT,
                    )
                )
    return quiz
