from __future__ import annotations

from collections.abc import Sequence

import structlog

from lesson_quiz.assessment.errors import EmptyQuizError, QuizConfigurationError, QuizFetchError
from lesson_quiz.assessment.ports import AttemptLedger, QuestionBank
from lesson_quiz.assessment.retake import first_attempt_number
from lesson_quiz.assessment.scoring import correct_option
from lesson_quiz.assessment.types import LoadedAssessment, Question

logger = structlog.get_logger("lesson_quiz.assessment.loading")


def validate_questions(questions: Sequence[Question]) -> tuple[Question, ...]:
    if not questions:
        raise EmptyQuizError("quiz has no questions")

    seen_ids: set[str] = set()
    seen_positions: set[int] = set()
    for question in questions:
        if question.question_id in seen_ids:
            raise QuizConfigurationError(f"duplicate question id {question.question_id!r}")
        if question.position in seen_positions:
            raise QuizConfigurationError(f"duplicate question position {question.position}")
        seen_ids.add(question.question_id)
        seen_positions.add(question.position)
        correct_option(question)

    return tuple(sorted(questions, key=lambda question: question.position))


async def load_assessment(
    *,
    question_bank: QuestionBank,
    attempt_ledger: AttemptLedger,
    lesson_id: str,
    learner_id: str,
) -> LoadedAssessment | None:
    try:
        quiz = await question_bank.fetch_quiz(lesson_id)
        if quiz is None:
            return None
        questions = await question_bank.fetch_questions(quiz.quiz_id)
    except QuizFetchError:
        raise
    except Exception as exc:
        raise QuizFetchError(f"question bank unavailable for lesson {lesson_id!r}") from exc

    validated = validate_questions(questions)

    try:
        max_recorded = await attempt_ledger.max_attempt_number(quiz.quiz_id, learner_id)
    except Exception as exc:
        raise QuizFetchError(f"attempt ledger unavailable for quiz {quiz.quiz_id!r}") from exc

    logger.debug(
        "quiz_assessment_fetched",
        quiz_id=quiz.quiz_id,
        question_count=len(validated),
        max_recorded_attempt=max_recorded,
    )
    return LoadedAssessment(
        quiz=quiz,
        questions=validated,
        next_attempt_number=first_attempt_number(max_recorded),
    )
