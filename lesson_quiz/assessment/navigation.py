from __future__ import annotations

from collections.abc import Sequence

from lesson_quiz.assessment.errors import EmptyQuizError, InvalidAnswerOptionError
from lesson_quiz.assessment.types import Question, SubmitPolicy


class SelectionState:
    """Current question index plus the learner's single choice per question."""

    def __init__(self, questions: Sequence[Question]) -> None:
        if not questions:
            raise EmptyQuizError("quiz has no questions")
        self._questions = tuple(questions)
        self._by_id = {question.question_id: question for question in self._questions}
        self._index = 0
        self._selections: dict[str, str] = {}

    @property
    def question_count(self) -> int:
        return len(self._questions)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question:
        return self._questions[self._index]

    @property
    def is_first(self) -> bool:
        return self._index == 0

    @property
    def is_last(self) -> bool:
        return self._index == len(self._questions) - 1

    @property
    def answered_count(self) -> int:
        return len(self._selections)

    @property
    def all_answered(self) -> bool:
        return len(self._selections) == len(self._questions)

    def selections(self) -> dict[str, str]:
        return dict(self._selections)

    def selected_option_id(self, question_id: str) -> str | None:
        return self._selections.get(question_id)

    def select(self, question_id: str, option_id: str) -> None:
        question = self._by_id.get(question_id)
        if question is None:
            raise InvalidAnswerOptionError(f"unknown question {question_id!r}")
        if question.find_option(option_id) is None:
            raise InvalidAnswerOptionError(
                f"option {option_id!r} does not belong to question {question_id!r}"
            )
        self._selections[question_id] = option_id

    def advance(self) -> bool:
        if self.is_last:
            return False
        self._index += 1
        return True

    def retreat(self) -> bool:
        if self.is_first:
            return False
        self._index -= 1
        return True

    def can_submit(self, policy: SubmitPolicy) -> bool:
        if policy == SubmitPolicy.ANY_QUESTION:
            return True
        if policy == SubmitPolicy.ALL_ANSWERED:
            return self.is_last and self.all_answered
        return self.is_last

    def reset(self) -> None:
        self._index = 0
        self._selections.clear()
