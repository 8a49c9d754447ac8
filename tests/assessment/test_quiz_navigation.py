from __future__ import annotations

import pytest

from lesson_quiz.assessment.errors import EmptyQuizError, InvalidAnswerOptionError
from lesson_quiz.assessment.navigation import SelectionState
from lesson_quiz.assessment.types import SubmitPolicy
from tests.assessment.quiz_fakes import make_questions


def test_selection_state_requires_questions() -> None:
    with pytest.raises(EmptyQuizError):
        SelectionState([])


def test_select_upserts_single_choice_per_question() -> None:
    state = SelectionState(make_questions(2))

    state.select("q1", "q1-o1")
    state.select("q1", "q1-o3")

    assert state.selections() == {"q1": "q1-o3"}
    assert state.answered_count == 1
    assert state.all_answered is False


@pytest.mark.parametrize(
    ("question_id", "option_id"),
    (
        ("q9", "q1-o1"),
        ("q1", "q2-o1"),
        ("q1", "missing"),
    ),
)
def test_select_rejects_foreign_options(question_id: str, option_id: str) -> None:
    state = SelectionState(make_questions(2))

    with pytest.raises(InvalidAnswerOptionError):
        state.select(question_id, option_id)
    assert state.selections() == {}


def test_advance_and_retreat_are_clamped() -> None:
    state = SelectionState(make_questions(2))

    assert state.retreat() is False
    assert state.advance() is True
    assert state.advance() is False
    assert state.is_last is True
    assert state.current_question.question_id == "q2"


@pytest.mark.parametrize(
    ("policy", "index", "answered", "expected"),
    (
        (SubmitPolicy.LAST_QUESTION, 0, 3, False),
        (SubmitPolicy.LAST_QUESTION, 2, 0, True),
        (SubmitPolicy.ANY_QUESTION, 0, 0, True),
        (SubmitPolicy.ALL_ANSWERED, 2, 2, False),
        (SubmitPolicy.ALL_ANSWERED, 2, 3, True),
        (SubmitPolicy.ALL_ANSWERED, 1, 3, False),
    ),
)
def test_can_submit_per_policy(policy: SubmitPolicy, index: int, answered: int, expected: bool) -> None:
    questions = make_questions(3)
    state = SelectionState(questions)
    for question in questions[:answered]:
        state.select(question.question_id, question.options[0].option_id)
    for _ in range(index):
        state.advance()

    assert state.can_submit(policy) is expected


def test_reset_clears_index_and_selections() -> None:
    state = SelectionState(make_questions(3))
    state.select("q1", "q1-o2")
    state.advance()

    state.reset()

    assert state.current_index == 0
    assert state.selected_option_id("q1") is None
