from __future__ import annotations

from lesson_quiz.assessment.service import QuizSessionConfig
from lesson_quiz.assessment.types import SubmitPolicy
from lesson_quiz.core.config import Settings


def test_settings_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.default_passing_score == 70
    assert settings.submit_policy == "last_question"
    assert settings.ledger_write_attempts == 3


def test_session_config_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("QUIZ_SUBMIT_POLICY", "all_answered")
    monkeypatch.setenv("QUIZ_TIMER_TICK_SECONDS", "0.25")
    monkeypatch.setenv("QUIZ_LOW_TIME_WARNING_SECONDS", "30")
    monkeypatch.setenv("QUIZ_LEDGER_WRITE_ATTEMPTS", "5")
    monkeypatch.setenv("QUIZ_LEDGER_RETRY_DELAY_SECONDS", "0")

    config = QuizSessionConfig.from_settings(Settings(_env_file=None))

    assert config == QuizSessionConfig(
        submit_policy=SubmitPolicy.ALL_ANSWERED,
        tick_interval_seconds=0.25,
        low_time_warning_seconds=30,
        ledger_write_attempts=5,
        ledger_retry_delay_seconds=0.0,
    )
