from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

from lesson_quiz.assessment.constants import (
    LOW_TIME_WARNING_SECONDS,
    NOTICE_LOAD_FAILED,
    NOTICE_SAVE_FAILED,
)
from lesson_quiz.assessment.errors import (
    AttemptConflictError,
    InvalidSessionStateError,
    QuizConfigurationError,
    QuizFetchError,
    RetakeNotAllowedError,
    SubmitNotAllowedError,
)
from lesson_quiz.assessment.loading import load_assessment
from lesson_quiz.assessment.navigation import SelectionState
from lesson_quiz.assessment.ports import AttemptLedger, QuestionBank
from lesson_quiz.assessment.retake import decide_retake
from lesson_quiz.assessment.review import (
    PresentingView,
    ReviewView,
    build_presenting_view,
    build_review_view,
    max_attempts_message,
    result_message,
)
from lesson_quiz.assessment.scoring import score_attempt
from lesson_quiz.assessment.timer import CountdownTimer, SleepFn
from lesson_quiz.assessment.types import (
    AttemptRecord,
    Notice,
    NoticeLevel,
    PersistenceStatus,
    Question,
    Quiz,
    SessionState,
    SubmitPolicy,
    SubmitTrigger,
    Verdict,
)
from lesson_quiz.core.config import Settings
from lesson_quiz.core.logging import get_quiz_logger

PassedHook = Callable[[Verdict], Awaitable[None]]
ChangeListener = Callable[["QuizSession"], None]
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class QuizSessionConfig:
    submit_policy: SubmitPolicy = SubmitPolicy.LAST_QUESTION
    tick_interval_seconds: float = 1.0
    low_time_warning_seconds: int = LOW_TIME_WARNING_SECONDS
    ledger_write_attempts: int = 3
    ledger_retry_delay_seconds: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings) -> QuizSessionConfig:
        return cls(
            submit_policy=SubmitPolicy(settings.submit_policy),
            tick_interval_seconds=settings.timer_tick_seconds,
            low_time_warning_seconds=settings.low_time_warning_seconds,
            ledger_write_attempts=settings.ledger_write_attempts,
            ledger_retry_delay_seconds=settings.ledger_retry_delay_seconds,
        )


class QuizSession:
    """One learner working through one lesson quiz, across retakes.

    Every public operation except ``load``, ``wait_for_persistence`` and
    ``close`` is a synchronous handler: it runs to completion on the event
    loop and cannot interleave with a timer tick. ``submit`` checks and sets
    the ``submitted`` latch before anything else, so whichever of a manual
    submit or a timer expiry runs first wins and the other is a no-op. At most
    one attempt record is written per attempt.

    The ledger write is started as a task and never delays the move to
    ``REVIEWING``; its outcome is reported through ``persistence_status`` and
    ``notices``.
    """

    def __init__(
        self,
        *,
        lesson_id: str,
        learner_id: str,
        question_bank: QuestionBank,
        attempt_ledger: AttemptLedger,
        enrollment_id: str | None = None,
        config: QuizSessionConfig | None = None,
        on_passed: PassedHook | None = None,
        on_change: ChangeListener | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Clock = _utc_now,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid4().hex
        self.lesson_id = lesson_id
        self.learner_id = learner_id
        self.enrollment_id = enrollment_id
        self._question_bank = question_bank
        self._attempt_ledger = attempt_ledger
        self._config = config or QuizSessionConfig()
        self._on_passed = on_passed
        self._on_change = on_change
        self._sleep = sleep
        self._clock = clock

        self._state = SessionState.LOADING
        self._quiz: Quiz | None = None
        self._questions: tuple[Question, ...] = ()
        self._selection: SelectionState | None = None
        self._timer: CountdownTimer | None = None
        self._submitted = False
        self._verdict: Verdict | None = None
        self._attempt_number = 1
        self._attempt_started_at: datetime | None = None
        self._last_record: AttemptRecord | None = None
        self._notices: list[Notice] = []
        self._persistence: dict[int, PersistenceStatus] = {}
        self._write_tasks: dict[int, asyncio.Task[PersistenceStatus]] = {}

        self._log = get_quiz_logger(
            "lesson_quiz.assessment.session",
            session_id=self.session_id,
            lesson_id=lesson_id,
            learner_id=learner_id,
        )

    # --- Read-only surface for the host ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def quiz(self) -> Quiz | None:
        return self._quiz

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def submitted(self) -> bool:
        return self._submitted

    @property
    def attempt_number(self) -> int:
        return self._attempt_number

    @property
    def current_question_index(self) -> int:
        return self._selection.current_index if self._selection is not None else 0

    @property
    def current_question(self) -> Question | None:
        return self._selection.current_question if self._selection is not None else None

    @property
    def remaining_seconds(self) -> int | None:
        return self._timer.remaining_seconds if self._timer is not None else None

    @property
    def timer(self) -> CountdownTimer | None:
        return self._timer

    @property
    def verdict(self) -> Verdict | None:
        return self._verdict

    @property
    def last_record(self) -> AttemptRecord | None:
        return self._last_record

    @property
    def notices(self) -> tuple[Notice, ...]:
        return tuple(self._notices)

    @property
    def persistence_status(self) -> PersistenceStatus | None:
        return self._persistence.get(self._attempt_number)

    @property
    def all_answered(self) -> bool:
        return self._selection is not None and self._selection.all_answered

    @property
    def can_submit(self) -> bool:
        if self._state != SessionState.PRESENTING or self._submitted or self._selection is None:
            return False
        return self._selection.can_submit(self._config.submit_policy)

    @property
    def can_retake(self) -> bool:
        if self._state != SessionState.REVIEWING or self._verdict is None or self._quiz is None:
            return False
        return decide_retake(
            passed=self._verdict.passed,
            attempt_number=self._attempt_number,
            max_attempts=self._quiz.max_attempts,
        ).allowed

    def selected_option_id(self, question_id: str) -> str | None:
        if self._selection is None:
            return None
        return self._selection.selected_option_id(question_id)

    def presenting_view(self) -> PresentingView | None:
        if self._state != SessionState.PRESENTING or self._quiz is None or self._selection is None:
            return None
        question = self._selection.current_question
        return build_presenting_view(
            quiz=self._quiz,
            question=question,
            index=self._selection.current_index,
            total=self._selection.question_count,
            selected_option_id=self._selection.selected_option_id(question.question_id),
            can_submit=self.can_submit,
            remaining_seconds=self.remaining_seconds,
            attempt_number=self._attempt_number,
            low_time_threshold=self._config.low_time_warning_seconds,
        )

    def review_view(self) -> ReviewView | None:
        if self._verdict is None or self._quiz is None:
            return None
        return build_review_view(
            quiz=self._quiz,
            verdict=self._verdict,
            attempt_number=self._attempt_number,
            can_retake=self.can_retake,
        )

    # --- Loading ---

    async def load(self) -> SessionState:
        self._require_state(SessionState.LOADING)
        try:
            loaded = await load_assessment(
                question_bank=self._question_bank,
                attempt_ledger=self._attempt_ledger,
                lesson_id=self.lesson_id,
                learner_id=self.learner_id,
            )
        except QuizFetchError:
            self._log.warning("quiz_load_failed", exc_info=True)
            self._notify(NoticeLevel.ERROR, "quiz_load_failed", NOTICE_LOAD_FAILED)
            return self._state
        except QuizConfigurationError as exc:
            self._log.error("quiz_configuration_invalid", error=str(exc))
            raise

        if loaded is None:
            self._log.info("quiz_absent")
            self._set_state(SessionState.ABSENT)
            return self._state

        self._quiz = loaded.quiz
        self._questions = loaded.questions
        self._attempt_number = loaded.next_attempt_number
        self._log = self._log.bind(quiz_id=loaded.quiz.quiz_id)
        self._log.info(
            "quiz_loaded",
            question_count=len(loaded.questions),
            attempt_number=self._attempt_number,
            time_limit_seconds=loaded.quiz.time_limit_seconds,
            max_attempts=loaded.quiz.max_attempts,
        )
        self._begin_attempt()
        return self._state

    # --- Learner input ---

    def select_answer(self, option_id: str, question_id: str | None = None) -> None:
        selection = self._require_presenting()
        target_question_id = question_id or selection.current_question.question_id
        selection.select(target_question_id, option_id)
        self._changed()

    def go_next(self) -> int:
        selection = self._require_presenting()
        if selection.advance():
            self._changed()
        return selection.current_index

    def go_previous(self) -> int:
        selection = self._require_presenting()
        if selection.retreat():
            self._changed()
        return selection.current_index

    def submit(self) -> Verdict | None:
        return self._submit(SubmitTrigger.MANUAL)

    def on_timer_expired(self) -> None:
        self._log.info("quiz_timer_expired", attempt_number=self._attempt_number)
        self._submit(SubmitTrigger.TIMER)

    def retake(self) -> int:
        self._require_state(SessionState.REVIEWING)
        self._require_quiz()
        if self._verdict is None:
            raise InvalidSessionStateError("no scored attempt to retake")

        decision = decide_retake(
            passed=self._verdict.passed,
            attempt_number=self._attempt_number,
            max_attempts=self._quiz.max_attempts,
        )
        if not decision.allowed:
            self._log.info(
                "quiz_retake_denied",
                attempt_number=self._attempt_number,
                max_attempts=self._quiz.max_attempts,
                passed=self._verdict.passed,
            )
            if self._verdict.passed:
                raise RetakeNotAllowedError("a passed attempt cannot be retaken")
            self._notify(
                NoticeLevel.ERROR,
                "max_attempts_reached",
                max_attempts_message(self._quiz.max_attempts or 0),
            )
            self._set_state(SessionState.EXHAUSTED)
            raise RetakeNotAllowedError("maximum attempts reached")

        self._set_state(SessionState.RETAKING)
        self._attempt_number = decision.next_attempt_number
        self._log.info("quiz_retake_started", attempt_number=self._attempt_number)
        self._begin_attempt()
        return self._attempt_number

    # --- Teardown and persistence outcome ---

    async def wait_for_persistence(self, attempt_number: int | None = None) -> PersistenceStatus | None:
        number = attempt_number if attempt_number is not None else self._attempt_number
        task = self._write_tasks.get(number)
        if task is None:
            return self._persistence.get(number)
        return await task

    async def close(self) -> None:
        self._stop_timer()
        pending = [task for task in self._write_tasks.values() if not task.done()]
        if pending:
            await asyncio.gather(*pending)
        self._log.info("quiz_session_closed", state=self._state.value)

    # --- Internals ---

    def _begin_attempt(self) -> None:
        if self._selection is None:
            self._selection = SelectionState(self._questions)
        else:
            self._selection.reset()
        self._submitted = False
        self._verdict = None
        self._attempt_started_at = self._clock()
        self._set_state(SessionState.PRESENTING)
        self._start_timer()

    def _start_timer(self) -> None:
        quiz = self._require_quiz()
        self._stop_timer()
        self._timer = None
        total_seconds = quiz.time_limit_seconds
        if total_seconds is None:
            return
        self._timer = CountdownTimer(
            total_seconds,
            on_tick=self._on_timer_tick,
            on_expired=self.on_timer_expired,
            interval_seconds=self._config.tick_interval_seconds,
            sleep=self._sleep,
        )
        self._timer.start()

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()

    def _on_timer_tick(self, remaining_seconds: int) -> None:
        del remaining_seconds
        self._changed()

    def _submit(self, trigger: SubmitTrigger) -> Verdict | None:
        if self._submitted:
            self._log.info("quiz_submit_ignored", trigger=trigger.value, state=self._state.value)
            return None
        if self._state != SessionState.PRESENTING:
            if trigger == SubmitTrigger.TIMER:
                self._log.warning("quiz_submit_ignored", trigger=trigger.value, state=self._state.value)
                return None
            raise InvalidSessionStateError(f"cannot submit while {self._state.value}")
        self._require_quiz()
        self._require_selection()
        if trigger == SubmitTrigger.MANUAL and not self._selection.can_submit(self._config.submit_policy):
            raise SubmitNotAllowedError(
                f"submit policy {self._config.submit_policy.value} does not allow submitting yet"
            )

        self._submitted = True
        self._set_state(SessionState.SUBMITTING)

        remaining_at_submit = self.remaining_seconds
        self._stop_timer()
        verdict = score_attempt(
            self._questions,
            self._selection.selections(),
            passing_score=self._quiz.passing_score,
        )
        total_seconds = self._quiz.time_limit_seconds
        time_taken_seconds = (
            total_seconds - (remaining_at_submit or 0) if total_seconds is not None else None
        )
        record = AttemptRecord(
            quiz_id=self._quiz.quiz_id,
            learner_id=self.learner_id,
            attempt_number=self._attempt_number,
            started_at=self._attempt_started_at or self._clock(),
            completed_at=self._clock(),
            score_percentage=verdict.score_percentage,
            passed=verdict.passed,
            answers=verdict.questions,
            time_taken_seconds=time_taken_seconds,
            attempt_token=self.session_id,
            enrollment_id=self.enrollment_id,
        )
        self._verdict = verdict
        self._last_record = record
        self._log.info(
            "quiz_submitted",
            trigger=trigger.value,
            attempt_number=record.attempt_number,
            score_percentage=verdict.score_percentage,
            passed=verdict.passed,
            time_taken_seconds=time_taken_seconds,
        )

        self._persistence[record.attempt_number] = PersistenceStatus.PENDING
        self._write_tasks[record.attempt_number] = asyncio.get_running_loop().create_task(
            self._persist(record, verdict)
        )
        self._set_state(SessionState.REVIEWING)
        return verdict

    async def _persist(self, record: AttemptRecord, verdict: Verdict) -> PersistenceStatus:
        max_tries = max(1, self._config.ledger_write_attempts)
        for write_try in range(1, max_tries + 1):
            try:
                await self._attempt_ledger.append_attempt(record)
            except AttemptConflictError:
                # Another session already holds this attempt number; retrying cannot succeed.
                self._log.warning(
                    "quiz_attempt_write_conflict",
                    attempt_number=record.attempt_number,
                    write_try=write_try,
                    exc_info=True,
                )
                return self._persist_failed(record)
            except Exception:
                if write_try < max_tries:
                    self._log.warning(
                        "quiz_attempt_write_retry",
                        attempt_number=record.attempt_number,
                        write_try=write_try,
                        exc_info=True,
                    )
                    await self._sleep(self._config.ledger_retry_delay_seconds)
                    continue
                self._log.exception(
                    "quiz_attempt_write_failed",
                    attempt_number=record.attempt_number,
                    write_tries=write_try,
                )
                return self._persist_failed(record)
            break

        self._persistence[record.attempt_number] = PersistenceStatus.SAVED
        self._log.info("quiz_attempt_persisted", attempt_number=record.attempt_number)
        self._notify(
            NoticeLevel.SUCCESS if verdict.passed else NoticeLevel.WARNING,
            "quiz_passed" if verdict.passed else "quiz_failed",
            result_message(verdict),
        )
        if verdict.passed and self._on_passed is not None:
            try:
                await self._on_passed(verdict)
            except Exception:
                self._log.exception("quiz_passed_hook_failed", attempt_number=record.attempt_number)
        return PersistenceStatus.SAVED

    def _persist_failed(self, record: AttemptRecord) -> PersistenceStatus:
        self._persistence[record.attempt_number] = PersistenceStatus.FAILED
        self._notify(NoticeLevel.WARNING, "quiz_attempt_not_saved", NOTICE_SAVE_FAILED)
        return PersistenceStatus.FAILED

    def _require_state(self, expected: SessionState) -> None:
        if self._state != expected:
            raise InvalidSessionStateError(
                f"expected state {expected.value}, session is {self._state.value}"
            )

    def _require_presenting(self) -> SelectionState:
        self._require_state(SessionState.PRESENTING)
        return self._require_selection()

    def _require_quiz(self) -> Quiz:
        if self._quiz is None:
            raise InvalidSessionStateError(f"no quiz loaded while {self._state.value}")
        return self._quiz

    def _require_selection(self) -> SelectionState:
        if self._selection is None:
            raise InvalidSessionStateError(f"no attempt in progress while {self._state.value}")
        return self._selection

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        previous = self._state
        self._state = state
        self._log.debug("quiz_state_changed", previous=previous.value, state=state.value)
        self._changed()

    def _notify(self, level: NoticeLevel, code: str, message: str) -> None:
        self._notices.append(Notice(level=level, code=code, message=message))
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
