"""State machine for a single timed quiz attempt.

The attempt moves Idle -> Loading -> InProgress -> Submitting -> Completed,
with Blocked reachable from Loading when the retake limit is hit and Error
reachable whenever a collaborator fails. Terminal attempts are never reused;
``QuizSession`` hands out a fresh instance for the next try.
"""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
import logging
from threading import RLock
import time
from typing import Callable
from uuid import uuid4

from quiz_taker.constants.quiz_constants import DEFAULT_STUDENT_NAME, SECONDS_PER_MINUTE
from quiz_taker.core.collaborators import AttemptPersistence, EligibilityProvider, QuestionRepository
from quiz_taker.core.errors import (
    ConfirmationRequired,
    FinalizationRejected,
    InvalidTransition,
    LoadFailure,
)
from quiz_taker.core.models import (
    AttemptContext,
    AttemptSnapshot,
    AttemptState,
    CourseInfo,
    EligibilityDecision,
    EligibilityRecord,
    PackageInfo,
    Question,
    QuizResult,
)
from quiz_taker.core.services.answer_ledger import AnswerLedger
from quiz_taker.core.services.countdown_timer import CountdownTimer, SchedulerFactory, ThreadTickScheduler
from quiz_taker.core.services.eligibility_gate import check_eligibility
from quiz_taker.core.services.scorer import score

logger = logging.getLogger(__name__)

AttemptListener = Callable[[AttemptSnapshot], None]


class QuizAttempt:
    """Owns question navigation, the answer ledger and the countdown for one attempt."""

    def __init__(
        self,
        repository: QuestionRepository,
        eligibility_provider: EligibilityProvider,
        persistence: AttemptPersistence,
        student_key: str,
        *,
        student_name: str | None = None,
        scheduler_factory: SchedulerFactory = ThreadTickScheduler,
        executor: Executor | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not student_key or not student_key.strip():
            raise ValueError("A student key is required to start an attempt.")
        self._lock = RLock()
        self._repository = repository
        self._eligibility_provider = eligibility_provider
        self._persistence = persistence
        self._student_key = student_key.strip()
        self._student_name = student_name.strip() if student_name and student_name.strip() else None
        self._clock = clock

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="AnswerForwarder")
        self._timer = CountdownTimer(
            on_tick=self._handle_tick,
            on_expired=self._handle_expired,
            scheduler_factory=scheduler_factory,
        )

        self._state: AttemptState = AttemptState.IDLE
        self._package: PackageInfo | None = None
        self._course: CourseInfo | None = None
        self._questions: tuple[Question, ...] = ()
        self._question_ids: frozenset[int] = frozenset()
        self._total_points: int = 0
        self._index: int = 0
        self._ledger = AnswerLedger()
        self._duration_seconds: int = 0
        self._remaining_seconds: int = 0
        self._started_clock: float | None = None
        self._context: AttemptContext | None = None
        self._eligibility: EligibilityDecision | None = None
        self._result: QuizResult | None = None
        self._remote_attempt_id: int | None = None
        self._error_reason: str | None = None
        self._warning: str | None = None
        self._listeners: list[AttemptListener] = []

    # --- Read side ---

    @property
    def state(self) -> AttemptState:
        with self._lock:
            return self._state

    @property
    def context(self) -> AttemptContext | None:
        with self._lock:
            return self._context

    @property
    def questions(self) -> tuple[Question, ...]:
        with self._lock:
            return self._questions

    @property
    def total_points(self) -> int:
        with self._lock:
            return self._total_points

    @property
    def result(self) -> QuizResult | None:
        with self._lock:
            return self._result

    @property
    def remote_attempt_id(self) -> int | None:
        with self._lock:
            return self._remote_attempt_id

    def snapshot(self) -> AttemptSnapshot:
        with self._lock:
            current = self._questions[self._index] if self._questions else None
            return AttemptSnapshot(
                state=self._state,
                current_index=self._index,
                question_count=len(self._questions),
                current_question=current,
                answers=self._ledger.snapshot(),
                remaining_seconds=self._remaining_seconds,
                duration_seconds=self._duration_seconds,
                package_title=self._package.title if self._package else None,
                course_title=self._course.title if self._course else None,
                result=self._result,
                eligibility=self._eligibility,
                error_reason=self._error_reason,
                warning=self._warning,
            )

    def unanswered_indices(self) -> list[int]:
        with self._lock:
            return [
                index
                for index, question in enumerate(self._questions)
                if not self._ledger.is_answered(question.id)
            ]

    def add_listener(self, listener: AttemptListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    # --- Commands ---

    def start(self, course_key: int | None, package_key: int) -> AttemptSnapshot:
        """Load the package, check eligibility and begin the countdown."""
        with self._lock:
            self._require_state(AttemptState.IDLE, "start")
            self._state = AttemptState.LOADING
        logger.info("Loading quiz package %s for student %s", package_key, self._student_key)
        self._notify()

        try:
            package, course, questions, record = self._load(course_key, package_key)
        except LoadFailure as exc:
            logger.warning("Quiz package %s failed to load: %s", package_key, exc)
            self._fail(str(exc))
            return self.snapshot()

        decision = check_eligibility(record)
        context = None
        if decision.approved:
            context = self._open_remote_attempt(self._new_context(course, package, record))
        with self._lock:
            if self._state is not AttemptState.LOADING:
                # Abandoned while the collaborators were busy.
                return self.snapshot()
            self._package = package
            self._course = course
            self._eligibility = decision
            if not decision.approved:
                self._state = AttemptState.BLOCKED
                logger.info("Attempt blocked for student %s: %s", self._student_key, decision.reason)
            else:
                self._questions = questions
                self._question_ids = frozenset(question.id for question in questions)
                self._total_points = sum(question.points for question in questions)
                self._begin(course, context)
                self._timer.start(self._duration_seconds)
        if self.state is AttemptState.BLOCKED:
            self._release_executor()
        self._notify()
        return self.snapshot()

    def answer(self, question_id: int, text: str) -> AttemptSnapshot:
        """Record an answer locally and forward it to the server in the background."""
        with self._lock:
            self._require_state(AttemptState.IN_PROGRESS, "answer")
            if question_id not in self._question_ids:
                raise ValueError(f"Question {question_id} is not part of this attempt.")
            self._ledger.set_answer(question_id, text)
            self._warning = None
            context = self._context
        self._forward_answer(context, question_id, text)
        self._notify()
        return self.snapshot()

    def next(self) -> AttemptSnapshot:
        """Advance one question; a no-op on the last question."""
        with self._lock:
            self._require_state(AttemptState.IN_PROGRESS, "next")
            warning = None
            if self._index < len(self._questions) - 1:
                current = self._questions[self._index]
                if not self._ledger.is_answered(current.id):
                    warning = f"Question {self._index + 1} has not been answered yet."
                self._index += 1
            self._warning = warning
        self._notify()
        return self.snapshot()

    def previous(self) -> AttemptSnapshot:
        """Go back one question; a no-op on the first question."""
        with self._lock:
            self._require_state(AttemptState.IN_PROGRESS, "previous")
            if self._index > 0:
                self._index -= 1
            self._warning = None
        self._notify()
        return self.snapshot()

    def go_to(self, index: int) -> AttemptSnapshot:
        """Jump straight to a question by its 0-based position."""
        with self._lock:
            self._require_state(AttemptState.IN_PROGRESS, "go_to")
            if not 0 <= index < len(self._questions):
                raise ValueError(f"Question index {index} out of range")
            self._index = index
            self._warning = None
        self._notify()
        return self.snapshot()

    def submit(self, confirmed: bool = False) -> AttemptSnapshot:
        """Score and finalize the attempt. The caller must confirm first."""
        if not confirmed:
            with self._lock:
                self._require_state(AttemptState.IN_PROGRESS, "submit")
            raise ConfirmationRequired("Submission must be confirmed before it is sent.")
        self._finalize(forced=False)
        return self.snapshot()

    def abandon(self) -> None:
        """Stop the countdown and close a non-terminal attempt as an error."""
        with self._lock:
            if self._state.is_terminal:
                return
        logger.info("Attempt abandoned")
        self._fail("Attempt abandoned")

    # --- Internals ---

    def _require_state(self, expected: AttemptState, operation: str) -> None:
        if self._state is not expected:
            raise InvalidTransition(
                f"Cannot {operation} while the attempt is {self._state.value}."
            )

    def _load(
        self, course_key: int | None, package_key: int
    ) -> tuple[PackageInfo, CourseInfo, tuple[Question, ...], EligibilityRecord]:
        try:
            package = self._repository.fetch_package(package_key)
            if course_key is not None and course_key != package.course_id:
                raise LoadFailure(
                    f"Quiz package {package_key} does not belong to course {course_key}."
                )
            course = self._repository.fetch_course(package.course_id)
            if course.exam_minutes <= 0:
                raise LoadFailure(f"Invalid exam time for course {course.id}: {course.exam_minutes}")
            questions = tuple(self._repository.fetch_questions(package_key))
            if not questions:
                raise LoadFailure(f"Quiz package {package_key} has no questions.")
            if len({question.id for question in questions}) != len(questions):
                raise LoadFailure(f"Quiz package {package_key} contains duplicate question ids.")
            record = self._eligibility_provider.check_eligibility(self._student_key, package_key)
        except LoadFailure:
            raise
        except Exception as exc:
            logger.debug("Collaborator failure while loading", exc_info=True)
            raise LoadFailure(f"Could not load quiz: {exc}") from exc
        return package, course, questions, record

    def _new_context(self, course: CourseInfo, package: PackageInfo, record: EligibilityRecord) -> AttemptContext:
        return AttemptContext(
            attempt_id=uuid4().hex,
            course_id=course.id,
            package_id=package.id,
            student_key=self._student_key,
            student_name=self._student_name or record.known_student_name or DEFAULT_STUDENT_NAME,
            started_at=datetime.now(timezone.utc),
        )

    def _open_remote_attempt(self, context: AttemptContext) -> AttemptContext:
        """Ask the server for an attempt id; without one answers stay local until submit."""
        try:
            remote_id = self._persistence.open_attempt(context)
        except Exception as exc:
            logger.warning("Server attempt for %s was not opened: %s", context.attempt_id, exc)
            return context
        if remote_id is None:
            return context
        return replace(context, remote_attempt_id=remote_id)

    def _begin(self, course: CourseInfo, context: AttemptContext) -> None:
        self._duration_seconds = course.exam_minutes * SECONDS_PER_MINUTE
        self._remaining_seconds = self._duration_seconds
        self._index = 0
        self._ledger = AnswerLedger()
        self._started_clock = self._clock()
        self._context = context
        self._state = AttemptState.IN_PROGRESS
        logger.info(
            "Attempt %s started: %d question(s), %d second(s), server attempt %s",
            context.attempt_id,
            len(self._questions),
            self._duration_seconds,
            context.remote_attempt_id,
        )

    def _elapsed_seconds(self) -> int:
        counted = self._duration_seconds - self._remaining_seconds
        measured = 0
        if self._started_clock is not None:
            measured = int(self._clock() - self._started_clock)
        return min(self._duration_seconds, max(counted, measured))

    def _handle_tick(self, remaining: int) -> None:
        with self._lock:
            if self._state is not AttemptState.IN_PROGRESS:
                return
            self._remaining_seconds = max(0, min(self._remaining_seconds, remaining))
        self._notify()

    def _handle_expired(self) -> None:
        logger.info("Time is up, submitting automatically")
        self._finalize(forced=True)

    def _finalize(self, forced: bool) -> None:
        with self._lock:
            if self._state is not AttemptState.IN_PROGRESS:
                if forced:
                    logger.debug("Ignoring timer expiry in state %s", self._state.value)
                    return
                self._require_state(AttemptState.IN_PROGRESS, "submit")
            self._state = AttemptState.SUBMITTING
            if forced:
                self._remaining_seconds = 0
            self._ledger.freeze()
            elapsed = self._elapsed_seconds()
            questions = self._questions
            context = self._context
        self._timer.cancel()
        self._notify()

        try:
            result = score(questions, self._ledger, elapsed)
        except Exception as exc:
            logger.exception("Scoring failed")
            self._fail(f"Could not compute the result: {exc}")
            return
        with self._lock:
            self._result = result

        try:
            receipt = self._persistence.finalize_attempt(context, result)
        except Exception as exc:
            logger.warning("Result for attempt %s was not saved: %s", context.attempt_id, exc)
            self._fail(f"Could not save the result: {exc}")
            return
        if not receipt.accepted:
            rejection = FinalizationRejected(receipt.reason or "The server did not accept the result.")
            logger.warning("Result for attempt %s rejected: %s", context.attempt_id, rejection)
            self._fail(str(rejection))
            return

        with self._lock:
            self._remote_attempt_id = receipt.remote_attempt_id
            self._state = AttemptState.COMPLETED
        logger.info(
            "Attempt %s completed: %d/%d (%d%%)",
            context.attempt_id,
            result.score,
            result.total_points,
            result.percentage,
        )
        self._release_executor()
        self._notify()

    def _fail(self, reason: str) -> None:
        with self._lock:
            if self._state.is_terminal:
                return
            self._state = AttemptState.ERROR
            self._error_reason = reason
            self._ledger.freeze()
        self._timer.cancel()
        self._release_executor()
        self._notify()

    def _forward_answer(self, context: AttemptContext | None, question_id: int, text: str) -> None:
        if context is None:
            return
        try:
            self._executor.submit(self._send_answer, context, question_id, text)
        except RuntimeError:
            logger.debug("Answer forwarding skipped; executor already shut down")

    def _send_answer(self, context: AttemptContext, question_id: int, text: str) -> None:
        try:
            self._persistence.submit_answer(context, question_id, text)
        except Exception as exc:
            logger.warning("Answer for question %s was not forwarded: %s", question_id, exc)

    def _release_executor(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        snapshot = self.snapshot()
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Attempt listener failed")

