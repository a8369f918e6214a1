from __future__ import annotations

from concurrent.futures import Executor, Future
from datetime import datetime, timezone
from functools import partial

import pytest

from quiz_taker.core.errors import CollaboratorError
from quiz_taker.core.models import (
    CourseInfo,
    EligibilityRecord,
    FinalizationReceipt,
    PackageInfo,
    PreviousAttempt,
    Question,
    QuestionType,
)
from quiz_taker.core.quiz_attempt import QuizAttempt


class ManualScheduler:
    """Tick scheduler driven by the test instead of a clock."""

    def __init__(self, callback) -> None:
        self.callback = callback
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def advance(self, ticks: int = 1) -> int:
        fired = 0
        for _ in range(ticks):
            if self.stopped:
                break
            fired += 1
            if not self.callback():
                self.stopped = True
        return fired


class SchedulerRecorder:
    """Factory that keeps every scheduler it builds."""

    def __init__(self) -> None:
        self.schedulers: list[ManualScheduler] = []

    def __call__(self, callback) -> ManualScheduler:
        scheduler = ManualScheduler(callback)
        self.schedulers.append(scheduler)
        return scheduler

    @property
    def latest(self) -> ManualScheduler:
        return self.schedulers[-1]


class ImmediateExecutor(Executor):
    """Runs submitted work inline so forwarding is observable in tests."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeRepository:
    def __init__(self, questions, package=None, course=None) -> None:
        self.questions = list(questions)
        self.package = package or PackageInfo(id=7, title="Geography basics", course_id=3)
        self.course = course or CourseInfo(id=3, title="Geography", exam_minutes=10, retry_count=3)
        self.fail_with: Exception | None = None

    def fetch_package(self, package_id: int) -> PackageInfo:
        if self.fail_with is not None:
            raise self.fail_with
        return self.package

    def fetch_course(self, course_id: int) -> CourseInfo:
        return self.course

    def fetch_questions(self, package_id: int):
        return list(self.questions)


class FakeEligibility:
    def __init__(self, record: EligibilityRecord | None = None) -> None:
        self.record = record or EligibilityRecord(prior_attempts=0, max_retakes=3)
        self.calls: list[tuple[str, int]] = []

    def check_eligibility(self, student_key: str, package_id: int) -> EligibilityRecord:
        self.calls.append((student_key, package_id))
        return self.record


class FakePersistence:
    def __init__(self) -> None:
        self.opened: list = []
        self.remote_id: int | None = 501
        self.open_error: Exception | None = None
        self.answers: list[tuple[str, int, str]] = []
        self.finalized: list = []
        self.receipt = FinalizationReceipt(accepted=True, remote_attempt_id=99)
        self.answer_error: Exception | None = None
        self.finalize_error: Exception | None = None
        # Runs inside finalize_attempt, while the attempt is still submitting.
        self.on_finalize = None

    def open_attempt(self, context) -> int | None:
        if self.open_error is not None:
            raise self.open_error
        self.opened.append(context)
        return self.remote_id

    def submit_answer(self, context, question_id: int, text: str) -> None:
        if self.answer_error is not None:
            raise self.answer_error
        self.answers.append((context.attempt_id, question_id, text))

    def finalize_attempt(self, context, result) -> FinalizationReceipt:
        if self.finalize_error is not None:
            raise self.finalize_error
        if self.on_finalize is not None:
            self.on_finalize()
        self.finalized.append((context, result))
        return self.receipt


@pytest.fixture
def sample_questions() -> list[Question]:
    return [
        Question(
            id=1,
            question_text="What is the capital of France?",
            question_type=QuestionType.SHORT_ANSWER,
            correct_answer="Paris",
            points=5,
        ),
        Question(
            id=2,
            question_text="Which river flows through Cairo?",
            question_type=QuestionType.MULTIPLE_CHOICE,
            correct_answer="Nile",
            points=3,
            options=("Amazon", "Nile", "Danube"),
        ),
        Question(
            id=3,
            question_text="The Earth is flat.",
            question_type=QuestionType.TRUE_FALSE,
            correct_answer="false",
            points=2,
        ),
    ]


@pytest.fixture
def previous_attempt() -> PreviousAttempt:
    return PreviousAttempt(
        score=6,
        total_points=10,
        percentage=60.0,
        time_taken_seconds=300,
        total_questions=3,
        completed_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def repository(sample_questions) -> FakeRepository:
    return FakeRepository(sample_questions)


@pytest.fixture
def eligibility() -> FakeEligibility:
    return FakeEligibility()


@pytest.fixture
def persistence() -> FakePersistence:
    return FakePersistence()


@pytest.fixture
def schedulers() -> SchedulerRecorder:
    return SchedulerRecorder()


@pytest.fixture
def executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def attempt_factory(repository, eligibility, persistence, schedulers, executor, clock):
    return partial(
        QuizAttempt,
        repository,
        eligibility,
        persistence,
        scheduler_factory=schedulers,
        executor=executor,
        clock=clock,
    )


@pytest.fixture
def attempt(attempt_factory) -> QuizAttempt:
    return attempt_factory("device-abc", student_name="Ada")


@pytest.fixture
def collaborator_error() -> CollaboratorError:
    return CollaboratorError("server unavailable")
