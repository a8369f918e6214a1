"""Domain models for the quiz taker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AttemptState(str, Enum):
    """Lifecycle states of a single quiz attempt."""

    IDLE = "idle"
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (AttemptState.COMPLETED, AttemptState.BLOCKED, AttemptState.ERROR)


class QuestionType(str, Enum):
    """Question kinds understood by the scorer."""

    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


@dataclass(frozen=True, slots=True)
class Question:
    """A single question, read-only for the lifetime of an attempt."""

    id: int
    question_text: str
    question_type: QuestionType
    correct_answer: str
    points: int
    options: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.question_text.strip():
            raise ValueError(f"Question {self.id} has no text.")
        if not isinstance(self.points, int) or self.points <= 0:
            raise ValueError(f"Question {self.id} must be worth a positive number of points.")
        # Accept raw strings from DTOs as well as enum members.
        object.__setattr__(self, "question_type", QuestionType(self.question_type))
        object.__setattr__(self, "options", tuple(self.options))
        if self.question_type is QuestionType.MULTIPLE_CHOICE and len(self.options) < 2:
            raise ValueError(f"Multiple-choice question {self.id} needs at least two options.")


@dataclass(frozen=True, slots=True)
class PackageInfo:
    """Quiz package metadata."""

    id: int
    title: str
    course_id: int


@dataclass(frozen=True, slots=True)
class CourseInfo:
    """Course metadata relevant to taking a quiz."""

    id: int
    title: str
    exam_minutes: int
    retry_count: int | None = None


@dataclass(frozen=True, slots=True)
class PreviousAttempt:
    """Summary of an earlier attempt, shown when a new one is refused."""

    score: int
    total_points: int
    percentage: float
    time_taken_seconds: int = 0
    total_questions: int = 0
    completed_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class EligibilityRecord:
    """Attempt history supplied by the eligibility provider."""

    prior_attempts: int
    max_retakes: int
    previous_attempt: PreviousAttempt | None = None
    known_student_name: str | None = None

    def __post_init__(self) -> None:
        if self.prior_attempts < 0:
            raise ValueError("Prior attempt count cannot be negative.")
        if self.max_retakes < 1:
            raise ValueError("Maximum retakes must be at least 1.")


@dataclass(frozen=True, slots=True)
class EligibilityDecision:
    """Outcome of the eligibility gate."""

    approved: bool
    reason: str
    prior_attempts: int
    max_retakes: int
    previous_attempt: PreviousAttempt | None = None


@dataclass(frozen=True, slots=True)
class AttemptContext:
    """Identifies an attempt towards the persistence collaborator."""

    attempt_id: str
    course_id: int
    package_id: int
    student_key: str
    student_name: str
    started_at: datetime
    # Server-side attempt opened for answer forwarding; None when working offline.
    remote_attempt_id: int | None = None


@dataclass(frozen=True, slots=True)
class QuestionResult:
    """Scoring detail for one question."""

    question_id: int
    submitted_answer: str
    correct_answer: str
    is_correct: bool
    points_earned: int
    max_points: int


@dataclass(frozen=True, slots=True)
class QuizResult:
    """Terminal result of an attempt."""

    score: int
    total_points: int
    percentage: int
    correct: int
    incorrect: int
    elapsed_seconds: int
    details: tuple[QuestionResult, ...] = ()


@dataclass(frozen=True, slots=True)
class FinalizationReceipt:
    """Answer from the persistence collaborator to a finished attempt."""

    accepted: bool
    reason: str | None = None
    remote_attempt_id: int | None = None


@dataclass(frozen=True, slots=True)
class AttemptSnapshot:
    """Read-only view of an attempt for UI consumers."""

    state: AttemptState
    current_index: int = 0
    question_count: int = 0
    current_question: Question | None = None
    answers: dict[int, str] = field(default_factory=dict)
    remaining_seconds: int = 0
    duration_seconds: int = 0
    package_title: str | None = None
    course_title: str | None = None
    result: QuizResult | None = None
    eligibility: EligibilityDecision | None = None
    error_reason: str | None = None
    warning: str | None = None
