"""Interfaces the attempt engine expects from the outside world.

Implementations report failures by raising ``CollaboratorError``.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from quiz_taker.core.models import (
    AttemptContext,
    CourseInfo,
    EligibilityRecord,
    FinalizationReceipt,
    PackageInfo,
    Question,
    QuizResult,
)


class QuestionRepository(Protocol):
    def fetch_package(self, package_id: int) -> PackageInfo: ...

    def fetch_course(self, course_id: int) -> CourseInfo: ...

    def fetch_questions(self, package_id: int) -> Sequence[Question]: ...


class EligibilityProvider(Protocol):
    def check_eligibility(self, student_key: str, package_id: int) -> EligibilityRecord: ...


class AttemptPersistence(Protocol):
    def open_attempt(self, context: AttemptContext) -> int | None:
        """Register the attempt with the server; None means answers are kept locally only."""
        ...

    def submit_answer(self, context: AttemptContext, question_id: int, text: str) -> None:
        """Best-effort forwarding of a single answer."""
        ...

    def finalize_attempt(self, context: AttemptContext, result: QuizResult) -> FinalizationReceipt: ...
