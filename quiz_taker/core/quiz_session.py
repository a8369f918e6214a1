"""Holds the single active attempt of one student session."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable

from quiz_taker.core.errors import InvalidTransition
from quiz_taker.core.models import AttemptSnapshot, AttemptState
from quiz_taker.core.quiz_attempt import QuizAttempt

logger = logging.getLogger(__name__)

# Called as factory(student_key, student_name=...), e.g. functools.partial(QuizAttempt, client, client, client).
AttemptFactory = Callable[..., QuizAttempt]

_BUSY_STATES = (AttemptState.IDLE, AttemptState.LOADING, AttemptState.IN_PROGRESS, AttemptState.SUBMITTING)


class QuizSession:
    """Allows at most one attempt in flight; finished attempts are replaced, never reused."""

    def __init__(self, attempt_factory: AttemptFactory) -> None:
        self._lock = Lock()
        self._attempt_factory = attempt_factory
        self._current: QuizAttempt | None = None

    @property
    def current(self) -> QuizAttempt | None:
        with self._lock:
            return self._current

    def has_active_attempt(self) -> bool:
        with self._lock:
            return self._current is not None and self._current.state in _BUSY_STATES

    def begin(
        self,
        course_key: int | None,
        package_key: int,
        student_key: str,
        student_name: str | None = None,
    ) -> AttemptSnapshot:
        """Create a fresh attempt and start it."""
        with self._lock:
            if self._current is not None and self._current.state in _BUSY_STATES:
                raise InvalidTransition("Another attempt is already in progress in this session.")
            attempt = self._attempt_factory(student_key, student_name=student_name)
            self._current = attempt
        return attempt.start(course_key, package_key)

    def require_current(self) -> QuizAttempt:
        with self._lock:
            if self._current is None:
                raise InvalidTransition("No attempt has been started in this session.")
            return self._current

    def close(self) -> None:
        """Abandon whatever attempt is still running."""
        with self._lock:
            attempt = self._current
        if attempt is not None:
            attempt.abandon()
