"""Service for tracking the student's answers during an attempt."""

from __future__ import annotations

from typing import Iterable

from quiz_taker.core.errors import InvalidTransition


class _Unanswered:
    """Sentinel type returned for questions without an answer."""

    _instance: _Unanswered | None = None

    def __new__(cls) -> _Unanswered:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNANSWERED"


UNANSWERED = _Unanswered()


class AnswerLedger:
    """Maps question ids to the latest answer text."""

    def __init__(self) -> None:
        self._answers: dict[int, str] = {}
        self._frozen: bool = False

    def set_answer(self, question_id: int, text: str) -> bool:
        """Upsert an answer. Returns True if the question had no answer before."""
        if self._frozen:
            raise InvalidTransition("Answers cannot change after the attempt is finished.")
        is_new = question_id not in self._answers
        self._answers[question_id] = text
        return is_new

    def get_answer(self, question_id: int) -> str | _Unanswered:
        return self._answers.get(question_id, UNANSWERED)

    def is_answered(self, question_id: int) -> bool:
        answer = self._answers.get(question_id)
        return answer is not None and bool(answer.strip())

    def unanswered_count(self, question_ids: Iterable[int]) -> int:
        """Count ids that are absent or mapped to blank text."""
        return sum(1 for question_id in question_ids if not self.is_answered(question_id))

    def snapshot(self) -> dict[int, str]:
        return dict(self._answers)

    def freeze(self) -> None:
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._answers)
