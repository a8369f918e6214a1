"""Service for scoring a finished attempt from the local answers."""

from __future__ import annotations

from typing import Sequence

from quiz_taker.core.models import Question, QuestionResult, QuizResult
from quiz_taker.core.services.answer_ledger import UNANSWERED, AnswerLedger


def normalize_answer(text: str) -> str:
    return text.strip().casefold()


def is_correct(question: Question, answer: str) -> bool:
    """Exact match after trimming and case folding; blank answers never match."""
    normalized = normalize_answer(answer)
    if not normalized:
        return False
    return normalized == normalize_answer(question.correct_answer)


def percentage_of(score: int, total_points: int) -> int:
    """Percentage rounded half-up, 0 for an empty quiz."""
    if total_points <= 0:
        return 0
    return (score * 200 + total_points) // (total_points * 2)


def score(
    questions: Sequence[Question],
    ledger: AnswerLedger,
    elapsed_seconds: int = 0,
) -> QuizResult:
    """Score every question once, in input order."""
    total_points = 0
    earned = 0
    correct_count = 0
    details: list[QuestionResult] = []

    for question in questions:
        total_points += question.points
        stored = ledger.get_answer(question.id)
        submitted = "" if stored is UNANSWERED else stored
        correct = is_correct(question, submitted)
        points = question.points if correct else 0
        if correct:
            correct_count += 1
            earned += points
        details.append(
            QuestionResult(
                question_id=question.id,
                submitted_answer=submitted,
                correct_answer=question.correct_answer,
                is_correct=correct,
                points_earned=points,
                max_points=question.points,
            )
        )

    return QuizResult(
        score=earned,
        total_points=total_points,
        percentage=percentage_of(earned, total_points),
        correct=correct_count,
        incorrect=len(details) - correct_count,
        elapsed_seconds=max(0, int(elapsed_seconds)),
        details=tuple(details),
    )
