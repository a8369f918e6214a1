"""Retake-limit check run before an attempt may begin."""

from __future__ import annotations

from quiz_taker.core.models import EligibilityDecision, EligibilityRecord


def check_eligibility(record: EligibilityRecord) -> EligibilityDecision:
    """Approve a new attempt while the prior attempt count is below the limit.

    A limit of 1 allows the first attempt only. The decision carries the
    previous attempt summary so a refused student can still see their score.
    """
    approved = record.prior_attempts < record.max_retakes
    if approved:
        remaining = record.max_retakes - record.prior_attempts
        reason = f"{remaining} attempt(s) remaining."
    elif record.max_retakes == 1:
        reason = "You have already taken this quiz. Only one attempt is allowed."
    else:
        reason = (
            f"You have already taken this quiz {record.prior_attempts} time(s). "
            f"No more attempts allowed (limit {record.max_retakes})."
        )
    return EligibilityDecision(
        approved=approved,
        reason=reason,
        prior_attempts=record.prior_attempts,
        max_retakes=record.max_retakes,
        previous_attempt=record.previous_attempt,
    )
