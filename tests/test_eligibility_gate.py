from __future__ import annotations

import pytest

from quiz_taker.core.models import EligibilityRecord
from quiz_taker.core.services.eligibility_gate import check_eligibility


def test_limit_reached_is_refused():
    decision = check_eligibility(EligibilityRecord(prior_attempts=3, max_retakes=3))

    assert decision.approved is False
    assert "3 time(s)" in decision.reason


def test_attempts_below_limit_are_approved():
    decision = check_eligibility(EligibilityRecord(prior_attempts=2, max_retakes=3))

    assert decision.approved is True
    assert decision.reason == "1 attempt(s) remaining."


def test_single_attempt_limit_allows_only_first_attempt():
    assert check_eligibility(EligibilityRecord(prior_attempts=0, max_retakes=1)).approved is True

    refused = check_eligibility(EligibilityRecord(prior_attempts=1, max_retakes=1))
    assert refused.approved is False
    assert "Only one attempt" in refused.reason


def test_refusal_carries_previous_attempt(previous_attempt):
    record = EligibilityRecord(prior_attempts=4, max_retakes=2, previous_attempt=previous_attempt)

    decision = check_eligibility(record)

    assert decision.approved is False
    assert decision.previous_attempt == previous_attempt
    assert (decision.prior_attempts, decision.max_retakes) == (4, 2)


@pytest.mark.parametrize(("prior", "maximum"), [(-1, 3), (0, 0)])
def test_invalid_records_are_rejected(prior, maximum):
    with pytest.raises(ValueError):
        EligibilityRecord(prior_attempts=prior, max_retakes=maximum)
