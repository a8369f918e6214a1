from __future__ import annotations

import pytest

from quiz_taker.core.errors import InvalidTransition
from quiz_taker.core.services.answer_ledger import UNANSWERED, AnswerLedger


def test_set_answer_overwrites_previous_value():
    ledger = AnswerLedger()

    assert ledger.set_answer(1, "A") is True
    assert ledger.set_answer(1, "B") is False
    assert ledger.get_answer(1) == "B"
    assert len(ledger) == 1


def test_missing_answer_returns_sentinel():
    ledger = AnswerLedger()

    assert ledger.get_answer(5) is UNANSWERED
    assert not UNANSWERED


def test_blank_answers_count_as_unanswered():
    ledger = AnswerLedger()
    ledger.set_answer(1, "  ")
    ledger.set_answer(2, "Paris")

    assert ledger.is_answered(1) is False
    assert ledger.is_answered(2) is True
    assert ledger.unanswered_count([1, 2, 3]) == 2


def test_frozen_ledger_rejects_writes():
    ledger = AnswerLedger()
    ledger.set_answer(1, "A")
    ledger.freeze()

    with pytest.raises(InvalidTransition):
        ledger.set_answer(1, "B")
    assert ledger.is_frozen()
    assert ledger.get_answer(1) == "A"


def test_snapshot_is_a_copy():
    ledger = AnswerLedger()
    ledger.set_answer(1, "A")

    snapshot = ledger.snapshot()
    snapshot[1] = "changed"

    assert ledger.get_answer(1) == "A"
