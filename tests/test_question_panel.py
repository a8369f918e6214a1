from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from quiz_taker.core.models import AttemptSnapshot, AttemptState, CourseInfo  # noqa: E402
from quiz_taker.core.quiz_session import QuizSession  # noqa: E402
from quiz_taker.ui import quiz_window  # noqa: E402
from quiz_taker.ui.components.question_panel import QuestionPanel  # noqa: E402


@pytest.fixture(scope="module")
def qt_app():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def panel_and_answers(qt_app, sample_questions):
    recorded = []
    panel = QuestionPanel(
        on_answer=lambda question_id, text: recorded.append((question_id, text)),
        on_previous=lambda: None,
        on_next=lambda: None,
        on_submit=lambda: None,
    )
    panel.show_snapshot(
        AttemptSnapshot(
            state=AttemptState.IN_PROGRESS,
            question_count=3,
            current_question=sample_questions[0],
            remaining_seconds=5,
            duration_seconds=60,
        )
    )
    return panel, recorded


def test_commit_records_unconfirmed_short_answer_once(panel_and_answers):
    panel, recorded = panel_and_answers
    panel._short_answer_input.setText("Paris")

    panel.commit_pending_answer()
    panel.commit_pending_answer()

    assert recorded == [(1, "Paris")]


def test_commit_without_changes_records_nothing(panel_and_answers):
    panel, recorded = panel_and_answers

    panel.commit_pending_answer()

    assert recorded == []


def test_window_scores_text_typed_when_time_runs_out(
    qt_app, attempt_factory, repository, persistence, schedulers, monkeypatch
):
    repository.course = CourseInfo(id=3, title="Geography", exam_minutes=1)
    notices = []
    monkeypatch.setattr(quiz_window, "show_info", lambda parent, title, text: notices.append(title))
    window = quiz_window.QuizWindow(QuizSession(attempt_factory), "device-abc")
    window._handle_start(3, 7, "device-abc", "Ada")
    window.question_panel._short_answer_input.setText("Paris")

    schedulers.latest.advance(60)

    attempt = window.session.current
    assert attempt.state is AttemptState.COMPLETED
    assert attempt.result.score == 5
    assert len(persistence.finalized) == 1
    assert notices == ["Time is up"]
