"""Component for the terminal views: result, blocked and error."""

from __future__ import annotations

from typing import Callable

from PySide6.QtWidgets import QLabel, QListWidget, QListWidgetItem, QPushButton, QVBoxLayout, QWidget

from quiz_taker.constants.ui_constants import BLOCKED_TITLE, ERROR_TITLE, NEW_ATTEMPT_BUTTON
from quiz_taker.core.models import AttemptSnapshot, AttemptState, EligibilityDecision, QuizResult
from quiz_taker.styling.styles import Styles
from quiz_taker.ui.components.question_panel import format_remaining


class OutcomePanel(QWidget):
    """Shows how an attempt ended."""

    def __init__(self, on_back: Callable[[], None], parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._build_ui(on_back)

    def _build_ui(self, on_back: Callable[[], None]) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        self.title_label = QLabel("", self)
        self.title_label.setStyleSheet(Styles.get_large_label_style())
        layout.addWidget(self.title_label)

        self.message_label = QLabel("", self)
        self.message_label.setWordWrap(True)
        layout.addWidget(self.message_label)

        self.summary_label = QLabel("", self)
        self.summary_label.setWordWrap(True)
        layout.addWidget(self.summary_label)

        self.detail_list = QListWidget(self)
        self.detail_list.setAlternatingRowColors(True)
        layout.addWidget(self.detail_list, stretch=1)

        self.back_button = QPushButton(NEW_ATTEMPT_BUTTON, self)
        self.back_button.clicked.connect(on_back)
        layout.addWidget(self.back_button)

    def show_snapshot(self, snapshot: AttemptSnapshot) -> None:
        self.detail_list.clear()
        self.message_label.clear()
        self.summary_label.clear()
        if snapshot.state is AttemptState.BLOCKED and snapshot.eligibility is not None:
            self._show_blocked(snapshot.eligibility)
            return
        if snapshot.state is AttemptState.ERROR:
            self.title_label.setText(ERROR_TITLE)
            self.message_label.setText(snapshot.error_reason or "")
            self.message_label.setStyleSheet(Styles.get_status_style(False))
        else:
            self.title_label.setText(snapshot.package_title or "Quiz complete")
            self.message_label.setStyleSheet("")
        if snapshot.result is not None:
            self._show_result(snapshot.result)

    def _show_result(self, result: QuizResult) -> None:
        self.summary_label.setText(
            f"Score: {result.score} / {result.total_points} ({result.percentage}%)\n"
            f"Correct: {result.correct}   Incorrect: {result.incorrect}   "
            f"Time: {format_remaining(result.elapsed_seconds)}"
        )
        for number, detail in enumerate(result.details, start=1):
            answer = detail.submitted_answer or "(no answer)"
            mark = "✓" if detail.is_correct else "✗"
            QListWidgetItem(
                f"{mark} Q{number}: {answer}  (correct: {detail.correct_answer}, "
                f"{detail.points_earned}/{detail.max_points} pts)",
                self.detail_list,
            )

    def _show_blocked(self, decision: EligibilityDecision) -> None:
        self.title_label.setText(BLOCKED_TITLE)
        self.message_label.setText(decision.reason)
        self.message_label.setStyleSheet(Styles.get_status_style(False))
        previous = decision.previous_attempt
        if previous is None:
            return
        lines = [f"Previous score: {previous.score} / {previous.total_points} ({previous.percentage:g}%)"]
        if previous.time_taken_seconds:
            lines.append(f"Time taken: {format_remaining(previous.time_taken_seconds)}")
        if previous.completed_at is not None:
            lines.append(f"Completed: {previous.completed_at:%Y-%m-%d %H:%M}")
        self.summary_label.setText("\n".join(lines))
