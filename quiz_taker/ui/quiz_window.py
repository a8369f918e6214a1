"""Qt main window that walks a student through one quiz attempt."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable

from PySide6.QtCore import Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import QHBoxLayout, QMainWindow, QPushButton, QStackedWidget, QVBoxLayout, QWidget

from quiz_taker.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_taker.constants.ui_constants import (
    LOADING_MESSAGE,
    SUBMITTING_MESSAGE,
    TIME_UP_MESSAGE,
    WINDOW_TITLE,
)
from quiz_taker.core.errors import QuizAttemptError
from quiz_taker.core.models import AttemptSnapshot, AttemptState
from quiz_taker.core.quiz_attempt import QuizAttempt
from quiz_taker.core.quiz_session import QuizSession
from quiz_taker.styling.styles import Styles
from quiz_taker.ui.components.outcome_panel import OutcomePanel
from quiz_taker.ui.components.question_panel import QuestionPanel
from quiz_taker.ui.components.start_panel import StartPanel
from quiz_taker.ui.dialog_helpers import confirm_submit, show_error, show_info, show_warning

logger = logging.getLogger(__name__)


class WindowPage(Enum):
    START = auto()
    QUESTION = auto()
    OUTCOME = auto()


class QuizWindow(QMainWindow):
    """Main Qt window mirroring the state of the session's current attempt."""

    # Listeners may fire off the GUI thread; the signal queues them onto it.
    snapshot_changed = Signal(object)

    def __init__(self, session: QuizSession, student_key: str) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.session = session
        self._page = WindowPage.START
        self._submitted_manually = False
        self._time_up_shown = False

        self._build_ui(student_key)
        self.snapshot_changed.connect(self._render_snapshot)
        self.setStyleSheet(Styles.get_main_window_style())

    def _build_ui(self, student_key: str) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        root_layout = QVBoxLayout()
        central_widget.setLayout(root_layout)

        button_row = QHBoxLayout()
        button_row.addStretch()
        self.about_button = QPushButton(f"About {APP_NAME}", self)
        self.about_button.clicked.connect(self._handle_about)
        button_row.addWidget(self.about_button)
        root_layout.addLayout(button_row)

        self.page_stack = QStackedWidget(self)
        self.start_panel = StartPanel(student_key, on_start=self._handle_start, parent=self)
        self.question_panel = QuestionPanel(
            on_answer=self._handle_answer,
            on_previous=lambda: self._run_command(lambda attempt: attempt.previous()),
            on_next=lambda: self._run_command(lambda attempt: attempt.next()),
            on_submit=self._handle_submit,
            parent=self,
        )
        self.outcome_panel = OutcomePanel(on_back=self._handle_back_to_start, parent=self)
        self.page_stack.addWidget(self.start_panel)
        self.page_stack.addWidget(self.question_panel)
        self.page_stack.addWidget(self.outcome_panel)
        root_layout.addWidget(self.page_stack, stretch=1)

    def _set_page(self, page: WindowPage) -> None:
        self._page = page
        index_map = {
            WindowPage.START: 0,
            WindowPage.QUESTION: 1,
            WindowPage.OUTCOME: 2,
        }
        self.page_stack.setCurrentIndex(index_map[page])

    # --- Handlers ---

    def _handle_start(self, course_id: int | None, package_id: int, student_key: str, student_name: str) -> None:
        self.start_panel.set_busy(LOADING_MESSAGE)
        self._submitted_manually = False
        self._time_up_shown = False
        self.question_panel.reset_state()
        try:
            snapshot = self.session.begin(course_id, package_id, student_key, student_name)
        except (QuizAttemptError, ValueError) as exc:
            self.start_panel.set_busy(None)
            show_error(self, "Cannot start quiz", str(exc))
            return
        attempt = self.session.current
        if attempt is not None:
            attempt.add_listener(self.snapshot_changed.emit)
        self.start_panel.set_busy(None)
        self._render_snapshot(snapshot)

    def _handle_answer(self, question_id: int, text: str) -> None:
        self._run_command(lambda attempt: attempt.answer(question_id, text))

    def _handle_submit(self) -> None:
        attempt = self.session.current
        if attempt is None or attempt.state is not AttemptState.IN_PROGRESS:
            return
        if not confirm_submit(self, len(attempt.unanswered_indices())):
            return
        self._submitted_manually = True
        self.question_panel.warning_label.setText(SUBMITTING_MESSAGE)
        self._run_command(lambda current: current.submit(confirmed=True))

    def _handle_back_to_start(self) -> None:
        self.question_panel.reset_state()
        self._set_page(WindowPage.START)

    def _handle_about(self) -> None:
        show_info(
            self,
            f"About {APP_NAME}",
            f"{APP_NAME} v{APP_VERSION}\nLicense: {APP_LICENSE}\n\n{APP_ABOUT_TEXT}",
        )

    def _run_command(self, command: Callable[[QuizAttempt], AttemptSnapshot]) -> None:
        attempt: QuizAttempt | None = self.session.current
        if attempt is None:
            return
        try:
            snapshot = command(attempt)
        except (QuizAttemptError, ValueError) as exc:
            logger.info("Command rejected: %s", exc)
            show_warning(self, "Not possible", str(exc))
            return
        self._render_snapshot(snapshot)

    # --- Rendering ---

    def _render_snapshot(self, snapshot: AttemptSnapshot) -> None:
        state = snapshot.state
        current = self.session.current
        if current is not None and current.state.is_terminal and not state.is_terminal:
            return
        if state in (AttemptState.IDLE, AttemptState.LOADING):
            self._set_page(WindowPage.START)
        elif state is AttemptState.IN_PROGRESS:
            if snapshot.remaining_seconds <= 0:
                # Last tick before the automatic submit.
                self.question_panel.commit_pending_answer()
            self.question_panel.show_snapshot(snapshot)
            self._set_page(WindowPage.QUESTION)
        elif state is AttemptState.SUBMITTING:
            self.question_panel.update_countdown(snapshot.remaining_seconds, snapshot.duration_seconds)
            self.question_panel.warning_label.setText(SUBMITTING_MESSAGE)
        else:
            was_answering = self._page is WindowPage.QUESTION
            self.outcome_panel.show_snapshot(snapshot)
            self._set_page(WindowPage.OUTCOME)
            if (
                was_answering
                and not self._submitted_manually
                and not self._time_up_shown
                and snapshot.result is not None
                and snapshot.remaining_seconds == 0
            ):
                self._time_up_shown = True
                show_info(self, "Time is up", TIME_UP_MESSAGE)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        self.session.close()
        super().closeEvent(event)
