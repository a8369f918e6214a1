"""Component showing the current question, its answer input and the countdown."""

from __future__ import annotations

from typing import Callable

from PySide6.QtWidgets import (
    QButtonGroup,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QProgressBar,
    QPushButton,
    QRadioButton,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)

from quiz_taker.constants.quiz_constants import TIME_WARNING_WINDOW_SECONDS
from quiz_taker.constants.ui_constants import (
    NEXT_BUTTON,
    PREV_BUTTON,
    SHORT_ANSWER_PLACEHOLDER,
    SUBMIT_BUTTON,
)
from quiz_taker.core.markdown_math_renderer import renderer
from quiz_taker.core.models import AttemptSnapshot, Question, QuestionType
from quiz_taker.styling.styles import Styles

TRUE_FALSE_CHOICES = ("True", "False")


def format_remaining(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"


class QuestionPanel(QWidget):
    """Renders one question at a time and forwards the student's input."""

    def __init__(
        self,
        on_answer: Callable[[int, str], None],
        on_previous: Callable[[], None],
        on_next: Callable[[], None],
        on_submit: Callable[[], None],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.on_answer = on_answer
        self._shown_question_id: int | None = None
        self._choice_buttons: list[QRadioButton] = []
        self._short_answer_input: QLineEdit | None = None
        self._committed_text = ""
        self._choice_group = QButtonGroup(self)
        self._choice_group.setExclusive(True)

        self._build_ui(on_previous, on_next, on_submit)

    def _build_ui(
        self,
        on_previous: Callable[[], None],
        on_next: Callable[[], None],
        on_submit: Callable[[], None],
    ) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        header_row = QHBoxLayout()
        self.title_label = QLabel("", self)
        self.title_label.setStyleSheet(Styles.get_large_label_style())
        header_row.addWidget(self.title_label, stretch=1)
        self.timer_label = QLabel("", self)
        header_row.addWidget(self.timer_label)
        layout.addLayout(header_row)

        self.time_progress = QProgressBar(self)
        self.time_progress.setTextVisible(False)
        layout.addWidget(self.time_progress)

        self.progress_label = QLabel("", self)
        layout.addWidget(self.progress_label)

        self.question_view = QTextBrowser(self)
        self.question_view.setOpenExternalLinks(False)
        layout.addWidget(self.question_view, stretch=1)

        self.answer_container = QVBoxLayout()
        layout.addLayout(self.answer_container)

        self.warning_label = QLabel("", self)
        self.warning_label.setStyleSheet(Styles.get_warning_style())
        layout.addWidget(self.warning_label)

        nav_row = QHBoxLayout()
        self.prev_button = QPushButton(PREV_BUTTON, self)
        self.prev_button.clicked.connect(on_previous)
        nav_row.addWidget(self.prev_button)
        self.next_button = QPushButton(NEXT_BUTTON, self)
        self.next_button.clicked.connect(on_next)
        nav_row.addWidget(self.next_button)
        nav_row.addStretch()
        self.submit_button = QPushButton(SUBMIT_BUTTON, self)
        self.submit_button.setObjectName("primaryButton")
        self.submit_button.clicked.connect(on_submit)
        nav_row.addWidget(self.submit_button)
        layout.addLayout(nav_row)

    def show_snapshot(self, snapshot: AttemptSnapshot) -> None:
        self.title_label.setText(snapshot.package_title or "")
        self.update_countdown(snapshot.remaining_seconds, snapshot.duration_seconds)
        self.progress_label.setText(
            f"Question {snapshot.current_index + 1} of {snapshot.question_count}"
        )
        self.warning_label.setText(snapshot.warning or "")
        self.prev_button.setEnabled(snapshot.current_index > 0)
        self.next_button.setEnabled(snapshot.current_index < snapshot.question_count - 1)

        question = snapshot.current_question
        if question is None:
            return
        if question.id != self._shown_question_id:
            self._show_question(question, snapshot.answers.get(question.id, ""))

    def update_countdown(self, remaining: int, duration: int) -> None:
        self.timer_label.setText(format_remaining(remaining))
        self.timer_label.setStyleSheet(Styles.get_timer_style(remaining <= TIME_WARNING_WINDOW_SECONDS))
        self.time_progress.setRange(0, max(duration, 1))
        self.time_progress.setValue(remaining)

    def commit_pending_answer(self) -> None:
        """Record short-answer text that has not been confirmed with Enter or focus change."""
        if self._short_answer_input is None or self._shown_question_id is None:
            return
        text = self._short_answer_input.text()
        if text == self._committed_text:
            return
        self._committed_text = text
        self.on_answer(self._shown_question_id, text)

    def reset_state(self) -> None:
        self._shown_question_id = None
        self._clear_answer_widgets()
        self.question_view.clear()
        self.warning_label.clear()

    def _show_question(self, question: Question, current_answer: str) -> None:
        self._shown_question_id = question.id
        self._committed_text = current_answer
        self.question_view.setHtml(renderer.render_fragment(question.question_text))
        self._clear_answer_widgets()

        if question.question_type is QuestionType.SHORT_ANSWER:
            line_edit = QLineEdit(current_answer, self)
            line_edit.setPlaceholderText(SHORT_ANSWER_PLACEHOLDER)
            line_edit.editingFinished.connect(self.commit_pending_answer)
            self.answer_container.addWidget(line_edit)
            self._short_answer_input = line_edit
            return

        choices = TRUE_FALSE_CHOICES if question.question_type is QuestionType.TRUE_FALSE else question.options
        selected = current_answer.strip().casefold()
        for choice in choices:
            button = QRadioButton(choice, self)
            button.setChecked(bool(selected) and choice.strip().casefold() == selected)
            button.clicked.connect(lambda _checked=False, qid=question.id, text=choice: self.on_answer(qid, text))
            self._choice_group.addButton(button)
            self.answer_container.addWidget(button)
            self._choice_buttons.append(button)

    def _clear_answer_widgets(self) -> None:
        for button in self._choice_buttons:
            self._choice_group.removeButton(button)
            button.deleteLater()
        self._choice_buttons = []
        if self._short_answer_input is not None:
            self._short_answer_input.deleteLater()
            self._short_answer_input = None
