"""Component with the form a student fills in before an attempt."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFormLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from quiz_taker.constants.ui_constants import (
    COURSE_ID_LABEL,
    MISSING_NAME_MESSAGE,
    PACKAGE_ID_LABEL,
    START_BUTTON,
    STUDENT_KEY_LABEL,
    STUDENT_NAME_LABEL,
)
from quiz_taker.styling.styles import Styles
from quiz_taker.ui.dialog_helpers import show_warning

# on_start(course_id, package_id, student_key, student_name)
StartHandler = Callable[[int | None, int, str, str], None]


class StartPanel(QWidget):
    """Collects the package, course and student details for a new attempt."""

    def __init__(self, student_key: str, on_start: StartHandler, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.on_start = on_start
        self._build_ui(student_key)

    def _build_ui(self, student_key: str) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        title = QLabel(START_BUTTON, self)
        title.setStyleSheet(Styles.get_large_label_style())
        layout.addWidget(title)

        form = QFormLayout()
        self.name_input = QLineEdit(self)
        form.addRow(STUDENT_NAME_LABEL, self.name_input)

        self.package_input = QSpinBox(self)
        self.package_input.setRange(1, 2_000_000_000)
        form.addRow(PACKAGE_ID_LABEL, self.package_input)

        self.course_input = QSpinBox(self)
        self.course_input.setRange(0, 2_000_000_000)
        self.course_input.setSpecialValueText("Any")
        form.addRow(COURSE_ID_LABEL, self.course_input)

        self.key_input = QLineEdit(student_key, self)
        self.key_input.setReadOnly(True)
        form.addRow(STUDENT_KEY_LABEL, self.key_input)
        layout.addLayout(form)

        self.status_label = QLabel("", self)
        self.status_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.status_label)

        self.start_button = QPushButton(START_BUTTON, self)
        self.start_button.setObjectName("primaryButton")
        self.start_button.clicked.connect(self._handle_start_click)
        layout.addWidget(self.start_button)
        layout.addStretch()

    def _handle_start_click(self) -> None:
        name = self.name_input.text().strip()
        if not name:
            show_warning(self, "Missing name", MISSING_NAME_MESSAGE)
            return
        course_id = self.course_input.value() or None
        self.on_start(course_id, self.package_input.value(), self.key_input.text(), name)

    def set_busy(self, message: str | None) -> None:
        self.status_label.setText(message or "")
        self.start_button.setEnabled(message is None)
