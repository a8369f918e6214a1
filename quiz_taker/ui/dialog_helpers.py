"""Helper functions for common dialog patterns in the quiz window."""

from __future__ import annotations

from PySide6.QtGui import QFont
from PySide6.QtWidgets import QMessageBox, QWidget

from quiz_taker.constants.ui_constants import CONFIRM_SUBMIT_TEMPLATE, UNANSWERED_SUFFIX_TEMPLATE


def _apply_optional_font(widget: QWidget, font_point_size: int | None) -> None:
    """Apply font size to a widget when requested."""
    if font_point_size is None or font_point_size <= 0:
        return

    font: QFont = widget.font()
    font.setPointSize(font_point_size)
    widget.setFont(font)


def confirm_submit(parent: QWidget, unanswered_count: int) -> bool:
    """Ask the student to confirm submission of the attempt.

    Args:
        parent: Parent widget for the dialog
        unanswered_count: Number of questions without an answer

    Returns:
        True if the student confirmed, False otherwise
    """
    suffix = UNANSWERED_SUFFIX_TEMPLATE.format(count=unanswered_count) if unanswered_count else ""
    reply = QMessageBox.question(
        parent,
        "Confirm Submit",
        CONFIRM_SUBMIT_TEMPLATE.format(unanswered=suffix),
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def show_error(parent: QWidget, title: str, message: str) -> None:
    """Show error dialog."""
    QMessageBox.critical(parent, title, message)


def show_info(
    parent: QWidget,
    title: str,
    message: str,
    *,
    font_point_size: int | None = None,
) -> None:
    """Show information dialog.

    Args:
        parent: Parent widget for the dialog
        title: Dialog title
        message: Information message
        font_point_size: Optional font size for the dialog text
    """
    msg_box = QMessageBox(parent)
    msg_box.setIcon(QMessageBox.Information)
    msg_box.setWindowTitle(title)
    msg_box.setText(message)
    msg_box.setStandardButtons(QMessageBox.Ok)
    _apply_optional_font(msg_box, font_point_size)
    msg_box.exec()


def show_warning(parent: QWidget, title: str, message: str) -> None:
    """Show warning dialog."""
    QMessageBox.warning(parent, title, message)
