"""Qt UI components for the quiz taker."""

from .dialog_helpers import confirm_submit, show_error, show_info, show_warning
from .qt_tick_scheduler import QtTickScheduler
from .quiz_window import QuizWindow

__all__ = [
    "QuizWindow",
    "QtTickScheduler",
    "confirm_submit",
    "show_error",
    "show_info",
    "show_warning",
]
