"""Application entry point for QuizTaker."""

from __future__ import annotations

from functools import partial
import socket
import sys

from PySide6.QtWidgets import QApplication

from quiz_taker.constants.about import APP_NAME
from quiz_taker.constants.network_constants import API_BASE_URL, DEFAULT_HOST, DEFAULT_PORT
from quiz_taker.core.device_key import generate_device_key
from quiz_taker.core.quiz_attempt import QuizAttempt
from quiz_taker.core.quiz_session import QuizSession
from quiz_taker.remote.api_client import QuizApiClient
from quiz_taker.server.api_server import SessionRegistry, start_api_server
from quiz_taker.ui.qt_tick_scheduler import QtTickScheduler
from quiz_taker.ui.quiz_window import QuizWindow
from quiz_taker.utils.logging_config import configure_logging


def _determine_student_url(port: int) -> str:
    """Best-effort determination of the local IP for the browser quiz page."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def main() -> None:
    """Initialize logging, start the quiz page server, and launch the Qt UI."""
    logger = configure_logging()
    logger.info("Starting %s against %s", APP_NAME, API_BASE_URL)

    client = QuizApiClient(API_BASE_URL)
    browser_attempts = partial(QuizAttempt, client, client, client)
    registry = SessionRegistry(lambda: QuizSession(browser_attempts))
    start_api_server(registry, host=DEFAULT_HOST, port=DEFAULT_PORT)
    logger.info("Browser quiz page available at %s", _determine_student_url(DEFAULT_PORT))

    app = QApplication(sys.argv)
    window_attempts = partial(QuizAttempt, client, client, client, scheduler_factory=QtTickScheduler)
    window = QuizWindow(session=QuizSession(window_attempts), student_key=generate_device_key())
    window.show()
    exit_code = app.exec()
    registry.close_all()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
