"""Static metadata describing the quiz taker."""

APP_NAME = "QuizTaker"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizTaker runs timed quiz attempts against a remote quiz-management server. "
    "Answers are scored locally and the result is sent back to the server once the "
    "attempt is submitted or the time runs out."
)
