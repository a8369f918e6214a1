"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "QuizTaker"
TICK_INTERVAL_MS: int = 1000

START_BUTTON: str = "Start Quiz"
PREV_BUTTON: str = "Previous"
NEXT_BUTTON: str = "Next"
SUBMIT_BUTTON: str = "Submit Quiz"
NEW_ATTEMPT_BUTTON: str = "Back to Start"

PACKAGE_ID_LABEL: str = "Quiz package ID"
COURSE_ID_LABEL: str = "Course ID (optional)"
STUDENT_NAME_LABEL: str = "Your name"
STUDENT_KEY_LABEL: str = "Device key"
SHORT_ANSWER_PLACEHOLDER: str = "Type your answer"

LOADING_MESSAGE: str = "Loading quiz…"
SUBMITTING_MESSAGE: str = "Submitting…"
CONFIRM_SUBMIT_TEMPLATE: str = (
    "Are you sure you want to submit your quiz? You cannot change your answers after submission."
    "{unanswered}"
)
UNANSWERED_SUFFIX_TEMPLATE: str = "\n\n{count} question(s) are still unanswered."
TIME_UP_MESSAGE: str = "Time is up! Your quiz has been submitted."
BLOCKED_TITLE: str = "Not eligible"
ERROR_TITLE: str = "Something went wrong"
MISSING_NAME_MESSAGE: str = "Please enter your name."
