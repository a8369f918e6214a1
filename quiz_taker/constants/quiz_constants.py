"""Quiz-related constants shared across UI and core layers."""

SECONDS_PER_MINUTE: int = 60
TICK_INTERVAL_SECONDS: float = 1.0
DEFAULT_MAX_RETAKES: int = 3
TIME_WARNING_WINDOW_SECONDS: int = 60
DEFAULT_STUDENT_NAME: str = "Student"
