"""Network configuration constants for the quiz taker."""

import os

API_BASE_URL: str = os.getenv("QUIZ_API_BASE_URL", "http://localhost:8080/")
REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("QUIZ_API_TIMEOUT", "10"))

DEFAULT_HOST: str = os.getenv("QUIZ_PAGE_HOST", "0.0.0.0")
DEFAULT_PORT: int = int(os.getenv("QUIZ_PAGE_PORT", "8000"))
SESSION_COOKIE_NAME: str = "quiz_taker_session"
