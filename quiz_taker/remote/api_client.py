"""HTTP collaborator backed by the quiz-management REST API.

One client plays all three roles the attempt engine needs: question
repository, eligibility provider and attempt persistence. Transport and
decoding problems surface as ``CollaboratorError``.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
import requests

from quiz_taker.constants.network_constants import API_BASE_URL, REQUEST_TIMEOUT_SECONDS
from quiz_taker.constants.quiz_constants import DEFAULT_MAX_RETAKES
from quiz_taker.core.errors import CollaboratorError
from quiz_taker.core.models import (
    AttemptContext,
    CourseInfo,
    EligibilityRecord,
    FinalizationReceipt,
    PackageInfo,
    Question,
    QuizResult,
)
from quiz_taker.remote.schemas import (
    AnswerSubmission,
    CourseDTO,
    DeviceEligibilityDTO,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    QuestionDTO,
    QuizPackageDTO,
    QuizSubmission,
    StartQuizRequest,
    StartQuizResponse,
    SubmissionResponse,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class QuizApiClient:
    """Talks to the student endpoints of the quiz server."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        *,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        token: str | None = None,
        default_max_retakes: int = DEFAULT_MAX_RETAKES,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._token = token
        self._default_max_retakes = default_max_retakes
        self._packages: dict[int, PackageInfo] = {}
        self._courses: dict[int, CourseInfo] = {}

    @property
    def token(self) -> str | None:
        return self._token

    # --- Authentication ---

    def login(self, email: str, password: str) -> LoginResponse:
        payload = LoginRequest(email=email, password=password)
        response = self._request("POST", "api/auth/student/login", json=payload.model_dump())
        login = self._parse(LoginResponse, self._json_or_raise(response))
        self._token = login.token
        logger.info("Logged in as %s", login.user.email)
        return login

    # --- QuestionRepository ---

    def fetch_package(self, package_id: int) -> PackageInfo:
        response = self._request("GET", f"api/student/quiz-packages/{package_id}")
        package = self._parse(QuizPackageDTO, self._json_or_raise(response)).to_package_info()
        self._packages[package.id] = package
        return package

    def fetch_course(self, course_id: int) -> CourseInfo:
        response = self._request("GET", f"api/student/courses/{course_id}")
        course = self._parse(CourseDTO, self._json_or_raise(response)).to_course_info()
        self._courses[course.id] = course
        return course

    def fetch_questions(self, package_id: int) -> list[Question]:
        response = self._request("GET", f"api/student/questions/package/{package_id}")
        payload = self._json_or_raise(response)
        if not isinstance(payload, list):
            raise CollaboratorError("Expected a list of questions from the server.")
        try:
            return [self._parse(QuestionDTO, item).to_question() for item in payload]
        except ValueError as exc:
            raise CollaboratorError(f"Malformed question data: {exc}") from exc

    # --- EligibilityProvider ---

    def check_eligibility(self, student_key: str, package_id: int) -> EligibilityRecord:
        response = self._request(
            "GET",
            "api/quiz/check-device",
            params={"quiz_package_id": package_id, "device_id": student_key},
        )
        device = self._parse(DeviceEligibilityDTO, self._json_or_raise(response))
        previous = device.previous_attempt.to_previous_attempt() if device.previous_attempt else None
        max_retakes = self._max_retakes_for(package_id)
        return EligibilityRecord(
            prior_attempts=device.prior_attempts(max_retakes),
            max_retakes=max_retakes,
            previous_attempt=previous,
            known_student_name=device.student_name or None,
        )

    # --- AttemptPersistence ---

    def open_attempt(self, context: AttemptContext) -> int | None:
        if not self._token:
            logger.debug("Not logged in; answers for %s are kept locally", context.attempt_id)
            return None
        payload = StartQuizRequest(course_id=context.course_id, quiz_package_id=context.package_id)
        response = self._request("POST", "api/student/quiz/start", json=payload.model_dump())
        started = self._parse(StartQuizResponse, self._json_or_raise(response))
        return started.attempt.id

    def submit_answer(self, context: AttemptContext, question_id: int, text: str) -> None:
        if context.remote_attempt_id is None:
            return
        if not text.strip():
            # The server rejects an empty student_answer.
            logger.debug("Blank answer for question %s not forwarded", question_id)
            return
        payload = AnswerSubmission(
            attempt_id=context.remote_attempt_id,
            question_id=question_id,
            student_answer=text,
        )
        response = self._request("POST", "api/student/quiz/answer", json=payload.model_dump())
        if not response.ok:
            raise CollaboratorError(
                f"Answer for question {question_id} rejected ({response.status_code}): "
                f"{self._describe_error(response)}"
            )

    def finalize_attempt(self, context: AttemptContext, result: QuizResult) -> FinalizationReceipt:
        payload = QuizSubmission.from_result(context, result)
        response = self._request("POST", "api/quiz/submit", json=payload.model_dump(mode="json"))
        if response.status_code == 403:
            return FinalizationReceipt(accepted=False, reason=self._describe_error(response))
        submission = self._parse(SubmissionResponse, self._json_or_raise(response))
        return FinalizationReceipt(accepted=True, remote_attempt_id=submission.attempt_id)

    # --- Internals ---

    def _max_retakes_for(self, package_id: int) -> int:
        package = self._packages.get(package_id) or self.fetch_package(package_id)
        course = self._courses.get(package.course_id) or self.fetch_course(package.course_id)
        if course.retry_count is not None and course.retry_count >= 1:
            return course.retry_count
        return self._default_max_retakes

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = kwargs.pop("headers", {})
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            return self._session.request(method, url, headers=headers, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise CollaboratorError(f"{method} {url} failed: {exc}") from exc

    def _json_or_raise(self, response: requests.Response) -> Any:
        if not response.ok:
            raise CollaboratorError(
                f"Server responded {response.status_code}: {self._describe_error(response)}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise CollaboratorError("Server returned invalid JSON.") from exc

    @staticmethod
    def _describe_error(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or response.reason or "no details"
        if isinstance(payload, dict):
            try:
                return ErrorResponse.model_validate(payload).describe()
            except ValidationError:
                pass
        return str(payload)

    @staticmethod
    def _parse(model: type[ModelT], payload: Any) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise CollaboratorError(f"Unexpected {model.__name__} payload: {exc}") from exc
