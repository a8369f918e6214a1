from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest
import requests

from quiz_taker.core.errors import CollaboratorError
from quiz_taker.core.models import AttemptContext, QuestionType, QuizResult, QuestionResult
from quiz_taker.core.services.eligibility_gate import check_eligibility
from quiz_taker.remote.api_client import QuizApiClient


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.reason = "Reason"

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; routes are keyed by (method, url suffix)."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], FakeResponse] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self.raise_error: Exception | None = None

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.raise_error is not None:
            raise self.raise_error
        for (route_method, suffix), response in self.routes.items():
            if route_method == method and url.endswith(suffix):
                return response
        return FakeResponse(404, {"error": "Not found"})


@pytest.fixture
def fake_session() -> FakeSession:
    session = FakeSession()
    session.routes[("GET", "api/student/quiz-packages/7")] = FakeResponse(
        payload={"id": 7, "course_id": 3, "title": "Geography basics", "description": "", "created_at": "x"}
    )
    session.routes[("GET", "api/student/courses/3")] = FakeResponse(
        payload={"id": 3, "title": "Geography", "description": "", "retry_count": 2, "exam_time": 15}
    )
    return session


@pytest.fixture
def client(fake_session) -> QuizApiClient:
    return QuizApiClient("http://quiz.test/", session=fake_session, token="secret")


@pytest.fixture
def context() -> AttemptContext:
    return AttemptContext(
        attempt_id="abc123",
        course_id=3,
        package_id=7,
        student_key="device-abc",
        student_name="Ada",
        started_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


def test_fetch_package_and_course_map_to_domain(client, fake_session):
    package = client.fetch_package(7)
    course = client.fetch_course(3)

    assert (package.id, package.course_id, package.title) == (7, 3, "Geography basics")
    assert (course.exam_minutes, course.retry_count) == (15, 2)
    method, url, kwargs = fake_session.calls[0]
    assert url == "http://quiz.test/api/student/quiz-packages/7"
    assert kwargs["headers"]["Authorization"] == "Bearer secret"


def test_fetch_questions_decodes_json_encoded_options(client, fake_session):
    fake_session.routes[("GET", "api/student/questions/package/7")] = FakeResponse(
        payload=[
            {
                "id": 1,
                "quiz_package_id": 7,
                "question_text": "Which river flows through Cairo?",
                "question_type": "multiple_choice",
                "options": '["Amazon", "Nile"]',
                "correct_answer": "Nile",
                "points": 3,
            },
            {
                "id": 2,
                "question_text": "The Earth is flat.",
                "question_type": "true_false",
                "options": "",
                "correct_answer": "false",
                "points": 1,
            },
        ]
    )

    questions = client.fetch_questions(7)

    assert questions[0].options == ("Amazon", "Nile")
    assert questions[0].question_type is QuestionType.MULTIPLE_CHOICE
    assert questions[1].options == ()


def test_malformed_question_payload_is_a_collaborator_error(client, fake_session):
    fake_session.routes[("GET", "api/student/questions/package/7")] = FakeResponse(payload={"questions": []})

    with pytest.raises(CollaboratorError):
        client.fetch_questions(7)


def test_check_eligibility_uses_course_retry_count(client, fake_session):
    fake_session.routes[("GET", "api/quiz/check-device")] = FakeResponse(
        payload={
            "already_taken": True,
            "attempt_count": 2,
            "student_name": "Grace",
            "previous_attempt": {"score": 4, "total_points": 10, "percentage": 40, "time_taken": 120},
        }
    )

    record = client.check_eligibility("device-abc", 7)

    assert (record.prior_attempts, record.max_retakes) == (2, 2)
    assert record.known_student_name == "Grace"
    assert record.previous_attempt.time_taken_seconds == 120
    params = fake_session.calls[0][2]["params"]
    assert params == {"quiz_package_id": 7, "device_id": "device-abc"}


def test_check_eligibility_falls_back_to_default_limit(fake_session):
    fake_session.routes[("GET", "api/student/courses/3")] = FakeResponse(
        payload={"id": 3, "title": "Geography", "retry_count": None, "exam_time": 15}
    )
    fake_session.routes[("GET", "api/quiz/check-device")] = FakeResponse(payload={"already_taken": True})
    client = QuizApiClient("http://quiz.test", session=fake_session, default_max_retakes=4)

    record = client.check_eligibility("device-abc", 7)

    assert (record.prior_attempts, record.max_retakes) == (4, 4)


def test_already_taken_without_count_blocks_the_device(client, fake_session):
    fake_session.routes[("GET", "api/quiz/check-device")] = FakeResponse(
        payload={
            "already_taken": True,
            "student_name": "Grace",
            "previous_attempt": {"score": 4, "total_points": 10, "percentage": 40, "time_taken": 120},
        }
    )

    record = client.check_eligibility("device-abc", 7)
    decision = check_eligibility(record)

    assert (record.prior_attempts, record.max_retakes) == (2, 2)
    assert decision.approved is False
    assert decision.previous_attempt.score == 4


def test_device_not_taken_has_no_prior_attempts(client, fake_session):
    fake_session.routes[("GET", "api/quiz/check-device")] = FakeResponse(payload={"already_taken": False})

    record = client.check_eligibility("device-abc", 7)

    assert record.prior_attempts == 0
    assert check_eligibility(record).approved is True


def test_transport_failure_is_a_collaborator_error(client, fake_session):
    fake_session.raise_error = requests.ConnectionError("refused")

    with pytest.raises(CollaboratorError):
        client.fetch_package(7)


def test_error_status_uses_server_message(client):
    with pytest.raises(CollaboratorError, match="Not found"):
        client.fetch_course(42)


def test_finalize_attempt_posts_scored_result(client, fake_session, context):
    fake_session.routes[("POST", "api/quiz/submit")] = FakeResponse(
        201, {"message": "Quiz submitted successfully", "attempt_id": 55, "score": 3, "percentage": 100}
    )
    result = QuizResult(
        score=3,
        total_points=3,
        percentage=100,
        correct=1,
        incorrect=0,
        elapsed_seconds=30,
        details=(QuestionResult(1, "Nile", "Nile", True, 3, 3),),
    )

    receipt = client.finalize_attempt(context, result)

    assert receipt.accepted is True
    assert receipt.remote_attempt_id == 55
    body = fake_session.calls[-1][2]["json"]
    assert body["device_id"] == "device-abc"
    assert body["time_taken"] == 30
    assert body["answers"] == [{"question_id": 1, "user_answer": "Nile", "is_correct": True, "points_earned": 3}]


def test_finalize_attempt_forbidden_is_a_rejection(client, fake_session, context):
    fake_session.routes[("POST", "api/quiz/submit")] = FakeResponse(
        403, {"error": "Maximum attempts reached", "message": "No more attempts allowed"}
    )

    receipt = client.finalize_attempt(context, QuizResult(0, 0, 0, 0, 0, 0))

    assert receipt.accepted is False
    assert receipt.reason == "No more attempts allowed"


def test_open_attempt_starts_server_attempt(client, fake_session, context):
    fake_session.routes[("POST", "api/student/quiz/start")] = FakeResponse(
        201, {"attempt": {"id": 501, "status": "in_progress"}, "questions": [], "exam_time": 15}
    )

    remote_id = client.open_attempt(context)

    assert remote_id == 501
    method, url, kwargs = fake_session.calls[-1]
    assert (method, url) == ("POST", "http://quiz.test/api/student/quiz/start")
    assert kwargs["json"] == {"course_id": 3, "quiz_package_id": 7}


def test_open_attempt_without_token_stays_local(fake_session, context):
    client = QuizApiClient("http://quiz.test", session=fake_session)

    assert client.open_attempt(context) is None
    assert fake_session.calls == []


def test_open_attempt_refused_raises(client, fake_session, context):
    fake_session.routes[("POST", "api/student/quiz/start")] = FakeResponse(
        403, {"error": "Maximum retry count reached"}
    )

    with pytest.raises(CollaboratorError, match="Maximum retry count reached"):
        client.open_attempt(context)


def test_submit_answer_posts_server_attempt_payload(client, fake_session, context):
    fake_session.routes[("POST", "api/student/quiz/answer")] = FakeResponse(200, {"message": "Answer submitted"})

    client.submit_answer(replace(context, remote_attempt_id=501), 1, "Nile")

    method, url, kwargs = fake_session.calls[-1]
    assert url == "http://quiz.test/api/student/quiz/answer"
    assert kwargs["json"] == {"attempt_id": 501, "question_id": 1, "student_answer": "Nile"}


@pytest.mark.parametrize("remote_id, text", [(None, "Nile"), (501, "   ")], ids=["no-server-attempt", "blank"])
def test_submit_answer_skips_unforwardable_answers(client, fake_session, context, remote_id, text):
    client.submit_answer(replace(context, remote_attempt_id=remote_id), 1, text)

    assert fake_session.calls == []


def test_submit_answer_failure_raises(client, fake_session, context):
    fake_session.routes[("POST", "api/student/quiz/answer")] = FakeResponse(500, text="boom")

    with pytest.raises(CollaboratorError):
        client.submit_answer(replace(context, remote_attempt_id=501), 1, "Nile")


def test_login_stores_token(fake_session):
    fake_session.routes[("POST", "api/auth/student/login")] = FakeResponse(
        payload={"token": "jwt", "user": {"id": 1, "email": "ada@example.com", "name": "Ada", "role": "student"}}
    )
    client = QuizApiClient("http://quiz.test", session=fake_session)

    login = client.login("ada@example.com", "pw")

    assert login.user.name == "Ada"
    assert client.token == "jwt"
