"""Wire schemas for the quiz-management REST API."""

from __future__ import annotations

from datetime import datetime
import json

from pydantic import BaseModel, ConfigDict, field_validator

from quiz_taker.core.models import (
    AttemptContext,
    CourseInfo,
    PackageInfo,
    PreviousAttempt,
    Question,
    QuestionType,
    QuizResult,
)


class _ServerModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class UserDTO(_ServerModel):
    id: int
    email: str
    name: str
    role: str = "student"


class LoginRequest(_ServerModel):
    email: str
    password: str


class LoginResponse(_ServerModel):
    token: str
    user: UserDTO


class CourseDTO(_ServerModel):
    id: int
    title: str
    description: str = ""
    retry_count: int | None = None
    exam_time: int

    def to_course_info(self) -> CourseInfo:
        return CourseInfo(
            id=self.id,
            title=self.title,
            exam_minutes=self.exam_time,
            retry_count=self.retry_count,
        )


class QuizPackageDTO(_ServerModel):
    id: int
    course_id: int
    title: str
    description: str = ""

    def to_package_info(self) -> PackageInfo:
        return PackageInfo(id=self.id, title=self.title, course_id=self.course_id)


class QuestionDTO(_ServerModel):
    id: int
    quiz_package_id: int | None = None
    question_text: str
    question_type: QuestionType
    options: list[str] | None = None
    correct_answer: str
    points: int

    @field_validator("options", mode="before")
    @classmethod
    def _decode_options(cls, value: object) -> object:
        # The server stores options as a JSON-encoded string column.
        if isinstance(value, str):
            if not value.strip():
                return []
            try:
                decoded = json.loads(value)
            except ValueError:
                return []
            return decoded if isinstance(decoded, list) else []
        return value

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            question_text=self.question_text,
            question_type=self.question_type,
            correct_answer=self.correct_answer,
            points=self.points,
            options=tuple(str(option) for option in self.options or ()),
        )


class PreviousAttemptDTO(_ServerModel):
    score: int = 0
    total_points: int = 0
    percentage: float = 0.0
    time_taken: int = 0
    total_questions: int = 0
    completed_at: datetime | None = None

    def to_previous_attempt(self) -> PreviousAttempt:
        return PreviousAttempt(
            score=self.score,
            total_points=self.total_points,
            percentage=self.percentage,
            time_taken_seconds=self.time_taken,
            total_questions=self.total_questions,
            completed_at=self.completed_at,
        )


class DeviceEligibilityDTO(_ServerModel):
    already_taken: bool = False
    attempt_count: int | None = None
    student_name: str = ""
    previous_attempt: PreviousAttemptDTO | None = None

    def prior_attempts(self, max_retakes: int) -> int:
        if self.attempt_count is not None:
            return max(self.attempt_count, 1 if self.already_taken else 0)
        # A bare flag carries no count; the device is treated as out of attempts.
        return max_retakes if self.already_taken else 0


class StartQuizRequest(_ServerModel):
    course_id: int
    quiz_package_id: int


class RemoteAttemptDTO(_ServerModel):
    id: int


class StartQuizResponse(_ServerModel):
    attempt: RemoteAttemptDTO


class AnswerSubmission(_ServerModel):
    attempt_id: int
    question_id: int
    student_answer: str


class SubmittedAnswer(_ServerModel):
    question_id: int
    user_answer: str
    is_correct: bool
    points_earned: int


class QuizSubmission(_ServerModel):
    student_name: str
    course_id: int
    quiz_package_id: int
    device_id: str
    score: int
    total_points: int
    time_taken: int
    answers: list[SubmittedAnswer]

    @classmethod
    def from_result(cls, context: AttemptContext, result: QuizResult) -> QuizSubmission:
        return cls(
            student_name=context.student_name,
            course_id=context.course_id,
            quiz_package_id=context.package_id,
            device_id=context.student_key,
            score=result.score,
            total_points=result.total_points,
            time_taken=result.elapsed_seconds,
            answers=[
                SubmittedAnswer(
                    question_id=detail.question_id,
                    user_answer=detail.submitted_answer,
                    is_correct=detail.is_correct,
                    points_earned=detail.points_earned,
                )
                for detail in result.details
            ],
        )


class SubmissionResponse(_ServerModel):
    message: str = ""
    attempt_id: int | None = None
    score: int | None = None
    percentage: float | None = None


class ErrorResponse(_ServerModel):
    error: str = ""
    message: str | None = None

    def describe(self) -> str:
        return self.message or self.error or "Unknown server error"
