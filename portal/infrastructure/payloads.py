from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.entities import Attachment, Course, Lesson, Quiz, QuizAttempt, QuizQuestion, Resource
from .backend import BackendError

# backend отдаёт документы Mongo: идентификатор в "_id", иногда в "id"
DOC_ID = AliasChoices("_id", "id")


def _str_id(value: Any) -> str | None:
    return str(value) if value is not None else None


class Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CoursePayload(Payload):
    id: str | int | None = Field(None, validation_alias=DOC_ID)
    title: str | None = None
    description: str | None = None
    category: str | None = None
    difficulty: str | None = None
    price: float | None = None
    thumbnail_url: str | None = None
    enrollments: int | None = None
    rating: float | None = None
    created_at: datetime | None = Field(None, validation_alias=AliasChoices("createdAt", "created_at"))

    @field_validator("created_at", mode="before")
    @classmethod
    def drop_bad_timestamp(cls, value):
        # неразборчивая дата сортируется как самая старая
        if isinstance(value, str):
            try:
                datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
        return value

    def to_domain(self) -> Course:
        return Course(
            id=_str_id(self.id) or "",
            title=self.title or "",
            description=self.description or "",
            category=self.category or "",
            difficulty=self.difficulty or "",
            price=self.price or 0,
            thumbnail_url=self.thumbnail_url,
            enrollments=self.enrollments or 0,
            rating=self.rating or 0,
            created_at=self.created_at,
        )


class AttachmentPayload(Payload):
    filename: str = ""
    url: str = ""
    type: str | None = None
    original_name: str | None = None
    size: int | None = None
    is_downloadable: bool = False

    def to_domain(self) -> Attachment:
        return Attachment(
            filename=self.filename,
            url=self.url,
            type=self.type or "application/octet-stream",
            original_name=self.original_name or self.filename,
            size=self.size or 0,
            is_downloadable=self.is_downloadable,
        )


class ResourcePayload(Payload):
    title: str = ""
    url: str = ""
    description: str | None = None

    def to_domain(self) -> Resource:
        return Resource(title=self.title, url=self.url, description=self.description or "")


class QuizQuestionPayload(Payload):
    question_text: str = ""
    options: list[Any] = []
    correct_answer: int | None = None
    type: str | None = None
    explanation: str | None = None
    points: int | None = None

    @field_validator("options", mode="before")
    @classmethod
    def null_options(cls, value):
        return [] if value is None else value

    def to_domain(self) -> QuizQuestion:
        return QuizQuestion(
            question_text=self.question_text,
            options=[str(opt) for opt in self.options],
            correct_answer=self.correct_answer or 0,
            type=self.type or "mcq",
            explanation=self.explanation or "",
            points=self.points if self.points is not None else 1,
        )


class QuizPayload(Payload):
    id: str | int | None = Field(None, validation_alias=DOC_ID)
    title: str | None = None
    description: str | None = None
    time_limit: int | None = None
    passing_score: int | None = None
    max_attempts: int | None = None
    shuffle_questions: bool = False
    show_results: bool = True
    questions: list[QuizQuestionPayload] = []

    @field_validator("questions", mode="before")
    @classmethod
    def null_questions(cls, value):
        return [] if value is None else value

    def to_domain(self) -> Quiz:
        return Quiz(
            id=_str_id(self.id),
            title=self.title or "",
            description=self.description or "",
            time_limit=self.time_limit if self.time_limit is not None else 10,
            passing_score=self.passing_score if self.passing_score is not None else 70,
            max_attempts=self.max_attempts if self.max_attempts is not None else 3,
            shuffle_questions=self.shuffle_questions,
            show_results=self.show_results,
            questions=[q.to_domain() for q in self.questions],
        )


class QuizAttemptPayload(Payload):
    id: str | int | None = Field(None, validation_alias=DOC_ID)
    passed: bool = False
    score: float | None = None

    def to_domain(self) -> QuizAttempt:
        return QuizAttempt(id=_str_id(self.id), passed=self.passed, score=self.score)


class LessonPayload(Payload):
    id: str | int | None = Field(None, validation_alias=DOC_ID)
    title: str | None = None
    content: str | None = None
    order: int | None = None
    duration: int | None = None
    course_id: str | int | None = None
    course: str | int | dict | None = None
    attachments: list[AttachmentPayload] = []
    # quiz приходит либо строкой-идентификатором, либо объектом
    quiz: str | QuizPayload | None = None
    video_embed_url: str | None = None
    resources: list[ResourcePayload] = []

    @field_validator("attachments", "resources", mode="before")
    @classmethod
    def null_lists(cls, value):
        # backend присылает null вместо пустых списков
        return [] if value is None else value

    def to_domain(self) -> Lesson:
        course = self.course_id if self.course_id is not None else self.course
        if isinstance(course, dict):
            course = course.get("_id", course.get("id"))
        quiz_ref = self.quiz if isinstance(self.quiz, str) and self.quiz else None
        quiz = self.quiz.to_domain() if isinstance(self.quiz, QuizPayload) else None
        return Lesson(
            id=_str_id(self.id) or "",
            title=self.title or "",
            content=self.content or "",
            order=self.order or 0,
            duration=self.duration or 0,
            course_id=_str_id(course),
            attachments=[a.to_domain() for a in self.attachments],
            quiz_ref=quiz_ref,
            quiz=quiz,
            video_embed_url=self.video_embed_url or None,
            resources=[r.to_domain() for r in self.resources],
        )


def parse_payload(model: type[Payload], raw: Any):
    """Разобрать объект из data; неожиданная форма -> BackendError(logical)."""
    try:
        return model.model_validate(raw).to_domain()
    except ValidationError as e:
        raise BackendError(kind="logical") from e


def parse_optional(model: type[Payload], raw: Any):
    # пустой data ({} или null) означает, что объекта нет
    if not isinstance(raw, dict) or not raw:
        return None
    return parse_payload(model, raw)


def parse_list(model: type[Payload], raw: Any) -> list:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise BackendError(kind="logical")
    return [parse_payload(model, item) for item in raw]
