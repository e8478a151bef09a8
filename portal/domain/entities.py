from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Course:
    id: str
    title: str
    description: str = ""
    category: str = ""
    difficulty: str = ""
    price: float = 0
    thumbnail_url: str | None = None
    enrollments: int = 0
    rating: float = 0
    created_at: datetime | None = None

    @property
    def created(self) -> datetime:
        # без даты курс считается самым старым
        if self.created_at is None:
            return _EPOCH
        if self.created_at.tzinfo is None:
            return self.created_at.replace(tzinfo=timezone.utc)
        return self.created_at

    @property
    def category_label(self) -> str:
        return self.category.replace("-", " ")


@dataclass(frozen=True)
class Attachment:
    filename: str
    url: str
    type: str = "application/octet-stream"
    original_name: str = ""
    size: int = 0
    is_downloadable: bool = False

    @property
    def is_video(self) -> bool:
        return self.type.startswith("video/")

    @property
    def is_pdf(self) -> bool:
        return self.type == "application/pdf"


@dataclass(frozen=True)
class Resource:
    title: str
    url: str
    description: str = ""


@dataclass
class QuizQuestion:
    question_text: str
    options: list[str]
    correct_answer: int = 0
    type: str = "mcq"
    explanation: str = ""
    points: int = 1


@dataclass
class Quiz:
    id: str | None
    title: str = ""
    description: str = ""
    time_limit: int = 10
    passing_score: int = 70
    max_attempts: int = 3
    shuffle_questions: bool = False
    show_results: bool = True
    questions: list[QuizQuestion] = field(default_factory=list)

    @property
    def has_questions(self) -> bool:
        return len(self.questions) > 0


@dataclass(frozen=True)
class QuizAttempt:
    id: str | None
    passed: bool = False
    score: float | None = None


@dataclass
class Lesson:
    id: str
    title: str
    content: str = ""
    order: int = 0
    duration: int = 0
    course_id: str | None = None
    attachments: list[Attachment] = field(default_factory=list)
    quiz_ref: str | None = None  # quiz пришёл строкой-идентификатором
    quiz: Quiz | None = None     # quiz пришёл объектом
    video_embed_url: str | None = None
    resources: list[Resource] = field(default_factory=list)

    @property
    def quiz_id(self) -> str | None:
        if self.quiz_ref:
            return self.quiz_ref
        return self.quiz.id if self.quiz else None
