from __future__ import annotations

from dataclasses import dataclass, field

from ..domain.entities import Lesson, Quiz, QuizAttempt, Resource
from .notifications import Notification


@dataclass
class CourseCard:
    id: str
    title: str
    description: str
    category_label: str
    difficulty: str
    price: float
    thumbnail_url: str
    enrolled: bool


@dataclass
class CatalogPage:
    courses: list[CourseCard]
    total: int
    search: str
    category: str
    level: str
    sort: str
    view_mode: str
    categories: list[str]
    levels: list[str]
    sort_options: dict[str, str]
    empty: bool
    notifications: list[Notification] = field(default_factory=list)


@dataclass
class EnrollResult:
    course_id: str
    enrolled: bool
    navigate_to: str | None = None
    notifications: list[Notification] = field(default_factory=list)


@dataclass
class AttachmentView:
    filename: str
    original_name: str
    type: str
    kind: str  # video | pdf | file
    url: str
    size_label: str
    download_url: str | None = None
    pdf_mode: str | None = None  # preview | download
    viewer_url: str | None = None


@dataclass
class LessonPage:
    lesson_id: str
    status: str  # loading | error | ready
    error: str | None = None
    title: str = ""
    content: str = ""
    attachments_heading: str | None = None
    attachments: list[AttachmentView] = field(default_factory=list)
    video_embed_url: str | None = None
    resources: list[Resource] = field(default_factory=list)
    quiz: Quiz | None = None
    attempt: QuizAttempt | None = None
    attempt_loading: bool = False
    done: bool = False
    duration_label: str = "N/A"
    can_mark_done: bool = False
    can_go_next: bool = False
    quiz_hint: str | None = None
    notifications: list[Notification] = field(default_factory=list)


@dataclass
class NavigationResult:
    navigate_to: str | None = None
    done: bool = False
    notifications: list[Notification] = field(default_factory=list)


@dataclass
class LessonForm:
    title: str = ""
    content: str = ""
    order: int = 1
    duration: int = 10


@dataclass
class CourseOption:
    id: str
    title: str


@dataclass
class LessonBoard:
    courses: list[CourseOption]
    selected_course_id: str | None
    lessons: list[Lesson]
    form: LessonForm
    editing_lesson_id: str | None
    quiz_enabled: bool
    is_downloadable: bool
    quiz_draft: Quiz
    loading_courses: bool
    loading_lessons: bool
    is_submitting: bool
    quiz_edit_paths: dict[str, str] = field(default_factory=dict)  # lesson_id -> путь редактора квиза
    notifications: list[Notification] = field(default_factory=list)
