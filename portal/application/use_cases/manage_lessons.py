import asyncio
import json
from dataclasses import replace

import structlog

from ...domain.entities import Course, Lesson, Quiz
from ...domain.quizzes import default_quiz_draft, empty_quiz_draft, quiz_payload, validate_quiz
from ...infrastructure.backend import BackendClient, BackendError
from ...infrastructure.payloads import CoursePayload, LessonPayload, QuizPayload, parse_list, parse_optional
from ...infrastructure.urls import UrlRegistry
from ..dto import CourseOption, LessonBoard, LessonForm
from ..notifications import View

logger = structlog.get_logger()

# (имя файла, содержимое, MIME тип)
UploadedFile = tuple[str, bytes, str]


def edit_quiz_path(quiz_id: str) -> str:
    return f"/edit-quiz/{quiz_id}"


def next_order(lessons: list[Lesson]) -> int:
    return max(lesson.order for lesson in lessons) + 1 if lessons else 1


class LessonManager(View):
    """Авторский экран преподавателя: CRUD уроков и вложенных квизов."""

    def __init__(self, backend: BackendClient, urls: UrlRegistry, token: str | None = None):
        super().__init__()
        self.backend = backend
        self.urls = urls
        self.token = token

        self.courses: list[Course] = []
        self.selected_course_id: str | None = None
        self.lessons: list[Lesson] = []
        self.form = LessonForm()
        self.quiz_enabled = False
        self.is_downloadable = False
        self.quiz_draft: Quiz = default_quiz_draft()
        self.editing_lesson: Lesson | None = None
        self.loading_courses = False
        self.loading_lessons = False
        self.is_submitting = False

    # --- загрузка

    async def mount(self, course_id: str | None = None):
        if course_id:
            await asyncio.gather(self.load_courses(), self.select_course(course_id))
        else:
            await self.load_courses()

    async def load_courses(self):
        self.loading_courses = True
        try:
            data = await self.backend.get(self.urls.api("courses.my_courses"), token=self.token)
            courses = parse_list(CoursePayload, data)
            if self.mounted:
                self.courses = courses
        except BackendError as e:
            logger.error("instructor_courses_fetch_failed", kind=e.kind, error=str(e))
            self.notifier.error("Failed to load your courses")
        finally:
            self.loading_courses = False

    async def select_course(self, course_id: str):
        self.selected_course_id = course_id
        await self.fetch_lessons(course_id)

    async def fetch_lessons(self, course_id: str):
        self.loading_lessons = True
        try:
            data = await self.backend.get(
                self.urls.api("lessons.course_lessons", course_id=course_id), token=self.token
            )
            lessons = parse_list(LessonPayload, data)
            hydrated = await asyncio.gather(*(self._hydrate(lesson) for lesson in lessons))
        except BackendError as e:
            logger.error("course_lessons_fetch_failed", course_id=course_id, kind=e.kind, error=str(e))
            self.notifier.error("Failed to load lessons for the selected course")
            return
        finally:
            self.loading_lessons = False
        if not self.mounted:
            return
        self.lessons = list(hydrated)
        self.form.order = next_order(self.lessons)

    async def _hydrate(self, lesson: Lesson) -> Lesson:
        if not lesson.quiz_ref:
            return lesson
        return replace(lesson, quiz=await self.fetch_quiz(lesson.quiz_ref), quiz_ref=None)

    async def fetch_quiz(self, quiz_id: str) -> Quiz | None:
        try:
            data = await self.backend.get(self.urls.api("quizzes.detail", id=quiz_id), token=self.token)
            return parse_optional(QuizPayload, data)
        except BackendError as e:
            logger.warning("quiz_fetch_failed", quiz_id=quiz_id, kind=e.kind, error=str(e))
            return None

    # --- создание / редактирование

    async def _upload(self, files: list[UploadedFile]) -> list[dict]:
        if not files:
            return []
        uploaded = await self.backend.upload(self.urls.api("lessons.upload"), files, token=self.token)
        return list(uploaded or [])

    def _lesson_fields(self, uploaded: list[dict]) -> dict:
        attachments = [{**info, "is_downloadable": self.is_downloadable} for info in uploaded]
        return {
            "title": self.form.title,
            "content": self.form.content,
            "order": self.form.order,
            "duration": self.form.duration,
            "course_id": self.selected_course_id,
            "attachments": json.dumps(attachments),
        }

    def _reset_form(self):
        self.form = LessonForm(order=self.form.order + 1)

    async def add_lesson(self, files: list[UploadedFile] | None = None) -> bool:
        """Создать урок (и квиз, если включён).

        Неполный квиз -> QuizValidationError до любого сетевого запроса.
        """
        files = files or []
        if not self.selected_course_id:
            self.notifier.error("Please select a course first")
            return False
        if not self.form.title.strip() or not self.form.content.strip():
            self.notifier.error("Please fill in all required fields")
            return False
        if self.quiz_enabled:
            validate_quiz(self.quiz_draft)

        self.is_submitting = True
        try:
            uploaded = await self._upload(files)
            created = await self.backend.send_form(
                "POST", self.urls.api("lessons.create"), self._lesson_fields(uploaded), token=self.token
            )
            created_lesson = parse_optional(LessonPayload, created)
            lesson_id = created_lesson.id if created_lesson is not None else ""
            if self.quiz_enabled:
                await self.backend.post(self.urls.api("quizzes.create"),
                                        quiz_payload(self.quiz_draft, lesson_id), token=self.token)
        except BackendError as e:
            logger.error("lesson_create_failed", course_id=self.selected_course_id,
                         kind=e.kind, error=str(e))
            self.notifier.error(e.message or "Error adding lesson")
            return False
        finally:
            self.is_submitting = False

        logger.info("lesson_created", course_id=self.selected_course_id, lesson_id=lesson_id,
                    with_quiz=self.quiz_enabled, attachments=len(uploaded))
        self._reset_form()
        self.quiz_enabled = False
        self.quiz_draft = empty_quiz_draft()
        await self.fetch_lessons(self.selected_course_id)
        self.notifier.success("Lesson added successfully!")
        return True

    def start_editing(self, lesson_id: str) -> Lesson:
        lesson = next((l for l in self.lessons if l.id == lesson_id), None)
        if lesson is None:
            raise KeyError(lesson_id)
        self.editing_lesson = lesson
        self.form = LessonForm(title=lesson.title, content=lesson.content,
                               order=lesson.order, duration=lesson.duration)
        return lesson

    def cancel_editing(self):
        self.editing_lesson = None
        self._reset_form()

    async def update_lesson(self, files: list[UploadedFile] | None = None) -> bool:
        if self.editing_lesson is None:
            return False
        lesson_id = self.editing_lesson.id
        self.is_submitting = True
        try:
            uploaded = await self._upload(files or [])
            await self.backend.send_form(
                "PUT", self.urls.api("lessons.update", id=lesson_id), self._lesson_fields(uploaded),
                token=self.token, extra_headers={"X-Auth-Token": self.token} if self.token else None,
            )
        except BackendError as e:
            logger.error("lesson_update_failed", lesson_id=lesson_id, kind=e.kind, error=str(e))
            self.notifier.error(e.message or "Error updating lesson")
            return False
        finally:
            self.is_submitting = False

        logger.info("lesson_updated", lesson_id=lesson_id)
        self.editing_lesson = None
        self._reset_form()
        await self.fetch_lessons(self.selected_course_id)
        self.notifier.success("Lesson updated successfully!")
        return True

    # --- удаление

    async def delete_lesson(self, lesson_id: str) -> bool:
        try:
            await self.backend.delete(self.urls.api("lessons.delete", id=lesson_id), token=self.token)
        except BackendError as e:
            logger.error("lesson_delete_failed", lesson_id=lesson_id, kind=e.kind, error=str(e))
            self.notifier.error("Error deleting lesson")
            return False
        logger.info("lesson_deleted", lesson_id=lesson_id)
        if self.selected_course_id:
            await self.fetch_lessons(self.selected_course_id)
        self.notifier.success("Lesson deleted successfully!")
        return True

    async def delete_quiz(self, lesson_id: str, quiz_id: str) -> bool:
        try:
            await self.backend.delete(self.urls.api("quizzes.delete", id=quiz_id), token=self.token)
        except BackendError as e:
            logger.error("quiz_delete_failed", quiz_id=quiz_id, kind=e.kind, error=str(e))
            self.notifier.error("Failed to delete quiz")
            return False
        # только локально: список уроков заново не запрашивается
        if self.mounted:
            self.lessons = [
                replace(lesson, quiz=None, quiz_ref=None) if lesson.id == lesson_id else lesson
                for lesson in self.lessons
            ]
        logger.info("quiz_deleted", lesson_id=lesson_id, quiz_id=quiz_id)
        self.notifier.success("Quiz deleted successfully")
        return True

    # --- снимок

    def snapshot(self) -> LessonBoard:
        return LessonBoard(
            courses=[CourseOption(id=c.id, title=c.title) for c in self.courses],
            selected_course_id=self.selected_course_id,
            lessons=list(self.lessons),
            form=replace(self.form),
            editing_lesson_id=self.editing_lesson.id if self.editing_lesson else None,
            quiz_enabled=self.quiz_enabled,
            is_downloadable=self.is_downloadable,
            quiz_draft=self.quiz_draft,
            loading_courses=self.loading_courses,
            loading_lessons=self.loading_lessons,
            is_submitting=self.is_submitting,
            quiz_edit_paths={
                lesson.id: edit_quiz_path(lesson.quiz_id) for lesson in self.lessons if lesson.quiz_id
            },
            notifications=list(self.notifier.items),
        )
