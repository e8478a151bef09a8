import asyncio
from urllib.parse import quote

import structlog

from ...config import settings
from ...domain.entities import Attachment, Lesson, Quiz, QuizAttempt
from ...domain.progression import (
    QUIZ_REQUIRED_WARNING, mark_done_disabled, next_lesson_disabled, quiz_hint, quiz_passed,
)
from ...infrastructure.backend import BackendClient, BackendError
from ...infrastructure.payloads import LessonPayload, QuizAttemptPayload, QuizPayload, parse_optional
from ...infrastructure.urls import UrlRegistry
from ..dto import AttachmentView, LessonPage, NavigationResult
from ..notifications import View

logger = structlog.get_logger()

LESSON_LOAD_ERROR = "Failed to load lesson"

PDF_PREVIEW = "preview"
PDF_DOWNLOAD = "download"


def lesson_path(lesson_id: str) -> str:
    return f"/lesson/{lesson_id}"


def duration_label(seconds: int) -> str:
    if not seconds:
        return "N/A"
    return f"{seconds // 60}m {seconds % 60}s"


def size_label(size: int) -> str:
    return f"{size / 1024 / 1024:.2f} MB"


def attachments_heading(count: int) -> str | None:
    if count == 0:
        return None
    return f"Attachments ({count} file{'s' if count != 1 else ''})"


class LessonViewer(View):
    """Просмотр урока.

    Цепочка загрузки: урок -> (квиз -> последняя попытка) || прогресс.
    Ветка квиза и ветка прогресса независимы: ошибка квиза не мешает прогрессу.
    """

    def __init__(self, backend: BackendClient, urls: UrlRegistry, lesson_id: str,
                 token: str | None = None, pdf_viewer_url: str | None = None):
        super().__init__()
        self.backend = backend
        self.urls = urls
        self.lesson_id = lesson_id
        self.token = token
        self.pdf_viewer_url = pdf_viewer_url or settings.PDF_VIEWER_URL

        self.lesson: Lesson | None = None
        self.quiz: Quiz | None = None
        self.attempt: QuizAttempt | None = None
        self.done = False
        self.loading = True
        self.attempt_loading = True
        self.error = ""
        self.pdf_modes: dict[str, str] = {}

    # --- загрузка

    async def load(self):
        await self.fetch_lesson()
        if self.lesson is None:
            return
        await asyncio.gather(self.resolve_quiz(), self.fetch_progress())

    async def fetch_lesson(self):
        try:
            data = await self.backend.get(self.urls.api("lessons.detail", id=self.lesson_id))
            lesson = parse_optional(LessonPayload, data)
        except BackendError as e:
            logger.error("lesson_fetch_failed", lesson_id=self.lesson_id, kind=e.kind,
                         status_code=e.status_code, error=str(e))
            self.notifier.error("Failed to load lesson.")
            lesson = None
        if not self.mounted:
            return
        self.loading = False
        self.lesson = lesson
        if lesson is None:
            self.error = LESSON_LOAD_ERROR

    async def resolve_quiz(self):
        lesson = self.lesson
        quiz = None
        if lesson.quiz_ref:
            try:
                data = await self.backend.get(self.urls.api("quizzes.detail", id=lesson.quiz_ref))
                quiz = parse_optional(QuizPayload, data)
            except BackendError as e:
                logger.error("quiz_fetch_failed", quiz_id=lesson.quiz_ref, kind=e.kind, error=str(e))
                self.notifier.error("Failed to load quiz.")
        elif lesson.quiz is not None:
            quiz = lesson.quiz

        if quiz is not None and not quiz.has_questions:
            quiz = None
        if not self.mounted:
            return
        self.quiz = quiz
        if quiz is None:
            self.attempt_loading = False
            return
        await self.fetch_attempt()

    async def fetch_attempt(self):
        self.attempt_loading = True
        attempt = None
        try:
            data = await self.backend.get(
                self.urls.api("quiz_attempts.latest", lesson_id=self.lesson.id), token=self.token
            )
            attempt = parse_optional(QuizAttemptPayload, data)
        except BackendError as e:
            # любая ошибка трактуется как "попыток ещё не было", без уведомления
            if e.is_not_found:
                logger.info("quiz_attempt_absent", lesson_id=self.lesson.id)
            else:
                logger.warning("quiz_attempt_fetch_failed", lesson_id=self.lesson.id,
                               kind=e.kind, status_code=e.status_code, error=str(e))
        if not self.mounted:
            return
        self.attempt = attempt
        self.attempt_loading = False

    async def fetch_progress(self):
        if not self.token:
            return
        try:
            data = await self.backend.get(
                self.urls.api("progress.lesson", lesson_id=self.lesson.id), token=self.token
            )
            done = bool(data.get("completed")) if isinstance(data, dict) else False
        except BackendError as e:
            logger.error("progress_fetch_failed", lesson_id=self.lesson.id, kind=e.kind, error=str(e))
            self.notifier.error("Failed to fetch progress.")
            done = False
        if self.mounted:
            self.done = done

    # --- правила продвижения

    @property
    def can_mark_done(self) -> bool:
        return not mark_done_disabled(self.quiz, self.attempt, self.attempt_loading, self.done)

    @property
    def can_go_next(self) -> bool:
        return not next_lesson_disabled(self.quiz, self.attempt, self.attempt_loading)

    # --- действия

    async def mark_done(self) -> NavigationResult:
        if self.lesson is None:
            return NavigationResult(notifications=list(self.notifier.items))
        if not self.can_mark_done:
            if not self.done:
                self.notifier.warning(QUIZ_REQUIRED_WARNING)
            return NavigationResult(done=self.done, notifications=list(self.notifier.items))
        try:
            await self.backend.post(self.urls.api("progress.mark_done"),
                                    {"lessonId": self.lesson.id}, token=self.token)
        except BackendError as e:
            logger.error("mark_done_failed", lesson_id=self.lesson.id, kind=e.kind, error=str(e))
            self.notifier.error("Failed to mark lesson as done.")
            return NavigationResult(done=self.done, notifications=list(self.notifier.items))
        if self.mounted:
            self.done = True
        logger.info("lesson_marked_done", lesson_id=self.lesson.id)
        return NavigationResult(done=True, notifications=list(self.notifier.items))

    async def next_lesson(self) -> NavigationResult:
        # без загруженного урока неизвестно, есть ли квиз: переход закрыт
        if self.lesson is None:
            return NavigationResult(done=self.done, notifications=list(self.notifier.items))
        if self.quiz is not None and not quiz_passed(self.attempt):
            self.notifier.warning(QUIZ_REQUIRED_WARNING)
            return NavigationResult(done=self.done, notifications=list(self.notifier.items))
        return await self._navigate("lessons.next", "next")

    async def previous_lesson(self) -> NavigationResult:
        return await self._navigate("lessons.prev", "previous")

    async def _navigate(self, endpoint: str, direction: str) -> NavigationResult:
        try:
            data = await self.backend.get(self.urls.api(endpoint, id=self.lesson_id))
            neighbour = parse_optional(LessonPayload, data)
        except BackendError as e:
            logger.error("lesson_navigation_failed", lesson_id=self.lesson_id,
                         direction=direction, kind=e.kind, error=str(e))
            self.notifier.error(f"Failed to fetch {direction} lesson.")
            return NavigationResult(done=self.done, notifications=list(self.notifier.items))
        target = neighbour.id if neighbour is not None else None
        if not target:
            self.notifier.warning(f"No {direction} lesson available.")
            return NavigationResult(done=self.done, notifications=list(self.notifier.items))
        return NavigationResult(navigate_to=lesson_path(target), done=self.done,
                                notifications=list(self.notifier.items))

    # --- вложения

    def set_pdf_mode(self, filename: str, mode: str):
        if mode not in (PDF_PREVIEW, PDF_DOWNLOAD):
            raise ValueError(f"Unknown PDF mode: {mode}")
        self.pdf_modes[filename] = mode

    def pdf_viewer_failed(self, filename: str):
        # встроенный просмотрщик не загрузился -> только скачивание
        self.pdf_modes[filename] = PDF_DOWNLOAD

    def viewer_url(self, file_url: str) -> str:
        return f"{self.pdf_viewer_url}?file={quote(file_url, safe='')}"

    def attachment_view(self, attachment: Attachment) -> AttachmentView:
        url = self.urls.upload_url(attachment.url)
        view = AttachmentView(
            filename=attachment.filename,
            original_name=attachment.original_name,
            type=attachment.type,
            kind="file",
            url=url,
            size_label=size_label(attachment.size),
            download_url=url if attachment.is_downloadable else None,
        )
        if attachment.is_video:
            view.kind = "video"
        elif attachment.is_pdf:
            view.kind = "pdf"
            view.pdf_mode = self.pdf_modes.get(attachment.filename, PDF_PREVIEW)
            if view.pdf_mode == PDF_PREVIEW:
                view.viewer_url = self.viewer_url(url)
            else:
                view.download_url = url
        return view

    # --- снимок

    def snapshot(self) -> LessonPage:
        notifications = list(self.notifier.items)
        if self.loading:
            return LessonPage(lesson_id=self.lesson_id, status="loading", notifications=notifications)
        if self.error or self.lesson is None:
            return LessonPage(lesson_id=self.lesson_id, status="error",
                              error=self.error or LESSON_LOAD_ERROR, notifications=notifications)
        lesson = self.lesson
        return LessonPage(
            lesson_id=lesson.id,
            status="ready",
            title=lesson.title,
            content=lesson.content,
            attachments_heading=attachments_heading(len(lesson.attachments)),
            attachments=[self.attachment_view(a) for a in lesson.attachments],
            video_embed_url=lesson.video_embed_url,
            resources=list(lesson.resources),
            quiz=self.quiz,
            attempt=self.attempt,
            attempt_loading=self.attempt_loading,
            done=self.done,
            duration_label=duration_label(lesson.duration),
            can_mark_done=self.can_mark_done,
            can_go_next=self.can_go_next,
            quiz_hint=quiz_hint(self.quiz, self.attempt, self.attempt_loading),
            notifications=notifications,
        )
