import asyncio

import structlog

from ...domain.catalog import (
    ALL_CATEGORIES, ALL_LEVELS, CATEGORIES, DEFAULT_SORT, LEVELS, SORT_OPTIONS, browse,
)
from ...domain.entities import Course
from ...infrastructure.backend import BackendClient, BackendError
from ...infrastructure.payloads import CoursePayload, parse_list
from ...infrastructure.urls import UrlRegistry
from ..dto import CatalogPage, CourseCard, EnrollResult
from ..notifications import View

logger = structlog.get_logger()


def course_path(course_id: str) -> str:
    return f"/course/{course_id}"


class CourseCatalog(View):
    def __init__(self, backend: BackendClient, urls: UrlRegistry, token: str | None = None):
        super().__init__()
        self.backend = backend
        self.urls = urls
        self.token = token
        self.courses: list[Course] = []
        self.enrolled_ids: set[str] = set()

    async def load(self):
        # список курсов и записи пользователя грузятся независимо
        await asyncio.gather(self.load_courses(), self.load_enrollments())

    async def load_courses(self):
        try:
            data = await self.backend.get(self.urls.api("courses.list"))
            courses = parse_list(CoursePayload, data)
        except BackendError as e:
            logger.error("courses_fetch_failed", kind=e.kind, status_code=e.status_code, error=str(e))
            self.notifier.error("Failed to load courses.")
            return
        if self.mounted:
            self.courses = courses

    async def load_enrollments(self):
        if not self.token:
            return
        try:
            data = await self.backend.get(self.urls.api("enrollments.my_courses"), token=self.token)
            enrolled = parse_list(CoursePayload, data)
        except BackendError as e:
            logger.error("enrollments_fetch_failed", kind=e.kind, status_code=e.status_code, error=str(e))
            self.notifier.error("Failed to load your enrollments.")
            return
        if self.mounted:
            self.enrolled_ids = {course.id for course in enrolled}

    async def enroll(self, course_id: str) -> EnrollResult:
        if course_id in self.enrolled_ids:
            # уже записан: кнопка "Enrolled" просто ведёт на курс
            return EnrollResult(course_id=course_id, enrolled=True,
                                navigate_to=course_path(course_id),
                                notifications=list(self.notifier.items))
        try:
            await self.backend.post(self.urls.api("enrollments.enroll", course_id=course_id),
                                    {}, token=self.token)
        except BackendError as e:
            logger.error("enroll_failed", course_id=course_id, kind=e.kind, error=str(e))
            if e.kind == "logical":
                self.notifier.error(e.message or "Enrollment failed")
            else:
                self.notifier.error("Something went wrong while enrolling")
            return EnrollResult(course_id=course_id, enrolled=False,
                                notifications=list(self.notifier.items))

        logger.info("enrolled", course_id=course_id)
        self.notifier.success("Enrollment successful!")
        if self.mounted:
            self.enrolled_ids = self.enrolled_ids | {course_id}
        return EnrollResult(course_id=course_id, enrolled=True,
                            navigate_to=course_path(course_id),
                            notifications=list(self.notifier.items))

    def card(self, course: Course) -> CourseCard:
        return CourseCard(
            id=course.id,
            title=course.title,
            description=course.description,
            category_label=course.category_label,
            difficulty=course.difficulty,
            price=course.price,
            thumbnail_url=self.urls.thumbnail_url(course.thumbnail_url),
            enrolled=course.id in self.enrolled_ids,
        )

    def snapshot(self, search: str = "", category: str = ALL_CATEGORIES, level: str = ALL_LEVELS,
                 sort: str = DEFAULT_SORT, view_mode: str = "grid") -> CatalogPage:
        visible = browse(self.courses, search, category, level, sort)
        return CatalogPage(
            courses=[self.card(c) for c in visible],
            total=len(self.courses),
            search=search,
            category=category,
            level=level,
            sort=sort,
            view_mode=view_mode,
            categories=list(CATEGORIES),
            levels=list(LEVELS),
            sort_options=dict(SORT_OPTIONS),
            empty=not visible,
            notifications=list(self.notifier.items),
        )
