from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings, settings as default_settings

# Логическое имя -> шаблон пути на backend
ENDPOINTS: dict[str, str] = {
    # auth
    "auth.login": "/api/auth/login",
    "auth.register": "/api/auth/register",
    "auth.change_password": "/api/auth/change-password",
    # users
    "users.list": "/api/users",
    "users.profile": "/api/users/profile",
    "users.upload_avatar": "/api/users/upload-avatar",
    "users.detail": "/api/users/{id}",
    "users.update": "/api/users/{id}",
    "users.delete": "/api/users/{id}",
    # courses
    "courses.list": "/api/courses",
    "courses.my_courses": "/api/courses/my",
    "courses.create": "/api/courses",
    "courses.update": "/api/courses/{id}",
    "courses.delete": "/api/courses/{id}",
    "courses.detail": "/api/courses/{id}",
    "courses.enroll": "/api/enrollments/enroll/{course_id}",
    # enrollments
    "enrollments.my_courses": "/api/enrollments/my-courses",
    "enrollments.enroll": "/api/enrollments/enroll/{course_id}",
    "enrollments.status": "/api/enrollments/status/{course_id}",
    "enrollments.progress": "/api/enrollments/progress/{course_id}",
    "enrollments.complete_lesson": "/api/enrollments/complete",
    # quiz attempts
    "quiz_attempts.latest": "/api/quiz-attempts/{lesson_id}/latest",
    "quiz_attempts.create": "/api/quiz-attempts",
    "quiz_attempts.submit": "/api/quiz-attempts/{attempt_id}/submit",
    # progress
    "progress.lesson": "/api/progress/lesson/{lesson_id}",
    "progress.mark_done": "/api/progress/mark-done",
    "progress.course": "/api/progress/course/{course_id}",
    # lessons
    "lessons.list": "/api/lessons",
    "lessons.upload": "/api/lessons/upload",
    "lessons.course_lessons": "/api/lessons/course/{course_id}",
    "lessons.create": "/api/lessons",
    "lessons.update": "/api/lessons/{id}",
    "lessons.delete": "/api/lessons/{id}",
    "lessons.detail": "/api/lessons/{id}",
    "lessons.next": "/api/lessons/{id}/next",
    "lessons.prev": "/api/lessons/{id}/prev",
    # quizzes
    "quizzes.list": "/api/quizzes",
    "quizzes.create": "/api/quizzes",
    "quizzes.update": "/api/quizzes/{id}",
    "quizzes.delete": "/api/quizzes/{id}",
    "quizzes.detail": "/api/quizzes/{id}",
    "quizzes.course_quizzes": "/api/quizzes/course/{course_id}",
    # analytics
    "analytics.progress": "/api/analytics/progress/{course_id}",
    "analytics.hours": "/api/analytics/hours",
    # notifications
    "notifications.list": "/api/notifications",
    "notifications.create": "/api/notifications",
    "notifications.delete": "/api/notifications/{id}",
    # affiliations
    "affiliations.list": "/api/affiliations",
    "affiliations.create": "/api/affiliations",
    "affiliations.update": "/api/affiliations/{id}",
    "affiliations.delete": "/api/affiliations/{id}",
    "affiliations.detail": "/api/affiliations/{id}",
    # franchise
    "franchise.list": "/api/franchise",
    "franchise.create": "/api/franchise",
    "franchise.update": "/api/franchise/{id}",
    "franchise.delete": "/api/franchise/{id}",
    "franchise.detail": "/api/franchise/{id}",
    # contact
    "contact.send": "/api/contact",
}


@dataclass(frozen=True)
class UrlRegistry:
    backend_url: str
    production: bool = False
    s3_bucket: str | None = None
    s3_region: str = "ap-south-1"

    @classmethod
    def from_settings(cls, s: Settings) -> "UrlRegistry":
        return cls(
            backend_url=s.BACKEND_URL.rstrip("/"),
            production=s.is_production,
            s3_bucket=s.S3_BUCKET_NAME or None,
            s3_region=s.S3_REGION or "ap-south-1",
        )

    @property
    def uses_object_storage(self) -> bool:
        return self.production and bool(self.s3_bucket)

    def build_url(self, endpoint: str) -> str:
        return f"{self.backend_url}{endpoint}"

    def api(self, name: str, **params) -> str:
        """Абсолютный URL эндпоинта по логическому имени.

        Неизвестное имя -> KeyError, не хватает параметра пути -> KeyError.
        """
        template = ENDPOINTS[name]
        return self.build_url(template.format(**params))

    def file_url(self, path: str | None) -> str:
        if not path:
            return ""
        if path.startswith("http"):
            return path
        if self.uses_object_storage:
            return f"https://{self.s3_bucket}.s3.{self.s3_region}.amazonaws.com{path}"
        return self.build_url(path)

    def logo_url(self, filename: str) -> str:
        return self.file_url(f"/logo/{filename}")

    def thumbnail_url(self, path: str | None) -> str:
        return self.file_url(path)

    def upload_url(self, path: str | None) -> str:
        return self.file_url(path)

    def describe(self) -> dict:
        return {
            "backend_url": self.backend_url,
            "production": self.production,
            "object_storage": self.uses_object_storage,
        }


def get_registry() -> UrlRegistry:
    return UrlRegistry.from_settings(default_settings)
