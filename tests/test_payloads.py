from datetime import datetime, timezone

import pytest

from portal.infrastructure.backend import BackendError
from portal.infrastructure.payloads import (
    CoursePayload, LessonPayload, QuizAttemptPayload, parse_list, parse_optional, parse_payload,
)


def test_document_id_from_underscore_or_plain_id():
    """Тест: идентификатор берётся из _id или id"""
    assert parse_payload(CoursePayload, {"_id": "c1", "title": "A"}).id == "c1"
    assert parse_payload(CoursePayload, {"id": 7, "title": "B"}).id == "7"


def test_course_defaults_and_timestamp():
    """Тест: пропущенные числа -> 0, дата createdAt разбирается"""
    course = parse_payload(CoursePayload, {"_id": "c1", "price": None, "createdAt": "2024-05-10T10:00:00Z"})
    assert course.price == 0
    assert course.enrollments == 0
    assert course.created == datetime(2024, 5, 10, 10, tzinfo=timezone.utc)


def test_bad_timestamp_sorts_as_oldest():
    """Тест: неразборчивая дата -> эпоха"""
    course = parse_payload(CoursePayload, {"_id": "c1", "createdAt": "yesterday"})
    assert course.created == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_lesson_quiz_as_id_or_object():
    """Тест: quiz строкой -> ссылка, объектом -> квиз"""
    by_ref = parse_payload(LessonPayload, {"_id": "l1", "quiz": "q1"})
    assert by_ref.quiz_ref == "q1"
    assert by_ref.quiz is None

    inline = parse_payload(LessonPayload, {"_id": "l1", "quiz": {
        "_id": "q2", "questions": [{"question_text": "?", "options": [1, 2]}]}})
    assert inline.quiz_ref is None
    assert inline.quiz.id == "q2"
    assert inline.quiz.passing_score == 70
    assert inline.quiz.questions[0].options == ["1", "2"]
    assert inline.quiz_id == "q2"


def test_lesson_null_lists_and_nested_course():
    """Тест: null вместо списков и курс вложенным объектом"""
    lesson = parse_payload(LessonPayload, {"_id": "l1", "attachments": None, "resources": None,
                                           "course": {"_id": "c9", "title": "X"}})
    assert lesson.attachments == []
    assert lesson.resources == []
    assert lesson.course_id == "c9"


def test_attachment_defaults():
    """Тест значений вложения по умолчанию"""
    lesson = parse_payload(LessonPayload, {"_id": "l1", "attachments": [{"filename": "a.bin", "url": "/a"}]})
    attachment = lesson.attachments[0]
    assert attachment.type == "application/octet-stream"
    assert attachment.original_name == "a.bin"
    assert attachment.is_downloadable is False


def test_empty_data_is_absent():
    """Тест: пустой data -> объекта нет"""
    assert parse_optional(QuizAttemptPayload, None) is None
    assert parse_optional(QuizAttemptPayload, {}) is None
    assert parse_optional(QuizAttemptPayload, {"_id": "a1", "passed": True}).passed is True
    assert parse_list(CoursePayload, None) == []


def test_unexpected_shape_is_logical_error():
    """Тест: неожиданная форма ответа -> BackendError(logical)"""
    with pytest.raises(BackendError) as exc:
        parse_payload(LessonPayload, {"_id": "l1", "attachments": "oops"})
    assert exc.value.kind == "logical"
    with pytest.raises(BackendError):
        parse_list(CoursePayload, {"not": "a list"})
