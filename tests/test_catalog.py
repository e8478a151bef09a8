from portal.application.use_cases.browse_catalog import CourseCatalog
from portal.domain.catalog import (
    ALL_CATEGORIES, ALL_LEVELS, CATEGORIES, browse, filter_courses, sort_courses, to_slug,
)
from portal.infrastructure.payloads import CoursePayload, parse_list

RAW_COURSES = [
    {"_id": "c1", "title": "React Basics", "description": "Components and hooks",
     "category": "web-development", "difficulty": "Beginner", "price": 20,
     "enrollments": 50, "rating": 4.1, "createdAt": "2024-03-01T10:00:00Z",
     "thumbnail_url": "/thumbs/react.png"},
    {"_id": "c2", "title": "Pandas in Depth", "description": "Data wrangling with Python",
     "category": "data-science", "difficulty": "Intermediate", "price": 45,
     "enrollments": 120, "rating": 4.8, "createdAt": "2024-05-10T10:00:00Z"},
    {"_id": "c3", "title": "Brand Strategy", "description": "Marketing for startups",
     "category": "marketing", "difficulty": "Advanced", "price": 30,
     "enrollments": 120, "rating": 3.9, "createdAt": "2023-12-24T10:00:00Z"},
    {"_id": "c4", "title": "Figma Workshop", "description": "UI design with REACT-like thinking",
     "category": "design", "difficulty": "beginner", "price": 10,
     "createdAt": "2024-01-15T10:00:00Z"},
]


def courses():
    return parse_list(CoursePayload, RAW_COURSES)


def ids(items):
    return [c.id for c in items]


def test_to_slug():
    """Тест нормализации категории"""
    assert to_slug("Web Development") == "web-development"
    assert to_slug("Data   Science") == "data-science"
    assert to_slug("Design") == "design"


def test_category_filter_matches_slug_only():
    """Тест: фильтр по категории оставляет только курсы с совпадающим slug"""
    for label in CATEGORIES[1:]:
        result = filter_courses(courses(), category=label)
        assert all(c.category == to_slug(label) for c in result)
    assert ids(filter_courses(courses(), category="Data Science")) == ["c2"]


def test_all_categories_returns_everything():
    """Тест: "All Categories" не фильтрует"""
    assert ids(filter_courses(courses(), category=ALL_CATEGORIES)) == ["c1", "c2", "c3", "c4"]


def test_search_is_case_insensitive_on_title_or_description():
    """Тест поиска по названию и описанию без учёта регистра"""
    assert ids(filter_courses(courses(), search="react")) == ["c1", "c4"]
    assert ids(filter_courses(courses(), search="PYTHON")) == ["c2"]


def test_level_filter_case_insensitive():
    """Тест фильтра по уровню"""
    assert ids(filter_courses(courses(), level="Beginner")) == ["c1", "c4"]
    assert ids(filter_courses(courses(), level=ALL_LEVELS)) == ["c1", "c2", "c3", "c4"]


def test_combined_filters():
    """Тест совместной работы фильтров"""
    assert ids(filter_courses(courses(), search="react", category="Design", level="Beginner")) == ["c4"]
    assert filter_courses(courses(), search="react", category="Marketing") == []


def test_sort_newest():
    """Тест сортировки по дате создания"""
    assert ids(sort_courses(courses(), "newest")) == ["c2", "c1", "c4", "c3"]


def test_sort_popular_is_stable_and_treats_missing_as_zero():
    """Тест: популярность, равные значения сохраняют порядок"""
    assert ids(sort_courses(courses(), "popular")) == ["c2", "c3", "c1", "c4"]


def test_sort_rating():
    """Тест сортировки по рейтингу"""
    assert ids(sort_courses(courses(), "rating")) == ["c2", "c1", "c3", "c4"]


def test_price_low_reversed_equals_price_high():
    """Тест: price-low в обратном порядке совпадает с price-high (без равных цен)"""
    low = sort_courses(courses(), "price-low")
    high = sort_courses(courses(), "price-high")
    assert ids(low) == ["c4", "c1", "c3", "c2"]
    assert ids(list(reversed(low))) == ids(high)


def test_unknown_sort_keeps_input_order():
    """Тест: неизвестный режим сортировки не меняет порядок"""
    assert ids(sort_courses(courses(), "alphabetical")) == ["c1", "c2", "c3", "c4"]


def test_browse_does_not_mutate_source():
    """Тест: фильтрация пересчитывается от полного списка"""
    source = courses()
    browse(source, category="Marketing", sort_by="price-high")
    assert ids(source) == ["c1", "c2", "c3", "c4"]


def test_catalog_load_and_snapshot(lms, backend, urls, run):
    """Тест загрузки каталога и отметки записанных курсов"""
    lms.ok("GET", "/api/courses", RAW_COURSES)
    lms.ok("GET", "/api/enrollments/my-courses", [{"_id": "c2"}])
    catalog = CourseCatalog(backend, urls, token="tok")
    run(catalog.load())

    page = catalog.snapshot(sort="price-low")
    assert [c.id for c in page.courses] == ["c4", "c1", "c3", "c2"]
    assert [c.enrolled for c in page.courses] == [False, False, False, True]
    assert page.courses[1].thumbnail_url == "http://lms.test/thumbs/react.png"
    assert page.courses[1].category_label == "web development"
    assert page.notifications == []
    assert page.empty is False


def test_catalog_enrollment_failure_does_not_block(lms, backend, urls, run):
    """Тест: ошибка загрузки записей не мешает показу каталога"""
    lms.ok("GET", "/api/courses", RAW_COURSES)
    lms.http_error("GET", "/api/enrollments/my-courses", status=500)
    catalog = CourseCatalog(backend, urls, token="tok")
    run(catalog.load())

    page = catalog.snapshot()
    assert len(page.courses) == 4
    assert catalog.notifier.messages("error") == ["Failed to load your enrollments."]


def test_catalog_courses_failure(lms, backend, urls, run):
    """Тест: ошибка загрузки курсов -> уведомление и пустое состояние"""
    lms.down("GET", "/api/courses")
    catalog = CourseCatalog(backend, urls)
    run(catalog.load())

    page = catalog.snapshot()
    assert page.empty is True
    assert catalog.notifier.messages("error") == ["Failed to load courses."]
    # без токена записи не запрашиваются
    assert lms.requested() == ["GET /api/courses"]


def test_enroll_success(lms, backend, urls, run):
    """Тест успешной записи на курс"""
    lms.ok("POST", "/api/enrollments/enroll/c1", {"course": "c1"})
    catalog = CourseCatalog(backend, urls, token="tok")
    result = run(catalog.enroll("c1"))

    assert result.enrolled is True
    assert result.navigate_to == "/course/c1"
    assert "c1" in catalog.enrolled_ids
    assert catalog.notifier.messages("success") == ["Enrollment successful!"]


def test_enroll_logical_failure_uses_backend_message(lms, backend, urls, run):
    """Тест: success=false -> сообщение backend или запасной текст"""
    lms.fail("POST", "/api/enrollments/enroll/c1", message="Course is full")
    lms.fail("POST", "/api/enrollments/enroll/c2")
    catalog = CourseCatalog(backend, urls, token="tok")
    first = run(catalog.enroll("c1"))
    run(catalog.enroll("c2"))

    assert first.enrolled is False
    assert first.navigate_to is None
    assert catalog.notifier.messages("error") == ["Course is full", "Enrollment failed"]
    assert catalog.enrolled_ids == set()


def test_enroll_transport_failure(lms, backend, urls, run):
    """Тест: сетевая ошибка при записи"""
    lms.down("POST", "/api/enrollments/enroll/c1")
    catalog = CourseCatalog(backend, urls, token="tok")
    run(catalog.enroll("c1"))
    assert catalog.notifier.messages("error") == ["Something went wrong while enrolling"]


def test_enroll_when_already_enrolled_is_idempotent(lms, backend, urls, run):
    """Тест: повторная запись не шлёт запрос и оставляет состояние Enrolled"""
    lms.ok("GET", "/api/courses", RAW_COURSES)
    lms.ok("GET", "/api/enrollments/my-courses", [{"_id": "c1"}])
    catalog = CourseCatalog(backend, urls, token="tok")
    run(catalog.load())
    result = run(catalog.enroll("c1"))

    assert result.enrolled is True
    assert result.navigate_to == "/course/c1"
    assert lms.requested("POST") == []
    card = next(c for c in catalog.snapshot().courses if c.id == "c1")
    assert card.enrolled is True


def test_closed_catalog_ignores_late_results(lms, backend, urls, run):
    """Тест: после close() результаты загрузки не применяются"""
    lms.ok("GET", "/api/courses", RAW_COURSES)
    catalog = CourseCatalog(backend, urls)
    catalog.close()
    run(catalog.load())
    assert catalog.courses == []


def test_catalog_endpoint(client, lms):
    """Тест HTTP эндпоинта каталога"""
    lms.ok("GET", "/api/courses", RAW_COURSES)
    lms.ok("GET", "/api/enrollments/my-courses", [])
    response = client.get("/courses", params={"category": "Web Development", "view": "list"},
                          headers={"Authorization": "Bearer tok"})
    assert response.status_code == 200
    data = response.json()
    assert [c["id"] for c in data["courses"]] == ["c1"]
    assert data["view_mode"] == "list"
    assert data["total"] == 4
    assert data["sort"] == "popular"


def test_catalog_endpoint_rejects_unknown_view(client, lms):
    """Тест валидации режима отображения"""
    response = client.get("/courses", params={"view": "table"})
    assert response.status_code == 422


def test_enroll_endpoint_requires_token(client, lms):
    """Тест: запись без токена -> 401"""
    response = client.post("/courses/c1/enroll")
    assert response.status_code == 401


def test_enroll_endpoint(client, lms):
    """Тест HTTP эндпоинта записи, токен из cookie"""
    lms.ok("GET", "/api/enrollments/my-courses", [])
    lms.ok("POST", "/api/enrollments/enroll/c3", None)
    response = client.post("/courses/c3/enroll", headers={"Cookie": "token=cookie-token"})
    assert response.status_code == 200
    data = response.json()
    assert data["navigate_to"] == "/course/c3"
    assert data["notifications"] == [{"level": "success", "message": "Enrollment successful!"}]
    enroll_call = lms.calls[-1]
    assert enroll_call.headers["authorization"] == "Bearer cookie-token"
