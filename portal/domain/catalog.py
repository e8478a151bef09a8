import re

from .entities import Course

ALL_CATEGORIES = "All Categories"
ALL_LEVELS = "All Levels"

CATEGORIES = [
    ALL_CATEGORIES,
    "Web Development",
    "Data Science",
    "Design",
    "Marketing",
    "Technology",
    "Business",
]

LEVELS = [ALL_LEVELS, "Beginner", "Intermediate", "Advanced"]

SORT_OPTIONS = {
    "newest": "Newest",
    "popular": "Most Popular",
    "rating": "Highest Rated",
    "price-low": "Price: Low to High",
    "price-high": "Price: High to Low",
}

DEFAULT_SORT = "popular"

_WHITESPACE = re.compile(r"\s+")


def to_slug(text: str) -> str:
    return _WHITESPACE.sub("-", text.lower())


def matches(course: Course, search: str = "", category: str = ALL_CATEGORIES,
            level: str = ALL_LEVELS) -> bool:
    needle = search.lower()
    matches_search = needle in course.title.lower() or needle in course.description.lower()
    matches_category = category == ALL_CATEGORIES or course.category == to_slug(category)
    matches_level = level == ALL_LEVELS or course.difficulty.lower() == level.lower()
    return matches_search and matches_category and matches_level


def filter_courses(courses: list[Course], search: str = "", category: str = ALL_CATEGORIES,
                   level: str = ALL_LEVELS) -> list[Course]:
    return [c for c in courses if matches(c, search, category, level)]


# sorted() стабилен: при равенстве ключей сохраняется исходный порядок
_SORT_KEYS = {
    "newest": (lambda c: c.created, True),
    "popular": (lambda c: c.enrollments or 0, True),
    "rating": (lambda c: c.rating or 0, True),
    "price-low": (lambda c: c.price, False),
    "price-high": (lambda c: c.price, True),
}


def sort_courses(courses: list[Course], sort_by: str = DEFAULT_SORT) -> list[Course]:
    if sort_by not in _SORT_KEYS:
        return list(courses)
    key, reverse = _SORT_KEYS[sort_by]
    return sorted(courses, key=key, reverse=reverse)


def browse(courses: list[Course], search: str = "", category: str = ALL_CATEGORIES,
           level: str = ALL_LEVELS, sort_by: str = DEFAULT_SORT) -> list[Course]:
    """Фильтрация и сортировка заново по полному списку, без инкрементальных пересчётов."""
    return sort_courses(filter_courses(courses, search, category, level), sort_by)
