from .entities import Quiz, QuizAttempt

QUIZ_REQUIRED_WARNING = "You must pass the quiz to proceed."
QUIZ_REQUIRED_HINT = "You must pass the quiz to proceed to the next lesson."


def quiz_passed(attempt: QuizAttempt | None) -> bool:
    return attempt is not None and attempt.passed


def mark_done_disabled(quiz: Quiz | None, attempt: QuizAttempt | None,
                       attempt_loading: bool, done: bool) -> bool:
    if quiz is None:
        return False
    return not quiz_passed(attempt) or attempt_loading or done


def next_lesson_disabled(quiz: Quiz | None, attempt: QuizAttempt | None,
                         attempt_loading: bool) -> bool:
    if quiz is None:
        return False
    return not quiz_passed(attempt) or attempt_loading


def quiz_hint(quiz: Quiz | None, attempt: QuizAttempt | None,
              attempt_loading: bool) -> str | None:
    if quiz is not None and not attempt_loading and not quiz_passed(attempt):
        return QUIZ_REQUIRED_HINT
    return None
