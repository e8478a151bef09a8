from dataclasses import asdict

from .entities import Quiz, QuizQuestion

INCOMPLETE_QUIZ_ALERT = "Please fill out all quiz question fields and options before submitting."


class QuizValidationError(ValueError):
    pass


def blank_question() -> QuizQuestion:
    return QuizQuestion(question_text="", options=["", "", "", ""], correct_answer=0)


def default_quiz_draft() -> Quiz:
    """Черновик квиза для новой формы урока."""
    return Quiz(
        id=None,
        questions=[QuizQuestion(
            question_text="Sample question?",
            options=["Option 1", "Option 2", "Option 3", "Option 4"],
            correct_answer=0,
        )],
    )


def empty_quiz_draft() -> Quiz:
    # после успешной отправки форма сбрасывается в пустой черновик
    return Quiz(id=None, questions=[blank_question()])


def validate_quiz(quiz: Quiz) -> None:
    for question in quiz.questions:
        if not question.question_text.strip():
            raise QuizValidationError(INCOMPLETE_QUIZ_ALERT)
        if any(not option.strip() for option in question.options):
            raise QuizValidationError(INCOMPLETE_QUIZ_ALERT)


def quiz_payload(quiz: Quiz, lesson_id: str) -> dict:
    payload = asdict(quiz)
    payload.pop("id")
    payload["lesson_id"] = lesson_id
    return payload
