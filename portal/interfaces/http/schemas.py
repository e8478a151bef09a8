from pydantic import BaseModel

from ...domain.entities import Quiz, QuizQuestion

class QuizQuestionIn(BaseModel):
    question_text: str = ""
    type: str = "mcq"
    options: list[str] = []
    correct_answer: int = 0
    explanation: str = ""
    points: int = 1

class QuizDraftIn(BaseModel):
    title: str = ""
    description: str = ""
    time_limit: int = 10
    passing_score: int = 70
    max_attempts: int = 3
    shuffle_questions: bool = False
    show_results: bool = True
    questions: list[QuizQuestionIn] = []

    def to_domain(self) -> Quiz:
        return Quiz(
            id=None,
            title=self.title,
            description=self.description,
            time_limit=self.time_limit,
            passing_score=self.passing_score,
            max_attempts=self.max_attempts,
            shuffle_questions=self.shuffle_questions,
            show_results=self.show_results,
            questions=[QuizQuestion(**q.model_dump()) for q in self.questions],
        )
