from dataclasses import replace

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError

from ....application.dto import LessonBoard, LessonForm
from ....application.use_cases.manage_lessons import LessonManager, UploadedFile
from ....domain.entities import Quiz
from ....domain.quizzes import QuizValidationError, validate_quiz
from ....infrastructure.backend import BackendClient, get_backend
from ....infrastructure.urls import UrlRegistry, get_registry
from ..authz import require_token
from ..schemas import QuizDraftIn

router = APIRouter(prefix="/manage", tags=["manage"])

def _parse_quiz(raw: str | None) -> Quiz | None:
    if not raw:
        return None
    try:
        draft = QuizDraftIn.model_validate_json(raw).to_domain()
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors())
    # неполный квиз отклоняется до любых запросов к backend
    try:
        validate_quiz(draft)
    except QuizValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return draft

async def _read_files(files: list[UploadFile]) -> list[UploadedFile]:
    result = []
    for f in files:
        if not f.filename:
            continue
        result.append((f.filename, await f.read(), f.content_type or "application/octet-stream"))
    return result

@router.get("/courses", response_model=LessonBoard)
async def instructor_courses(backend: BackendClient = Depends(get_backend),
                             urls: UrlRegistry = Depends(get_registry),
                             token: str = Depends(require_token)):
    board = LessonManager(backend, urls, token)
    try:
        await board.mount()
        return board.snapshot()
    finally:
        board.close()

@router.get("/courses/{course_id}/lessons", response_model=LessonBoard)
async def course_lessons(course_id: str,
                         backend: BackendClient = Depends(get_backend),
                         urls: UrlRegistry = Depends(get_registry),
                         token: str = Depends(require_token)):
    board = LessonManager(backend, urls, token)
    try:
        await board.mount(course_id)
        return board.snapshot()
    finally:
        board.close()

@router.post("/courses/{course_id}/lessons", response_model=LessonBoard)
async def create_lesson(course_id: str,
                        title: str = Form(""),
                        content: str = Form(""),
                        order: int | None = Form(None),
                        duration: int = Form(10),
                        is_downloadable: bool = Form(False),
                        quiz: str | None = Form(None),
                        files: list[UploadFile] = File(default=[]),
                        backend: BackendClient = Depends(get_backend),
                        urls: UrlRegistry = Depends(get_registry),
                        token: str = Depends(require_token)):
    draft = _parse_quiz(quiz)
    board = LessonManager(backend, urls, token)
    try:
        await board.mount(course_id)
        board.form = LessonForm(title=title, content=content,
                                order=order if order is not None else board.form.order,
                                duration=duration)
        board.is_downloadable = is_downloadable
        if draft is not None:
            board.quiz_enabled = True
            board.quiz_draft = draft
        await board.add_lesson(await _read_files(files))
        return board.snapshot()
    finally:
        board.close()

@router.put("/courses/{course_id}/lessons/{lesson_id}", response_model=LessonBoard)
async def update_lesson(course_id: str,
                        lesson_id: str,
                        title: str | None = Form(None),
                        content: str | None = Form(None),
                        order: int | None = Form(None),
                        duration: int | None = Form(None),
                        is_downloadable: bool = Form(False),
                        files: list[UploadFile] = File(default=[]),
                        backend: BackendClient = Depends(get_backend),
                        urls: UrlRegistry = Depends(get_registry),
                        token: str = Depends(require_token)):
    board = LessonManager(backend, urls, token)
    try:
        await board.mount(course_id)
        try:
            board.start_editing(lesson_id)
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="lesson not found")
        # не присланные поля остаются такими, как у сохранённого урока
        sent = {"title": title, "content": content, "order": order, "duration": duration}
        board.form = replace(board.form, **{k: v for k, v in sent.items() if v is not None})
        board.is_downloadable = is_downloadable
        await board.update_lesson(await _read_files(files))
        return board.snapshot()
    finally:
        board.close()

@router.delete("/courses/{course_id}/lessons/{lesson_id}", response_model=LessonBoard)
async def delete_lesson(course_id: str,
                        lesson_id: str,
                        backend: BackendClient = Depends(get_backend),
                        urls: UrlRegistry = Depends(get_registry),
                        token: str = Depends(require_token)):
    board = LessonManager(backend, urls, token)
    try:
        await board.mount(course_id)
        await board.delete_lesson(lesson_id)
        return board.snapshot()
    finally:
        board.close()

@router.delete("/courses/{course_id}/lessons/{lesson_id}/quiz/{quiz_id}", response_model=LessonBoard)
async def delete_quiz(course_id: str,
                      lesson_id: str,
                      quiz_id: str,
                      backend: BackendClient = Depends(get_backend),
                      urls: UrlRegistry = Depends(get_registry),
                      token: str = Depends(require_token)):
    board = LessonManager(backend, urls, token)
    try:
        await board.mount(course_id)
        await board.delete_quiz(lesson_id, quiz_id)
        return board.snapshot()
    finally:
        board.close()
