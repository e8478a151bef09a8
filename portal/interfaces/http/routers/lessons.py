from fastapi import APIRouter, Depends, Query

from ....application.dto import LessonPage, NavigationResult
from ....application.use_cases.view_lesson import PDF_DOWNLOAD, LessonViewer
from ....infrastructure.backend import BackendClient, get_backend
from ....infrastructure.urls import UrlRegistry, get_registry
from ..authz import get_token, require_token

router = APIRouter(prefix="/lessons", tags=["lessons"])

@router.get("/{lesson_id}", response_model=LessonPage)
async def view_lesson(lesson_id: str,
                      pdf_download: list[str] = Query(default=[]),
                      pdf_failed: list[str] = Query(default=[]),
                      backend: BackendClient = Depends(get_backend),
                      urls: UrlRegistry = Depends(get_registry),
                      token: str | None = Depends(get_token)):
    viewer = LessonViewer(backend, urls, lesson_id, token)
    try:
        for filename in pdf_download:
            viewer.set_pdf_mode(filename, PDF_DOWNLOAD)
        for filename in pdf_failed:
            viewer.pdf_viewer_failed(filename)
        await viewer.load()
        return viewer.snapshot()
    finally:
        viewer.close()

@router.post("/{lesson_id}/done", response_model=NavigationResult)
async def mark_done(lesson_id: str,
                    backend: BackendClient = Depends(get_backend),
                    urls: UrlRegistry = Depends(get_registry),
                    token: str = Depends(require_token)):
    viewer = LessonViewer(backend, urls, lesson_id, token)
    try:
        # правила продвижения зависят от квиза и попытки, поэтому сначала полная загрузка
        await viewer.load()
        return await viewer.mark_done()
    finally:
        viewer.close()

@router.get("/{lesson_id}/next", response_model=NavigationResult)
async def next_lesson(lesson_id: str,
                      backend: BackendClient = Depends(get_backend),
                      urls: UrlRegistry = Depends(get_registry),
                      token: str | None = Depends(get_token)):
    viewer = LessonViewer(backend, urls, lesson_id, token)
    try:
        await viewer.load()
        return await viewer.next_lesson()
    finally:
        viewer.close()

@router.get("/{lesson_id}/prev", response_model=NavigationResult)
async def previous_lesson(lesson_id: str,
                          backend: BackendClient = Depends(get_backend),
                          urls: UrlRegistry = Depends(get_registry),
                          token: str | None = Depends(get_token)):
    viewer = LessonViewer(backend, urls, lesson_id, token)
    try:
        return await viewer.previous_lesson()
    finally:
        viewer.close()
