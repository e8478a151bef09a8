from fastapi import APIRouter, Depends, Query

from ....application.dto import CatalogPage, EnrollResult
from ....application.use_cases.browse_catalog import CourseCatalog
from ....domain.catalog import ALL_CATEGORIES, ALL_LEVELS, DEFAULT_SORT
from ....infrastructure.backend import BackendClient, get_backend
from ....infrastructure.urls import UrlRegistry, get_registry
from ..authz import get_token, require_token

router = APIRouter(prefix="/courses", tags=["catalog"])

@router.get("", response_model=CatalogPage)
async def list_courses(search: str = "",
                       category: str = ALL_CATEGORIES,
                       level: str = ALL_LEVELS,
                       sort: str = DEFAULT_SORT,
                       view: str = Query("grid", pattern="^(grid|list)$"),
                       backend: BackendClient = Depends(get_backend),
                       urls: UrlRegistry = Depends(get_registry),
                       token: str | None = Depends(get_token)):
    catalog = CourseCatalog(backend, urls, token)
    try:
        await catalog.load()
        return catalog.snapshot(search=search, category=category, level=level,
                                sort=sort, view_mode=view)
    finally:
        catalog.close()

@router.post("/{course_id}/enroll", response_model=EnrollResult)
async def enroll(course_id: str,
                 backend: BackendClient = Depends(get_backend),
                 urls: UrlRegistry = Depends(get_registry),
                 token: str = Depends(require_token)):
    catalog = CourseCatalog(backend, urls, token)
    try:
        # нужен актуальный набор записей, чтобы не записываться повторно
        await catalog.load_enrollments()
        return await catalog.enroll(course_id)
    finally:
        catalog.close()
