"""
API v1 routes.
"""

from fastapi import APIRouter

from src.api.v1 import issues, journals, publications

router = APIRouter()

router.include_router(journals.router, prefix="/journals", tags=["Journals"])
router.include_router(issues.router, prefix="/journals/{journal_id}/issues", tags=["Issues"])
router.include_router(publications.router, prefix="/journals/{journal_id}/publications", tags=["Publications"])
