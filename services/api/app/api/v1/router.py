from fastapi import APIRouter

from app.api.v1 import analyze, history, humanize

router = APIRouter()
router.include_router(analyze.router, tags=["analyze"])
router.include_router(humanize.router, tags=["humanize"])
router.include_router(history.router, tags=["history"])
