from fastapi import APIRouter

from app.api.v1.endpoints.records import router as records_router

router = APIRouter(prefix="/api/v1")
router.include_router(records_router)
