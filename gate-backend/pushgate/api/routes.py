from fastapi import APIRouter
from pushgate.api.push import router as push_router

router = APIRouter()
router.include_router(push_router)
