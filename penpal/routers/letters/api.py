from fastapi import APIRouter

from . import admin, conversations

router = APIRouter()
router.include_router(conversations.router)
router.include_router(admin.router)
