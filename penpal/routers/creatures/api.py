from fastapi import APIRouter

from . import creatures, uploads

router = APIRouter()
router.include_router(creatures.router)
router.include_router(uploads.router)
