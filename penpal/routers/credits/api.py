from fastapi import APIRouter

from . import credits, internal, stripe_webhook

router = APIRouter()
router.include_router(credits.router)
router.include_router(stripe_webhook.router)
router.include_router(internal.router)
