"""Creatures/Uploads service layer."""

import logging
import uuid

import core.config as config
from penpal.errors import AdminRequired, InvalidUpload

from . import repository as creatures_repository
from .schemas import CreatureResponse, ImageUploadResponse

logger = logging.getLogger(__name__)

UPLOAD_KINDS = ("creature", "scan")

EXTENSION_MAP = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


def _creature_response(creature) -> CreatureResponse:
    state = creature.conversation_state
    return CreatureResponse(
        id=creature.id,
        name=creature.name,
        backstory=creature.backstory,
        image_url=creature.image_url,
        conversation_state=getattr(state, "value", state),
        created_at=creature.created_at.isoformat() if creature.created_at else None,
    )


async def create_creature(db, *, account, request) -> CreatureResponse:
    creature = creatures_repository.create_creature(
        db,
        account_id=account.account_id,
        name=request.name.strip(),
        backstory=request.backstory,
        image_url=request.image_url,
    )
    await db.commit()
    logger.info(f"Creature {creature.id} created for account {creature.account_id}")
    return _creature_response(creature)


async def list_creatures(db, *, account):
    creatures = await creatures_repository.list_creatures_for_account(
        db, account_id=account.account_id
    )
    return [_creature_response(c) for c in creatures]


async def upload_image(*, account, kind: str, file, store) -> ImageUploadResponse:
    """
    Store a creature portrait or a scanned letter and return its public URL.

    Raises:
        InvalidUpload: Unknown kind, non-image content, empty or oversized file
        AdminRequired: Scans are uploaded by administrators only
        StorageError: If the blob store rejects the upload
    """
    if kind not in UPLOAD_KINDS:
        raise InvalidUpload(f"Invalid upload kind. Allowed kinds: {', '.join(UPLOAD_KINDS)}")
    if kind == "scan" and not account.is_admin:
        raise AdminRequired()

    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise InvalidUpload("Only image files are accepted")

    data = await file.read()
    if not data:
        raise InvalidUpload("Uploaded file is empty")
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise InvalidUpload(
            f"File size exceeds maximum allowed size of {config.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
        )

    extension = EXTENSION_MAP.get(content_type, "bin")
    key = f"{kind}/{account.account_id}/{uuid.uuid4().hex}.{extension}"
    url = await store.upload_image(key=key, data=data, content_type=content_type)

    logger.info(f"Image uploaded: kind={kind}, account={account.account_id}, key={key}")
    return ImageUploadResponse(url=url, key=key, content_type=content_type, size_bytes=len(data))
