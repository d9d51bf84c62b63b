from typing import Protocol


class BlobStorePort(Protocol):
    async def upload_image(self, *, key: str, data: bytes, content_type: str) -> str:
        """Store the bytes under ``key`` and return a stable public URL."""
        ...
