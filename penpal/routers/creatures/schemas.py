"""Creature schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class CreateCreatureRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    backstory: Optional[str] = Field(None, max_length=5000)
    image_url: Optional[str] = None


class CreatureResponse(BaseModel):
    id: int
    name: str
    backstory: Optional[str] = None
    image_url: Optional[str] = None
    conversation_state: str
    created_at: Optional[str] = None


class ImageUploadResponse(BaseModel):
    url: str
    key: str
    content_type: str
    size_bytes: int
