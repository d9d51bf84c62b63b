"""Conversation and letter schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field

from penpal.models.enums import DeliveryType


class StartConversationRequest(BaseModel):
    creature_id: int = Field(..., gt=0)


class ConversationResponse(BaseModel):
    id: int
    creature_id: int
    account_id: int
    started_by: str
    created_at: Optional[str] = None
    last_message_at: Optional[str] = None
    created: bool = False


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_type: str
    content: str
    delivery_type: str
    status: str
    cost_credits: int
    scanned_image_url: Optional[str] = None
    context_notes: Optional[str] = None
    mailed_at: Optional[str] = None
    created_at: Optional[str] = None


class MessageListResponse(BaseModel):
    conversation_id: int
    creature_id: int
    creature_state: str
    messages: List[MessageResponse]


class GenerateLetterRequest(BaseModel):
    creature_id: int = Field(..., gt=0)
    user_message: Optional[str] = Field(None, max_length=10000)
    context_notes: Optional[str] = Field(None, max_length=2000)
    delivery_type: DeliveryType = DeliveryType.DIGITAL


class GenerateLetterResponse(BaseModel):
    message: MessageResponse
    cost_credits: int
    used_free_reply: bool
    digital_credits: int
    physical_credits: int
    free_replies_remaining: int


class DigitizeLetterRequest(BaseModel):
    conversation_id: int = Field(..., gt=0)
    letter_content: str = Field(..., min_length=1)
    scanned_image_url: Optional[str] = None
    admin_notes: Optional[str] = None


class AdminMessageResponse(MessageResponse):
    admin_notes: Optional[str] = None


class AdminConversationResponse(BaseModel):
    id: int
    creature_id: int
    creature_name: str
    creature_state: str
    account_id: int
    account_email: str
    last_message_at: Optional[str] = None


class PendingPhysicalLetterResponse(BaseModel):
    message: AdminMessageResponse
    creature_name: str
    account_id: int
    account_email: str
