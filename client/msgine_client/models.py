"""
Message schemas shared by the validator, the transport and the client.

Field names are snake_case; the MsGine wire names (to, message, sid, from,
createdAt, ...) are declared as aliases.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

MAX_MESSAGE_LENGTH = 1600


class MessageStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class OutboundMessage(BaseModel):
    """An SMS to send. Accepts either the wire names (to, message) or the field names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    recipient: str = Field(alias="to")
    body: str = Field(alias="message")

    @field_validator("recipient")
    @classmethod
    def recipient_present(cls, v: str) -> str:
        if len(v) < 1:
            raise PydanticCustomError("recipient_required", "Phone number is required")
        return v

    @field_validator("body")
    @classmethod
    def body_length(cls, v: str) -> str:
        if len(v) < 1:
            raise PydanticCustomError("message_required", "Message is required")
        if len(v) > MAX_MESSAGE_LENGTH:
            raise PydanticCustomError("message_too_long", "Message too long")
        return v

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class DeliveryResult(BaseModel):
    """The API's record of a sent message"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    secondary_id: Optional[str] = Field(default=None, alias="sid")
    channel: str
    recipients: List[str] = Field(alias="to")
    sender: str = Field(alias="from")
    content: str
    status: MessageStatus
    cost: float
    currency: str
    created_at: str = Field(alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
