from typing import Optional
from pydantic import BaseModel, Field, field_validator


# --- Request Schemas ---


class NotificationSend(BaseModel):
    title: str = Field(max_length=200)
    body: str
    # A single recipient; otherwise every user matching `filter`
    user_id: Optional[int] = None
    filter: str = "all"

    @field_validator("title", "body")
    @classmethod
    def strip_text(cls, v):
        return v.strip()


# --- Response Helpers ---


def notification_to_response(notification) -> dict:
    created = notification.created_at
    return {
        "id": notification.id,
        "title": notification.title,
        "body": notification.body,
        "is_read": bool(notification.is_read),
        "created_at": created.isoformat() if created else None,
    }
