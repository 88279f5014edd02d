from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


# --- Request Schemas ---


class UserRegister(BaseModel):
    full_name: str
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


# --- Response Helpers ---


def user_to_response(user) -> dict:
    """Build user response dict matching the frontend expected format."""

    def to_iso(dt):
        if dt is None:
            return None
        if isinstance(dt, str):
            return dt
        return dt.isoformat()

    return {
        "id": user.id,
        "identity": user.identity,
        "full_name": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "is_admin": bool(user.is_admin),
        "created_at": to_iso(getattr(user, "created_at", None)),
        "updated_at": to_iso(getattr(user, "updated_at", None)),
    }


def mask_phone(phone: Optional[str]) -> str:
    """First four and last two characters of a phone number: "0555****67"."""
    if not phone:
        return "—"
    return phone[:4] + "****" + phone[-2:]
