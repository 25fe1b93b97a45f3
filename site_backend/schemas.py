"""
Pydantic schemas for the contact site API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

REQUIRED_CONTACT_FIELDS = ("fullName", "email", "phone", "message")


class ContactValidationError(ValueError):
    """A contact submission is missing required fields."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required fields: {', '.join(missing)}")
        self.missing = missing


class ContactSubmission(BaseModel):
    fullName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def parse(cls, data: object) -> "ContactSubmission":
        """Validate a raw JSON/form body; blank or missing fields are rejected."""
        if not isinstance(data, dict):
            raise ContactValidationError(list(REQUIRED_CONTACT_FIELDS))
        try:
            submission = cls.model_validate(data)
        except ValidationError as exc:
            bad = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            raise ContactValidationError(bad) from exc
        missing = [
            name
            for name in REQUIRED_CONTACT_FIELDS
            if not (getattr(submission, name) or "").strip()
        ]
        if missing:
            raise ContactValidationError(missing)
        return submission


class ContactResponse(BaseModel):
    status: Literal["success", "error"]
    message: str


class ContactItem(BaseModel):
    id: Optional[int] = None
    fullName: str
    email: str
    phone: str
    message: str
    timestamp: str


class ContactsResponse(BaseModel):
    success: bool
    contacts: list[ContactItem]


class SessionStatusResponse(BaseModel):
    ready: Optional[bool] = None
    pairingCode: Optional[str] = None
    waiting: Optional[bool] = None


class LogoutResponse(BaseModel):
    success: bool
    message: str


class WebhookAck(BaseModel):
    status: Literal["ok"] = "ok"
    handled: bool = False


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    whatsapp: str
