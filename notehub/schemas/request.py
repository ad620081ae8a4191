"""Request Schemas — note request creation, status updates and list items.

Invariants:
    - RequestCreate.pages > 0, amount >= 0, enums restricted to their sets
    - StatusUpdate.status is free text here; the lifecycle rules decide validity
    - RequestView mirrors the role-scoped list row (counterpart name/phone when known)

Design Decisions:
    - RequestCreate is built from multipart form fields by the route layer, so the same
      request can carry reference files
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notehub.core.domain_types import NoteType, PaymentType


class RequestCreate(BaseModel):
    subject: str = Field(min_length=1, max_length=100)
    topic: str = Field(min_length=1, max_length=10_000)
    note_type: NoteType
    pages: int = Field(gt=0, le=1000)
    deadline: datetime
    language: str = Field("English", min_length=1, max_length=20)
    delivery_location: str = Field(min_length=1, max_length=200)
    amount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    payment_type: PaymentType = PaymentType.FREE
    special_instructions: str | None = Field(None, max_length=5000)

    @field_validator("subject", "topic", "delivery_location")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty or whitespace")
        return v


class RequestCreated(BaseModel):
    id: int
    message: str = "Request created successfully"


class StatusUpdate(BaseModel):
    status: str


class RequestView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    writer_id: int | None
    subject: str
    topic: str
    note_type: str
    pages: int
    deadline: datetime
    language: str
    delivery_location: str
    amount: Decimal
    payment_type: str
    status: str
    reference_files: list[str]
    special_instructions: str | None
    created_at: datetime
    updated_at: datetime
    student_name: str | None = None
    student_phone: str | None = None
    writer_name: str | None = None
    writer_phone: str | None = None
