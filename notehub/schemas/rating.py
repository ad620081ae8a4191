"""Rating Schemas — rating submission and confirmation.

Invariants:
    - score is passed through untyped; core/reputation.validate_score is its only judge,
      so true, "4" and 4.5 all surface as INVALID_SCORE instead of being coerced
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class RatingCreate(BaseModel):
    score: Any
    review: str | None = Field(None, max_length=2000)


class RatingResult(BaseModel):
    request_id: int
    writer_id: int
    score: int
    writer_rating: Decimal
    writer_total_orders: int
    message: str = "Rating submitted successfully"
