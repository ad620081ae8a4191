"""Reputation Rules — pure rating validation and aggregate rounding.

Invariants:
    - Score is an int in [1, 5] (bool rejected even though it subclasses int)
    - Only the request's student may rate, and only once the request is completed
    - Displayed rating = arithmetic mean of all received scores, 2 decimals, half-up
"""

from decimal import Decimal, ROUND_HALF_UP

from notehub.core.domain_types import RequestStatus, Score
from notehub.core.errors import (
    ErrorContext, ForbiddenError, InvalidScoreError, InvalidStateError,
)
from notehub.core.repository_protocols import RequestLike

MIN_SCORE = 1
MAX_SCORE = 5
_RATING_QUANTUM = Decimal("0.01")


def validate_score(score: object) -> Score:
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidScoreError(score)
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidScoreError(score)
    return Score(score)


def check_can_rate(request: RequestLike, student_id: int) -> None:
    ctx = ErrorContext(request_id=request.id, user_id=student_id)
    if request.student_id != student_id:
        raise ForbiddenError("Only the requesting student can rate", ctx)
    if request.status != RequestStatus.COMPLETED.value:
        raise InvalidStateError(
            "Only completed requests can be rated", request.status, ctx,
        )


def round_rating(average: float | Decimal | None) -> Decimal:
    """Quantize a raw average to the stored Numeric(3,2) precision."""
    if average is None:
        return Decimal("0.00")
    return Decimal(str(average)).quantize(_RATING_QUANTUM, rounding=ROUND_HALF_UP)


def mean_rating(scores: list[int]) -> Decimal:
    """Mean of scores as stored on the writer's profile."""
    if not scores:
        return round_rating(None)
    return round_rating(Decimal(sum(scores)) / Decimal(len(scores)))
