"""Reputation Service — rating submission and writer aggregate recomputation.

Invariants:
    - One rating per request: existence checked in-transaction, UNIQUE(request_id) as backstop
    - Rating insert and writer (rating, total_orders) update commit together or not at all
    - Writer row locked (SELECT ... FOR UPDATE) before the Rating insert, so concurrent
      ratings of one writer queue on that lock and never lose an update
    - Lock order is writer row, then ratings insert: the insert's foreign-key check takes
      KEY SHARE on the writer row, and taking FOR UPDATE after it would deadlock two raters

Design Decisions:
    - Aggregate recomputed from all stored scores (not incrementally): self-healing, and the
      mean/round rule stays in core/reputation.py
    - FOR UPDATE is a no-op on SQLite, where the database-level write lock serializes instead
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from notehub.core.domain_types import Identity
from notehub.core.errors import AlreadyRatedError, ResourceNotFoundError
from notehub.core.reputation import check_can_rate, mean_rating, validate_score
from notehub.models.note_request import NoteRequest
from notehub.models.rating import Rating
from notehub.models.user import User

logger = logging.getLogger(__name__)


class ReputationService:
    """Ratings and the writer reputation they feed."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def rate(
        self,
        identity: Identity,
        request_id: int,
        score: object,
        review: str | None = None,
    ) -> dict:
        request = await self.db.get(NoteRequest, request_id, populate_existing=True)
        if request is None:
            raise ResourceNotFoundError("Request", str(request_id))
        check_can_rate(request, identity.id)
        valid_score = validate_score(score)

        prior = await self.db.execute(
            select(Rating.id).where(Rating.request_id == request_id),
        )
        if prior.scalar_one_or_none() is not None:
            raise AlreadyRatedError(request_id)

        writer_id = request.writer_id
        writer = (await self.db.execute(
            select(User)
            .where(User.id == writer_id)
            .with_for_update()
            .execution_options(populate_existing=True),
        )).scalar_one()

        self.db.add(Rating(
            request_id=request_id,
            student_id=identity.id,
            writer_id=writer_id,
            score=valid_score,
            review=review,
        ))
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise AlreadyRatedError(request_id)

        scores = (await self.db.execute(
            select(Rating.score).where(Rating.writer_id == writer_id),
        )).scalars().all()
        writer.rating = mean_rating(list(scores))
        writer.total_orders = len(scores)
        await self.db.commit()

        logger.info(
            f"Writer {writer_id} rated {valid_score}",
            extra={"request_id": request_id, "user_id": identity.id},
        )
        return {
            "request_id": request_id,
            "writer_id": writer_id,
            "score": valid_score,
            "writer_rating": writer.rating,
            "writer_total_orders": writer.total_orders,
        }

    async def profile(self, user_id: int) -> User:
        user = await self.db.get(User, user_id, populate_existing=True)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user
