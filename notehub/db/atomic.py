"""Atomic Conditional Update — the single compare-and-set primitive of the persistence layer.

Invariants:
    - One UPDATE statement; the affected-row count is the success signal
    - Never reads before writing: the WHERE clause carries every precondition
    - Caller owns the transaction (commit/rollback happen outside)

Design Decisions:
    - synchronize_session=False: the identity map is refreshed explicitly by the caller
      (populate_existing) instead of evaluating arbitrary predicates in Python
"""

from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession


async def compare_and_set(
    db: AsyncSession, model: type, predicates: list[Any], values: dict[str, Any],
) -> bool:
    """UPDATE model SET values WHERE all predicates hold; True iff a row changed."""
    stmt = (
        update(model)
        .where(*predicates)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1
