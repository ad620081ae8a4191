"""User ORM — marketplace accounts (students and writers) with reputation aggregates.

Invariants:
    - username and email are unique
    - role is 'student' or 'writer' and never changes after registration
    - rating / total_orders written only by the reputation service
    - Never deleted (requests, messages and ratings reference users)

Design Decisions:
    - Numeric(3,2) for rating: exact two-decimal display value, recomputed on every rating
    - password_hash stores a bcrypt string "$2b$<cost>$..." (infrastructure/auth_provider.py)
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from notehub.db.base import Base


class User(Base):
    """Student or writer account."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(10), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(15), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2), nullable=False, default=Decimal("0.00"),
    )
    total_orders: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
