"""Account Service — registration, login and identity lookup.

Invariants:
    - username and email unique (pre-check + UNIQUE constraints as backstop)
    - Login failures never reveal whether the email exists
    - New accounts start with rating 0.00 and total_orders 0
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from notehub.core.domain_types import Identity, UserId, UserRole
from notehub.core.errors import AuthError, ConflictError, ResourceNotFoundError
from notehub.core.repository_protocols import TokenProvider
from notehub.infrastructure.auth_provider import hash_password, verify_password
from notehub.models.user import User
from notehub.schemas.auth import RegisterRequest

logger = logging.getLogger(__name__)


def identity_of(user: User) -> Identity:
    return Identity(id=UserId(user.id), username=user.username, role=UserRole(user.role))


class AccountService:
    def __init__(self, db: AsyncSession, tokens: TokenProvider):
        self.db = db
        self.tokens = tokens

    async def register(self, body: RegisterRequest) -> tuple[User, str]:
        existing = await self.db.execute(
            select(User.id).where(
                or_(User.email == body.email, User.username == body.username),
            ),
        )
        if existing.first() is not None:
            raise ConflictError("User already exists")

        user = User(
            username=body.username,
            email=body.email,
            password_hash=hash_password(body.password),
            role=body.role.value,
            phone=body.phone,
            location=body.location,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("User already exists")
        await self.db.refresh(user)
        logger.info("User registered", extra={"user_id": user.id})
        return user, self.tokens.issue(identity_of(user))

    async def login(self, email: str, password: str) -> tuple[User, str]:
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.password_hash):
            raise AuthError("Invalid credentials")
        return user, self.tokens.issue(identity_of(user))

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id, populate_existing=True)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user
