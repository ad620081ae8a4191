"""Account Service — registration, login and lookup."""

import pytest

from notehub.core.errors import AuthError, ConflictError, ResourceNotFoundError
from notehub.infrastructure.auth_provider import get_token_provider
from notehub.schemas.auth import RegisterRequest
from notehub.services.accounts import AccountService


@pytest.fixture
def accounts(test_db):
    return AccountService(test_db, get_token_provider())


def _register(**overrides):
    data = dict(
        username="maria", email="maria@example.com",
        password="hunter22", role="student", location="Campus North",
    )
    data.update(overrides)
    return RegisterRequest(**data)


async def test_register_returns_user_and_verifiable_token(accounts):
    user, token = await accounts.register(_register())

    assert user.id is not None
    assert user.role == "student"
    assert user.total_orders == 0
    assert user.password_hash != "hunter22"
    identity = get_token_provider().verify(token)
    assert identity.id == user.id
    assert identity.username == "maria"


async def test_duplicate_email_conflicts(accounts):
    await accounts.register(_register())
    with pytest.raises(ConflictError) as exc:
        await accounts.register(_register(username="maria2"))
    assert exc.value.message == "User already exists"


async def test_duplicate_username_conflicts(accounts):
    await accounts.register(_register())
    with pytest.raises(ConflictError):
        await accounts.register(_register(email="other@example.com"))


async def test_login_with_correct_password(accounts):
    registered, _ = await accounts.register(_register())
    user, token = await accounts.login("maria@example.com", "hunter22")
    assert user.id == registered.id
    assert token


@pytest.mark.parametrize("email, password", [
    ("maria@example.com", "wrong-pass"),
    ("nobody@example.com", "hunter22"),
])
async def test_login_failures_are_indistinguishable(accounts, email, password):
    await accounts.register(_register())
    with pytest.raises(AuthError) as exc:
        await accounts.login(email, password)
    assert exc.value.message == "Invalid credentials"


async def test_get_user_missing(accounts):
    with pytest.raises(ResourceNotFoundError):
        await accounts.get_user(404)
