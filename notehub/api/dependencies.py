"""Route Dependencies — caller identity and service construction.

Invariants:
    - get_current_identity raises AuthError (401) for missing/invalid bearer tokens
    - Services are built per request around the request's DB session

Design Decisions:
    - HTTPBearer(auto_error=False): a missing header maps to our AuthError envelope,
      not FastAPI's default 403
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notehub.config import get_settings
from notehub.core.domain_types import Identity
from notehub.core.errors import AuthError
from notehub.infrastructure.auth_provider import JWTTokenProvider, get_token_provider
from notehub.infrastructure.blob_store import LocalBlobStore, get_blob_store
from notehub.infrastructure.database import get_db
from notehub.infrastructure.notification_hub import NotificationHub, get_notification_hub
from notehub.services.accounts import AccountService
from notehub.services.chat import ChatService
from notehub.services.files import FileService
from notehub.services.reputation import ReputationService
from notehub.services.request_lifecycle import RequestLifecycleService

_bearer = HTTPBearer(auto_error=False)


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    tokens: JWTTokenProvider = Depends(get_token_provider),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise AuthError("Access token required")
    return tokens.verify(credentials.credentials)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    tokens: JWTTokenProvider = Depends(get_token_provider),
) -> AccountService:
    return AccountService(db, tokens)


def get_lifecycle_service(
    db: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_notification_hub),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> RequestLifecycleService:
    settings = get_settings()
    return RequestLifecycleService(
        db, hub, blob_store,
        strict_transitions=settings.strict_transitions,
        max_reference_files=settings.max_reference_files,
    )


def get_chat_service(
    db: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_notification_hub),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> ChatService:
    return ChatService(db, hub, blob_store)


def get_reputation_service(
    db: AsyncSession = Depends(get_db),
) -> ReputationService:
    return ReputationService(db)


def get_file_service(
    db: AsyncSession = Depends(get_db),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> FileService:
    return FileService(db, blob_store)
