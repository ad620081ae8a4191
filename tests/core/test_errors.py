"""Error Hierarchy — tests for codes, HTTP statuses and envelopes."""

import pytest

from notehub.core.errors import (
    AlreadyRatedError, AuthError, BlobStoreError, ConflictError, DatabaseError,
    ErrorContext, ForbiddenError, InvalidMessageError, InvalidScoreError,
    InvalidStateError, NoteHubError, ResourceNotFoundError, ValidationError,
)


@pytest.mark.parametrize("error, code, status", [
    (ValidationError("bad"), "VALIDATION_ERROR", 400),
    (InvalidMessageError(), "INVALID_MESSAGE", 400),
    (InvalidScoreError(9), "INVALID_SCORE", 400),
    (AuthError(), "AUTH_ERROR", 401),
    (ForbiddenError("no"), "FORBIDDEN", 403),
    (ResourceNotFoundError("Request", "1"), "RESOURCE_NOT_FOUND", 404),
    (ConflictError("raced"), "CONFLICT", 409),
    (InvalidStateError("nope"), "INVALID_STATE", 409),
    (AlreadyRatedError(3), "ALREADY_RATED", 409),
    (DatabaseError("down", "execute"), "DATABASE_ERROR", 500),
    (BlobStoreError("disk full", "store"), "STORAGE_ERROR", 500),
])
def test_codes_and_statuses(error, code, status):
    assert isinstance(error, NoteHubError)
    assert error.code == code
    assert error.http_status == status


def test_rest_envelope_carries_context():
    err = ConflictError("raced", ErrorContext(request_id=4, user_id=2))
    body = err.to_response()["error"]
    assert body["code"] == "CONFLICT"
    assert body["message"] == "raced"
    assert body["context"] == {"request_id": 4, "user_id": 2}


def test_event_envelope():
    frame = ForbiddenError("no").to_event()
    assert frame["type"] == "error"
    assert frame["data"]["code"] == "FORBIDDEN"


def test_already_rated_records_request_id():
    assert AlreadyRatedError(8).context.request_id == 8
