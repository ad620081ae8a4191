"""Message Rules — tests for chat participant checks and message derivation."""

from types import SimpleNamespace

import pytest

from notehub.core.domain_types import MessageType
from notehub.core.errors import ForbiddenError, InvalidMessageError, InvalidStateError
from notehub.core.message_rules import (
    check_chat_participant, infer_message_type, normalize_text, resolve_receiver,
)


def _request(writer_id=2, status="accepted"):
    return SimpleNamespace(id=10, student_id=1, writer_id=writer_id, status=status)


def test_receiver_is_the_other_participant():
    req = _request()
    assert resolve_receiver(req, 1) == 2
    assert resolve_receiver(req, 2) == 1


def test_outsider_cannot_send():
    with pytest.raises(ForbiddenError):
        resolve_receiver(_request(), 3)


def test_chat_needs_an_assigned_writer():
    with pytest.raises(InvalidStateError):
        resolve_receiver(_request(writer_id=None, status="open"), 1)


def test_outsider_cannot_read():
    check_chat_participant(_request(), 1)
    with pytest.raises(ForbiddenError):
        check_chat_participant(_request(), 42)


def test_text_is_stripped():
    assert normalize_text("  hi  ", False) == "hi"


def test_file_only_message_has_empty_text():
    assert normalize_text(None, True) == ""
    assert normalize_text("   ", True) == ""


@pytest.mark.parametrize("text", [None, "", "   "])
def test_blank_message_without_file_rejected(text):
    with pytest.raises(InvalidMessageError) as exc:
        normalize_text(text, False)
    assert exc.value.http_status == 400


def test_message_type_inference():
    assert infer_message_type(None, False) is MessageType.TEXT
    assert infer_message_type("image/png", True) is MessageType.IMAGE
    assert infer_message_type("IMAGE/JPEG", True) is MessageType.IMAGE
    assert infer_message_type("application/pdf", True) is MessageType.FILE
    assert infer_message_type(None, True) is MessageType.FILE
