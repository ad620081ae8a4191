"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - NoteRequest is the aggregate root for messages and ratings; User is referenced, never owned

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from notehub.models.user import User  # noqa: F401
from notehub.models.note_request import NoteRequest  # noqa: F401
from notehub.models.message import Message  # noqa: F401
from notehub.models.rating import Rating  # noqa: F401
