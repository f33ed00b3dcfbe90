"""
Session component - durable session id and first-view idempotency guard.
"""

from .component import (
    SessionConfig,
    SessionIdentity,
    create_session_identity,
    generate_session_id,
)

__all__ = [
    "SessionConfig",
    "SessionIdentity",
    "create_session_identity",
    "generate_session_id",
]
