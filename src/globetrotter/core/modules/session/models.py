"""Session ledger models.

Sessions are embedded in the owning user document (``users.active_sessions``),
oldest first. They have no lifecycle outside that list.
"""

from datetime import datetime, timedelta
from typing import NewType

from pydantic import BaseModel, Field

from globetrotter.utils import now

AuthToken = NewType("AuthToken", str)

MAX_ACTIVE_SESSIONS = 10
STALE_SESSION_AGE = timedelta(days=7)


class Session(BaseModel):
    """One authenticated device/login of a user.

    ``token`` and ``created_at`` are fixed at login; only ``last_activity`` changes.
    """

    session_id: str
    token: str
    device_info: str = "Unknown"
    ip_address: str = "Unknown"
    last_activity: datetime = Field(default_factory=now)
    created_at: datetime = Field(default_factory=now)


class SessionView(BaseModel):
    """Active session as shown to its owner (API representation, never includes the token)."""

    session_id: str = Field(..., description="Server-side handle used to end this session")
    device_info: str = Field(..., description="User agent reported at login")
    ip_address: str = Field(..., description="Client address seen at login")
    last_activity: datetime = Field(..., description="Last authenticated request on this session")
    created_at: datetime = Field(..., description="Login time")

    @classmethod
    def from_domain(cls, session: Session) -> "SessionView":
        return cls(
            session_id=session.session_id,
            device_info=session.device_info,
            ip_address=session.ip_address,
            last_activity=session.last_activity,
            created_at=session.created_at,
        )


class SessionStats(BaseModel):
    """Aggregate session counts across all users."""

    total_users: int = Field(0, description="Number of user documents")
    total_sessions: int = Field(0, description="Number of active sessions across all users")
    avg_sessions_per_user: float = Field(0.0, description="Mean ledger length")
