from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from globetrotter.core.db import MongoModel
from globetrotter.core.modules.session.models import MAX_ACTIVE_SESSIONS, Session, SessionView
from globetrotter.utils import now


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"


class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True


class Preferences(BaseModel):
    theme: Theme = Theme.LIGHT
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)


class NotificationPreferencesUpdate(BaseModel):
    email: bool | None = None
    push: bool | None = None


class PreferencesUpdate(BaseModel):
    """Preference changes. Unset keys keep their stored value."""

    theme: Theme | None = None
    notifications: NotificationPreferencesUpdate | None = None


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(None, description="New first name, 2 to 50 characters")
    last_name: str | None = Field(None, description="New last name, 2 to 50 characters")
    preferences: PreferencesUpdate | None = Field(None, description="Preferences to merge into the stored ones")


class User(MongoModel):
    """User domain model with credentials and the embedded session ledger.

    Indexed on email - unique, email_verification_token, reset_password_token,
    active_sessions.session_id, active_sessions.token.
    """

    email: str  # stored lower-cased
    password_hash: str  # bcrypt hash
    first_name: str
    last_name: str
    profile_picture: str = ""
    preferences: Preferences = Field(default_factory=Preferences)
    is_email_verified: bool = False
    email_verification_token: str | None = None
    email_verification_expires: datetime | None = None
    reset_password_token: str | None = None
    reset_password_expires: datetime | None = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    last_login: datetime | None = None
    active_sessions: list[Session] = Field(default_factory=list)  # oldest first
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    @field_validator("active_sessions", mode="before")
    @classmethod
    def _missing_ledger_is_empty(cls, value: Any) -> Any:
        # Documents written before the ledger existed carry null or no list at all
        if not isinstance(value, list):
            return []
        return value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def add_session(self, session_id: str, token: str, device_info: str = "Unknown", ip_address: str = "Unknown") -> Session:
        """Append a new session, evicting the oldest one when the ledger is full."""
        while len(self.active_sessions) >= MAX_ACTIVE_SESSIONS:
            self.active_sessions.pop(0)
        timestamp = now()
        session = Session(
            session_id=session_id,
            token=token,
            device_info=device_info,
            ip_address=ip_address,
            last_activity=timestamp,
            created_at=timestamp,
        )
        self.active_sessions.append(session)
        return session

    def remove_session(self, session_id: str) -> None:
        self.active_sessions = [s for s in self.active_sessions if s.session_id != session_id]

    def update_session_activity(self, session_id: str) -> None:
        session = next((s for s in self.active_sessions if s.session_id == session_id), None)
        if session is not None:
            session.last_activity = now()

    def has_session(self, session_id: str) -> bool:
        return any(s.session_id == session_id for s in self.active_sessions)

    def get_active_sessions_count(self) -> int:
        return len(self.active_sessions)

    def find_session_by_token(self, token: str) -> Session | None:
        """Exact-match lookup of a bearer token in the ledger."""
        return next((s for s in self.active_sessions if s.token == token), None)


class UserView(BaseModel):
    """User profile (API representation) without credentials or tokens."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    profile_picture: str = Field(..., description="Profile picture URL")
    preferences: Preferences = Field(..., description="UI and notification preferences")
    is_email_verified: bool = Field(..., description="Whether the email address was confirmed")
    role: UserRole = Field(..., description="Authorization role")
    is_active: bool = Field(..., description="False for deactivated accounts")
    last_login: datetime | None = Field(None, description="Time of the last successful login")
    active_sessions: list[SessionView] = Field(..., description="Active sessions without their tokens")
    created_at: datetime = Field(..., description="Registration time")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_picture=user.profile_picture,
            preferences=user.preferences,
            is_email_verified=user.is_email_verified,
            role=user.role,
            is_active=user.is_active,
            last_login=user.last_login,
            active_sessions=[SessionView.from_domain(s) for s in user.active_sessions],
            created_at=user.created_at,
        )


class TokenUserView(BaseModel):
    """Minimal projection returned when a client checks its token."""

    id: UUID = Field(..., description="User ID")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    email: str = Field(..., description="Email address")
    is_email_verified: bool = Field(..., description="Whether the email address was confirmed")
    profile_picture: str = Field(..., description="Profile picture URL")
    preferences: Preferences = Field(..., description="UI and notification preferences")

    @classmethod
    def from_domain(cls, user: User) -> "TokenUserView":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            is_email_verified=user.is_email_verified,
            profile_picture=user.profile_picture,
            preferences=user.preferences,
        )
