from dataclasses import dataclass

from globetrotter.core.modules.session.models import AuthToken
from globetrotter.core.modules.user.models import User


@dataclass
class AuthContext:
    """Identity admitted by the request authenticator."""

    user: User
    token: AuthToken
    session_id: str


@dataclass
class LoginResult:
    token: AuthToken
    session_id: str
    user: User
