"""Bearer token issuing and verification."""

from datetime import timedelta
from uuid import UUID

from jose import JWTError, jwt

from globetrotter.core.modules.session.models import AuthToken
from globetrotter.errors import AuthenticationError
from globetrotter.utils import now, random_hex

TOKEN_ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(days=7)


class TokenIssuer:
    """Signs and verifies stateless bearer tokens with a server-held secret.

    A token that verifies here is not yet a valid credential: it must also be
    present in the owner's session ledger.
    """

    def __init__(self, secret: str, lifetime: timedelta = TOKEN_LIFETIME) -> None:
        if not secret:
            raise ValueError("JWT secret is not configured")
        self._secret = secret
        self._lifetime = lifetime

    def issue(self, user_id: UUID) -> AuthToken:
        """Mint a token binding user_id with a fixed expiry."""
        issued_at = now()
        claims = {
            "userId": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
            "jti": random_hex(16),  # two logins within one second still get distinct tokens
        }
        return AuthToken(jwt.encode(claims, self._secret, algorithm=TOKEN_ALGORITHM))

    def verify(self, token: str) -> UUID:
        """Check signature and expiry, return the user id the token was issued for."""
        try:
            claims = jwt.decode(token, self._secret, algorithms=[TOKEN_ALGORITHM])
            return UUID(claims["userId"])
        except (JWTError, KeyError, TypeError, ValueError) as e:
            raise AuthenticationError("Invalid token") from e

    @staticmethod
    def generate_session_id() -> str:
        """Random removable handle for one session. Not a credential."""
        return random_hex(32)
