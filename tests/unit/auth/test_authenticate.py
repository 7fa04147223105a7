"""Tests for the request authenticator."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from globetrotter.core.modules.auth.service import AuthService, parse_bearer
from globetrotter.core.modules.session.tokens import TokenIssuer
from globetrotter.errors import AuthenticationError


@pytest.fixture
def auth_service(mock_core):
    service = AuthService(MagicMock())
    service.set_core(mock_core)
    return service


@pytest.fixture
def logged_in(mock_core, mock_user, token_issuer):
    """mock_user with one session; the user service resolves the user by id."""
    token = token_issuer.issue(mock_user.id)
    mock_user.add_session("session-a", token, "laptop", "10.0.0.1")
    mock_core.services.user.find_user.return_value = mock_user
    return token


class TestParseBearer:
    @pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "Bearer a b", "token-only"])
    def test_malformed_headers(self, header):
        """Test that anything other than 'Bearer <token>' yields no token."""
        assert parse_bearer(header) is None

    def test_bearer_header(self):
        """Test that the token is extracted from a well-formed header."""
        assert parse_bearer("Bearer abc.def.ghi") == "abc.def.ghi"


class TestAuthenticate:
    async def test_valid_token_is_admitted(self, auth_service, mock_core, mock_user, logged_in):
        """Test that a verified token present in the ledger is accepted and its activity touched."""
        auth = await auth_service.authenticate(f"Bearer {logged_in}")

        assert auth.user is mock_user
        assert auth.token == logged_in
        assert auth.session_id == "session-a"
        session = mock_user.find_session_by_token(logged_in)
        mock_core.services.session.touch_session.assert_awaited_once_with(mock_user, session)

    async def test_missing_header(self, auth_service, mock_core):
        """Test that requests without a bearer header are rejected before anything else."""
        with pytest.raises(AuthenticationError, match="Access token required"):
            await auth_service.authenticate(None)
        mock_core.services.user.find_user.assert_not_awaited()

    async def test_expired_token_rejected_before_lookup(self, auth_service, mock_core, mock_user):
        """Test that an expired token fails at the signature check without touching the store."""
        expired = TokenIssuer("test-secret-key", lifetime=timedelta(seconds=-1)).issue(mock_user.id)
        mock_user.add_session("session-a", expired)
        mock_core.services.user.find_user.return_value = mock_user

        with pytest.raises(AuthenticationError, match="Invalid token"):
            await auth_service.authenticate(f"Bearer {expired}")
        mock_core.services.user.find_user.assert_not_awaited()
        mock_core.services.session.touch_session.assert_not_awaited()

    async def test_unknown_user(self, auth_service, mock_core, token_issuer, mock_user):
        """Test that a token for a deleted user is reported as an invalid token."""
        mock_core.services.user.find_user.return_value = None
        token = token_issuer.issue(mock_user.id)

        with pytest.raises(AuthenticationError, match="Invalid token"):
            await auth_service.authenticate(f"Bearer {token}")

    async def test_deactivated_account(self, auth_service, mock_user, logged_in):
        """Test that inactive users are rejected even with a live session."""
        mock_user.is_active = False

        with pytest.raises(AuthenticationError, match="Account is deactivated"):
            await auth_service.authenticate(f"Bearer {logged_in}")

    async def test_token_not_in_ledger(self, auth_service, mock_core, mock_user, token_issuer):
        """Test that a cryptographically valid token missing from the ledger is rejected."""
        mock_core.services.user.find_user.return_value = mock_user
        token = token_issuer.issue(mock_user.id)

        with pytest.raises(AuthenticationError, match="Session expired or invalid"):
            await auth_service.authenticate(f"Bearer {token}")
        mock_core.services.session.touch_session.assert_not_awaited()

    async def test_evicted_token_rejected(self, auth_service, mock_user, logged_in):
        """Test that a token pushed out of the ledger by newer logins stops working."""
        for i in range(10):
            mock_user.add_session(f"newer-{i}", f"token-{i}")

        with pytest.raises(AuthenticationError, match="Session expired or invalid"):
            await auth_service.authenticate(f"Bearer {logged_in}")


class TestMultiDevice:
    async def test_logout_of_one_device_keeps_the_other(self, auth_service, mock_core, mock_user, token_issuer):
        """Test that two logins are independently valid and ending one leaves the other intact."""
        mock_core.services.user.find_user.return_value = mock_user
        token_a = token_issuer.issue(mock_user.id)
        token_b = token_issuer.issue(mock_user.id)
        mock_user.add_session("session-a", token_a, "laptop")
        mock_user.add_session("session-b", token_b, "phone")

        assert (await auth_service.authenticate(f"Bearer {token_a}")).session_id == "session-a"
        assert (await auth_service.authenticate(f"Bearer {token_b}")).session_id == "session-b"

        mock_user.remove_session("session-a")

        with pytest.raises(AuthenticationError, match="Session expired or invalid"):
            await auth_service.authenticate(f"Bearer {token_a}")
        assert (await auth_service.authenticate(f"Bearer {token_b}")).session_id == "session-b"
