"""
Tests pour AuthService (API distante, repli mock, stockage de session).
"""
import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from app.core.session_storage import AUTH_TOKEN_KEY, MOCK_USER_KEY, SessionStorage
from app.domain.entities import AuthUser
from app.domain.errors import AuthError, NetworkError, ValidationError
from app.domain.services.auth_service import AuthService

CREDENTIALS = {"email": "Runner@Example.com", "password": "secret"}


@pytest.fixture
def storage():
    return SessionStorage()


class TestMockSession:
    def test_login_without_api_creates_mock_session(self, storage):
        auth = AuthService(storage)
        user = asyncio.run(auth.login(CREDENTIALS))

        assert user.id == "mock-user-123"
        assert user.email == "runner@example.com"
        assert user.token.startswith("mock-token-")
        assert storage.get(AUTH_TOKEN_KEY) == user.token
        assert json.loads(storage.get(MOCK_USER_KEY))["id"] == "mock-user-123"
        assert auth.is_authenticated()

    def test_invalid_email_rejected(self, storage):
        with pytest.raises(ValidationError):
            asyncio.run(AuthService(storage).login({"email": "nope", "password": "x"}))

    def test_sign_up_is_pending(self, storage):
        auth = AuthService(storage)
        user = asyncio.run(auth.sign_up({**CREDENTIALS, "first_name": "Ada", "last_name": "Lovelace"}))

        assert user.pending
        assert user.name == "Ada Lovelace"
        with pytest.raises(AuthError) as exc:
            asyncio.run(auth.require_active_session())
        assert exc.value.status_code == 403

    def test_current_user_requires_token(self, storage):
        auth = AuthService(storage)
        assert asyncio.run(auth.get_current_user()) is None
        with pytest.raises(AuthError) as exc:
            asyncio.run(auth.require_active_session())
        assert exc.value.status_code == 401

    def test_logout_clears_session(self, storage):
        auth = AuthService(storage)
        asyncio.run(auth.login(CREDENTIALS))
        asyncio.run(auth.logout())
        assert storage.get(AUTH_TOKEN_KEY) is None
        assert storage.get(MOCK_USER_KEY) is None
        assert asyncio.run(auth.get_current_user()) is None

    def test_update_profile_merges_into_mock_user(self, storage):
        auth = AuthService(storage)
        asyncio.run(auth.login(CREDENTIALS))

        updated = asyncio.run(auth.update_profile({"goals": "Sub 40 10k", "weight": 68}))

        assert updated.goals == "Sub 40 10k"
        assert updated.email == "runner@example.com"
        assert asyncio.run(auth.get_current_user()).weight == 68

    def test_update_profile_requires_authentication(self, storage):
        with pytest.raises(AuthError):
            asyncio.run(AuthService(storage).update_profile({"goals": "x"}))

    def test_update_profile_without_stored_user(self):
        auth = AuthService(SessionStorage({AUTH_TOKEN_KEY: "jwt"}))
        with pytest.raises(AuthError):
            asyncio.run(auth.update_profile({"goals": "x"}))


class TestRemoteSession:
    def test_remote_login_stores_token_only(self, storage):
        remote = AsyncMock()
        remote.login.return_value = (AuthUser(id="u1", email="runner@example.com"), "jwt")
        auth = AuthService(storage, remote=remote)

        user = asyncio.run(auth.login(CREDENTIALS))

        assert user.token == "jwt"
        assert storage.get(AUTH_TOKEN_KEY) == "jwt"
        assert storage.get(MOCK_USER_KEY) is None

    def test_remote_failure_falls_back_to_mock(self, storage):
        remote = AsyncMock()
        remote.login.side_effect = NetworkError("down")
        auth = AuthService(storage, remote=remote)

        user = asyncio.run(auth.login(CREDENTIALS))
        assert user.id == "mock-user-123"

    def test_logout_failure_still_clears_session(self):
        storage = SessionStorage({AUTH_TOKEN_KEY: "jwt"})
        remote = AsyncMock()
        remote.logout.side_effect = NetworkError("down")

        asyncio.run(AuthService(storage, remote=remote).logout())

        remote.logout.assert_awaited_once()
        assert storage.get(AUTH_TOKEN_KEY) is None

    def test_current_user_from_remote(self):
        remote = AsyncMock()
        remote.get_current_user.return_value = AuthUser.model_validate({"id": "u1", "email": "a@b.io", "role": "coach"})
        auth = AuthService(SessionStorage({AUTH_TOKEN_KEY: "jwt"}), remote=remote)

        user = asyncio.run(auth.require_active_session())
        assert user.role.value == "coach"

    def test_rejected_credentials_do_not_open_mock_session(self, storage):
        remote = AsyncMock()
        remote.login.side_effect = AuthError("HTTP error! status: 401")
        auth = AuthService(storage, remote=remote)

        with pytest.raises(AuthError):
            asyncio.run(auth.login(CREDENTIALS))
        assert storage.get(AUTH_TOKEN_KEY) is None
        assert storage.get(MOCK_USER_KEY) is None
