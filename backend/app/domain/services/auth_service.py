"""
Service d'authentification : login, inscription, session courante, profil.

L'API distante est essayée en premier ; en cas d'échec (ou sans API
configurée) une session mock est créée et conservée dans le stockage de
session (`authToken`, `mockUser`) pour que l'application reste utilisable.
"""
import json
import logging
import time
import uuid
from datetime import datetime
from typing import Any, Optional

from app.core.session_storage import AUTH_TOKEN_KEY, MOCK_USER_KEY, SessionStorage
from app.domain.entities import AuthUser, LoginRequest, ProfileUpdate, SignUpRequest, UserRole, parse_model
from app.domain.errors import BACKEND_UNAVAILABLE, AuthError, ServiceError
from app.domain.services.remote_accessor import RemoteAccessor

logger = logging.getLogger(__name__)


def _mock_token() -> str:
    return f"mock-token-{int(time.time() * 1000)}"


class AuthService:

    def __init__(self, session_storage: SessionStorage, remote: Optional[RemoteAccessor] = None):
        self.session_storage = session_storage
        self.remote = remote

    @property
    def token(self) -> Optional[str]:
        return self.session_storage.auth_token

    def is_authenticated(self) -> bool:
        return bool(self.token)

    # ---- Session mock ----

    def _store_session(self, user: AuthUser, mock: bool = False) -> AuthUser:
        self.session_storage.set(AUTH_TOKEN_KEY, user.token)
        if mock:
            self.session_storage.set(MOCK_USER_KEY, user.model_dump_json())
        return user

    def _mock_user(self) -> Optional[AuthUser]:
        raw = self.session_storage.get(MOCK_USER_KEY)
        if not raw:
            return None
        return parse_model(AuthUser, json.loads(raw))

    # ---- Login / inscription ----

    async def login(self, credentials: Any) -> AuthUser:
        credentials = parse_model(LoginRequest, credentials)
        if self.remote is not None:
            try:
                user, token = await self.remote.login(credentials)
                return self._store_session(user.model_copy(update={"token": token}))
            except BACKEND_UNAVAILABLE as e:
                logger.warning(f"Login API en échec pour {credentials.email} ({e}), authentification mock")

        user = AuthUser(
            id="mock-user-123",
            email=credentials.email,
            name="Mock User",
            first_name="Mock",
            last_name="User",
            token=_mock_token(),
            role=UserRole.ATHLETE,
            pending=False,
            registration_date=datetime.utcnow(),
        )
        return self._store_session(user, mock=True)

    async def sign_up(self, credentials: Any) -> AuthUser:
        """Inscription ; un compte mock reste en attente d'approbation du coach."""
        credentials = parse_model(SignUpRequest, credentials)
        if self.remote is not None:
            try:
                user, token = await self.remote.register(credentials)
                return self._store_session(user.model_copy(update={"token": token}))
            except BACKEND_UNAVAILABLE as e:
                logger.warning(f"Inscription API en échec pour {credentials.email} ({e}), compte mock")

        full_name = f"{credentials.first_name or ''} {credentials.last_name or ''}".strip()
        user = AuthUser(
            id=f"mock-user-{uuid.uuid4().hex[:12]}",
            email=credentials.email,
            name=full_name or "Mock User",
            first_name=credentials.first_name,
            last_name=credentials.last_name,
            token=_mock_token(),
            role=UserRole.ATHLETE,
            pending=True,
            registration_date=datetime.utcnow(),
        )
        return self._store_session(user, mock=True)

    async def logout(self) -> None:
        if self.remote is not None and self.is_authenticated():
            try:
                await self.remote.logout()
            except ServiceError as e:
                logger.warning(f"Logout API en échec ({e}), session locale effacée quand même")
        self.session_storage.remove(AUTH_TOKEN_KEY)
        self.session_storage.remove(MOCK_USER_KEY)

    # ---- Session courante ----

    async def get_current_user(self) -> Optional[AuthUser]:
        if not self.is_authenticated():
            return None
        if self.remote is not None:
            try:
                return await self.remote.get_current_user()
            except BACKEND_UNAVAILABLE as e:
                logger.warning(f"GET /auth/me en échec ({e}), lecture de l'utilisateur mock")
        return self._mock_user()

    async def require_active_session(self) -> AuthUser:
        """Session valide et approuvée, sinon AuthError."""
        user = await self.get_current_user()
        if user is None:
            raise AuthError("Not authenticated")
        if user.pending:
            raise AuthError("Account pending coach approval", status_code=403)
        return user

    async def update_profile(self, updates: Any) -> AuthUser:
        updates = parse_model(ProfileUpdate, updates)
        if not self.is_authenticated():
            raise AuthError("User must be authenticated to update profile")

        if self.remote is not None:
            try:
                user = await self.remote.update_profile(updates)
                if user is not None:
                    return user
            except BACKEND_UNAVAILABLE as e:
                logger.warning(f"Mise à jour du profil API en échec ({e}), mise à jour de l'utilisateur mock")

        mock_user = self._mock_user()
        if mock_user is None:
            raise AuthError("No user found to update")
        updated = mock_user.model_copy(update=updates.model_dump(exclude_unset=True))
        self.session_storage.set(MOCK_USER_KEY, updated.model_dump_json())
        return updated
