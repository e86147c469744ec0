"""Client-side auth session: current user and token.

The session lives in memory and is mirrored to ``LocalStorage`` so it
survives restarts. ``load`` re-verifies a stored token against the backend
before trusting it; any failure clears the stored session.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from jose import JWTError, jwt

from qbank.client import auth as auth_api
from qbank.client.base import ApiClient, ApiError
from qbank.config import AUTH_TOKEN_KEY, AUTH_USER_KEY
from qbank.models.auth import (
    ProfileUpdateRequest,
    SessionResponse,
    User,
    UserLogin,
    UserRegister,
)
from qbank.services.local_storage import LocalStorage
from qbank.utils.time_utils import utc_now

log = logging.getLogger(__name__)


class AuthError(Exception):
    """Login, registration or profile update was refused."""


def token_expired(token: str, now: datetime | None = None) -> bool:
    """Check the ``exp`` claim without verifying the signature.

    Tokens that cannot be decoded are not treated as expired; the backend
    decides on those.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return False
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return False
    now = now or utc_now()
    return datetime.fromtimestamp(exp, tz=timezone.utc) <= now


class AuthStore:
    """Holds the signed-in user and hands out authenticated clients."""

    def __init__(self, storage: LocalStorage, base_client: ApiClient) -> None:
        self._storage = storage
        self._base_client = base_client
        self._lock = threading.Lock()
        self.user: User | None = None
        self.token: str | None = None
        self.is_loading = True

    # Role flags; admins hold every privilege
    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    @property
    def is_reviewer(self) -> bool:
        return self.user is not None and (self.user.is_reviewer or self.user.is_admin)

    @property
    def is_image_contributor(self) -> bool:
        return self.user is not None and (
            self.user.is_image_contributor or self.user.is_admin
        )

    def snapshot(self) -> SessionResponse:
        return SessionResponse(
            is_authenticated=self.is_authenticated,
            user=self.user,
            is_admin=self.is_admin,
            is_reviewer=self.is_reviewer,
            is_image_contributor=self.is_image_contributor,
        )

    def client(self) -> ApiClient:
        """Client carrying the current token; a 401 response logs out."""
        client = self._base_client.with_token(self.token)
        client.on_unauthorized = self.logout
        return client

    def load(self) -> None:
        """Restore the stored session, keeping it only if the backend accepts it."""
        try:
            stored_token = self._storage.get_item(AUTH_TOKEN_KEY)
            stored_user = self._storage.get_json(AUTH_USER_KEY)
            if not stored_token or not stored_user:
                return

            if token_expired(stored_token):
                log.info("Stored token has expired, clearing session")
                self._clear()
                return

            try:
                fresh_user = auth_api.verify(self._base_client, stored_token)
            except ApiError as exc:
                log.info("Stored token rejected (%s), clearing session", exc.detail)
                self._clear()
                return

            if fresh_user is None:
                self._clear()
                return

            # Fresh profile from the server replaces the stored copy
            self._set_session(fresh_user, stored_token)
        finally:
            self.is_loading = False

    def login(self, username: str, password: str) -> User:
        try:
            response = auth_api.login(
                self._base_client, UserLogin(username=username, password=password)
            )
        except ApiError as exc:
            raise AuthError(_error_text(exc, "Login failed")) from exc
        self._set_session(response.user, response.token)
        log.info("Logged in as %s", response.user.username)
        return response.user

    def register(self, data: UserRegister) -> User:
        try:
            response = auth_api.register(self._base_client, data)
        except ApiError as exc:
            raise AuthError(_error_text(exc, "Registration failed")) from exc
        self._set_session(response.user, response.token)
        log.info("Registered %s", response.user.username)
        return response.user

    def update_profile(self, changes: ProfileUpdateRequest) -> User:
        try:
            updated = auth_api.update_profile(self.client(), changes)
        except ApiError as exc:
            raise AuthError(_error_text(exc, "Profile update failed")) from exc
        with self._lock:
            self.user = updated
            self._storage.set_json(AUTH_USER_KEY, updated.model_dump(mode="json"))
        return updated

    def logout(self) -> None:
        if self.user is not None:
            log.info("Logging out %s", self.user.username)
        self._clear()

    def _set_session(self, user: User, token: str) -> None:
        with self._lock:
            self.user = user
            self.token = token
            self._storage.set_item(AUTH_TOKEN_KEY, token)
            self._storage.set_json(AUTH_USER_KEY, user.model_dump(mode="json"))

    def _clear(self) -> None:
        with self._lock:
            self.user = None
            self.token = None
            self._storage.remove_item(AUTH_TOKEN_KEY)
            self._storage.remove_item(AUTH_USER_KEY)


def _error_text(exc: ApiError, fallback: str) -> str:
    if isinstance(exc.payload, dict) and exc.payload.get("error"):
        return str(exc.payload["error"])
    return fallback
