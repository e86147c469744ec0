"""Authentication endpoints."""
from qbank.client.base import ApiClient
from qbank.models.auth import (
    AuthResponse,
    ProfileUpdateRequest,
    User,
    UserLogin,
    UserRegister,
)


def login(client: ApiClient, credentials: UserLogin) -> AuthResponse:
    """Log in and receive a token."""
    return AuthResponse.model_validate(
        client.post("/auth/login", json=credentials.model_dump())
    )


def register(client: ApiClient, data: UserRegister) -> AuthResponse:
    """Register a new account and receive a token."""
    return AuthResponse.model_validate(
        client.post("/auth/register", json=data.model_dump(exclude_none=True))
    )


def verify(client: ApiClient, token: str) -> User | None:
    """Check a token; returns the fresh profile when it is still valid."""
    data = client.get("/auth/verify", token=token)
    if not isinstance(data, dict) or not data.get("valid") or not data.get("user"):
        return None
    return User.model_validate(data["user"])


def get_profile(client: ApiClient) -> User:
    """Get the current user's profile."""
    return User.model_validate(client.get("/auth/profile")["user"])


def update_profile(client: ApiClient, changes: ProfileUpdateRequest) -> User:
    """Update the current user's profile."""
    data = client.put("/auth/profile", json=changes.model_dump(exclude_none=True))
    return User.model_validate(data["user"])
