"""Authentication routes."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from qbank.dependencies.auth import get_auth_store, require_user
from qbank.models.auth import (
    MessageResponse,
    ProfileUpdateRequest,
    SessionResponse,
    User,
    UserLogin,
    UserRegister,
)
from qbank.services.auth_store import AuthError, AuthStore

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=SessionResponse)
def login(
    data: UserLogin,
    store: Annotated[AuthStore, Depends(get_auth_store)],
) -> SessionResponse:
    """Log in against the backend and keep the session."""
    try:
        store.login(data.username, data.password)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    return store.snapshot()


@router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: UserRegister,
    store: Annotated[AuthStore, Depends(get_auth_store)],
) -> SessionResponse:
    """Register a new account and sign in with it."""
    try:
        store.register(data)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return store.snapshot()


@router.post("/logout", response_model=MessageResponse)
def logout(store: Annotated[AuthStore, Depends(get_auth_store)]) -> MessageResponse:
    """Forget the current session."""
    if not store.is_authenticated:
        return MessageResponse(message="Already logged out")
    store.logout()
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=SessionResponse)
def get_me(store: Annotated[AuthStore, Depends(get_auth_store)]) -> SessionResponse:
    """Get the current session and role flags."""
    return store.snapshot()


@router.put("/profile", response_model=User)
def update_profile(
    changes: ProfileUpdateRequest,
    _: Annotated[User, Depends(require_user)],
    store: Annotated[AuthStore, Depends(get_auth_store)],
) -> User:
    """Update email or name of the signed-in user."""
    try:
        return store.update_profile(changes)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
