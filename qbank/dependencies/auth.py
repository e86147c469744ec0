"""Session dependencies for FastAPI."""
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from qbank.client.base import ApiClient
from qbank.models.auth import User
from qbank.services.auth_store import AuthStore
from qbank.services.editor_sessions import EditorRegistry, EditorSession


def get_auth_store(request: Request) -> AuthStore:
    return request.app.state.auth_store


def get_api_client(store: Annotated[AuthStore, Depends(get_auth_store)]) -> ApiClient:
    """Backend client carrying the signed-in user's token."""
    return store.client()


def require_user(store: Annotated[AuthStore, Depends(get_auth_store)]) -> User:
    """Get the signed-in user.

    Raises:
        HTTPException: 401 if nobody is signed in.
    """
    if store.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return store.user


def require_reviewer(
    user: Annotated[User, Depends(require_user)],
    store: Annotated[AuthStore, Depends(get_auth_store)],
) -> User:
    """Get the signed-in user if they may review images.

    Raises:
        HTTPException: 403 for users without reviewer or admin rights.
    """
    if not store.is_reviewer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Reviewer access required",
        )
    return user


def get_editors(request: Request) -> EditorRegistry:
    return request.app.state.editors


def get_editor(
    session_id: str,
    editors: Annotated[EditorRegistry, Depends(get_editors)],
) -> EditorSession:
    """Look up an open editor.

    Raises:
        HTTPException: 404 if the editor was closed or never existed.
    """
    session = editors.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Editor session not found",
        )
    return session
