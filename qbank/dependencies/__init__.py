"""FastAPI dependencies."""
from qbank.dependencies.auth import (
    get_api_client,
    get_auth_store,
    get_editor,
    get_editors,
    require_reviewer,
    require_user,
)

__all__ = [
    "get_api_client",
    "get_auth_store",
    "get_editor",
    "get_editors",
    "require_reviewer",
    "require_user",
]
