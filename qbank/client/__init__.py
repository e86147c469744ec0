"""Backend REST client and endpoint wrappers."""
from qbank.client import auth, descriptions, exams, images, metadata, questions
from qbank.client.base import ApiClient, ApiError

__all__ = [
    "ApiClient",
    "ApiError",
    "auth",
    "descriptions",
    "exams",
    "images",
    "metadata",
    "questions",
]
