"""API route modules."""
from qbank.routes import auth, catalog, editor, images

__all__ = ["auth", "catalog", "editor", "images"]
