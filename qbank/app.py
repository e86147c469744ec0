"""Main FastAPI application with modularized routes."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qbank.client.base import ApiClient
from qbank.database import SessionLocal, init_db
from qbank.logging_setup import setup_console_logging
from qbank.routes import auth, catalog, editor, images
from qbank.services.auth_store import AuthStore
from qbank.services.editor_sessions import EditorRegistry
from qbank.services.local_storage import LocalStorage


def create_app(
    auth_store: AuthStore | None = None,
    editors: EditorRegistry | None = None,
) -> FastAPI:
    """Build the application; tests pass their own auth store."""
    app = FastAPI(title="TOE Question Bank")

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if auth_store is None:
        auth_store = AuthStore(LocalStorage(SessionLocal), ApiClient())
    app.state.auth_store = auth_store
    app.state.editors = editors if editors is not None else EditorRegistry()

    # Startup events
    @app.on_event("startup")
    def startup_events() -> None:
        """Create the storage tables and restore the saved session."""
        init_db()
        app.state.auth_store.load()

    @app.get("/")
    def index() -> dict[str, object]:
        """Backend in use and the current session."""
        store = app.state.auth_store
        return {
            "api_base_url": store.client().base_url,
            "session": store.snapshot().model_dump(mode="json"),
            "docs": "/docs",
        }

    # Include routers
    app.include_router(auth.router)
    app.include_router(editor.router)
    app.include_router(images.router)
    app.include_router(catalog.router)
    return app


setup_console_logging()

app = create_app()
