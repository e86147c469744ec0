"""Application configuration and constants."""
import os
from collections.abc import Mapping
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Backend API
PRODUCTION_HOSTNAME = "toeqbank-wxhxl.ondigitalocean.app"
PRODUCTION_API_URL = f"https://{PRODUCTION_HOSTNAME}/api"
DEFAULT_API_URL = "http://localhost:3001/api"


def resolve_api_base_url(
    env: Mapping[str, str] | None = None, hostname: str | None = None
) -> str:
    """Resolve the backend base URL.

    An explicit ``QBANK_API_URL`` wins, then the production mapping for the
    public hostname, then the localhost default.
    """
    if env is None:
        env = os.environ
    override = env.get("QBANK_API_URL")
    if override:
        return override.rstrip("/")
    if hostname is None:
        hostname = env.get("QBANK_PUBLIC_HOSTNAME", "")
    if hostname == PRODUCTION_HOSTNAME:
        return PRODUCTION_API_URL
    return DEFAULT_API_URL


API_BASE_URL = resolve_api_base_url()
REQUEST_TIMEOUT_SECONDS = _parse_int_env("QBANK_REQUEST_TIMEOUT_SECONDS", 30)
# Generation calls go through an LLM and take much longer
GENERATION_TIMEOUT_SECONDS = _parse_int_env("QBANK_GENERATION_TIMEOUT_SECONDS", 120)

# Local durable storage (auth token, last known profile)
DATA_DIR = Path(os.environ.get("QBANK_DATA_DIR", Path.cwd() / "data"))
DATA_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DATA_DIR / 'local_storage.db'}"
)

AUTH_TOKEN_KEY = "authToken"
AUTH_USER_KEY = "authUser"

# Server
HOST = os.environ.get("QBANK_HOST", "127.0.0.1")
PORT = _parse_int_env("QBANK_PORT", 8000)

# Uploads
UPLOAD_MAX_SIZE_BYTES = _parse_int_env("QBANK_UPLOAD_MAX_SIZE_BYTES", 100 * 1024 * 1024)
UPLOAD_ALLOWED_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp",
    ".mp4", ".webm", ".mov", ".avi",
}
