"""Backend REST client.

Every call goes through an explicit ``ApiClient`` carrying the base URL and
the bearer token of the current session; nothing reads a global token.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import requests

from qbank.config import API_BASE_URL, REQUEST_TIMEOUT_SECONDS

log = logging.getLogger(__name__)


class ApiError(Exception):
    """Backend call failed (HTTP error status or transport failure)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: object = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def detail(self) -> str:
        """Error text for display, preferring the backend's ``error`` field."""
        if isinstance(self.payload, dict):
            error = self.payload.get("error") or self.payload.get("message")
            if error:
                return str(error)
        return self.message

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ApiClient:
    """Thin JSON wrapper around a ``requests.Session``."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.on_unauthorized = on_unauthorized

    def with_token(self, token: str | None) -> ApiClient:
        """Return a client sharing this connection pool with another token."""
        return ApiClient(
            self.base_url,
            token=token,
            session=self.session,
            timeout=self.timeout,
            on_unauthorized=self.on_unauthorized,
        )

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self, token: str | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        bearer = token or self.token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: object = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            ApiError: On transport failure or a non-2xx status.
        """
        url = self.url(path)
        log.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=self._headers(token),
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as exc:
            log.error("%s %s failed: %s", method, url, exc)
            raise ApiError(f"Network error: {exc}") from exc

        payload = _decode(response)
        if response.status_code >= 400:
            log.warning("%s %s -> %s", method, url, response.status_code)
            if response.status_code == 401 and self.on_unauthorized is not None:
                self.on_unauthorized()
            raise ApiError(
                f"API error: {response.status_code} {response.reason or ''}".strip(),
                status_code=response.status_code,
                payload=payload,
            )
        return payload

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)


def _decode(response: requests.Response) -> object:
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
