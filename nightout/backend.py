import logging
from typing import Any, Iterator

import httpx

from .config import settings

logger = logging.getLogger("nightout.backend")


class BackendError(Exception):
    """Any failed call to the hosted backend (auth, table or storage)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        # GoTrue, PostgREST and storage each name the field differently
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _eq_filters(filters: dict[str, Any] | None) -> dict[str, str]:
    return {column: f"eq.{value}" for column, value in (filters or {}).items()}


class HostedBackend:
    """
    Client for the hosted backend: GoTrue auth, PostgREST tables and object
    storage, all behind one base URL.

    Calls run as the anonymous role until set_auth() is given a user's
    access token.
    """

    def __init__(self, base_url: str, api_key: str, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token: str | None = None
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"apikey": api_key},
            transport=transport,
        )

    def set_auth(self, access_token: str | None):
        self.access_token = access_token

    def close(self):
        self._client.close()

    def _request(self, method: str, path: str, headers: dict | None = None, **kwargs) -> httpx.Response:
        request_headers = {"Authorization": f"Bearer {self.access_token or self.api_key}"}
        if headers:
            request_headers.update(headers)
        try:
            response = self._client.request(method, path, headers=request_headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Backend request {method} {path} failed: {e}")
            raise BackendError(f"Could not reach the backend: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(f"Backend {method} {path} returned {response.status_code}: {message}")
            raise BackendError(message, status_code=response.status_code)
        return response

    # --- Auth ---

    def sign_in(self, email: str, password: str) -> dict:
        response = self._request(
            "POST", "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return response.json()

    def sign_up(self, email: str, password: str) -> dict:
        response = self._request("POST", "/auth/v1/signup", json={"email": email, "password": password})
        return response.json()

    def refresh_session(self, refresh_token: str) -> dict:
        response = self._request(
            "POST", "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return response.json()

    def get_user(self) -> dict | None:
        if not self.access_token:
            return None
        return self._request("GET", "/auth/v1/user").json()

    def sign_out(self):
        if self.access_token:
            self._request("POST", "/auth/v1/logout")
        self.access_token = None

    # --- Tables ---

    def select(
            self,
            table: str,
            columns: str = "*",
            filters: dict[str, Any] | None = None,
            order: str | None = None,
            descending: bool = False,
            limit: int | None = None,
    ) -> list[dict]:
        params = {"select": columns, **_eq_filters(filters)}
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return self._request("GET", f"/rest/v1/{table}", params=params).json()

    def insert(self, table: str, rows: list[dict]) -> list[dict]:
        response = self._request(
            "POST", f"/rest/v1/{table}",
            json=rows,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    def update(self, table: str, values: dict, filters: dict[str, Any]) -> list[dict]:
        response = self._request(
            "PATCH", f"/rest/v1/{table}",
            params=_eq_filters(filters),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    def delete(self, table: str, filters: dict[str, Any]) -> list[dict]:
        response = self._request(
            "DELETE", f"/rest/v1/{table}",
            params=_eq_filters(filters),
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    # --- Storage ---

    def upload(self, bucket: str, path: str, content: bytes, content_type: str | None = None) -> dict:
        response = self._request(
            "POST", f"/storage/v1/object/{bucket}/{path}",
            content=content,
            headers={"Content-Type": content_type or "application/octet-stream"},
        )
        return response.json()

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{path}"


def get_backend() -> Iterator[HostedBackend]:
    backend = HostedBackend(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
    try:
        yield backend
    finally:
        backend.close()
