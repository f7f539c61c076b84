"""HTTP client for the task API with transparent access-token renewal.

``TaskApiClient`` holds the current token pair in a ``TokenStore`` and
attaches the access token to every request. When the server answers 401 it
refreshes once with the held refresh token and retries the original request
once. If the refresh cannot be done, the stored tokens are cleared and the
caller gets the original 401.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import logging
import threading

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


@dataclass
class StoredTokens:
    access_token: str
    refresh_token: Optional[str] = None


class TokenStore:
    """Holds at most one token pair, optionally mirrored to a JSON file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path else None
        self._tokens: Optional[StoredTokens] = None
        if self._path and self._path.exists():
            data = json.loads(self._path.read_text(encoding="utf-8"))
            if data.get("accessToken"):
                self._tokens = StoredTokens(data["accessToken"], data.get("refreshToken"))

    @property
    def access_token(self) -> Optional[str]:
        return self._tokens.access_token if self._tokens else None

    @property
    def refresh_token(self) -> Optional[str]:
        return self._tokens.refresh_token if self._tokens else None

    def save(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        # Keep the held refresh token if the server did not send a new one.
        if refresh_token is None:
            refresh_token = self.refresh_token
        self._tokens = StoredTokens(access_token, refresh_token)
        self._write()

    def clear(self) -> None:
        self._tokens = None
        self._write()

    def _write(self) -> None:
        if self._path is None:
            return
        if self._tokens is None:
            self._path.unlink(missing_ok=True)
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(
                {
                    "accessToken": self._tokens.access_token,
                    "refreshToken": self._tokens.refresh_token,
                }
            ),
            encoding="utf-8",
        )


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        return data.get("error") or data.get("detail") or fallback
    return fallback


class TaskApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        store: Optional[TokenStore] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.store = store or TokenStore()
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._refresh_lock = threading.Lock()
        self._refreshing = False

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def state(self) -> SessionState:
        if self._refreshing:
            return SessionState.REFRESHING
        if self.store.access_token:
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    # -- transport -------------------------------------------------------

    def _send(self, method: str, path: str, token: Optional[str], **kwargs) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        headers.update(kwargs.pop("headers", None) or {})
        return self._http.request(method, path, headers=headers, **kwargs)

    def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send an authenticated request, refreshing and retrying once on 401."""
        token = self.store.access_token
        response = self._send(method, path, token, **kwargs)
        if response.status_code != 401:
            return response

        new_token = self._renew_access_token(token)
        if new_token is None:
            return response
        return self._send(method, path, new_token, **kwargs)

    def _renew_access_token(self, failed_token: Optional[str]) -> Optional[str]:
        with self._refresh_lock:
            current = self.store.access_token
            if current and current != failed_token:
                # Another caller refreshed while we were waiting.
                return current
            self._refreshing = True
            try:
                if self.refresh_access_token():
                    return self.store.access_token
            finally:
                self._refreshing = False
            return None

    def refresh_access_token(self) -> bool:
        """Exchange the held refresh token for a new pair.

        Any failure clears the stored tokens and returns False.
        """
        refresh_token = self.store.refresh_token
        if not refresh_token:
            logger.info("No refresh token held; session ended")
            self.store.clear()
            return False

        try:
            response = self._http.post(
                "/auth/refresh",
                json={"refreshToken": refresh_token},
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Token refresh failed: %s", exc)
            self.store.clear()
            return False

        if not response.is_success:
            logger.info("Token refresh rejected with %s; session ended", response.status_code)
            self.store.clear()
            return False

        try:
            data = response.json()
            access_token = data["accessToken"]
        except (ValueError, KeyError, TypeError):
            access_token = None
        if not isinstance(access_token, str) or not access_token:
            logger.warning("Token refresh returned an unusable body; session ended")
            self.store.clear()
            return False
        self.store.save(access_token, data.get("refreshToken"))
        return True

    def _json(self, response: httpx.Response, fallback: str) -> Any:
        if not response.is_success:
            raise ApiError(response.status_code, _error_message(response, fallback))
        return response.json()

    # -- auth ------------------------------------------------------------

    def _authenticate(self, path: str, email: str, password: str, fallback: str) -> Dict[str, Any]:
        response = self._http.post(path, json={"email": email, "password": password})
        data = self._json(response, fallback)
        self.store.save(data["accessToken"], data["refreshToken"])
        return data

    def register(self, email: str, password: str) -> Dict[str, Any]:
        return self._authenticate("/auth/register", email, password, "Registration failed")

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._authenticate("/auth/login", email, password, "Login failed")

    def logout(self) -> None:
        try:
            self._http.post("/auth/logout")
        except httpx.HTTPError as exc:
            logger.warning("Logout request failed: %s", exc)
        finally:
            self.store.clear()

    # -- tasks -----------------------------------------------------------

    def list_tasks(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {
            key: value
            for key, value in (("page", page), ("limit", limit), ("search", search), ("status", status))
            if value is not None
        }
        return self._json(self.request("GET", "/tasks", params=params), "Failed to load tasks")

    def create_task(self, title: str, description: Optional[str] = None) -> Dict[str, Any]:
        body = {"title": title}
        if description is not None:
            body["description"] = description
        return self._json(self.request("POST", "/tasks", json=body), "Failed to create task")

    def get_task(self, task_id: str) -> Dict[str, Any]:
        return self._json(self.request("GET", f"/tasks/{task_id}"), "Failed to load task")

    def update_task(self, task_id: str, **fields) -> Dict[str, Any]:
        return self._json(self.request("PATCH", f"/tasks/{task_id}", json=fields), "Failed to update task")

    def delete_task(self, task_id: str) -> Dict[str, Any]:
        return self._json(self.request("DELETE", f"/tasks/{task_id}"), "Failed to delete task")

    def toggle_task(self, task_id: str) -> Dict[str, Any]:
        return self._json(self.request("PATCH", f"/tasks/{task_id}/toggle"), "Failed to toggle task")
