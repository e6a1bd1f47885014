# app/client/api.py
"""
HTTP client for the Mini Jira API.

Every response carries the ``{message, status, statusCode, data?, error?}``
envelope; the client returns ``data`` on success and raises ``ApiError`` for
error envelopes and transport failures alike.
"""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TaskApiClient:
    """Thin wrapper over a requests-compatible session"""

    def __init__(self, base_url: str, token: Optional[str] = None, session=None, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, params: Optional[dict] = None, json: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, params=params, json=json, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiError(f"Network error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            raise ApiError(f"Unexpected response from server ({response.status_code})", response.status_code)

        if response.status_code >= 400 or body.get("status") == "error":
            status_code = body.get("statusCode", response.status_code)
            if status_code == 401:
                # Stale or invalid token
                self.token = None
            raise ApiError(body.get("message", "Request failed"), status_code)

        return body.get("data")

    # -------------------- auth --------------------
    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["accessToken"]
        return data["user"]

    # -------------------- tasks --------------------
    def get_tasks(self, **params) -> dict:
        query = {key: value for key, value in params.items() if value not in (None, "")}
        return self._request("GET", "/tasks", params=query)

    def get_task(self, task_id: int) -> dict:
        return self._request("GET", f"/tasks/{task_id}")

    def create_task(self, data: dict) -> dict:
        return self._request("POST", "/tasks", json=data)

    def update_task(self, task_id: int, data: dict) -> dict:
        return self._request("PUT", f"/tasks/{task_id}", json=data)

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def reorder_task(self, task_id: int, new_order: int, new_status: Optional[str] = None) -> dict:
        payload = {"newOrder": new_order}
        if new_status:
            payload["newStatus"] = new_status
        return self._request("PUT", f"/tasks/{task_id}/reorder", json=payload)

    def get_dashboard(self, important_tasks_limit: Optional[int] = None) -> dict:
        params = {}
        if important_tasks_limit is not None:
            params["importantTasksLimit"] = important_tasks_limit
        return self._request("GET", "/tasks/dashboard", params=params)
