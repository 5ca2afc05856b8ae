"""
HTTP client for the Thinkify API.

Every response is an envelope ``{status, message, data | error}``; non-2xx
answers are raised as ApiError carrying the server's message.
"""

from typing import Any, Callable, Dict, List, Optional

import httpx


class ApiError(Exception):
    """Request failed at the server or never reached it"""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(message)

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in (401, 403)


class ThinkifyApi:
    """Thin typed wrapper over the REST routes"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        token = token or (self.token_provider() if self.token_provider else None)
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, token: Optional[str] = None, **kwargs) -> Any:
        try:
            response = self._client.request(method, path, headers=self._headers(token), **kwargs)
        except httpx.ConnectError:
            raise ApiError("Cannot connect to server. Is the API running?")
        except httpx.TimeoutException:
            raise ApiError("Request timed out")

        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text or response.reason_phrase}

        if response.is_error:
            message = body.get("message") or body.get("detail") or f"HTTP {response.status_code}"
            raise ApiError(str(message), response.status_code, body)
        return body.get("data")

    # ========== Users ==========

    def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/users/registration", json=payload)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/users/login", json={"email": email, "password": password})

    def validate_token(self, token: str) -> Dict[str, Any]:
        return self._request("GET", "/users/validate-token", token=token)

    def logout(self, token: Optional[str] = None) -> None:
        self._request("POST", "/users/logout", token=token)

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/users/me")

    # ========== Teacher ==========

    def teacher_dashboard(self) -> Dict[str, Any]:
        return self._request("GET", "/teacher/dashboard")

    def teacher_assignments(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"status": status} if status else None
        return self._request("GET", "/teacher/assignments", params=params)

    def grade(self, assignment_id: str, student_id: str, marks: float, feedback: Optional[str] = None):
        return self._request(
            "PUT",
            f"/teacher/assignments/{assignment_id}/grade/{student_id}",
            json={"marks": marks, "feedback": feedback},
        )

    def teacher_polls(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"status": status} if status else None
        return self._request("GET", "/teacher/polls", params=params)

    def students(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/teacher/students")

    # ========== Student ==========

    def student_assignments(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/student/assignments")

    def submit(self, assignment_id: str, content: str) -> Dict[str, Any]:
        return self._request("POST", f"/student/assignments/{assignment_id}/submit", json={"content": content})

    # ========== Polls ==========

    def polls(self, active_only: bool = False) -> List[Dict[str, Any]]:
        return self._request("GET", "/polls/active" if active_only else "/polls")

    def vote(self, poll_id: str, option_indexes: List[int]) -> Dict[str, Any]:
        return self._request("POST", f"/polls/{poll_id}/vote", json={"option_indexes": option_indexes})

    def poll_results(self, poll_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/polls/{poll_id}/results")
