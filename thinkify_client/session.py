"""
Client authentication state.

SessionStore is the one persisted copy of the token and role (a JSON file,
mode 600). AuthSession keeps the in-memory view commands read from and is
the only writer of the store.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from thinkify.core.roles import UserRole, has_permissions, parse_role
from thinkify_client.api_client import ApiError, ThinkifyApi
from thinkify_client.config import ClientConfig

logger = logging.getLogger("thinkify_client")


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Alert:
    """Transient message for the user"""
    message: str
    severity: Severity = Severity.INFO


class SessionStore:
    """Token and role persisted under configurable key names"""

    def __init__(self, path: str, token_key: str = "token", role_key: str = "role", expiry_days: int = 7):
        self.path = Path(path)
        self.token_key = token_key
        self.role_key = role_key
        self.expiry_days = expiry_days

    @classmethod
    def from_config(cls, config: ClientConfig) -> "SessionStore":
        return cls(config.session_file, config.token_key, config.role_key, config.session_expiry_days)

    def load(self) -> Optional[Dict[str, Any]]:
        """Stored session, or None when absent, unreadable or expired"""
        if not self.path.exists():
            return None
        try:
            with open(self.path) as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            expires_at = data.get("expires_at")
            expired = bool(expires_at) and datetime.fromisoformat(expires_at) < datetime.utcnow()
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable session file {self.path}: {e}")
            self.clear()
            return None

        if expired:
            self.clear()
            return None

        token, role = data.get(self.token_key), data.get(self.role_key)
        if not token or not role:
            return None
        return {"token": token, "role": role, "user": data.get("user")}

    def save(self, token: str, role: str, user: Optional[Dict[str, Any]] = None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            self.token_key: token,
            self.role_key: role,
            "user": user,
            "expires_at": (datetime.utcnow() + timedelta(days=self.expiry_days)).isoformat(),
        }
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        # Secure the file (Unix only)
        if os.name == "posix":
            os.chmod(self.path, 0o600)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class AuthSession:
    """Who is signed in, as far as this client knows"""

    def __init__(self, store: SessionStore, api: ThinkifyApi):
        self.store = store
        self.api = api
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self.alert: Optional[Alert] = None

    @property
    def is_authenticated(self) -> bool:
        """A stored token is enough; an unrecognised role is handled by the route guard"""
        return self.token is not None

    @property
    def role(self) -> Optional[UserRole]:
        return parse_role((self.user or {}).get("role"))

    @property
    def permissions(self):
        return (self.user or {}).get("permissions") or []

    def has_permissions(self, required: Iterable[str]) -> bool:
        return has_permissions(self.role, self.permissions, required)

    def _set(self, token: str, user: Dict[str, Any]) -> None:
        self.token = token
        self.user = user

    def _reset(self) -> None:
        self.token = None
        self.user = None

    def load(self, verify: bool = False) -> bool:
        """Restore state from the store, optionally confirming it with the server"""
        stored = self.store.load()
        if stored is None:
            self._reset()
            return False

        user = dict(stored.get("user") or {})
        user["role"] = stored["role"]
        self._set(stored["token"], user)

        if verify:
            try:
                data = self.api.validate_token(stored["token"])
            except ApiError as e:
                if e.is_auth_failure:
                    self.store.clear()
                    self._reset()
                    self.alert = Alert(f"Session ended: {e.message}. Please login again.", Severity.WARNING)
                    return False
                # Server unreachable: keep the local session
                self.alert = Alert(f"Could not verify session: {e.message}", Severity.WARNING)
                return True
            self._set(stored["token"], data["user"])
        return True

    def _sign_in(self, data: Dict[str, Any], verb: str) -> None:
        user = data["user"]
        self.store.save(data["token"], user["role"], user)
        self._set(data["token"], user)
        self.alert = Alert(f"{verb} successful. Welcome, {user.get('full_name', user['email'])}!", Severity.SUCCESS)

    def login(self, email: str, password: str) -> bool:
        try:
            data = self.api.login(email, password)
        except ApiError as e:
            self.alert = Alert(e.message, Severity.ERROR)
            return False
        self._sign_in(data, "Login")
        return True

    def register(self, payload: Dict[str, Any]) -> bool:
        try:
            data = self.api.register(payload)
        except ApiError as e:
            self.alert = Alert(e.message, Severity.ERROR)
            return False
        self._sign_in(data, "Registration")
        return True

    def logout(self) -> None:
        """Clear local state; the server call is best effort"""
        token = self.token
        self.store.clear()
        self._reset()
        if token:
            try:
                self.api.logout(token)
            except ApiError as e:
                logger.info(f"Server logout not recorded: {e.message}")
        self.alert = Alert("Logged out", Severity.INFO)
