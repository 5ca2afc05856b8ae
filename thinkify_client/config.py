"""
Settings for the command line client.

Defaults, then ``<config_dir>/config.json``, then ``THINKIFY_*`` environment
variables, in increasing priority.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


DEFAULT_SESSION_FILE = "session.json"

# env var -> (attribute, converter)
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "THINKIFY_API_URL": ("api_base_url", str),
    "THINKIFY_TIMEOUT": ("timeout", float),
    "THINKIFY_TOKEN_KEY": ("token_key", str),
    "THINKIFY_ROLE_KEY": ("role_key", str),
    "THINKIFY_SESSION_DAYS": ("session_expiry_days", int),
    "THINKIFY_VERIFY_SESSION": ("verify_session", _flag),
}


@dataclass
class ClientConfig:
    api_base_url: str = "http://localhost:8000/api/v1"
    timeout: float = 30.0

    # keys inside the session file, and how long a stored login lives
    token_key: str = "token"
    role_key: str = "role"
    session_expiry_days: int = 7
    session_file: str = DEFAULT_SESSION_FILE

    # re-check the stored token with GET /users/validate-token before each command
    verify_session: bool = True

    config_dir: str = field(default_factory=lambda: str(Path.home() / ".thinkify"))

    def __post_init__(self):
        self._resolve_session_file()

    def _resolve_session_file(self) -> None:
        """Relative session files live inside config_dir"""
        if not os.path.isabs(self.session_file):
            self.session_file = str(Path(self.config_dir) / self.session_file)

    @property
    def config_path(self) -> Path:
        return Path(self.config_dir) / "config.json"

    def update(self, values: Dict[str, Any]) -> None:
        """Apply known keys, ignoring anything this version does not recognise.

        A session file that was only the default follows a new config_dir.
        """
        default_session = str(Path(self.config_dir) / DEFAULT_SESSION_FILE)
        for key, value in values.items():
            if key in self.__dataclass_fields__:
                setattr(self, key, value)
        if "session_file" not in values and self.session_file == default_session:
            self.session_file = DEFAULT_SESSION_FILE
        self._resolve_session_file()

    def load_from_file(self, path: Optional[Path] = None) -> None:
        path = Path(path or self.config_path)
        if path.exists():
            self.update(json.loads(path.read_text()))

    def save_to_file(self, path: Optional[Path] = None) -> None:
        path = Path(path or self.config_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(self), indent=2))

    def apply_env(self, environ=None) -> None:
        environ = os.environ if environ is None else environ
        for name, (attr, convert) in ENV_OVERRIDES.items():
            raw = environ.get(name)
            if raw:
                setattr(self, attr, convert(raw))

    @classmethod
    def load_default(cls) -> "ClientConfig":
        config_dir = os.environ.get("THINKIFY_CONFIG_DIR")
        config = cls(config_dir=config_dir) if config_dir else cls()
        config.load_from_file()
        config.apply_env()
        return config
