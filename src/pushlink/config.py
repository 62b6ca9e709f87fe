"""
Client configuration — relay endpoint, credentials and connection options.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from pushlink.errors import ConfigError

DEFAULT_HOST = "gcm.googleapis.com"
DEFAULT_PORT = 5235
DEFAULT_IDENTITY_DOMAIN = "gcm.googleapis.com"

# Extension element carrying the JSON payload inside a message packet
PAYLOAD_ELEMENT = "gcm"
PAYLOAD_NAMESPACE = "google:mobile:data"

ENV_PREFIX = "PUSHLINK_"
CONFIG_FILE = Path.home() / ".pushlink" / "config.json"


class ClientConfig(BaseModel):
    project_id: str
    api_key: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN
    tls: bool = True
    reconnection: bool = True
    reconnection_delay: float = 1.0
    login_timeout: float = 10.0
    debug: bool = False

    @property
    def identity(self) -> str:
        return f"{self.project_id}@{self.identity_domain}"

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "ClientConfig":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid client configuration: {e}", details={"errors": e.errors()})

    @classmethod
    def from_env(
        cls,
        environ: Optional[dict[str, str]] = None,
        defaults: Optional[dict[str, Any]] = None,
        **overrides: Any,
    ) -> "ClientConfig":
        """Build a config from PUSHLINK_* variables (e.g. PUSHLINK_PROJECT_ID).

        Precedence: overrides, then the environment, then ``defaults`` (such as
        the values stored in the config file).
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = dict(defaults or {})
        for name in cls.model_fields:
            value = env.get(ENV_PREFIX + name.upper())
            if value is not None:
                data[name] = value
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_mapping(data)


def load_config_file(path: Path = CONFIG_FILE) -> dict[str, Any]:
    try:
        return json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def save_config_file(cfg: dict[str, Any], path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))
