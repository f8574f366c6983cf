"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

TRANSPORTS = ("stdio", "http")


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip() not in ("0", "false", "False", "")


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    allow_writes: bool = True
    transport: str = "stdio"
    host: str = "0.0.0.0"
    port: int = 8080
    shared_key: str = ""
    credentials_file: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env

        if (env.get("DEBUG") or "").strip().lower() in ("1", "true"):
            level = "DEBUG"
        else:
            level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
            if level == "WARN":
                level = "WARNING"
            if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
                level = "INFO"

        transport = (env.get("MCP_TRANSPORT") or "stdio").strip().lower()
        if transport not in TRANSPORTS:
            raise ValueError(f"MCP_TRANSPORT must be one of {', '.join(TRANSPORTS)}, got '{transport}'")

        return cls(
            log_level=level,
            allow_writes=_truthy(env.get("ALLOW_GTM_WRITES", "1")),
            transport=transport,
            host=env.get("HOST") or "0.0.0.0",
            port=int(env.get("PORT") or 8080),
            shared_key=(env.get("MCP_SHARED_KEY") or "").strip(),
            credentials_file=env.get("GOOGLE_APPLICATION_CREDENTIALS") or None,
        )


def load_env_file(cwd: Optional[Path] = None) -> Optional[Path]:
    """Load ENV_FILE (default .env) into os.environ; existing values win.

    Returns the path that was loaded, or None when there is no such file.
    """
    path = Path(cwd or Path.cwd()) / os.environ.get("ENV_FILE", ".env")
    if not path.is_file():
        return None
    load_dotenv(path, override=False)
    return path
