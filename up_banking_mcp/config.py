"""
Environment configuration for the Up Banking MCP server.

Required:
    UP_PERSONAL_ACCESS_TOKEN  Up personal access token used for every API call.

Optional:
    MCP_AUTH_TOKEN            Bearer token clients must send to the SSE transport.
    UP_MCP_LOG_LEVEL          Logging level (default: INFO).
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import load_dotenv

TOKEN_ENV_VAR = "UP_PERSONAL_ACCESS_TOKEN"
AUTH_TOKEN_ENV_VAR = "MCP_AUTH_TOKEN"
LOG_LEVEL_ENV_VAR = "UP_MCP_LOG_LEVEL"


class ConfigError(Exception):
    """Raised when the process environment cannot produce a usable config."""


@dataclass(frozen=True)
class UpConfig:
    personal_access_token: str = field(repr=False)
    mcp_auth_token: Optional[str] = field(default=None, repr=False)
    log_level: str = "INFO"


def load_env_file(path: Optional[Union[str, Path]] = None) -> bool:
    """Load a .env file without overriding variables that are already set."""
    if path is None:
        return load_dotenv(override=False)
    return load_dotenv(path, override=False)


def get_config(environ: Optional[Mapping[str, str]] = None) -> UpConfig:
    """
    Validate and return the server configuration.

    Raises:
        ConfigError: if UP_PERSONAL_ACCESS_TOKEN is unset, empty or whitespace.
    """
    env = os.environ if environ is None else environ

    token = env.get(TOKEN_ENV_VAR)
    if token is None:
        raise ConfigError(
            f"{TOKEN_ENV_VAR} environment variable is required. "
            "Get your token from the Up mobile app: Settings > Security > Personal Access Tokens"
        )
    if not token.strip():
        raise ConfigError(f"{TOKEN_ENV_VAR} cannot be empty")

    auth_token = (env.get(AUTH_TOKEN_ENV_VAR) or "").strip() or None
    log_level = (env.get(LOG_LEVEL_ENV_VAR) or "INFO").strip().upper() or "INFO"
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"{LOG_LEVEL_ENV_VAR} is not a valid logging level: {log_level}")

    return UpConfig(
        personal_access_token=token.strip(),
        mcp_auth_token=auth_token,
        log_level=log_level,
    )
