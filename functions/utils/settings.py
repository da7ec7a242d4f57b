"""
functions/utils/settings.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single source of truth* for runtime configuration
of the Gitea Status Relay.

It is responsible for:
- Defining all supported configuration fields (via Pydantic BaseSettings)
- Loading default values from parameters/parameters.yaml
- Overriding defaults with environment variables
- Validating required settings (Gitea URL and access token)
- Exposing a cached, fully-validated Settings object to the application

LOAD & PRECEDENCE MODEL
-----------------------
Configuration is loaded in the following order (last wins):

1) YAML defaults from:
       parameters/parameters.yaml
2) Environment variables (no prefix):
       GITEA_URL, TOKEN, PORT, HTTP_TIMEOUT_SECONDS, LOG_LEVEL, ...

REQUIRED SETTINGS
-----------------
- gitea_url   base URL of the Gitea server, e.g. https://git.example.com
- token       Gitea access token, sent as `Authorization: token <token>`

Missing either one, or an environment value that fails validation, is
fatal at startup: get_settings() raises RuntimeError.
The token is a SecretStr and is never logged.

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- HTTP calls
- Request handling
- Logging configuration (see logging_config.py)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import AnyHttpUrl, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

PARAMETERS_PATH = Path(__file__).resolve().parents[2] / "parameters" / "parameters.yaml"


class Settings(BaseSettings):
    """
    Runtime settings for the Gitea Status Relay.

    Load order / precedence:
        1) YAML defaults (parameters/parameters.yaml)
        2) Environment variables, overriding YAML
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
    )

    # Service metadata
    service_name: str = "gitea_status_relay"
    environment: str = "local"
    log_level: str = "INFO"

    # Upstream Gitea server
    # Optional at the model level to allow partial env loading;
    # enforced explicitly in get_settings().
    gitea_url: Optional[AnyHttpUrl] = None
    token: Optional[SecretStr] = None

    # Outbound timeout, applied to every Gitea call
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    # Listening port
    port: int = Field(default=8080, ge=1, le=65535)


@lru_cache(maxsize=1)
def _load_yaml_parameters() -> Dict[str, Any]:
    """
    Load base configuration from parameters/parameters.yaml.

    Cached so the file is read once per process.
    """
    if not PARAMETERS_PATH.exists():
        logger.warning("parameters_yaml_missing", expected=str(PARAMETERS_PATH))
        return {}

    try:
        with PARAMETERS_PATH.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error("parameters_yaml_load_error", path=str(PARAMETERS_PATH), error=str(exc))
        return {}

    if not isinstance(data, dict):
        logger.warning(
            "parameters_yaml_not_dict",
            path=str(PARAMETERS_PATH),
            type=type(data).__name__,
        )
        return {}
    logger.info("parameters_yaml_loaded", path=str(PARAMETERS_PATH))
    return data


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Construct and return the final validated Settings object.

    Cached (singleton per process). Raises RuntimeError when the Gitea URL
    or token is missing, or when an environment value is invalid.
    """
    # 1) YAML defaults
    yaml_data = _load_yaml_parameters()

    # 2) env overrides (partial)
    try:
        env_settings = Settings()
        env_data = env_settings.model_dump(exclude_unset=True)
        logger.info("settings_loaded_env_only_partial", fields=list(env_data.keys()))
    except ValidationError as exc:
        invalid = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        ]
        logger.error("settings_env_validation_error", invalid=invalid)
        raise RuntimeError(f"Invalid settings in environment: {'; '.join(invalid)}") from exc

    # 3) merge
    merged: Dict[str, Any] = {**yaml_data, **env_data}

    # 4) enforce required settings
    missing: list[str] = []
    if not merged.get("gitea_url"):
        missing.append("gitea_url (GITEA_URL)")
    if not merged.get("token"):
        missing.append("token (TOKEN)")

    if missing:
        logger.error("settings_missing_required", missing=missing, yaml_path=str(PARAMETERS_PATH))
        raise RuntimeError(
            f"Missing required settings: {', '.join(missing)}. "
            f"Set them in environment variables or in {PARAMETERS_PATH}."
        )

    # 5) final validation
    settings = Settings.model_validate(merged)

    logger.info(
        "settings_loaded",
        environment=settings.environment,
        service_name=settings.service_name,
        gitea_url=str(settings.gitea_url),
        http_timeout_seconds=settings.http_timeout_seconds,
        port=settings.port,
    )

    return settings
