"""Runtime configuration loaded from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from gdoc.duration import parse_duration

# Environment variable for each settings field.
ENV_VARS: dict[str, str] = {
    "github_token": "GITHUB_TOKEN",
    "github_token_user": "GITHUB_TOKEN_USER",
    "github_user": "GITHUB_USER",
    "github_topic": "GITHUB_TOPIC",
    "github_poll_interval": "GITHUB_POLL_INTERVAL",
    "github_api_url": "GITHUB_API_URL",
    "godoc_root": "GODOC_ROOT",
    "godoc_port": "GODOC_PORT",
    "godoc_index_interval": "GODOC_INDEX_INTERVAL",
    "log_level": "LOG_LEVEL",
}


class Settings(BaseModel):
    """Configuration for the syncer and the godoc renderer."""

    # GitHub settings
    github_token: str = Field(
        min_length=1,
        description="Personal access token able to list and clone the repositories",
    )
    github_token_user: str = Field(default="", description="User the token belongs to (defaults to github_user)")
    github_user: str = Field(min_length=1, description="User or organization to scan; a single value only")
    github_topic: str = Field(default="godoc", description="Topic used to select repositories")
    github_poll_interval: str = Field(default="5m", description="Duration between polls, e.g. '300ms' or '2h45m'")
    github_api_url: str = Field(default="https://api.github.com", description="GitHub REST API base URL")

    # Godoc settings
    godoc_root: Path = Field(default=Path("/usr/local/go"), description="GOROOT passed to godoc; mirrors live under it")
    godoc_port: int = Field(default=6060, ge=1, le=65535, description="Port godoc listens on")
    godoc_index_interval: str = Field(default="1m", description="Godoc indexing interval")

    log_level: str = Field(default="INFO", description="Logging verbosity")

    @field_validator("github_poll_interval", "godoc_index_interval")
    @classmethod
    def _check_duration(cls, value: str) -> str:
        parse_duration(value)
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _default_token_user(self) -> Settings:
        if not self.github_token_user:
            self.github_token_user = self.github_user
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Unset variables fall back to field defaults; missing required values
        raise a pydantic ValidationError.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name, var in ENV_VARS.items():
            raw = env.get(var)
            if raw is not None and raw != "":
                values[field_name] = raw
        return cls(**values)

    def redacted(self) -> dict[str, Any]:
        """Settings as a dict with the token masked, for logging."""
        data = self.model_dump()
        if data["github_token"]:
            data["github_token"] = "****"
        return data
