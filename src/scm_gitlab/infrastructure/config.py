"""Adapter configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BreakerOptions(BaseModel):
    """Circuit breaker and timeout policy for outbound GitLab calls."""

    timeout: float = Field(default=10.0, gt=0)
    failure_threshold: int = Field(default=5, ge=1)
    cooldown: float = Field(default=30.0, ge=0)
    retries: int = Field(default=0, ge=0)
    retry_factor: float = Field(default=2.0, ge=1)
    retry_min_timeout: float = Field(default=1.0, ge=0)


class GitlabScmSettings(BaseSettings):
    """Central configuration loaded from ``GITLAB_SCM_*`` env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_prefix="GITLAB_SCM_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    gitlab_protocol: str = "https"
    gitlab_host: str = "gitlab.com"
    username: str = "sd-buildbot"
    email: str = "dev-null@screwdriver.cd"
    https: bool = False
    oauth_client_id: SecretStr
    oauth_client_secret: SecretStr
    default_branch: str = "master"
    breaker_options: BreakerOptions = Field(default_factory=BreakerOptions)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def gitlab_base_url(self) -> str:
        return f"{self.gitlab_protocol}://{self.gitlab_host}"


@lru_cache(maxsize=1)
def get_settings() -> GitlabScmSettings:
    """Return the singleton adapter settings (cached after first call)."""
    return GitlabScmSettings()  # type: ignore[call-arg]
