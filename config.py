"""Connection settings loaded from environment variables and .env file."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0


class Settings(BaseSettings):
    """Settings for the vault server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: str | None = None
    github_owner: str | None = None
    github_repo: str | None = None
    github_api_url: str = DEFAULT_API_URL
    github_timeout: float = DEFAULT_TIMEOUT


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass(frozen=True, repr=False)
class Config:
    """Credential and repository coordinates, fixed for the process lifetime."""

    credential: str | None
    owner: str | None
    repo: str | None

    def missing_fields(self) -> list[str]:
        """Names of the environment variables that are unset or blank."""
        missing = []
        if not self.credential or not self.credential.strip():
            missing.append("GITHUB_TOKEN")
        if not self.owner or not self.owner.strip():
            missing.append("GITHUB_OWNER")
        if not self.repo or not self.repo.strip():
            missing.append("GITHUB_REPO")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __repr__(self) -> str:
        token_state = "set" if self.credential else "missing"
        return f"Config(credential={token_state}, owner={self.owner!r}, repo={self.repo!r})"


def load_config(settings: Settings | None = None) -> Config:
    """Build the Config from settings.

    Missing values are not rejected here; the gateway reports them on the
    first remote call.
    """
    settings = settings or get_settings()
    return Config(
        credential=settings.github_token,
        owner=settings.github_owner,
        repo=settings.github_repo,
    )
