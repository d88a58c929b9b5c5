"""
Configuration Management for SemeSmart

Every setting comes from the environment (or a local .env file) through
pydantic-settings. Three groups: Firebase, Gemini and the app itself.

DESIGN DECISION: Sub-settings are built on first access, so a missing
Gemini key does not stop the family data from loading.
"""

import warnings
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FirebaseSettings(BaseSettings):
    """Firebase (Auth + Firestore) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    web_api_key: str = Field(
        ...,
        description="Web API key used by the Identity Toolkit REST endpoints"
    )
    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to a service account JSON. Application default credentials are used when empty"
    )
    project_id: Optional[str] = Field(
        default=None,
        description="Firebase project id (optional when present in the credentials)"
    )
    users_collection: str = Field(
        default="users",
        description="Firestore collection holding one document per user"
    )
    auth_base_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        description="Identity Toolkit REST base URL"
    )
    request_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout for identity provider HTTP calls"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """A missing service account file is a warning; it may be mounted at deploy time."""
        if v and not Path(v).exists():
            warnings.warn(
                f"Firebase credentials file not found at {v}. "
                "Firestore access will fail until it is provided."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini (spending insights) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="API key for the Gemini insight model"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Model used for spending insights"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Upper bound on the reply length"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for the tips"
    )


class AppSettings(BaseSettings):
    """
    Behaviour of the session and the front end.

    Variables use the APP_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Deployment name (development, production, ...)"
    )
    debug_mode: bool = Field(
        default=False,
        description="Show tracebacks in the front end"
    )

    # Insights
    insights_min_expenses: int = Field(
        default=5,
        ge=0,
        description="Insights are requested only above this many expense transactions"
    )
    insights_max_transactions: int = Field(
        default=30,
        ge=1,
        le=200,
        description="Most recent expense transactions sent for analysis"
    )
    insights_count: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Number of tips requested from the model"
    )

    # Device-local autocomplete caches
    suggestions_path: str = Field(
        default=".semesmart/suggestions.json",
        description="Where saved locations and income sources are kept on this device"
    )

    # Write discipline
    optimistic_concurrency: bool = Field(
        default=True,
        description="Reject writes when the document changed since it was read"
    )
    save_conflict_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts to re-apply a change after a write conflict"
    )

    @property
    def suggestions_file(self) -> Path:
        """Get the suggestions path expanded."""
        return Path(self.suggestions_path).expanduser()


class Settings(BaseSettings):
    """
    Entry point to the three settings groups.

    Each property re-reads the environment when accessed.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are built lazily to allow partial configuration

    @property
    def firebase(self) -> FirebaseSettings:
        return FirebaseSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    The process-wide settings root.

    Tests that change the environment call get_settings.cache_clear().
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to build every settings group.

    Returns {group: ok} plus "<group>_error" entries for the failures,
    which the front end shows on its status page.
    """
    results = {}

    settings = get_settings()

    for name in ("firebase", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
