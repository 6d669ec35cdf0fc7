"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(default=["http://localhost:3000"])
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class TemporalConfig(BaseModel):
    """Temporal configuration model."""

    enabled: bool = Field(default=False, description="Enable temporal service")
    url: str = Field(default="temporal:7233", description="Temporal server url")
    namespace: str = Field(default="default", description="Temporal namespace")
    task_queue: str = Field(default="email", description="Temporal task queue name")
    execution_timeout_s: int = Field(
        default=3600, description="Workflow execution timeout in seconds"
    )


class JobsConfig(BaseModel):
    """Background job dispatch configuration."""

    backend: Literal["memory", "temporal"] = Field(
        default="memory", description="Where enqueued jobs are delivered"
    )


class EmailConfig(BaseModel):
    """Outbound email provider used by the worker."""

    api_url: str | None = Field(default=None, description="HTTP email provider URL")
    api_key: str | None = Field(default=None, description="Email provider secret")
    sender: str = Field(default="no-reply@example.com", description="From address")
    http_timeout: float = Field(default=10.0, description="Provider timeout (s)")


class SSOConfig(BaseModel):
    """Single sign-on settings shared with the identity provider."""

    enabled: bool = Field(default=False, description="Enable SSO account sync")
    secret: str | None = Field(
        default=None, description="Shared secret used to sign SSO payloads"
    )
    email_editable: bool = Field(
        default=True, description="Whether users may change their own email"
    )
    overrides_email: bool = Field(
        default=False, description="Payload email replaces the local email"
    )
    overrides_name: bool = Field(
        default=False, description="Payload name replaces the local name"
    )
    overrides_username: bool = Field(
        default=False, description="Payload username replaces the local username"
    )
    overrides_avatar: bool = Field(
        default=False, description="Payload avatar replaces the local avatar"
    )

    @model_validator(mode="after")
    def _email_override_requires_locked_email(self) -> SSOConfig:
        if self.overrides_email and self.email_editable:
            raise ValueError(
                "sso.overrides_email requires sso.email_editable to be false"
            )
        return self


class UsersConfig(BaseModel):
    """User account rules."""

    username_min_length: int = Field(default=3, description="Shortest username")
    username_max_length: int = Field(default=20, description="Longest username")
    ip_info_url: str = Field(
        default="https://ipinfo.io/{ip}/json", description="IP lookup URL template"
    )
    ip_info_timeout: float = Field(default=10.0, description="IP lookup timeout (s)")
    delete_same_ip_max_trust_level: int = Field(
        default=1,
        description="Highest trust level removed by delete-others-with-same-ip",
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./forum_admin.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    create_tables_on_startup: bool = Field(
        default=True, description="Create missing tables when the API starts"
    )

    @computed_field
    @property
    def is_sqlite(self) -> bool:
        """Whether the URL points at a SQLite database."""
        return self.url.startswith("sqlite")


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    public_url: str | None = Field(
        default=None, description="Externally visible base URL of the forum"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        if self.public_url:
            return self.public_url.rstrip("/")
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    model_config = ConfigDict(extra="ignore")

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    temporal: TemporalConfig = Field(
        default_factory=TemporalConfig, description="Temporal configuration"
    )
    jobs: JobsConfig = Field(
        default_factory=JobsConfig, description="Background job configuration"
    )
    email: EmailConfig = Field(
        default_factory=EmailConfig, description="Email provider configuration"
    )
    sso: SSOConfig = Field(default_factory=SSOConfig, description="SSO configuration")
    users: UsersConfig = Field(
        default_factory=UsersConfig, description="User account rules"
    )
