# src/browser_harness/config/settings.py
"""
Configuration Management with Pydantic v2

This module provides the configuration for the browser harness:
- Loads settings from multiple sources (defaults → .env → environment variables)
- Validates all configuration with Pydantic v2
- Groups settings per component (browser, discovery, server, page, logging)

Key Design Patterns:
- Settings Pattern: Centralized configuration with validation
- Nested Models: One section per provisioning component

Only this layer reads the process environment. The provisioning
components receive a Settings instance and work from host properties.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    model_validator,
    ConfigDict
)
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_BROWSER_KINDS = ("chrome", "edge")


def _parse_list(v) -> List[str]:
    """Parse a comma separated string or a list into a list of strings."""
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return list(v or [])


class BrowserSettings(BaseModel):
    """
    Browser session configuration.

    These settings control how the browser is launched and
    how long the session waits for pages and elements.
    """
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode"
    )

    window_width: int = Field(
        default=1920,
        ge=320,
        le=3840,
        description="Browser window width (320-3840)"
    )

    window_height: int = Field(
        default=1080,
        ge=240,
        le=2160,
        description="Browser window height (240-2160)"
    )

    page_load_timeout: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Page load timeout in seconds"
    )

    implicit_wait: float = Field(
        default=10.0,
        ge=0,
        le=300,
        description="Implicit element wait in seconds"
    )

    wait_timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Explicit wait for the page body after navigation, in seconds"
    )

    driver_startup_timeout: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Driver service startup bound in seconds"
    )

    user_data_dir_prefix: str = Field(
        default="browser-test-",
        min_length=1,
        description="Prefix of the per-run user data directory"
    )

    extra_args: List[str] = Field(
        default_factory=list,
        description="Additional browser command line arguments"
    )

    @field_validator("extra_args", mode="before")
    @classmethod
    def parse_extra_args(cls, v) -> List[str]:
        """Parse browser arguments from string or list."""
        return _parse_list(v)


class DiscoverySettings(BaseModel):
    """Driver and binary discovery configuration."""
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    driver_dir: str = Field(
        default="driver",
        min_length=1,
        description="Project-local folder holding driver executables"
    )

    # Edge before Chrome locally, Chrome before Edge system-wide.
    local_priority: List[str] = Field(
        default_factory=lambda: ["edge", "chrome"],
        description="Browser kinds tried in the project driver folder, in order"
    )

    system_priority: List[str] = Field(
        default_factory=lambda: ["chrome", "edge"],
        description="Browser kinds tried in system locations, in order"
    )

    @field_validator("local_priority", "system_priority", mode="before")
    @classmethod
    def parse_priority(cls, v) -> List[str]:
        """Parse a priority list from string or list."""
        return [item.lower() for item in _parse_list(v)]

    @field_validator("local_priority", "system_priority")
    @classmethod
    def validate_priority(cls, v: List[str]) -> List[str]:
        """Validate a priority list names each supported kind at most once."""
        if not v:
            raise ValueError("Priority list must not be empty")
        unknown = set(v) - set(SUPPORTED_BROWSER_KINDS)
        if unknown:
            raise ValueError(f"Unsupported browser kinds: {sorted(unknown)}. Choose from {SUPPORTED_BROWSER_KINDS}")
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate browser kinds in priority: {v}")
        return v


class ServerSettings(BaseModel):
    """Static file server configuration."""
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    enabled: bool = Field(
        default=True,
        description="Serve the page over HTTP; when False a file URL is used"
    )

    port_min: int = Field(default=8000, ge=1024, le=65535)
    port_max: int = Field(default=8999, ge=1024, le=65535)

    startup_grace: float = Field(
        default=3.0,
        ge=0,
        le=60,
        description="Seconds to wait after spawning before checking the process"
    )

    probe_attempts: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum readiness probes"
    )

    probe_interval: float = Field(
        default=1.0,
        ge=0,
        le=30,
        description="Seconds between readiness probes"
    )

    probe_connect_timeout: float = Field(default=1.0, gt=0, le=30)
    probe_read_timeout: float = Field(default=1.0, gt=0, le=30)

    stop_grace: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Seconds to wait for graceful termination before killing"
    )

    runtime_candidates: List[str] = Field(
        default_factory=list,
        description="Script runtimes tried for serving; empty means the platform default"
    )

    runtime_probe_timeout: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Bound on each '<runtime> --version' probe"
    )

    @field_validator("runtime_candidates", mode="before")
    @classmethod
    def parse_runtime_candidates(cls, v) -> List[str]:
        return _parse_list(v)

    @model_validator(mode="after")
    def validate_port_range(self) -> "ServerSettings":
        """Validate the port range is not inverted."""
        if self.port_min > self.port_max:
            raise ValueError("port_min cannot exceed port_max")
        return self


class PageSettings(BaseModel):
    """Location of the page under test."""
    model_config = ConfigDict(extra="forbid")

    candidates: List[str] = Field(
        default_factory=lambda: [
            "index.html",
            "src/index.html",
            "static/index.html",
            "public/index.html",
            "tests/resources/index.html",
            "test-resources/index.html",
            "src/main/resources/index.html",
        ],
        description="Relative paths searched for the page under test, first match wins"
    )

    @field_validator("candidates", mode="before")
    @classmethod
    def parse_candidates(cls, v) -> List[str]:
        return _parse_list(v)

    @field_validator("candidates")
    @classmethod
    def validate_candidates(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one page candidate is required")
        return v


class LoggingSettings(BaseModel):
    """Centralized logging configuration."""
    model_config = ConfigDict(extra="forbid")

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    format_type: str = Field(
        default="console",
        description="Log format (console, json)"
    )

    console_enabled: bool = Field(default=True)
    file_enabled: bool = Field(default=False)
    file_path: Path = Field(default=Path("logs/browser-harness.log"))

    max_file_size_mb: int = Field(default=10, ge=1, le=1000)
    backup_count: int = Field(default=3, ge=1, le=30)

    correlation_id_enabled: bool = Field(default=True)

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    @field_validator("format_type")
    @classmethod
    def validate_format_type(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = {"console", "json"}
        if v not in valid_formats:
            raise ValueError(f"Invalid format: {v}")
        return v


class Settings(BaseSettings):
    """
    Main harness settings.

    This class loads configuration from multiple sources in priority order:
    1. Explicit keyword arguments
    2. Environment variables (HARNESS_ prefix, "__" for nesting)
    3. .env file
    4. Default values

    Example:
        HARNESS_BROWSER__HEADLESS=false
        HARNESS_SERVER__PORT_MIN=9000
        HARNESS_DISCOVERY__LOCAL_PRIORITY='["chrome", "edge"]'

    List fields read from the environment are JSON encoded; passed
    directly, they also accept a comma separated string.
    """

    model_config = SettingsConfigDict(
        env_prefix="HARNESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    project_root: Path = Field(
        default_factory=Path.cwd,
        description="Root directory holding the driver folder and the page under test"
    )

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    page: PageSettings = Field(default_factory=PageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("project_root")
    @classmethod
    def resolve_project_root(cls, v: Path) -> Path:
        """Store the project root as an absolute path."""
        return Path(v).expanduser().resolve()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached harness settings instance.

    The cache can be cleared using get_settings.cache_clear()

    Returns:
        Settings: Harness settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.server.port_min, settings.server.port_max)
    """
    return Settings()


def reload_settings() -> Settings:
    """Force reload settings by clearing cache."""
    get_settings.cache_clear()
    return get_settings()
