"""
Configuration management for citecheck.
Loads and validates settings from YAML files and environment variables.

Settings are read once per process. Components never read them directly:
the engine, session pool and workers receive an immutable RunConfig.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_BLOCKED_RESOURCE_TYPES = ("image", "stylesheet", "font", "media")

DEFAULT_LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
)

MAX_CONCURRENCY = 20

# Load states accepted by Playwright page.goto()
WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]


class GeneralConfig(BaseModel):
    """General configuration."""

    project_name: str = "citecheck"
    log_level: str = "INFO"
    log_file: str | None = None
    json_logs: bool = True


class BrowserConfig(BaseModel):
    """Browser session configuration.

    Every session in the pool is created with the same identity,
    viewport and resource-blocking policy.
    """

    model_config = ConfigDict(extra="forbid")

    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = Field(default=1280, ge=1)
    viewport_height: int = Field(default=720, ge=1)
    blocked_resource_types: tuple[str, ...] = DEFAULT_BLOCKED_RESOURCE_TYPES
    launch_args: tuple[str, ...] = DEFAULT_LAUNCH_ARGS


class CrawlerConfig(BaseModel):
    """Verification run configuration."""

    model_config = ConfigDict(extra="forbid")

    concurrency: int = Field(default=5, ge=1, le=MAX_CONCURRENCY)
    timeout_ms: int = Field(default=15000, ge=1)
    retries: int = Field(default=1, ge=0)
    retry_backoff_seconds: float = Field(default=1.0, ge=0.0)
    request_delay_seconds: float = Field(default=1.0, ge=0.0)
    wait_until: WaitUntil = "domcontentloaded"
    extract: bool = True
    deduplicate: bool = True


class Settings(BaseModel):
    """Main settings container."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    crawler: CrawlerConfig = Field(default_factory=CrawlerConfig)


class RunConfig(CrawlerConfig, BrowserConfig):
    """Immutable configuration for one verification run.

    Constructed once by the caller and passed into the session pool,
    the browser runtime and the workers. Fields and defaults come from
    CrawlerConfig and BrowserConfig.

    Attributes:
        concurrency: Number of workers and browser sessions (1-20).
        timeout_ms: Hard deadline for a single navigation attempt.
        retries: Extra attempts for retryable failures (attempt budget is 1 + retries).
        retry_backoff_seconds: Fixed sleep before a retry.
        request_delay_seconds: Fixed per-worker delay between consecutive targets.
        wait_until: Playwright load state that completes a navigation.
        extract: Run the extractor registry on reachable pages.
        deduplicate: Drop repeated normalized URLs when building the frontier.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def max_attempts(self) -> int:
        """Total attempts allowed per target."""
        return self.retries + 1

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: Any) -> "RunConfig":
        """Build a run configuration from loaded settings.

        Args:
            settings: Settings to read. Uses get_settings() if None.
            **overrides: Field values that take precedence over settings
                (e.g. values parsed from the command line).

        Returns:
            RunConfig instance.
        """
        if settings is None:
            settings = get_settings()

        values: dict[str, Any] = {
            **settings.browser.model_dump(),
            **settings.crawler.model_dump(),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary.
        override: Override dictionary.

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_config(config_dir: Path) -> dict[str, Any]:
    """Load settings.yaml with local.yaml overrides.

    local.yaml has the same shape as settings.yaml and is meant for
    machine-specific values that are not committed.

    Args:
        config_dir: Configuration directory path.

    Returns:
        Merged configuration dictionary.
    """
    config: dict[str, Any] = {}

    base_path = config_dir / "settings.yaml"
    if base_path.exists():
        with open(base_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

    local_path = config_dir / "local.yaml"
    if local_path.exists():
        with open(local_path, encoding="utf-8") as f:
            config = _deep_merge(config, yaml.safe_load(f) or {})

    return config


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides.

    Environment variables should be prefixed with CITECHECK_ and use
    double underscores for nested keys.

    Example:
        CITECHECK_CRAWLER__CONCURRENCY=8

    Args:
        config: Configuration dictionary.

    Returns:
        Configuration with environment overrides.
    """
    prefix = "CITECHECK_"

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        key_path = key[len(prefix) :].lower().split("__")
        if len(key_path) < 2:
            # Not a section override (e.g. CITECHECK_CONFIG_DIR)
            continue

        current = config
        for part in key_path[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]

        final_key = key_path[-1]
        try:
            if value.lower() in ("true", "false"):
                current[final_key] = value.lower() == "true"
            elif "." in value:
                current[final_key] = float(value)
            else:
                current[final_key] = int(value)
        except ValueError:
            current[final_key] = value

    return config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get application settings.

    Settings are loaded from:
    1. Default values
    2. YAML configuration files
    3. Environment variables (highest priority)

    Returns:
        Settings instance.
    """
    config_dir = Path(os.environ.get("CITECHECK_CONFIG_DIR", "config"))

    config = _load_yaml_config(config_dir)
    config = _apply_env_overrides(config)

    return Settings(**config)
