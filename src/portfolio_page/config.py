"""Configuration with 4-layer resolution: defaults -> YAML -> env -> CLI.

Uses pydantic-settings with YamlConfigSettingsSource for layered configuration.
Supports ``.env`` file loading, ``PORTFOLIO_PAGE_`` prefixed env vars, and
nested delimiter ``__`` for overriding sub-model fields.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, ClassVar, Literal

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

StrategyName = Literal["json_ld", "activities", "public_record", "html_scrape"]

# Primary attempt plus one fallback.
MAX_STRATEGIES = 2

ORCID_ID_PATTERN = re.compile(r"^\d{4}-\d{4}-\d{4}-\d{3}[\dX]$")

# Values left behind by page templates that never had a real iD filled in.
PLACEHOLDER_ORCID_IDS = frozenset({"YOUR-ORCID-ID", "0000-0000-0000-0000"})


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class GitHubSettings(BaseModel):
    """Repository listing source."""

    account: str = "TAUforPython"
    api_base: str = "https://api.github.com"
    per_page: int = Field(default=100, ge=1, le=100)
    timeout: float = Field(
        default=10.0, gt=0.0, description="Request timeout in seconds."
    )

    @field_validator("api_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class OrcidSettings(BaseModel):
    """Researcher profile source and publication strategy chain."""

    orcid_id: str = Field(
        default="", description="ORCID iD; empty means not configured."
    )
    registry_host: str = "orcid.org"
    strategies: list[StrategyName] = Field(
        default_factory=lambda: ["activities", "public_record"],
        description="Strategies in priority order (primary, then one fallback).",
    )
    empty_result_policy: Literal["continue", "stop"] = Field(
        default="continue",
        description="Whether an empty parse falls through to the next strategy.",
    )
    timeout: float = Field(default=10.0, gt=0.0)
    user_agent: str = "portfolio-page/0.1 (+https://orcid.org)"

    @field_validator("orcid_id")
    @classmethod
    def _validate_orcid_id(cls, value: str) -> str:
        value = value.strip()
        if not value or value in PLACEHOLDER_ORCID_IDS:
            return value
        if not ORCID_ID_PATTERN.match(value):
            msg = f"not a valid ORCID iD (expected 0000-0000-0000-000X): {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("strategies")
    @classmethod
    def _validate_strategies(cls, value: list[str]) -> list[str]:
        if not value:
            msg = "at least one publication strategy is required"
            raise ValueError(msg)
        if len(value) > MAX_STRATEGIES:
            msg = f"at most {MAX_STRATEGIES} strategies (primary and one fallback)"
            raise ValueError(msg)
        if len(set(value)) != len(value):
            msg = "strategies must not repeat"
            raise ValueError(msg)
        return value

    @property
    def is_configured(self) -> bool:
        return bool(self.orcid_id) and self.orcid_id not in PLACEHOLDER_ORCID_IDS


class OutputSettings(BaseModel):
    """Rendered page output."""

    path: Path = Path("./site/index.html")
    title: str = "Portfolio"


class LoggingSettings(BaseModel):
    """Logging / observability configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Main Settings (4-layer resolution)
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Top-level application settings.

    Resolution order (last wins):
        1. Field defaults (defined above)
        2. YAML config file (``portfolio.yaml`` or ``--config`` path)
        3. Environment variables (prefixed ``PORTFOLIO_PAGE_``)
        4. CLI overrides (applied programmatically after loading)
    """

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_PAGE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="portfolio.yaml",
        yaml_file_encoding="utf-8",
        extra="ignore",
    )

    _config_path_override: ClassVar[Path | None] = None

    github: GitHubSettings = Field(default_factory=GitHubSettings)
    orcid: OrcidSettings = Field(default_factory=OrcidSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings source priority.

        Resolution order (first = highest priority):
            init_settings (CLI) > env_settings > dotenv (.env) > yaml > defaults
        """
        yaml_file = cls._config_path_override or settings_cls.model_config.get(
            "yaml_file", "portfolio.yaml"
        )
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
        )

    @classmethod
    def load(cls, config_path: Path | None = None, **overrides: Any) -> Settings:
        """Load settings with optional config path and CLI overrides.

        Args:
            config_path: Optional path to a YAML config file.
            **overrides: Key-value CLI overrides applied at highest priority.

        Returns:
            Fully-resolved Settings instance.

        Raises:
            ValidationError: If any setting value fails validation.
        """
        cls._config_path_override = config_path
        try:
            return cls(**overrides)
        finally:
            cls._config_path_override = None


def format_validation_error(exc: ValidationError) -> str:
    """Format a Pydantic ValidationError into a user-friendly message.

    Args:
        exc: The validation error to format.

    Returns:
        A multi-line string with each error on its own line.
    """
    lines: list[str] = []
    for error in exc.errors():
        loc = " -> ".join(str(part) for part in error["loc"])
        msg = error["msg"]
        raw_input = error.get("input")
        if raw_input is not None:
            lines.append(f"  {loc}: {msg} (got {raw_input!r})")
        else:
            lines.append(f"  {loc}: {msg}")
    return "Configuration error:\n" + "\n".join(lines)
