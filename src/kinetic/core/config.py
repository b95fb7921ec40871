"""Application state and configuration."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from kinetic.core.base import BaseConfig, BaseState
from kinetic.core.log import Logger
from kinetic.core.yaml_settings import YamlWithIncludesSettingsSource

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

# Plain environment variables honoured for the GitHub section
GITHUB_ENV_FALLBACKS = {
    "token": "GITHUB_TOKEN",
    "owner": "GITHUB_ORG",
    "repo": "GITHUB_REPO",
}


class GitHubConfig(BaseConfig):
    """GitHub repository and API access."""

    token: str = Field(
        default="",
        description="API token (falls back to GITHUB_TOKEN)",
    )
    owner: str = Field(
        default="",
        description="Repository owner or organization (falls back to "
                    "GITHUB_ORG)",
    )
    repo: str = Field(
        default="",
        description="Repository name (falls back to GITHUB_REPO)",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="REST API root; set for GitHub Enterprise",
    )
    timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
    )

    @model_validator(mode="before")
    @classmethod
    def _env_fallbacks(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for field, env_var in GITHUB_ENV_FALLBACKS.items():
            if not data.get(field) and os.environ.get(env_var):
                data[field] = os.environ[env_var]
        return data

    def require(self) -> None:
        """Raise ValueError naming every missing setting."""
        missing = [
            env_var for field, env_var in GITHUB_ENV_FALLBACKS.items()
            if not getattr(self, field)
        ]
        if missing:
            raise ValueError(
                "GitHub settings missing; set "
                + ", ".join(missing)
                + " or config.github.* in kinetic.yaml"
            )


class CherryPickConfig(BaseConfig):
    """Conflict probing and cherry-pick materialization."""

    base_branch: str = Field(
        default="main",
        description="Default base branch when a caller gives none",
    )
    lookback_days: int = Field(
        default=7,
        description="Lookback window used when days <= 0",
    )
    initial_poll_delay: float = Field(
        default=3.0,
        description=(
            "Seconds to wait after opening a probe PR before reading "
            "its mergeable flag"
        ),
    )
    recheck_poll_delay: float = Field(
        default=2.0,
        description="Seconds to wait before the final mergeable re-check",
    )
    per_page: int = Field(
        default=100,
        description="Page size when listing closed pull requests",
    )
    existing_branch: Literal["reuse", "verify"] = Field(
        default="reuse",
        description=(
            "When the cherry-pick branch already exists: 'reuse' it "
            "as is, or 'verify' it still points at the target tip and "
            "fail otherwise"
        ),
    )


class LLMConfig(BaseConfig):
    """LLM provider and model selection for the agent command."""

    model: str = Field(
        default="openai:gpt-4o",
        description="Model in 'provider:model' form (e.g. openai:gpt-4o)",
    )
    api_key: str | None = Field(
        default=None,
        description=(
            "API key; when unset the provider reads its own variable "
            "(OPENAI_API_KEY, ...)"
        ),
    )
    base_url: str | None = Field(
        default=None,
        description="Base URL for OpenAI-compatible endpoints",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance",
    )
    github: GitHubConfig = Field(
        default_factory=GitHubConfig,
        description="GitHub repository settings",
    )
    cherry_pick: CherryPickConfig = Field(
        default_factory=CherryPickConfig,
        description="Conflict probing and materialization settings",
    )
    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM settings for the agent command",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir("kinetic", appauthor=False))
        ),
        description="Root directory for log files",
    )
    prompts: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Agent prompt templates",
    )
    agents: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Agent settings (retries, ...)",
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> Config:
        """Install the global logger once configuration is loaded."""
        from kinetic.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        self.logger = setup_logger(
            log_root=self.log_root,
            run_name=datetime.now().strftime('%Y%m%d-%H%M%S'),
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
            otlp=self.logger.otlp,
            logfire=self.logger.logfire,
        )
        return self


# ============================================================
# RUNTIME STATE MODELS (mutable during command execution)
# ============================================================

class BackportState(BaseState):
    """Backport workflow runtime state."""

    target_branches: list[str] = Field(
        default_factory=list,
        description="Branches to cherry-pick onto",
    )
    base_branch: str | None = Field(
        default=None,
        description="Base branch; config.cherry_pick.base_branch if unset",
    )
    days: int = Field(
        default=0,
        description="Lookback window; config default when <= 0",
    )
    pr_numbers: list[int] = Field(
        default_factory=list,
        description="Explicit PRs to backport instead of discovery",
    )
    assume_yes: bool = Field(
        default=False,
        description="Confirm every clean (PR, branch) pair without asking",
    )
    client: Any = Field(
        default=None,
        description="GitHubClient for this run",
    )
    ask: Any = Field(
        default=None,
        description="Prompts the human and returns the answer",
    )
    candidates: list = Field(
        default_factory=list,
        description="Merged pull requests considered for backporting",
    )
    checks: dict = Field(
        default_factory=dict,
        description="Conflict checks keyed by (pr_number, target_branch)",
    )
    confirmations: Any = Field(
        default=None,
        description="Confirmations granted for this run",
    )
    created: list = Field(
        default_factory=list,
        description="Cherry-pick pull requests created",
    )
    failures: list = Field(
        default_factory=list,
        description="(pr_number, target_branch, error) that failed",
    )
    status: str = Field(
        default="pending",
        description="pending, running, complete, failed",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class Runtime(BaseModel):
    """Runtime state grouped by command."""

    backport: BackportState = Field(default_factory=BackportState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Configuration plus runtime state; flows through every command.

    Configuration sources, highest priority first:
    1. Command-line arguments (--config.github.repo widgets)
    2. YAML: --include files > ./kinetic.yaml > user config >
       package defaults
    3. .env file
    4. Environment variables (KINETIC_CONFIG__GITHUB__REPO=widgets)
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description="Additional YAML files to deep-merge over the config",
    )

    model_config = SettingsConfigDict(
        yaml_file="kinetic.yaml",
        env_file=".env",
        env_prefix="KINETIC_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_kebab_case=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    def close(self):
        """Close configuration, which closes the logger sinks."""
        self.config.close()


__all__ = [
    "State",
    "Config",
    "GitHubConfig",
    "CherryPickConfig",
    "LLMConfig",
    "BackportState",
]
