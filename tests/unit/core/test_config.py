"""Tests for configuration models and defaults."""

import pytest
from pydantic import ValidationError

from kinetic.core.config import CherryPickConfig, GitHubConfig


@pytest.fixture
def github_env(monkeypatch):
    for var in ("GITHUB_TOKEN", "GITHUB_ORG", "GITHUB_REPO"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_github_settings_fall_back_to_environment(github_env):
    github_env.setenv("GITHUB_TOKEN", "env-token")
    github_env.setenv("GITHUB_ORG", "octo")
    github_env.setenv("GITHUB_REPO", "widgets")

    config = GitHubConfig()

    assert config.token == "env-token"
    assert config.owner == "octo"
    assert config.repo == "widgets"
    config.require()


def test_explicit_github_settings_win(github_env):
    github_env.setenv("GITHUB_REPO", "from-env")

    config = GitHubConfig(repo="from-config")

    assert config.repo == "from-config"


def test_require_names_every_missing_setting(github_env):
    github_env.setenv("GITHUB_ORG", "octo")

    with pytest.raises(ValueError) as exc:
        GitHubConfig().require()

    message = str(exc.value)
    assert "GITHUB_TOKEN" in message
    assert "GITHUB_REPO" in message
    assert "GITHUB_ORG" not in message


def test_cherry_pick_defaults():
    config = CherryPickConfig()

    assert config.base_branch == "main"
    assert config.lookback_days == 7
    assert config.initial_poll_delay == 3.0
    assert config.recheck_poll_delay == 2.0
    assert config.per_page == 100
    assert config.existing_branch == "reuse"


def test_existing_branch_policy_is_validated():
    with pytest.raises(ValidationError):
        CherryPickConfig(existing_branch="overwrite")


def test_package_defaults_are_loaded(test_config):
    assert test_config.cherry_pick.initial_poll_delay == 3.0
    assert test_config.github.api_url == "https://api.github.com"
    assert test_config.agents["cherry_pick"]["retries"] == 3

    prompt = test_config.prompts["cherry_pick"]["system"]
    assert "check_cherry_pick_conflicts" in prompt
    assert "request_confirmation" in prompt
    assert "NEVER create cherry-pick PRs" in prompt
