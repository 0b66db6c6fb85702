"""Tests for gitstore configuration."""

import os
from pathlib import Path

import pytest

from gitstore.config import GitstoreConfig, load_env_files


def test_from_env(tmp_path: Path) -> None:
    """Test reading settings from the environment."""
    config = GitstoreConfig.from_env(
        {
            "GITSTORE_GIT_URL": "https://example.com/repo.git",
            "GITSTORE_GIT_USERNAME": "robot",
            "GITSTORE_GIT_TOKEN": "s3cret",
            "GITSTORE_GIT_BRANCH": "configs",
            "GITSTORE_BASE_DIR": str(tmp_path),
            "GITSTORE_GIT_AUTHOR_NAME": "Robot",
        }
    )
    assert config.url == "https://example.com/repo.git"
    assert config.username == "robot"
    assert config.token == "s3cret"
    assert config.branch == "configs"
    assert config.base_dir == tmp_path
    assert config.repo_dir == tmp_path / "gitstore"
    assert config.author_name == "Robot"
    assert config.author_email == "gitstore@localhost"
    assert config.missing_env() == []


def test_defaults() -> None:
    """Test defaults when nothing is configured."""
    config = GitstoreConfig.from_env({"GITSTORE_GIT_BRANCH": ""})
    assert config.branch == "main"
    assert config.base_dir == Path("data").resolve()
    assert config.push_attempts == 3
    assert config.push_retry_delay == 3.0
    assert config.network_timeout == 300.0
    assert config.missing_env() == [
        "GITSTORE_GIT_URL",
        "GITSTORE_GIT_USERNAME",
        "GITSTORE_GIT_TOKEN",
    ]


def test_missing_token() -> None:
    """Test an empty token is reported as missing."""
    config = GitstoreConfig.from_env(
        {
            "GITSTORE_GIT_URL": "https://example.com/repo.git",
            "GITSTORE_GIT_USERNAME": "robot",
            "GITSTORE_GIT_TOKEN": "",
        }
    )
    assert config.missing_env() == ["GITSTORE_GIT_TOKEN"]


def test_overrides(tmp_path: Path) -> None:
    """Test keyword overrides win over the environment."""
    config = GitstoreConfig.from_env(
        {"GITSTORE_GIT_BRANCH": "configs"}, branch="other", base_dir=tmp_path
    )
    assert config.branch == "other"
    assert config.base_dir == tmp_path


def test_token_not_in_repr() -> None:
    """Test the token is not exposed in debug output."""
    config = GitstoreConfig(url="u", username="robot", token="s3cret")
    assert "s3cret" not in repr(config)


def test_load_env_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test .env files never override exported variables."""
    monkeypatch.setenv("GITSTORE_GIT_USERNAME", "exported")
    monkeypatch.setenv("GITSTORE_GIT_URL", "")
    monkeypatch.delenv("GITSTORE_GIT_URL")
    (tmp_path / ".env").write_text(
        "GITSTORE_GIT_USERNAME=from-file\nGITSTORE_GIT_URL=https://example.com/repo.git\n"
    )

    assert load_env_files(tmp_path) == [tmp_path / ".env"]
    assert os.environ["GITSTORE_GIT_USERNAME"] == "exported"
    assert os.environ["GITSTORE_GIT_URL"] == "https://example.com/repo.git"


def test_load_env_files_missing(tmp_path: Path) -> None:
    """Test missing .env files are skipped."""
    assert load_env_files(tmp_path) == []
