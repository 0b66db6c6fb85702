"""Fixtures for gitstore tests."""

from pathlib import Path

import git
import pytest

from gitstore.config import GitstoreConfig, REQUIRED_ENV, BRANCH_ENV, BASE_DIR_ENV
from gitstore.store import GitStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide any gitstore settings exported in the developer's shell."""
    for name in (*REQUIRED_ENV, BRANCH_ENV, BASE_DIR_ENV):
        # setenv first so the original value is restored on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def upstream(tmp_path: Path) -> Path:
    """Create an empty bare repository acting as the remote."""
    path = tmp_path / "upstream.git"
    git.Repo.init(path, bare=True)
    return path


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Directory the application reads its working copies from."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def config(tmp_path: Path, upstream: Path) -> GitstoreConfig:
    return GitstoreConfig(
        url=str(upstream),
        username="robot",
        token="s3cret",
        base_dir=tmp_path / "data",
        push_retry_delay=0.0,
    )


@pytest.fixture
def local_config(tmp_path: Path) -> GitstoreConfig:
    """Configuration without remote settings."""
    return GitstoreConfig(base_dir=tmp_path / "data")


@pytest.fixture
def store(config: GitstoreConfig, workdir: Path) -> GitStore:
    return GitStore(config, cwd=workdir)


@pytest.fixture
def local_store(local_config: GitstoreConfig, workdir: Path) -> GitStore:
    return GitStore(local_config, cwd=workdir)


def remote_commits(upstream: Path, branch: str = "main") -> list[git.Commit]:
    """Return the commits on the remote branch."""
    return list(git.Repo(upstream).iter_commits(branch))


def remote_file(upstream: Path, path: str, branch: str = "main") -> str:
    """Return the content of a file on the remote branch."""
    blob = git.Repo(upstream).commit(branch).tree / path
    return blob.data_stream.read().decode("utf-8")
