"""Configuration objects for gitstore."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path

from dotenv import dotenv_values

__all__ = [
    "GitstoreConfig",
    "load_env_files",
]

_LOGGER = logging.getLogger(__name__)

URL_ENV = "GITSTORE_GIT_URL"
USERNAME_ENV = "GITSTORE_GIT_USERNAME"
TOKEN_ENV = "GITSTORE_GIT_TOKEN"
BRANCH_ENV = "GITSTORE_GIT_BRANCH"
BASE_DIR_ENV = "GITSTORE_BASE_DIR"
AUTHOR_NAME_ENV = "GITSTORE_GIT_AUTHOR_NAME"
AUTHOR_EMAIL_ENV = "GITSTORE_GIT_AUTHOR_EMAIL"

REQUIRED_ENV = (URL_ENV, USERNAME_ENV, TOKEN_ENV)

DEFAULT_BRANCH = "main"
DEFAULT_BASE_DIR = "data"
CLONE_DIR_NAME = "gitstore"


@dataclass
class GitstoreConfig:
    """Configuration for the remote-backed store."""

    url: str | None = None
    """Remote repository URL."""

    username: str | None = None
    """Username answered to the git credential prompt."""

    token: str | None = field(default=None, repr=False)
    """Token answered to the git password prompt."""

    branch: str = DEFAULT_BRANCH
    """Branch that holds the rolling snapshot."""

    base_dir: Path = field(default_factory=lambda: Path(DEFAULT_BASE_DIR).resolve())
    """Directory holding the local mirror and the clone."""

    clone_dir: Path | None = None
    """Working tree of the clone, defaults to `<base_dir>/gitstore`."""

    author_name: str = "gitstore"
    author_email: str = "gitstore@localhost"

    push_attempts: int = 3
    """Number of times a push is attempted before giving up."""

    push_retry_delay: float = 3.0
    """Seconds to wait between push attempts."""

    network_timeout: float | None = 300.0
    """Seconds before clone, fetch, pull or push is abandoned, None waits forever."""

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir).resolve()
        if self.clone_dir is None:
            self.clone_dir = self.base_dir / CLONE_DIR_NAME
        else:
            self.clone_dir = Path(self.clone_dir).resolve()

    @property
    def repo_dir(self) -> Path:
        """Return the clone working tree."""
        assert self.clone_dir is not None
        return self.clone_dir

    def missing_env(self) -> list[str]:
        """Return the names of required settings that are not configured."""
        values = {
            URL_ENV: self.url,
            USERNAME_ENV: self.username,
            TOKEN_ENV: self.token,
        }
        return [name for name in REQUIRED_ENV if not values[name]]

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: object
    ) -> "GitstoreConfig":
        """Build a configuration from environment variables.

        Empty values are treated the same as unset ones.
        """
        if environ is None:
            environ = os.environ
        kwargs: dict[str, object] = {
            "url": environ.get(URL_ENV) or None,
            "username": environ.get(USERNAME_ENV) or None,
            "token": environ.get(TOKEN_ENV) or None,
            "branch": environ.get(BRANCH_ENV) or DEFAULT_BRANCH,
            "base_dir": Path(environ.get(BASE_DIR_ENV) or DEFAULT_BASE_DIR),
        }
        if author_name := environ.get(AUTHOR_NAME_ENV):
            kwargs["author_name"] = author_name
        if author_email := environ.get(AUTHOR_EMAIL_ENV):
            kwargs["author_email"] = author_email
        kwargs.update(overrides)
        return cls(**kwargs)  # type: ignore[arg-type]


def load_env_files(
    project_dir: Path | None = None, env_files: Iterable[str] = (".env", ".env.local")
) -> list[Path]:
    """Load variables from `.env` files into the process environment.

    Variables that are already exported are never overridden. Returns the
    files that were read.
    """
    if project_dir is None:
        project_dir = Path.cwd()
    loaded = []
    for name in env_files:
        path = project_dir / name
        if not path.exists():
            continue
        for key, value in dotenv_values(path).items():
            if key is None or value is None or key in os.environ:
                continue
            os.environ[key] = value
        _LOGGER.debug("Loaded environment from %s", path)
        loaded.append(path)
    return loaded
