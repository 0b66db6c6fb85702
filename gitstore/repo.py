"""Library for managing the clone of the remote repository.

The clone holds a single rolling snapshot of the tracked keys: each change
amends the previous commit and is force pushed, so the remote branch never
grows an ever longer history.

Example usage:

```python
from gitstore.config import GitstoreConfig
from gitstore.repo import GitRepository, push_with_retry

repo = GitRepository(GitstoreConfig.from_env())
for result in await repo.prepare():
    print(result)
await repo.stage(["config.json"])
if await repo.has_staged_changes():
    await repo.commit()
await push_with_retry(repo.push, should_push=True)
```
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from functools import partial
import logging
from pathlib import Path

import git
from aiofiles.os import listdir
from aiofiles.ospath import exists

from . import command
from .askpass import askpass_env
from .config import GitstoreConfig
from .exceptions import GitException

__all__ = [
    "GitRepository",
    "StepResult",
    "push_with_retry",
]

_LOGGER = logging.getLogger(__name__)

GIT_BIN = "git"
REMOTE = "origin"
INITIAL_COMMIT_MESSAGE = "gitstore: init data"

DEFAULT_PUSH_ATTEMPTS = 3
DEFAULT_PUSH_RETRY_DELAY = 3.0


@dataclass(frozen=True)
class StepResult:
    """Outcome of a repository preparation step that is allowed to fail."""

    step: str
    ok: bool = True
    error: str | None = None

    def __str__(self) -> str:
        if self.ok:
            return f"{self.step}: ok"
        return f"{self.step}: tolerated failure: {self.error}"


class GitRepository:
    """Runs git commands against the clone of the remote repository."""

    def __init__(self, config: GitstoreConfig) -> None:
        """Initialize GitRepository."""
        if not config.url or not config.username or not config.token:
            raise ValueError("GitRepository requires a url, username and token")
        self._config = config
        self._url = config.url
        self._username = config.username
        self._token = config.token

    @property
    def path(self) -> Path:
        """Return the working tree of the clone."""
        return self._config.repo_dir

    @property
    def branch(self) -> str:
        return self._config.branch

    def _identity_env(self) -> dict[str, str]:
        return {
            "GIT_AUTHOR_NAME": self._config.author_name,
            "GIT_AUTHOR_EMAIL": self._config.author_email,
            "GIT_COMMITTER_NAME": self._config.author_name,
            "GIT_COMMITTER_EMAIL": self._config.author_email,
        }

    def _command(
        self,
        args: Sequence[str],
        env: dict[str, str],
        retcodes: list[int] | None = None,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> command.Command:
        return command.Command(
            [GIT_BIN, *args],
            cwd=cwd or self.path,
            exc=GitException,
            retcodes=retcodes,
            env={**self._identity_env(), **env},
            timeout=timeout,
        )

    async def _git(
        self,
        args: Sequence[str],
        retcodes: list[int] | None = None,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> int:
        """Run git with a fresh credential helper, returning the return code."""
        async with askpass_env(self._config.base_dir, self._username, self._token) as env:
            cmd = self._command(args, env, retcodes=retcodes, cwd=cwd, timeout=timeout)
            return await command.run_status(cmd)

    async def _git_output(
        self, args: Sequence[str], retcodes: list[int] | None = None
    ) -> str:
        """Run git with a fresh credential helper, returning stdout."""
        async with askpass_env(self._config.base_dir, self._username, self._token) as env:
            return await command.run(self._command(args, env, retcodes=retcodes))

    async def _tolerate(
        self, step: str, action: Callable[[], Awaitable[None]]
    ) -> StepResult:
        try:
            await action()
        except GitException as err:
            _LOGGER.warning("Ignoring failed %s: %s", step, err)
            return StepResult(step, ok=False, error=str(err))
        return StepResult(step)

    async def prepare(self) -> list[StepResult]:
        """Bring the clone into existence and up to date with the remote.

        Cloning, initializing and checking out the branch are fatal and raise
        `GitException`. Registering the remote, fetching and pulling may fail
        (e.g. while offline) and are reported in the returned results.
        """
        timeout = self._config.network_timeout
        results: list[StepResult] = []
        self.path.mkdir(parents=True, exist_ok=True)
        if not await exists(self.path / ".git"):
            if not await listdir(self.path):
                _LOGGER.info("Cloning %s into %s", self._url, self.path)
                await self._git(
                    ["clone", self._url, str(self.path)],
                    cwd=self._config.base_dir,
                    timeout=timeout,
                )
                results.append(StepResult("clone"))
            else:
                _LOGGER.info("Adopting existing content in %s", self.path)
                await self._git(["init"])
                results.append(StepResult("init"))
                results.append(
                    await self._tolerate(
                        "remote add",
                        partial(self._git, ["remote", "add", REMOTE, self._url]),
                    )
                )

        results.append(
            await self._tolerate(
                "fetch", partial(self._git, ["fetch", REMOTE], timeout=timeout)
            )
        )
        await self.checkout()
        results.append(StepResult("checkout"))
        results.append(await self._tolerate("pull", self.pull))
        return results

    async def checkout(self) -> None:
        """Check out the configured branch, creating it if it does not exist."""
        try:
            await self._git(["checkout", self.branch])
        except GitException:
            _LOGGER.info("Creating branch %s", self.branch)
            await self._git(["checkout", "-b", self.branch])

    async def pull(self) -> None:
        """Rebase local changes on top of the remote branch.

        A rebase that stops on a conflict is aborted before the error is
        raised, leaving the branch at the local snapshot.
        """
        try:
            await self._git(
                ["pull", REMOTE, self.branch, "--rebase"],
                timeout=self._config.network_timeout,
            )
        except GitException:
            if await self.rebase_in_progress():
                _LOGGER.warning("Aborting interrupted rebase in %s", self.path)
                await self._git(["rebase", "--abort"])
            raise

    async def rebase_in_progress(self) -> bool:
        git_dir = self.path / ".git"
        return await exists(git_dir / "rebase-merge") or await exists(
            git_dir / "rebase-apply"
        )

    async def current_branch(self) -> str | None:
        """Return the checked out branch, or None when HEAD is detached."""
        name = await self._git_output(
            ["symbolic-ref", "--quiet", "--short", "HEAD"], retcodes=[1]
        )
        return name.strip() or None

    async def ensure_branch(self) -> None:
        """Leave any interrupted rebase and return to the configured branch."""
        if await self.rebase_in_progress():
            _LOGGER.warning("Aborting interrupted rebase in %s", self.path)
            await self._git(["rebase", "--abort"])
        if await self.current_branch() != self.branch:
            await self.checkout()

    async def stage(self, keys: Sequence[str]) -> None:
        await self._git(["add", "--", *keys])

    async def has_staged_changes(self) -> bool:
        """Return True if the index differs from the last commit."""
        return await self._git(["diff", "--cached", "--quiet"], retcodes=[1]) == 1

    async def has_head(self) -> bool:
        try:
            await self._git(["rev-parse", "--verify", "HEAD"])
        except GitException:
            return False
        return True

    async def commit(self) -> None:
        """Record the staged content as the single snapshot commit."""
        if await self.has_head():
            await self._git(["commit", "--amend", "--no-edit", "--allow-empty"])
        else:
            await self._git(["commit", "-m", INITIAL_COMMIT_MESSAGE])

    async def push(self) -> None:
        """Overwrite the remote branch with the committed snapshot."""
        await self._git(
            ["push", REMOTE, f"HEAD:{self.branch}", "--force"],
            timeout=self._config.network_timeout,
        )

    def revision(self) -> str | None:
        """Return the short SHA of the current snapshot, if any."""
        try:
            repo = git.Repo(str(self.path))
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            return None
        if not repo.head.is_valid():
            return None
        return repo.head.commit.hexsha[:7]


async def push_with_retry(
    push: Callable[[], Awaitable[None]],
    should_push: bool,
    attempts: int = DEFAULT_PUSH_ATTEMPTS,
    delay: float = DEFAULT_PUSH_RETRY_DELAY,
    on_failure: Callable[[str], None] | None = None,
) -> bool:
    """Push with a bounded number of attempts, returning True on success.

    When `should_push` is False nothing is pushed and the result is True.
    `on_failure` is called with the error message after every failed attempt.
    Failures are never raised.
    """
    if not should_push:
        return True
    for attempt in range(1, attempts + 1):
        try:
            await push()
        except (GitException, OSError) as err:
            _LOGGER.warning("Push attempt %d/%d failed: %s", attempt, attempts, err)
            if on_failure is not None:
                on_failure(str(err))
            if attempt < attempts:
                await asyncio.sleep(delay)
            continue
        _LOGGER.debug("Push succeeded on attempt %d", attempt)
        return True
    return False
