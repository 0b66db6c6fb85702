"""File-backed configuration store mirrored to a remote git repository.

Every tracked key lives in three tiers (see `gitstore.paths`): the working
copy the application reads, a local mirror under the base directory and a
copy inside the clone of the remote repository. Writes always land in the
working copy and the local mirror; when the remote is usable they are also
committed to the clone and force pushed.

The store never raises because the remote is unreachable. Instead the
outcome is recorded in its `StoreState`:

  - `LOCAL`: remote settings are missing or the clone could not be prepared,
    no git command is run for the rest of the process.
  - `ACTIVE`: the last push succeeded.
  - `DEGRADED`: the last push (or pull) failed, `pending` is set and the next
    write pushes again even when its own content is unchanged.

Example usage:

```python
from gitstore.config import GitstoreConfig
from gitstore.store import GitStore

store = GitStore(GitstoreConfig.from_env())
state = await store.write_json("config.json", {"port": 8080})
print(state.mode)
config = await store.read_json("config.json")
```
"""

import asyncio
from collections.abc import Iterable
import dataclasses
import json
import logging
from pathlib import Path
import shutil
from typing import Any

import aiofiles
from aiofiles.os import makedirs
from aiofiles.ospath import exists, isdir

from .config import GitstoreConfig
from .context import trace_operation
from .exceptions import GitException, GitstoreException, InputException, KeyNotFoundError
from .paths import PathResolver, select_source
from .repo import GitRepository, StepResult, push_with_retry
from .state import Mode, StoreState

__all__ = [
    "GitStore",
    "DEFAULT_KEYS",
]

_LOGGER = logging.getLogger(__name__)

CONFIG_KEY = "config.json"
PROVIDER_POOLS_KEY = "provider_pools.json"
PWD_KEY = "pwd"
CONFIGS_DIR = "configs"

DEFAULT_KEYS = (CONFIG_KEY, PROVIDER_POOLS_KEY, PWD_KEY, CONFIGS_DIR)

JSON_INDENT = 2


def _encode(key: str, data: Any) -> bytes:
    """Serialize content for a key, bytes and strings are stored verbatim."""
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    try:
        return json.dumps(data, indent=JSON_INDENT, ensure_ascii=False).encode(
            "utf-8"
        )
    except (TypeError, ValueError) as err:
        raise InputException(f"Unable to serialize '{key}' as JSON: {err}") from err


async def _write_bytes(path: Path, content: bytes) -> None:
    await makedirs(path.parent, exist_ok=True)
    async with aiofiles.open(path, mode="wb") as out:
        await out.write(content)


async def _copy_tree(source: Path, target: Path) -> None:
    """Recursively copy a directory over an existing one."""
    if source == target:
        return
    await makedirs(target.parent, exist_ok=True)
    await asyncio.to_thread(shutil.copytree, source, target, dirs_exist_ok=True)


class GitStore:
    """A configuration store that mirrors its keys to a remote repository.

    One instance should own a base directory for the lifetime of the process.
    It is created cheaply and initializes itself on the first operation.
    """

    def __init__(
        self,
        config: GitstoreConfig,
        cwd: Path | None = None,
        keys: Iterable[str] = DEFAULT_KEYS,
        repository: GitRepository | None = None,
    ) -> None:
        """Initialize GitStore."""
        self._config = config
        self._resolver = PathResolver(
            base_dir=config.base_dir,
            clone_dir=config.repo_dir,
            cwd=Path(cwd or Path.cwd()).resolve(),
        )
        self._keys: dict[str, None] = {}
        self._track(keys)
        self._state = StoreState(branch=config.branch)
        self._repo = repository
        self._initialized = False
        self._bring_up: list[StepResult] = []
        self._init_lock = asyncio.Lock()
        # Guards the clone: pull, remote tier writes, stage, commit and push.
        self._repo_lock = asyncio.Lock()

    @property
    def state(self) -> StoreState:
        """Return a snapshot of the current state."""
        return dataclasses.replace(self._state)

    @property
    def tracked_keys(self) -> list[str]:
        return list(self._keys)

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    @property
    def bring_up(self) -> list[StepResult]:
        """Return the outcome of each repository preparation step."""
        return list(self._bring_up)

    def resolve_path(self, key: str) -> Path:
        """Return the working copy location of a key."""
        return self._resolver.working(key)

    def revision(self) -> str | None:
        """Return the short SHA of the snapshot in the clone, if any."""
        if self._repo is None or not self._state.remote_enabled:
            return None
        return self._repo.revision()

    def _track(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._keys.setdefault(key, None)

    def _set_mode(self, mode: Mode) -> None:
        if self._state.mode != mode:
            _LOGGER.info("Store mode changed %s -> %s", self._state.mode, mode)
        self._state.mode = mode

    def _record_error(self, message: str) -> None:
        self._state.error = message

    def _degrade(self, message: str) -> None:
        self._set_mode(Mode.DEGRADED)
        self._state.pending = True
        self._state.error = message

    async def ensure_initialized(self, keys: Iterable[str] = ()) -> StoreState:
        """Track the given keys and prepare the clone on first use."""
        self._track(keys)
        if self._initialized:
            return self.state
        async with self._init_lock:
            if self._initialized:
                return self.state
            with trace_operation("initialize"):
                await self._initialize()
            self._initialized = True
        return self.state

    async def _initialize(self) -> None:
        await makedirs(self._config.base_dir, exist_ok=True)
        await makedirs(self._config.repo_dir, exist_ok=True)

        if missing := self._config.missing_env():
            self._set_mode(Mode.LOCAL)
            self._state.pending = False
            self._state.error = f"Missing env: {', '.join(missing)}"
            _LOGGER.warning("Remote sync disabled: %s", self._state.error)
            return

        try:
            if self._repo is None:
                self._repo = GitRepository(self._config)
            self._bring_up = await self._repo.prepare()
        except (GitException, OSError) as err:
            self._set_mode(Mode.LOCAL)
            self._state.error = str(err)
            _LOGGER.error("Unable to prepare repository, using local storage: %s", err)
            return

        self._set_mode(Mode.ACTIVE)
        self._state.pending = False
        self._state.error = None

    async def ensure_working_copies(self, keys: Iterable[str] | None = None) -> StoreState:
        """Copy each key from its authoritative tier into every other tier."""
        keys = self.tracked_keys if keys is None else list(keys)
        await self.ensure_initialized(keys)
        with trace_operation("ensure_working_copies"):
            if not self._state.remote_enabled:
                for key in keys:
                    await self._materialize(key)
                return self.state

            async with self._repo_lock:
                assert self._repo is not None
                try:
                    await self._repo.pull()
                except GitException as err:
                    _LOGGER.warning("Unable to pull latest changes: %s", err)
                    self._degrade(str(err))
                for key in keys:
                    await self._materialize(key)
        return self.state

    async def _materialize(self, key: str) -> None:
        remote_enabled = self._state.remote_enabled
        source = await select_source(
            self._resolver, key, remote_enabled, prefer_local=self._state.pending
        )
        if source is None:
            return
        targets = [self._resolver.working(key), self._resolver.local(key)]
        if remote_enabled:
            targets.append(self._resolver.remote(key))

        if await isdir(source.path):
            for target in targets:
                await _copy_tree(source.path, target)
            return

        async with aiofiles.open(source.path, mode="rb") as src:
            content = await src.read()
        for target in targets:
            await _write_bytes(target, content)

    async def read_json(self, key: str) -> Any:
        """Return the parsed content of a key from its best available tier."""
        with trace_operation("read_json", key):
            await self.ensure_working_copies([key])
            path = self._resolver.working(key)
            if not await exists(path):
                raise KeyNotFoundError(key)
            async with aiofiles.open(path, encoding="utf-8") as src:
                content = await src.read()
        try:
            return json.loads(content)
        except json.JSONDecodeError as err:
            raise InputException(f"Unable to parse '{key}' as JSON: {err}") from err

    async def write_json(self, key: str, data: Any) -> StoreState:
        """Store content for a key in every tier and push it to the remote.

        Bytes and strings are written verbatim, any other value is serialized as JSON.
        """
        with trace_operation("write_json", key):
            await self.ensure_initialized([key])
            content = _encode(key, data)

            await _write_bytes(self._resolver.working(key), content)
            await _write_bytes(self._resolver.local(key), content)

            if not self._state.remote_enabled:
                self._state.pending = False
                return self.state

            async with self._repo_lock:
                if await self._restore_branch():
                    await _write_bytes(self._resolver.remote(key), content)
                    await self._commit_and_push([key])
        return self.state

    async def sync_directory(self, key: str) -> StoreState:
        """Mirror a working directory into the store and push it."""
        with trace_operation("sync_directory", key):
            await self.ensure_initialized([key])
            await self.ensure_working_copies([key])

            working = self._resolver.working(key)
            if not await exists(working):
                return self.state

            await _copy_tree(working, self._resolver.local(key))

            if not self._state.remote_enabled:
                self._state.pending = False
                return self.state

            async with self._repo_lock:
                if await self._restore_branch():
                    await _copy_tree(working, self._resolver.remote(key))
                    await self._commit_and_push([key])
        return self.state

    async def _restore_branch(self) -> bool:
        """Return the clone to the configured branch before its tree is written.

        Aborting an interrupted rebase resets the working tree, so this must run
        before the remote tier is updated. Must be called while holding the
        repository lock.
        """
        assert self._repo is not None
        try:
            await self._repo.ensure_branch()
        except GitException as err:
            _LOGGER.warning("Unable to restore branch %s: %s", self._repo.branch, err)
            self._degrade(str(err))
            return False
        return True

    async def _commit_and_push(self, keys: list[str]) -> None:
        """Commit staged changes to the snapshot and push, recording the outcome.

        Must be called while holding the repository lock.
        """
        assert self._repo is not None
        try:
            await self._repo.stage(keys)
            changed = await self._repo.has_staged_changes()
            if changed:
                await self._repo.commit()
        except GitException as err:
            _LOGGER.warning("Unable to commit %s: %s", ", ".join(keys), err)
            self._degrade(str(err))
            return

        pushed = await push_with_retry(
            self._repo.push,
            should_push=changed or self._state.pending,
            attempts=self._config.push_attempts,
            delay=self._config.push_retry_delay,
            on_failure=self._record_error,
        )
        if not pushed:
            self._set_mode(Mode.DEGRADED)
            self._state.pending = True
            return
        self._set_mode(Mode.ACTIVE)
        self._state.pending = False
        self._state.error = None

    async def sync_all(
        self,
        config_key: str = CONFIG_KEY,
        config_data: Any = None,
        pools_key: str = PROVIDER_POOLS_KEY,
        pools_data: Any = None,
        include_configs_dir: bool = True,
        include_pwd: bool = True,
    ) -> StoreState:
        """Write the main documents and sync the configs directory and pwd file.

        A failure part way through is recorded in the state rather than raised.
        """
        with trace_operation("sync_all") as label:
            await self.ensure_initialized([config_key, pools_key])
            targets = [config_key, pools_key]
            if include_pwd:
                targets.append(PWD_KEY)
            if include_configs_dir:
                targets.append(CONFIGS_DIR)
            await self.ensure_working_copies(targets)

            try:
                await self.write_json(
                    config_key, config_data if config_data is not None else {}
                )
                await self.write_json(
                    pools_key, pools_data if pools_data is not None else {}
                )
                if include_configs_dir and await isdir(
                    self._resolver.working(CONFIGS_DIR)
                ):
                    await self.sync_directory(CONFIGS_DIR)
                pwd_path = self._resolver.working(PWD_KEY)
                if include_pwd and await exists(pwd_path):
                    async with aiofiles.open(pwd_path, mode="rb") as src:
                        pwd = await src.read()
                    await self.write_json(PWD_KEY, pwd)
            except (GitstoreException, OSError) as err:
                _LOGGER.error("%s failed: %s", label, err)
                if self._state.mode == Mode.ACTIVE:
                    self._set_mode(Mode.DEGRADED)
                self._state.error = str(err)
        return self.state
