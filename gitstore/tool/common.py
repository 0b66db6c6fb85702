"""Common flags and helpers shared by the gitstore actions."""

from argparse import ArgumentParser
import logging
import pathlib
from typing import Any

from gitstore.config import GitstoreConfig
from gitstore.store import GitStore

_LOGGER = logging.getLogger(__name__)


def add_store_flags(args: ArgumentParser) -> None:
    """Add flags that select the store to operate on."""
    args.add_argument(
        "--base-dir",
        help="Directory holding the local mirror and the clone (default $GITSTORE_BASE_DIR or ./data)",
        type=pathlib.Path,
        default=None,
    )
    args.add_argument(
        "--branch",
        help="Remote branch holding the snapshot (default $GITSTORE_GIT_BRANCH or main)",
        default=None,
    )


def build_store(**kwargs: Any) -> GitStore:
    """Build a store from the environment and command line flags."""
    overrides: dict[str, Any] = {}
    if base_dir := kwargs.get("base_dir"):
        overrides["base_dir"] = base_dir
    if branch := kwargs.get("branch"):
        overrides["branch"] = branch
    config = GitstoreConfig.from_env(**overrides)
    _LOGGER.debug("Using store in %s", config.base_dir)
    return GitStore(config)
