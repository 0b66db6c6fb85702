"""Ephemeral credential helper for git.

Git is pointed at a small shell script through `GIT_ASKPASS`. The script
echoes the username or token from its own environment, so credentials are
never part of a command line or of the clone's configuration.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging
import os
from pathlib import Path
import shutil
import tempfile

__all__ = [
    "askpass_env",
]

_LOGGER = logging.getLogger(__name__)

USERNAME_VAR = "GITSTORE_GIT_USERNAME"
TOKEN_VAR = "GITSTORE_GIT_TOKEN"
SCRIPT_NAME = "askpass.sh"
DIR_PREFIX = "gitstore-askpass-"

ASKPASS_SCRIPT = "\n".join(
    [
        "#!/bin/sh",
        'case "$1" in',
        f'*Username*) echo "${USERNAME_VAR}" ;;',
        f'*) echo "${TOKEN_VAR}" ;;',
        "esac",
        "",
    ]
)


def _create_helper(base_dir: Path) -> Path:
    """Write the helper into a fresh owner-only directory, returning its path."""
    base_dir.mkdir(parents=True, exist_ok=True)
    helper_dir = Path(tempfile.mkdtemp(prefix=DIR_PREFIX, dir=base_dir))
    script = helper_dir / SCRIPT_NAME
    script.write_text(ASKPASS_SCRIPT)
    os.chmod(script, 0o700)
    return script


@asynccontextmanager
async def askpass_env(
    base_dir: Path, username: str, token: str
) -> AsyncGenerator[dict[str, str], None]:
    """Context manager yielding the environment for an authenticated git call.

    The helper lives in a fresh owner-only directory under `base_dir` that is
    removed when the context exits.
    """
    script = await asyncio.to_thread(_create_helper, base_dir)
    try:
        yield {
            "GIT_ASKPASS": str(script),
            "GIT_TERMINAL_PROMPT": "0",
            USERNAME_VAR: username,
            TOKEN_VAR: token,
        }
    finally:
        await asyncio.to_thread(shutil.rmtree, script.parent, ignore_errors=True)
        _LOGGER.debug("Removed credential helper %s", script.parent)
