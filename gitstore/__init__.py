"""
A configuration store that mirrors its files to a remote git repository.

Reads and writes go through `gitstore.store.GitStore`, which keeps working
copies, a local mirror and a clone of the remote in step and falls back to
local-only storage whenever the remote is unreachable.
"""

__all__ = [
    "config",
    "exceptions",
    "paths",
    "repo",
    "state",
    "store",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
