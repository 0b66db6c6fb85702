"""Command line tool for syncing working copies with the store."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
from typing import cast

from .common import add_store_flags, build_store

_LOGGER = logging.getLogger(__name__)


class SyncAction:
    """Gitstore sync action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "sync",
                help="Materialize tracked keys and push directories",
                description=(
                    "Copy every tracked key from its authoritative tier into the "
                    "working directory, then push the given directories."
                ),
            ),
        )
        args.add_argument(
            "--dir",
            dest="dirs",
            action="append",
            default=[],
            help="Directory key to mirror and push, may be repeated",
        )
        add_store_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        dirs: list[str],
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        store = build_store(**kwargs)
        state = await store.ensure_working_copies()
        for key in dirs:
            _LOGGER.info("Syncing directory %s", key)
            state = await store.sync_directory(key)
        print(state.yaml(), end="")
