"""Command line tool for printing the synchronization state of the store."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
from typing import cast

import yaml

from .common import add_store_flags, build_store

_LOGGER = logging.getLogger(__name__)


class StatusAction:
    """Gitstore status action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "status",
                help="Print the synchronization state of the store",
                description="Initialize the store and print its mode, pending flag and last error.",
            ),
        )
        add_store_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        store = build_store(**kwargs)
        state = await store.ensure_initialized()
        result = state.snapshot()
        result["revision"] = store.revision()
        result["steps"] = [str(step) for step in store.bring_up]
        print(yaml.dump(result, sort_keys=False, explicit_start=True), end="")
