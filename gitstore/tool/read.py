"""Command line tool for reading a JSON document from the store."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import json
import logging
from typing import cast

from .common import add_store_flags, build_store

_LOGGER = logging.getLogger(__name__)


class ReadAction:
    """Gitstore read action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "read",
                help="Print a JSON document from the store",
                description="Materialize a key from its best tier and print it.",
            ),
        )
        args.add_argument("key", help="Tracked key, e.g. config.json")
        add_store_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        key: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        store = build_store(**kwargs)
        data = await store.read_json(key)
        print(json.dumps(data, indent=2, ensure_ascii=False))
