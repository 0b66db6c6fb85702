"""Command line tool for writing a JSON document to the store."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import json
import logging
import pathlib
import sys
from typing import Any, cast

from gitstore.exceptions import InputException

from .common import add_store_flags, build_store

_LOGGER = logging.getLogger(__name__)


class WriteAction:
    """Gitstore write action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "write",
                help="Write a JSON document to the store",
                description=(
                    "Write a document to every tier and push it to the remote. "
                    "The document is read from --data, --file or stdin."
                ),
            ),
        )
        args.add_argument("key", help="Tracked key, e.g. config.json")
        source = args.add_mutually_exclusive_group()
        source.add_argument("--data", help="JSON content to write")
        source.add_argument(
            "--file", help="File containing JSON content", type=pathlib.Path
        )
        add_store_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        key: str,
        data: str | None,
        file: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        if data is None:
            data = file.read_text() if file else sys.stdin.read()
        try:
            content: Any = json.loads(data)
        except json.JSONDecodeError as err:
            raise InputException(f"Content for '{key}' is not valid JSON: {err}") from err

        store = build_store(**kwargs)
        state = await store.write_json(key, content)
        print(state.yaml(), end="")
