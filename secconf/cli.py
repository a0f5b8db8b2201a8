"""
crypt — command line access to secure values.

    crypt get  [--secret-keyring PATH] KEY
    crypt list [--secret-keyring PATH] [--json] KEY
    crypt set  [--keyring PATH] [--recipient PATTERN ...] KEY FILE

Every command accepts ``--backend``, ``--endpoint`` and ``--plaintext``;
their defaults come from the ``CRYPT_*`` environment variables.
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional

import orjson
from pydantic import ValidationError

from .backend import get_backend_store
from .codec.passphrase import CachedPassphrase, PassphraseResolver, default_resolver
from .codec.recipients import PubkeyFilter
from .conf import SUPPORTED_BACKENDS, CryptConfig
from .exceptions import SecconfError
from .secure import (
    get_encrypted,
    get_plain,
    list_encrypted,
    list_plain,
    set_encrypted,
    set_plain,
)

logger = logging.getLogger("secconf.cli")


def build_parser(config: CryptConfig) -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--backend", default=config.backend, choices=SUPPORTED_BACKENDS,
        help="backend provider (default: %(default)s)",
    )
    common.add_argument(
        "--endpoint", default=config.endpoint,
        help="backend url; comma separated for several machines",
    )
    common.add_argument(
        "--plaintext", action="store_true",
        help="don't encrypt or decrypt the values before storage or retrieval",
    )
    common.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    parser = argparse.ArgumentParser(
        prog="crypt",
        description="Store and retrieve OpenPGP-encrypted configuration values.",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    get = commands.add_parser("get", parents=[common], help="retrieve the value of a key")
    get.add_argument(
        "--secret-keyring", default=config.secret_keyring,
        help="path to armored secret keyring",
    )
    get.add_argument("key")

    lst = commands.add_parser("list", parents=[common], help="retrieve all values under a key")
    lst.add_argument(
        "--secret-keyring", default=config.secret_keyring,
        help="path to armored secret keyring",
    )
    lst.add_argument("--json", action="store_true", help="print a JSON object of key to value")
    lst.add_argument("key")

    put = commands.add_parser("set", parents=[common], help="set the value of a key")
    put.add_argument(
        "--keyring", default=config.keyring,
        help="path to armored public keyring",
    )
    put.add_argument(
        "-r", "--recipient", action="append", dest="recipients", metavar="PATTERN",
        help="identity substring selecting a recipient; defaults to the key's top-level directory",
    )
    put.add_argument("key")
    put.add_argument("file", help="file holding the value, or - for stdin")
    return parser


def _emit(data: bytes) -> None:
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def _read_value(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as fp:
        return fp.read()


async def get_cmd(args, config: CryptConfig, resolver: PassphraseResolver) -> None:
    node = config.node_key(args.key)
    logger.info("Looking at %s node %r", args.backend, node)
    async with get_backend_store(args.backend, args.endpoint) as store:
        if args.plaintext:
            value = await get_plain(store, node)
        else:
            value = await get_encrypted(
                store, node, args.secret_keyring,
                passphrase=resolver, attempts=config.passphrase_attempts,
            )
    _emit(value + b"\n")


async def list_cmd(args, config: CryptConfig, resolver: PassphraseResolver) -> None:
    node = config.node_key(args.key)
    logger.info("Looking for %s nodes under %r", args.backend, node)
    async with get_backend_store(args.backend, args.endpoint) as store:
        if args.plaintext:
            pairs = await list_plain(store, node)
        else:
            pairs = await list_encrypted(
                store, node, args.secret_keyring,
                passphrase=resolver, attempts=config.passphrase_attempts,
            )
    if args.json:
        document = {kv.key: kv.value.decode("utf-8", "backslashreplace") for kv in pairs}
        _emit(orjson.dumps(document, option=orjson.OPT_INDENT_2) + b"\n")
        return
    for kv in pairs:
        _emit(kv.key.encode("utf-8") + b": " + kv.value + b"\n")


async def set_cmd(args, config: CryptConfig, resolver: PassphraseResolver) -> None:
    value = _read_value(args.file)
    node = config.node_key(args.key)
    selector = PubkeyFilter(args.recipients) if args.recipients else PubkeyFilter.from_path(args.key)
    logger.info("Setting %s node %r", args.backend, node)
    async with get_backend_store(args.backend, args.endpoint) as store:
        if args.plaintext:
            await set_plain(store, node, value)
        else:
            logger.debug("Recipients selected by %r", selector)
            await set_encrypted(store, node, args.keyring, value, selector)


COMMANDS = {
    "get": get_cmd,
    "list": list_cmd,
    "set": set_cmd,
}


def main(argv: Optional[list] = None) -> int:
    try:
        config = CryptConfig.from_env()
    except ValidationError as err:
        print(f"crypt: invalid environment configuration:\n{err}", file=sys.stderr)
        return 1

    args = build_parser(config).parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )
    passphrase = config.passphrase.get_secret_value() if config.passphrase else None
    resolver = CachedPassphrase(default_resolver(passphrase))

    try:
        asyncio.run(COMMANDS[args.command](args, config, resolver))
    except (SecconfError, OSError, ValueError) as err:
        logger.error("crypt %s: %s", args.command, err)
        return 1
    return 0
