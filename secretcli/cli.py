import argparse
import sys

from . import __version__
from . import bus
from . import prompt
from .service import SecretService


def cmd_set(args):
    value = prompt.resolve_value(args.value)
    with SecretService(collection=args.collection) as svc:
        svc.set_secret(args.key, value.encode("utf-8", "surrogateescape"))


def cmd_get(args):
    with SecretService() as svc:
        secret = svc.get_secret(args.key)
    if secret is None:
        raise SystemExit(1)

    sys.stdout.flush()
    out = sys.stdout.buffer
    out.write(secret)
    # Scripts capture the exact bytes; humans get a newline.
    if sys.stdout.isatty():
        out.write(b"\n")
    out.flush()


def cmd_delete(args):
    with SecretService() as svc:
        svc.delete_secret(args.key)


def cmd_list(args):
    with SecretService() as svc:
        svc.list_secrets(args.pattern or "", long=args.long)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Store and look up secrets in the desktop Secret Service (gnome-keyring, KeePassXC, ...)",
        epilog="Aliases: store, lookup, clear are also supported for compatibility")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each bus call to stderr")
    parser.add_argument("--collection", default=bus.DEFAULT_COLLECTION, metavar="ALIAS",
                        help=f"Collection alias new secrets go into (default: {bus.DEFAULT_COLLECTION})")
    sub = parser.add_subparsers(dest="command", required=True)

    # set
    s = sub.add_parser("set", aliases=["store"],
                       help="Store a secret (reads the value from stdin if not given)")
    s.add_argument("key")
    s.add_argument("value", nargs=argparse.REMAINDER,
                   help="Secret value; several words are joined with spaces")
    s.set_defaults(func=cmd_set)

    # get
    s = sub.add_parser("get", aliases=["lookup"],
                       help="Print a secret (searches every collection)",
                       description="Print a secret. Searches every collection, not just --collection.")
    s.add_argument("key")
    s.set_defaults(func=cmd_get)

    # delete
    s = sub.add_parser("delete", aliases=["clear"],
                       help="Remove every secret stored under a key, in any collection",
                       description="Remove every secret stored under a key, in every collection.")
    s.add_argument("key")
    s.set_defaults(func=cmd_delete)

    # list
    s = sub.add_parser("list", help="List stored secrets from every collection",
                       description="List stored secrets from every collection.")
    s.add_argument("pattern", nargs="?", help="Only show labels containing this text")
    s.add_argument("-l", "--long", action="store_true", help="Also show modification time and item path")
    s.set_defaults(func=cmd_list)

    return parser
