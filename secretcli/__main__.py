"""
secretcli: a small CLI over the freedesktop Secret Service (D-Bus).

The secrets live in whatever daemon owns org.freedesktop.secrets on the
session bus; this tool only issues the calls.

Usage examples:
    python -m secretcli set github-token ghp_xxx
    echo -n "multi\\nline" | python -m secretcli set notes
    python -m secretcli get github-token
    python -m secretcli list git
    python -m secretcli delete github-token
"""
import sys

from .cli import build_parser
from .errors import SecretCliError
from .utils import setup_logging


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    try:
        args.func(args)
    except SecretCliError as exc:
        raise SystemExit(f"{parser.prog}: {exc}")
    except KeyboardInterrupt:
        print("\nAborted by user.")
        sys.exit(1)


if __name__ == "__main__":
    main()
