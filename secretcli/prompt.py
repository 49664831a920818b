import sys
from getpass import getpass
from typing import List, Optional

from .errors import ValueReadError


def read_lines(stream) -> str:
    """Join every line of ``stream`` with '\\n', dropping line terminators."""
    lines = []
    for line in stream:
        lines.append(line.rstrip("\n").removesuffix("\r"))
    return "\n".join(lines)


def read_value(stdin=None) -> str:
    stdin = stdin if stdin is not None else sys.stdin
    try:
        if stdin.isatty():
            return getpass("Password: ")
        return read_lines(stdin)
    except (OSError, EOFError, UnicodeDecodeError) as exc:
        raise ValueReadError(f"couldn't read value: {exc}") from exc


def resolve_value(words: Optional[List[str]], stdin=None) -> str:
    # Words on the command line win over anything piped in.
    if words:
        return " ".join(words)
    return read_value(stdin)
