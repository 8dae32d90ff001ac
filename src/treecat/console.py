"""
Diagnostics for the error stream.

Normal output never goes through here; everything is printed to stderr so it
cannot interleave with the file bundle on stdout.
"""
from __future__ import annotations

import sys

from colorama import Fore, Style, just_fix_windows_console

# Unlike colorama.init(), this leaves sys.stdout unwrapped so file bytes
# written to stdout are never stripped of escape sequences.
just_fix_windows_console()

PREFIX = "[treecat]"


def _paint(colour: str, msg: str) -> str:
    if sys.stderr.isatty():
        return colour + msg + Style.RESET_ALL
    return msg


def info(msg: str) -> None:
    print(f"{PREFIX} {msg}", file=sys.stderr)


def success(msg: str) -> None:
    print(_paint(Fore.GREEN, f"{PREFIX} {msg}"), file=sys.stderr)


def warn(msg: str) -> None:
    print(_paint(Fore.YELLOW, msg), file=sys.stderr)


def error(msg: str) -> None:
    print(_paint(Fore.RED, f"Error: {msg}"), file=sys.stderr)
