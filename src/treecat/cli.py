"""
CLI entrypoint for treecat package.
"""
import argparse
import contextlib
import sys
from pathlib import Path
from typing import BinaryIO, ContextManager, List, Optional

from . import __version__, console
from .core import (
    GITIGNORE_SCOPES,
    Aggregator,
    OutputError,
    PathNotFoundError,
    SelectionConfig,
    check_root,
)
from .output import make_writer

EXIT_FAILURE = 1


class _ArgumentParser(argparse.ArgumentParser):
    # Usage errors exit with 1 like every other failure, not argparse's 2.
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = _ArgumentParser(
        prog="treecat",
        description="Concatenate files and directory trees into one text bundle.",
    )
    p.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Files or directories to include (default: current directory)",
    )
    p.add_argument(
        "-e",
        "--extension",
        dest="extensions",
        action="append",
        default=[],
        metavar="EXT",
        help="Only include files ending with EXT, e.g. '.py' (repeatable)",
    )
    p.add_argument(
        "-i",
        "--ignore",
        dest="ignore_patterns",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Skip file names matching the glob PATTERN (repeatable)",
    )
    p.add_argument(
        "--ignore-gitignore",
        action="store_true",
        help="Do not read .gitignore files",
    )
    p.add_argument(
        "--gitignore-scope",
        choices=GITIGNORE_SCOPES,
        default="global",
        help="Share .gitignore rules across all roots (global, default) "
        "or apply each root's rules to that root only (root)",
    )
    p.add_argument("-o", "--output", type=Path, help="Write to this file instead of stdout")
    p.add_argument(
        "-c",
        "--cxml",
        action="store_true",
        help="Wrap output in <documents> XML, one <document> per file",
    )
    p.add_argument(
        "-H",
        "--include-hidden",
        action="store_true",
        help="Include files whose names start with '.' (hidden directories "
        "are always walked; this only affects file names)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def _open_output(out_path: Optional[Path]) -> ContextManager[BinaryIO]:
    if out_path is None:
        return contextlib.nullcontext(sys.stdout.buffer)
    if not out_path.parent.exists():
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create directory '{out_path.parent}': {e}")
    try:
        return out_path.open("wb")
    except OSError as e:
        raise OutputError(f"Could not open output file '{out_path}': {e}")


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        config = SelectionConfig(
            extensions=ns.extensions,
            ignore_globs=ns.ignore_patterns,
            include_hidden=ns.include_hidden,
            skip_vcs_ignore=ns.ignore_gitignore,
            gitignore_scope=ns.gitignore_scope,
        )

        # Validate every root before the output file is created or truncated.
        try:
            for root in ns.paths:
                check_root(root)
        except PathNotFoundError as e:
            console.error(str(e))
            sys.exit(EXIT_FAILURE)

        out_path = ns.output.resolve() if ns.output else None
        exclude = [str(out_path)] if out_path else []
        if out_path and any(
            Path(root).is_file() and Path(root).resolve() == out_path for root in ns.paths
        ):
            console.error(f"Output file '{out_path}' is also an input path")
            sys.exit(EXIT_FAILURE)

        try:
            with _open_output(out_path) as out_fh:
                aggregator = Aggregator(
                    config,
                    make_writer(out_fh, cxml=ns.cxml),
                    exclude=exclude,
                    verbose=ns.verbose,
                )
                aggregator.run(ns.paths)
        except (PathNotFoundError, OutputError) as e:
            console.error(str(e))
            sys.exit(EXIT_FAILURE)

        if ns.verbose and out_path:
            console.success(f"Wrote {out_path}")

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        console.error(f"Unexpected error: {e}")
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
