"""
Core logic for treecat: glob matching, ``.gitignore`` rules, file selection,
traversal and aggregation over several roots.
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Sequence, Set, Tuple, Union

import pathspec
from pathspec.pattern import RegexPattern

from . import console


# Exceptions
class TreecatError(Exception): ...
class PathNotFoundError(TreecatError): ...
class FileReadError(TreecatError): ...
class OutputError(TreecatError): ...


GITIGNORE_NAME = ".gitignore"
GITIGNORE_SCOPES = ("global", "root")


# Glob matching
class ShellGlobPattern(RegexPattern):
    """
    A :mod:`pathspec` pattern that speaks shell-glob instead of gitwildmatch.

    ``*`` matches any run of characters, ``?`` exactly one, ``[...]`` and
    ``[!...]`` are character classes. There is no ``**``, no negation and no
    anchoring, and matching is case-sensitive on every platform.
    """

    @classmethod
    def pattern_to_regex(cls, pattern: str) -> Tuple[str, bool]:
        return fnmatch.translate(pattern), True


def compile_globs(patterns: Iterable[str]) -> "pathspec.PathSpec":
    return pathspec.PathSpec.from_lines(ShellGlobPattern, patterns)


def matches(pattern: str, name: str) -> bool:
    """Return True if *name* matches the shell glob *pattern*."""
    return ShellGlobPattern(pattern).match_file(name) is not None


# Ignore-file utilities
def load_ignore_rules(directory: Union[str, Path]) -> Tuple[str, ...]:
    """
    Read the ``.gitignore`` directly inside *directory*.

    Blank lines and ``#`` comments are dropped, trailing CR/LF is stripped and
    any other whitespace is kept. A missing file yields no rules.
    """
    gitignore_path = Path(directory or ".") / GITIGNORE_NAME
    if not gitignore_path.is_file():
        return ()
    try:
        with gitignore_path.open("r", encoding="utf-8", errors="replace", newline="") as fh:
            lines = [line.rstrip("\r\n") for line in fh]
    except OSError as e:
        console.warn(f"Warning: Could not read {gitignore_path}: {e}")
        return ()
    return tuple(ln for ln in lines if ln and not ln.startswith("#"))


def is_ignored(path: str, rules: Union["pathspec.PathSpec", Sequence[str]]) -> bool:
    """
    Check *path* against ignore rules using only its final component.

    Directories are also tried as ``name/`` so ``build/`` style rules hit them.
    """
    spec = rules if isinstance(rules, pathspec.PathSpec) else compile_globs(rules)
    name = os.path.basename(os.path.normpath(path))
    if spec.match_file(name):
        return True
    return os.path.isdir(path) and spec.match_file(name + "/")


def rule_directory(root: str) -> str:
    """Directory whose ``.gitignore`` governs *root*."""
    if os.path.isdir(root):
        return root
    return os.path.dirname(root) or "."


class IgnoreRules:
    """Per-directory cache of ``.gitignore`` rules, each directory read once."""

    def __init__(self, loader: Callable[[str], Tuple[str, ...]] = load_ignore_rules):
        self._loader = loader
        self._by_dir: Dict[str, Tuple[str, ...]] = {}

    def for_directory(self, directory: str) -> Tuple[str, ...]:
        key = os.path.abspath(directory)
        if key not in self._by_dir:
            self._by_dir[key] = tuple(self._loader(directory))
        return self._by_dir[key]

    def __contains__(self, directory: str) -> bool:
        return os.path.abspath(directory) in self._by_dir

    def __len__(self) -> int:
        return len(self._by_dir)


# Selection
@dataclass(frozen=True)
class SelectionConfig:
    extensions: Tuple[str, ...] = ()
    ignore_globs: Tuple[str, ...] = ()
    include_hidden: bool = False
    skip_vcs_ignore: bool = False
    gitignore_scope: str = "global"

    def __post_init__(self) -> None:
        # Accept lists from callers but keep the config hashable and immutable.
        object.__setattr__(self, "extensions", tuple(self.extensions))
        object.__setattr__(self, "ignore_globs", tuple(self.ignore_globs))
        if self.gitignore_scope not in GITIGNORE_SCOPES:
            raise ValueError(
                f"gitignore_scope must be one of {GITIGNORE_SCOPES}, "
                f"got {self.gitignore_scope!r}"
            )


@dataclass(frozen=True)
class FileRecord:
    path: str
    content: bytes = field(repr=False)


class SelectionPolicy:
    """
    Name-level include/exclude decision for files found by a directory walk.

    Checks run in a fixed order and the first failure rejects: hidden names,
    then ignore globs, then the extension allow-list. The ``.gitignore`` check
    needs the full path and the loaded rules, so :func:`iter_files` applies it
    afterwards.
    """

    def __init__(self, config: SelectionConfig):
        self.config = config
        self._ignore_spec = compile_globs(config.ignore_globs)

    def is_hidden(self, filename: str) -> bool:
        return not self.config.include_hidden and filename.startswith(".")

    def is_glob_ignored(self, filename: str) -> bool:
        return self._ignore_spec.match_file(filename)

    def has_wanted_extension(self, filename: str) -> bool:
        if not self.config.extensions:
            return True
        return filename.endswith(self.config.extensions)

    def should_include(self, filename: str) -> bool:
        if self.is_hidden(filename):
            return False
        if self.is_glob_ignored(filename):
            return False
        return self.has_wanted_extension(filename)


def should_include(filename: str, config: SelectionConfig) -> bool:
    return SelectionPolicy(config).should_include(filename)


# Traversal
def check_root(root: str) -> None:
    if not os.path.exists(root):
        raise PathNotFoundError(f"Path does not exist: {root}")


def _warn_walk_error(err: OSError) -> None:
    console.warn(f"Warning: Skipping directory {err.filename} due to error: {err.strerror}")


def iter_files(
    root: str,
    config: SelectionConfig,
    rules: Union["pathspec.PathSpec", Sequence[str]] = (),
    exclude: Iterable[str] = (),
) -> Iterator[str]:
    """
    Yield the paths under *root* that survive selection.

    A file root is yielded as-is, bypassing every check. A directory root is
    walked in sorted order; directories are descended but never yielded, and
    symlinked directories are not followed.
    """
    check_root(root)
    if os.path.isfile(root):
        yield root
        return
    if not os.path.isdir(root):
        return

    policy = SelectionPolicy(config)
    spec = rules if isinstance(rules, pathspec.PathSpec) else compile_globs(rules)
    excluded: Set[str] = {os.path.realpath(p) for p in exclude}

    for dirpath, dirnames, filenames in os.walk(root, onerror=_warn_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            # FIFOs and sockets are skipped; vanished files and dangling links
            # still go through so the reader can warn about them.
            if os.path.exists(path) and not os.path.isfile(path):
                continue
            if not policy.should_include(name):
                continue
            if not config.skip_vcs_ignore and is_ignored(path, spec):
                continue
            if excluded and os.path.realpath(path) in excluded:
                continue
            yield path


def read_file(path: str) -> bytes:
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as e:
        raise FileReadError(f"Could not read '{path}': {e}") from e


# Aggregation
class Aggregator:
    """
    Run the traversal over every root and feed the records to *sink*.

    *sink* needs ``begin()``, ``write(record)`` and ``end()``; see
    :mod:`treecat.output`. All roots are checked before ``begin()`` so a
    missing root produces no output at all.
    """

    def __init__(
        self,
        config: SelectionConfig,
        sink,
        exclude: Iterable[str] = (),
        reader: Callable[[str], bytes] = read_file,
        rules_cache: IgnoreRules | None = None,
        verbose: bool = False,
    ):
        self.config = config
        self.sink = sink
        self.exclude = tuple(exclude)
        self.verbose = verbose
        self._reader = reader
        self._rules_cache = rules_cache if rules_cache is not None else IgnoreRules()
        self._accumulated: List[str] = []
        self._accumulated_dirs: Set[str] = set()
        self.emitted = 0
        self.skipped: List[str] = []

    @property
    def accumulated_rules(self) -> Tuple[str, ...]:
        return tuple(self._accumulated)

    def rules_for(self, root: str) -> Tuple[str, ...]:
        if self.config.skip_vcs_ignore:
            return ()
        directory = rule_directory(root)
        loaded = self._rules_cache.for_directory(directory)
        if self.verbose and loaded:
            console.info(f"Loaded {len(loaded)} ignore rules from {directory}")
        if self.config.gitignore_scope == "root":
            return loaded
        key = os.path.abspath(directory)
        if key not in self._accumulated_dirs:
            self._accumulated_dirs.add(key)
            self._accumulated.extend(loaded)
        return self.accumulated_rules

    def process_root(self, root: str) -> None:
        rules = self.rules_for(root)
        if self.verbose:
            console.info(f"Scanning {root} …")
        for path in iter_files(root, self.config, rules, self.exclude):
            try:
                content = self._reader(path)
            except FileReadError:
                console.warn(f"Warning: Skipping file {path} due to error opening file")
                self.skipped.append(path)
                continue
            self.sink.write(FileRecord(path, content))
            self.emitted += 1

    def run(self, roots: Sequence[str]) -> int:
        roots = list(roots) or ["."]
        for root in roots:
            check_root(root)

        self.sink.begin()
        for root in roots:
            self.process_root(root)
        self.sink.end()

        if self.verbose:
            console.success(
                f"Done. {self.emitted} files emitted, {len(self.skipped)} skipped."
            )
        return self.emitted
