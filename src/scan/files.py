"""Source discovery for directories passed on the command line."""

from __future__ import annotations

from fnmatch import fnmatch
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

# Translation-unit suffixes; headers are reached through includes.
CPP_SOURCE_SUFFIXES = frozenset({".c", ".cc", ".cpp", ".cxx", ".c++", ".C"})


def is_cpp_source(path: Path) -> bool:
    return path.suffix in CPP_SOURCE_SUFFIXES


def _stays_within(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
    except (OSError, ValueError):
        return False
    return True


def _gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    """Compose the .gitignore rules that apply below ``root``.

    Only the root .gitignore is read unless ``nested_gitignore`` is set.
    Symlinked .gitignore files are never trusted.
    """
    if nested_gitignore:
        candidates = sorted(
            {p for p in root.rglob(".gitignore") if p.is_file()},
            key=lambda p: p.relative_to(root).as_posix(),
        )
    else:
        candidates = [root / ".gitignore"]

    rules = [
        cast("Callable[[str], bool]", parse_gitignore(path))
        for path in candidates
        if path.is_file() and not path.is_symlink()
    ]
    if not rules:
        return None

    def matches(path_str: str) -> bool:
        for rule in rules:
            try:
                if rule(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


def _is_ignored(path: Path, root: Path, ignored: Callable[[str], bool]) -> bool:
    """Check ``path`` and every directory between ``root`` and it.

    A pattern naming a directory matches the directory itself, not the files
    below it.
    """
    rel = path.relative_to(root)
    for parent in reversed(rel.parents[:-1]):
        if ignored(str(root / parent)):
            return True
    return ignored(str(path))


def find_cpp_sources(
    directory: Path,
    *,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
) -> Iterator[Path]:
    """Find C/C++ translation units below a directory.

    Symlinks, files resolving outside ``directory``, .gitignore'd paths and
    paths matching any fnmatch ``exclude_patterns`` (relative, POSIX form)
    are skipped.

    Yields:
        Paths sorted lexicographically by relative path, for deterministic
        scan order.
    """
    ignored = _gitignore_matcher(directory, nested_gitignore=nested_gitignore)

    selected: list[Path] = []
    for path in directory.rglob("*"):
        if not is_cpp_source(path) or not path.is_file() or path.is_symlink():
            continue
        if not _stays_within(path, directory):
            continue
        rel = path.relative_to(directory).as_posix()
        if ignored is not None and _is_ignored(path, directory, ignored):
            continue
        if exclude_patterns and any(fnmatch(rel, pat) for pat in exclude_patterns):
            continue
        selected.append(path)

    selected.sort(key=lambda p: p.relative_to(directory).as_posix())
    yield from selected


__all__ = ["CPP_SOURCE_SUFFIXES", "find_cpp_sources", "is_cpp_source"]
