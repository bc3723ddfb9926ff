"""
File enumeration.

Walks the input paths recursively, honouring hidden files, ``.gitignore`` /
``.ignore`` rules, user exclusion globs and symlink settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, List, Optional, Sequence, Set

from pathspec import GitIgnoreSpec

from constants import IGNORE_FILES
from errors import WalkError

__all__ = ["IgnoreLayer", "load_ignore_layer", "iter_files", "read_lines"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IgnoreLayer:
    """
    The ignore rules of one directory.

    Attributes:
        base: Directory containing the ignore files; patterns are relative to it
        spec: Compiled gitignore patterns of ``.gitignore`` then ``.ignore``
    """

    base: Path
    spec: GitIgnoreSpec

    def check(self, path: Path, is_dir: bool) -> Optional[bool]:
        """Return True if ignored, False if re-included by ``!``, None if no rule matched."""
        try:
            relative = PurePosixPath(path.relative_to(self.base)).as_posix()
        except ValueError:
            return None
        if is_dir:
            relative += "/"
        return self.spec.check_file(relative).include


def load_ignore_layer(directory: Path) -> Optional[IgnoreLayer]:
    """Read the ignore files of a directory; None if it has none."""
    lines: List[str] = []
    for name in IGNORE_FILES:
        ignore_file = directory / name
        if not ignore_file.is_file():
            continue
        try:
            lines.extend(ignore_file.read_text(encoding="utf-8").splitlines())
        except (OSError, UnicodeDecodeError) as exc:
            raise WalkError(f"{ignore_file}: cannot read ignore file: {exc}") from exc
    if not lines:
        return None
    return IgnoreLayer(directory, GitIgnoreSpec.from_lines(lines))


def _is_ignored(path: Path, is_dir: bool, layers: Sequence[IgnoreLayer]) -> bool:
    # Deeper ignore files override their parents.
    for layer in reversed(layers):
        verdict = layer.check(path, is_dir)
        if verdict is not None:
            return verdict
    return False


def _is_excluded(path: Path, root: Path, globs: Sequence[str]) -> bool:
    for glob in globs:
        if "/" in glob.strip("/"):
            try:
                relative = PurePosixPath(path.relative_to(root)).as_posix()
            except ValueError:
                relative = path.as_posix()
            if fnmatch(relative, glob.strip("/")):
                return True
        elif fnmatch(path.name, glob.rstrip("/")):
            return True
    return False


def _list_dir(directory: Path) -> List[Path]:
    try:
        return sorted(directory.iterdir())
    except OSError as exc:
        raise WalkError(f"{directory}: {exc}") from exc


def iter_files(
    input_paths: Iterable[str],
    *,
    exclude_paths: Sequence[str] = (),
    follow: bool = False,
    no_ignore: bool = False,
) -> Iterator[Path]:
    """
    Yield every file to scan under the input paths.

    Files given explicitly are yielded as-is unless an exclusion glob matches
    them. Directories are walked recursively in sorted order.

    Args:
        input_paths: Files and/or directories
        exclude_paths: Glob patterns; without ``/`` they match entry names,
            with ``/`` they match paths relative to the input directory
        follow: Follow symbolic links (with cycle detection)
        no_ignore: Also yield hidden files and files matched by ignore files

    Raises:
        WalkError: If an input does not exist or a directory cannot be listed
    """
    for raw in input_paths:
        root = Path(raw)
        if not root.exists():
            raise WalkError(f"{raw}: No such file or directory")

        if not root.is_dir():
            if not _is_excluded(root, root.parent, exclude_paths):
                yield root
            continue

        visited: Set[Path] = {root.resolve()}
        yield from _walk(root, root, [], exclude_paths, follow, no_ignore, visited)


def _walk(
    directory: Path,
    root: Path,
    inherited_layers: List[IgnoreLayer],
    exclude_paths: Sequence[str],
    follow: bool,
    no_ignore: bool,
    visited: Set[Path],
) -> Iterator[Path]:
    layers = inherited_layers
    if not no_ignore:
        layer = load_ignore_layer(directory)
        if layer is not None:
            layers = layers + [layer]

    for entry in _list_dir(directory):
        if entry.is_symlink() and not follow:
            continue

        is_dir = entry.is_dir()
        if not no_ignore:
            if entry.name.startswith("."):
                continue
            if _is_ignored(entry, is_dir, layers):
                continue
        if _is_excluded(entry, root, exclude_paths):
            continue

        if is_dir:
            resolved = entry.resolve()
            if resolved in visited:
                logger.warning("Skipping %s: already visited", entry)
                continue
            visited.add(resolved)
            yield from _walk(entry, root, layers, exclude_paths, follow, no_ignore, visited)
        elif entry.is_file():
            yield entry


def read_lines(path: Path) -> List[str]:
    """
    Read a file as UTF-8 lines, without line terminators.

    Raises:
        UnicodeDecodeError: If the file is not valid UTF-8 text
        WalkError: If the file cannot be read
    """
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            text = handle.read()
    except OSError as exc:
        raise WalkError(f"{path}: {exc}") from exc

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]
