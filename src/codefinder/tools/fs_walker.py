"""
Filesystem walker for codefinder.

This module enumerates candidate text files beneath a root directory. It skips
directories whose name is in the ignore set, accepts files by extension or, for
unknown extensions, by a size bound, and yields paths lazily so a consumer that
stops early never pays for the rest of the tree.
"""

import os
import logging
from typing import Callable, Dict, Iterable, Iterator, Optional, Union

from ..models.config import DEFAULT_ALLOWED_EXTENSIONS, FinderConfig, ONE_MIB


logger = logging.getLogger(__name__)


class DirectoryReadError(OSError):
    """Raised when the entries of a directory cannot be listed."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"Cannot read directory {path}: {cause}")
        self.path = path
        self.cause = cause


ErrorHandler = Callable[[DirectoryReadError], None]


class FileAcceptancePolicy:
    """
    Decides whether a regular file is a search candidate.

    Files whose lower-cased extension is in the allow-list are always accepted.
    Anything else is accepted only when it is smaller than ``max_unknown_bytes``;
    if the size cannot be determined the file is rejected.
    """

    def __init__(self, allowed_extensions: Optional[Iterable[str]] = None,
                 max_unknown_bytes: int = ONE_MIB):
        if allowed_extensions is None:
            allowed_extensions = DEFAULT_ALLOWED_EXTENSIONS
        self.allowed_extensions = frozenset(ext.lower() for ext in allowed_extensions)
        self.max_unknown_bytes = max_unknown_bytes

    @classmethod
    def from_config(cls, config: FinderConfig) -> 'FileAcceptancePolicy':
        return cls(config.allowed_extensions, config.limits.max_unknown_file_bytes)

    @staticmethod
    def get_extension(name: str) -> str:
        """Lower-cased final suffix including the dot; dot-files have none."""
        return os.path.splitext(name)[1].lower()

    def is_allowed_extension(self, name: str) -> bool:
        return self.get_extension(name) in self.allowed_extensions

    def accepts(self, entry: os.DirEntry) -> bool:
        """Apply the policy to a directory entry already known to be a regular file."""
        return self._accepts(entry.name, entry.stat)

    def accepts_path(self, path: Union[str, os.PathLike]) -> bool:
        """Apply the policy to a path."""
        return self._accepts(os.path.basename(os.fspath(path)), lambda: os.stat(path))

    def _accepts(self, name: str, stat: Callable[[], os.stat_result]) -> bool:
        if self.is_allowed_extension(name):
            return True
        try:
            size = stat().st_size
        except OSError as e:
            logger.debug(f"Cannot stat {name}, skipping: {e}")
            return False
        return size < self.max_unknown_bytes


class FSWalker:
    """
    Lazy, bounded directory traversal.

    Each call to :meth:`walk` starts a fresh traversal. Output order is the
    natural directory-listing order, not sorted. Symbolic links and special
    files are never followed or yielded.

    Errors listing the root always raise :class:`DirectoryReadError`. Errors
    listing a subdirectory are passed to ``on_error`` when one is given (the
    subtree is skipped and siblings continue); otherwise they raise as well.
    """

    def __init__(self, ignore_dirs: Iterable[str] = (),
                 policy: Optional[FileAcceptancePolicy] = None,
                 on_error: Optional[ErrorHandler] = None):
        self.ignore_dirs = frozenset(ignore_dirs)
        self.policy = policy or FileAcceptancePolicy()
        self.on_error = on_error
        self._stats = self._empty_stats()

    @classmethod
    def from_config(cls, config: FinderConfig, on_error: Optional[ErrorHandler] = None) -> 'FSWalker':
        return cls(config.get_ignore_set(), FileAcceptancePolicy.from_config(config), on_error)

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'directories_traversed': 0,
            'directories_ignored': 0,
            'files_accepted': 0,
            'files_rejected': 0,
            'errors': 0
        }

    def walk(self, root: Union[str, os.PathLike]) -> Iterator[str]:
        """
        Yield candidate file paths beneath ``root``.

        Args:
            root: Directory to start from; yielded paths are joined onto it as given

        Yields:
            Paths of accepted files

        Raises:
            DirectoryReadError: If the root (or, without ``on_error``, any
                subdirectory) cannot be listed
        """
        yield from self._walk_directory(os.fspath(root), is_root=True)

    def _walk_directory(self, directory: str, is_root: bool) -> Iterator[str]:
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            error = DirectoryReadError(directory, e)
            self._stats['errors'] += 1
            if is_root or self.on_error is None:
                raise error from e
            logger.warning(str(error))
            self.on_error(error)
            return

        self._stats['directories_traversed'] += 1

        for entry in entries:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file(follow_symlinks=False)
            except OSError as e:
                logger.debug(f"Cannot determine type of {entry.path}, skipping: {e}")
                continue

            if is_dir:
                if entry.name in self.ignore_dirs:
                    self._stats['directories_ignored'] += 1
                    continue
                yield from self._walk_directory(entry.path, is_root=False)
            elif is_file:
                if self.policy.accepts(entry):
                    self._stats['files_accepted'] += 1
                    yield entry.path
                else:
                    self._stats['files_rejected'] += 1
                    logger.debug(f"Rejected file with unknown extension:{entry.path}")

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the traversal.

        Returns:
            Dictionary containing operation statistics
        """
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset the statistics counters."""
        self._stats = self._empty_stats()


def traverse(root: Union[str, os.PathLike], ignore_dirs: Iterable[str],
             policy: Optional[FileAcceptancePolicy] = None,
             on_error: Optional[ErrorHandler] = None) -> Iterator[str]:
    """
    Lazily enumerate candidate files beneath ``root``.

    Args:
        root: Directory to traverse
        ignore_dirs: Directory names (exact match) never descended into
        policy: File acceptance policy; defaults to the built-in allow-list and 1 MiB bound
        on_error: Optional handler for unreadable subdirectories

    Returns:
        Generator of accepted file paths
    """
    return FSWalker(ignore_dirs, policy, on_error).walk(root)
