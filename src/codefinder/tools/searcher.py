"""
Windowed line search for codefinder.

The searcher pulls candidate files one at a time, scans their lines with a
match predicate and records every matching line together with a fixed-size
window of surrounding lines. It stops pulling files as soon as the result cap
is reached, so work after the cap is never done.
"""

import re
import logging
import threading
from typing import Callable, Iterable, List, Optional

from ..models.search_results import MatchRecord
from .predicate import MatchPredicate


logger = logging.getLogger(__name__)

LINE_SPLIT_RE = re.compile(r'\r?\n')

Predicate = Callable[[str], bool]
FileReader = Callable[[str], str]


class BinaryFileError(ValueError):
    """Raised by the default reader for content that is not text."""


def read_text_file(path: str) -> str:
    """
    Read a whole file as UTF-8 text.

    Raises:
        OSError: If the file cannot be opened or read
        BinaryFileError: If the content contains NUL bytes
        UnicodeDecodeError: If the content is not valid UTF-8
    """
    with open(path, 'rb') as f:
        data = f.read()
    if b'\x00' in data:
        raise BinaryFileError(f"Binary content in {path}")
    return data.decode('utf-8')


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` with an optional preceding ``\\r``."""
    return LINE_SPLIT_RE.split(text)


def extract_window(lines: List[str], index: int, window_lines: int) -> str:
    """
    Join the lines around ``lines[index]``, clamped to the file bounds.

    Args:
        lines: All lines of the file
        index: 0-based index of the matching line
        window_lines: Lines to include on each side

    Returns:
        Lines ``[max(0, index - w), min(len, index + w + 1))`` joined with newlines
    """
    start = max(0, index - window_lines)
    end = min(len(lines), index + window_lines + 1)
    return '\n'.join(lines[start:end])


class ResultAccumulator:
    """
    Early-exit accumulator for match records.

    The caller owns the accumulator and passes it to the searcher, so results
    gathered before a cancellation or interruption stay available.
    """

    def __init__(self, max_results: int):
        if max_results <= 0:
            raise ValueError(f"max_results must be positive, got {max_results}")
        self.max_results = max_results
        self.matches: List[MatchRecord] = []
        self.files_scanned = 0

    @property
    def is_full(self) -> bool:
        return len(self.matches) >= self.max_results

    def add(self, record: MatchRecord) -> bool:
        """
        Append a record.

        Returns:
            True if the cap has now been reached
        """
        if self.is_full:
            raise OverflowError("Result cap already reached")
        self.matches.append(record)
        return self.is_full

    def __len__(self) -> int:
        return len(self.matches)


class WindowedSearcher:
    """
    Applies a predicate to every line of a sequence of files.

    Attributes:
        predicate: Line predicate (see :func:`build_predicate`)
        window_lines: Context lines before and after each match
        max_results: Hard cap on the number of records per run
        read_file: File source; defaults to strict UTF-8 reading of the whole file
    """

    def __init__(self, predicate: Predicate, window_lines: int, max_results: int,
                 read_file: Optional[FileReader] = None):
        if window_lines < 0:
            raise ValueError(f"window_lines must be >= 0, got {window_lines}")
        if max_results <= 0:
            raise ValueError(f"max_results must be positive, got {max_results}")
        self.predicate = predicate
        self.window_lines = window_lines
        self.max_results = max_results
        self.read_file = read_file or read_text_file

    def search(self, files: Iterable[str], accumulator: Optional[ResultAccumulator] = None,
               cancel_event: Optional[threading.Event] = None) -> ResultAccumulator:
        """
        Scan ``files`` in order until they run out or the cap is reached.

        Unreadable, binary and undecodable files are skipped silently.

        Args:
            files: Candidate file paths; consumed lazily
            accumulator: Where to collect records; a new one is created if omitted
            cancel_event: When set, the run stops before the next file or line

        Returns:
            The accumulator holding the records found
        """
        if accumulator is None:
            accumulator = ResultAccumulator(self.max_results)

        if accumulator.is_full:
            return accumulator

        for path in files:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Search cancelled")
                break

            try:
                text = self.read_file(path)
            except (OSError, ValueError) as e:
                # UnicodeDecodeError and BinaryFileError are both ValueErrors
                logger.debug(f"Skipping unreadable file {path}: {e}")
                continue

            accumulator.files_scanned += 1
            if self._scan_text(path, text, accumulator, cancel_event):
                break

        return accumulator

    def _scan_text(self, path: str, text: str, accumulator: ResultAccumulator,
                   cancel_event: Optional[threading.Event]) -> bool:
        """Scan one file's text. Returns True when the run must stop."""
        lines = split_lines(text)
        for index, line in enumerate(lines):
            if cancel_event is not None and cancel_event.is_set():
                return True
            if not self.predicate(line):
                continue
            record = MatchRecord(
                file=path,
                line=index + 1,
                snippet=extract_window(lines, index, self.window_lines)
            )
            if accumulator.add(record):
                logger.debug(f"Reached maximum result count: {accumulator.max_results}")
                return True
        return False


def search(files: Iterable[str], predicate: MatchPredicate, window_lines: int,
           max_results: int) -> List[MatchRecord]:
    """
    Find matching lines with their context windows.

    Args:
        files: Candidate file paths in traversal order
        predicate: Line predicate
        window_lines: Context lines before and after each match (>= 0)
        max_results: Maximum number of records (> 0)

    Returns:
        At most ``max_results`` records, in file order then line order; empty if nothing matched
    """
    searcher = WindowedSearcher(predicate, window_lines, max_results)
    return list(searcher.search(files).matches)
