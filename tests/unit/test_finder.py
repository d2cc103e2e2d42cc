"""
Unit tests for search orchestration.

End-to-end scenarios over real temporary directory trees.
"""

import os
import tempfile
import shutil
import threading
from pathlib import Path
from unittest.mock import patch
import pytest

from codefinder.finder import CodeFinder, run_search
from codefinder.models.config import FinderConfig, ONE_MIB
from codefinder.models.search_query import SearchQuery
from codefinder.tools import searcher as searcher_module
from codefinder.tools.fs_walker import DirectoryReadError
from codefinder.tools.predicate import EmptyQueryError
from codefinder.tools.searcher import ResultAccumulator


class TestCodeFinder:
    """Test cases for CodeFinder."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir)
        self.config = FinderConfig(ignore_dirs=["node_modules"], summarizer={'enabled': False})
        self.finder = CodeFinder(self.config)

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _write(self, relative, content):
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def _count_reads(self):
        reads = []
        real_reader = searcher_module.read_text_file

        def counting(path):
            reads.append(path)
            return real_reader(path)

        return reads, patch.object(searcher_module, 'read_text_file', side_effect=counting)

    def test_ignored_and_oversized_files_never_scanned(self):
        self._write("a.py", "first line\nimport foo\nthird line")
        self._write("node_modules/b.py", "foo everywhere\n")
        with open(self.root / "big.bin", 'wb') as f:
            f.write(b"foo\n" * (2 * ONE_MIB // 4))

        reads, reader_patch = self._count_reads()
        with reader_patch:
            results = self.finder.run(SearchQuery(text="foo", root=str(self.root),
                                                  max_results=5, window_lines=1))

        assert len(results.matches) == 1
        match = results.matches[0]
        assert match.file == str(self.root / "a.py")
        assert match.line == 2
        assert match.snippet == "first line\nimport foo\nthird line"
        assert reads == [str(self.root / "a.py")]
        assert results.files_scanned == 1

    def test_multi_token_case_insensitive(self):
        self._write("notes.md", "nothing\nFOO here\nalso Bar\nnone")

        results = self.finder.run(SearchQuery(text="foo bar", root=str(self.root), window_lines=0))

        assert [(m.line, m.snippet) for m in results.matches] == [(2, "FOO here"), (3, "also Bar")]

    def test_cap_of_one_opens_only_first_file(self):
        self._write("one.py", "match\n")
        self._write("two.py", "match\n")

        reads, reader_patch = self._count_reads()
        with reader_patch:
            results = self.finder.run(SearchQuery(text="match", root=str(self.root), max_results=1))

        assert len(results.matches) == 1
        assert len(reads) == 1
        assert results.matches[0].file == reads[0]

    def test_no_matches_is_empty_outcome(self):
        self._write("a.py", "nothing relevant\n")

        results = self.finder.run(SearchQuery(text="absent", root=str(self.root)))

        assert results.is_empty()
        assert not results.has_errors()

    def test_empty_query_fails_before_traversal(self):
        with patch("codefinder.finder.FSWalker") as walker_cls:
            with pytest.raises(EmptyQueryError):
                self.finder.run(SearchQuery(text="   ", root=str(self.root)))

        walker_cls.assert_not_called()

    def test_missing_root_raises(self):
        with pytest.raises(DirectoryReadError):
            self.finder.run(SearchQuery(text="foo", root=str(self.root / "missing")))

    def test_unreadable_subdirectory_recorded(self):
        self._write("locked/secret.py", "foo\n")
        self._write("open/visible.py", "foo\n")
        real_scandir = os.scandir

        def scandir(path):
            if os.path.basename(path) == "locked":
                raise PermissionError(13, "Permission denied", path)
            return real_scandir(path)

        with patch("codefinder.tools.fs_walker.os.scandir", side_effect=scandir):
            results = self.finder.run(SearchQuery(text="foo", root=str(self.root)))

        assert [Path(m.file).name for m in results.matches] == ["visible.py"]
        assert len(results.errors) == 1
        assert "locked" in results.errors[0]

    def test_binary_and_invalid_utf8_skipped(self):
        self._write("good.txt", "foo\n")
        (self.root / "nul.txt").write_bytes(b"foo\x00bar\n")
        (self.root / "latin.txt").write_bytes(b"foo caf\xe9\n")

        results = self.finder.run(SearchQuery(text="foo", root=str(self.root)))

        assert [Path(m.file).name for m in results.matches] == ["good.txt"]

    def test_cancelled_run(self):
        self._write("a.py", "foo\n")
        cancel = threading.Event()
        cancel.set()

        results = self.finder.run(SearchQuery(text="foo", root=str(self.root)), cancel_event=cancel)

        assert results.cancelled
        assert results.is_empty()

    def test_caller_accumulator_survives_interrupt(self):
        self._write("a/one.py", "foo\n")
        self._write("b/two.py", "foo\n")
        accumulator = ResultAccumulator(10)
        real_reader = searcher_module.read_text_file
        calls = []

        def interrupting(path):
            calls.append(path)
            if len(calls) == 2:
                raise KeyboardInterrupt
            return real_reader(path)

        with patch.object(searcher_module, 'read_text_file', side_effect=interrupting):
            with pytest.raises(KeyboardInterrupt):
                self.finder.run(SearchQuery(text="foo", root=str(self.root), max_results=10),
                                accumulator=accumulator)

        assert len(accumulator.matches) == 1
        assert accumulator.matches[0].file == calls[0]

    def test_run_search_convenience(self):
        self._write("a.py", "foo\n")
        results = run_search(SearchQuery(text="foo", root=str(self.root)), self.config)
        assert results.get_match_count() == 1
        assert results.execution_time >= 0.0
