"""
Unit tests for the command-line entry point.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

import yaml

from codefinder import cli
from codefinder.summarizer import SummarizationError


class TestCli:
    """Test cases for cli.main()."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir)
        (self.root / "a.py").write_text("first\nimport foo\nthird\n")
        self.config_path = self.root / "cfg" / "codefinder.yaml"
        self.config_path.parent.mkdir()
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump({'summarizer': {'enabled': True}, 'ignore_dirs': ['cfg']}, f)

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _run(self, *args):
        return cli.main(["-d", str(self.root), "-c", str(self.config_path), *args])

    def test_blank_query(self, capsys):
        assert cli.main([]) == 1
        assert "Please provide a search query." in capsys.readouterr().err

    def test_no_matches(self, capsys):
        assert self._run("absent") == 0
        assert capsys.readouterr().out.strip() == "No matches found."

    def test_summary_printed(self, capsys):
        with patch.object(cli.Summarizer, 'summarize', return_value="Foo is imported in a.py.") as summarize:
            assert self._run("foo") == 0

        assert capsys.readouterr().out.strip() == "Foo is imported in a.py."
        results = summarize.call_args.args[0]
        assert results.matches[0].line == 2

    def test_summary_failure_falls_back_to_raw_results(self, capsys):
        with patch.object(cli.Summarizer, 'summarize', side_effect=SummarizationError("no key")):
            assert self._run("-w", "1", "foo") == 0

        captured = capsys.readouterr()
        assert "Error calling summarizer: no key" in captured.err
        assert captured.err.count("no key") == 1
        assert "Snippets:" in captured.out
        assert f"[1] {self.root / 'a.py'}:2" in captured.out
        assert "first\nimport foo\nthird" in captured.out

    def test_no_summary_flag(self, capsys):
        with patch.object(cli.Summarizer, 'summarize') as summarize:
            assert self._run("--no-summary", "-w", "0", "foo") == 0

        summarize.assert_not_called()
        assert capsys.readouterr().out.strip() == f"[1] {self.root / 'a.py'}:2\nimport foo"

    def test_json_output(self, capsys):
        with patch.object(cli.Summarizer, 'summarize') as summarize:
            assert self._run("--format", "json", "-n", "1", "FOO") == 0

        summarize.assert_not_called()
        data = json.loads(capsys.readouterr().out)
        assert data['match_count'] == 1
        assert data['matches'][0]['line'] == 2
        assert data['query']['max_results'] == 1

    def test_missing_directory(self, capsys):
        code = cli.main(["-d", str(self.root / "missing"), "-c", str(self.config_path), "foo"])

        assert code == 1
        assert "Cannot read directory" in capsys.readouterr().err

    def test_bad_config(self, capsys):
        bad = self.root / "cfg" / "bad.yaml"
        bad.write_text("limits: [unclosed\n")

        assert cli.main(["-d", str(self.root), "-c", str(bad), "foo"]) == 2
        assert "Invalid YAML syntax" in capsys.readouterr().err

    def test_invalid_max(self, capsys):
        assert self._run("-n", "0", "foo") == 2
        assert "Invalid arguments" in capsys.readouterr().err

    def test_interrupt_prints_partial_results(self, capsys):
        with patch.object(cli.CodeFinder, 'run', side_effect=KeyboardInterrupt):
            assert self._run("foo") == 130

        assert "interrupted" in capsys.readouterr().err

    def test_init_config(self, capsys):
        target = self.root / "out" / "codefinder.yaml"

        assert cli.main(["--init-config", str(target)]) == 0
        assert target.exists()
        assert "template written" in capsys.readouterr().out

    def test_parser_defaults(self):
        args = cli.build_parser().parse_args(["foo", "bar"])

        assert args.query == ["foo", "bar"]
        assert args.dir is None
        assert args.max is None
        assert args.window is None
        assert args.no_summary is False
