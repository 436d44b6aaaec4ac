"""Tests for the command line entry point."""

import importlib.util
import sys
from pathlib import Path

import pytest

from taste_timeline import config

RUN_PATH = Path(__file__).parent.parent / "scripts" / "run.py"


def _load_cli():
    loader_spec = importlib.util.spec_from_file_location("taste_timeline_cli", RUN_PATH)
    module = importlib.util.module_from_spec(loader_spec)
    loader_spec.loader.exec_module(module)
    return module


def _run(monkeypatch, tmp_path, *argv):
    monkeypatch.setattr(config, "HISTORY_API_URL", "")
    monkeypatch.setattr(sys, "argv", ["run.py", "--data-dir", str(tmp_path), *argv])
    _load_cli().main()


class TestCompareCommand:
    def test_malformed_date_is_an_error_line(self, monkeypatch, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            _run(
                monkeypatch, tmp_path, "compare", "--user", "u1",
                "--past-start", "last spring", "--past-end", "2023-12-31",
                "--current-start", "2024-01-01", "--current-end", "2024-12-31",
            )
        assert exc.value.code == 1
        assert "ERROR:" in capsys.readouterr().out

    def test_date_only_windows(self, monkeypatch, tmp_path, capsys):
        _run(
            monkeypatch, tmp_path, "compare", "--user", "u1",
            "--past-start", "2023-01-01", "--past-end", "2023-12-31",
            "--current-start", "2024-01-01", "--current-end", "2024-12-31",
        )
        out = capsys.readouterr().out
        assert out.startswith("## Then vs Now")
        assert "- Mood: Stable" in out
