# tests/unit/core/test_process.py - v1
"""Tests for core/process.py - run_command."""

from __future__ import annotations

import sys
from pathlib import Path

from releaseflow.core.process import run_command


class TestRunCommand:
    def test_captures_output(self, tmp_path):
        out = run_command([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)
        assert out.success
        assert Path(out.stdout.strip()).resolve() == tmp_path.resolve()

    def test_nonzero_exit(self):
        out = run_command([sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(5)"])
        assert out.exit_code == 5
        assert out.stderr == "bad"
        assert not out.success

    def test_stdin_and_env(self):
        out = run_command(
            [sys.executable, "-c", "import os, sys; print(sys.stdin.read() + os.environ['RF_TEST'])"],
            input_text="hello ",
            env={"RF_TEST": "world"},
        )
        assert out.stdout.strip() == "hello world"

    def test_string_command_is_split(self):
        out = run_command(f'"{sys.executable}" -c "print(42)"')
        assert out.stdout.strip() == "42"
        assert out.command.endswith('-c "print(42)"')

    def test_timeout(self):
        out = run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.3)
        assert out.timed_out
        assert out.exit_code == 124
        assert not out.success

    def test_missing_executable(self):
        out = run_command(["definitely-not-a-real-binary-xyz"])
        assert out.exit_code == 127
        assert out.stderr
