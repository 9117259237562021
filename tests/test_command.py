"""
Tests for the subprocess wrapper.
"""

import os

import pytest

from kavow.errors import CommandError
from kavow.lib.command import fmt_argv, run_cmd
from kavow.lib.env import prepend_path


def test_captures_output():
    r = run_cmd(["sh", "-c", "echo out; echo err >&2"])
    assert r.ok
    assert r.stdout.strip() == "out"
    assert r.stderr.strip() == "err"
    assert r.output == "out\n\nerr\n"


def test_non_zero_raises_when_checked():
    with pytest.raises(CommandError) as exc:
        run_cmd(["sh", "-c", "echo nope >&2; exit 3"])
    assert exc.value.returncode == 3
    assert "nope" in exc.value.stderr


def test_non_zero_returned_when_unchecked():
    r = run_cmd(["sh", "-c", "exit 4"], check=False)
    assert r.returncode == 4
    assert not r.ok


def test_missing_executable_is_127():
    r = run_cmd(["kavow-no-such-tool"], check=False)
    assert r.returncode == 127
    with pytest.raises(CommandError):
        run_cmd(["kavow-no-such-tool"])


def test_env_is_merged():
    r = run_cmd(["sh", "-c", "echo $KAVOW_TEST_VALUE"], env={"KAVOW_TEST_VALUE": "42"})
    assert r.stdout.strip() == "42"


def test_fmt_argv_quotes():
    assert fmt_argv(["git", "config", "user.name", "Ada Lovelace"]) == "git config user.name 'Ada Lovelace'"


def test_prepend_path(monkeypatch, tmp_path):
    monkeypatch.setenv("PATH", "/usr/bin")
    assert prepend_path(tmp_path)
    assert not prepend_path(tmp_path)
    assert os.environ["PATH"] == f"{tmp_path}{os.pathsep}/usr/bin"
