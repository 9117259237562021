"""
Tests for YAML settings and environment overrides.
"""

import logging

import pytest

from kavow.settings import load_settings, parse_log_level


@pytest.fixture
def settings_file(tmp_path):
    p = tmp_path / "settings.yaml"
    p.write_text("")
    return p


def test_defaults(settings_file):
    s = load_settings(str(settings_file), environ={})
    assert s.state_path.name == "state.json"
    assert s.lock_path == s.state_dir / ".lock"
    assert s.lock_wait_seconds == 30
    assert s.lock_poll_seconds == 1.0
    assert s.network_timeout_seconds == 10
    assert s.required_disk_gb == 5
    assert "admin:public_key" in s.github_scopes
    assert (s.data_dir / "apps.conf").is_file()
    assert s.log_level == logging.INFO


def test_yaml_values(settings_file, tmp_path):
    settings_file.write_text(
        f"state_dir: {tmp_path / 'st'}\n"
        "lock_wait_seconds: 5\n"
        "preflight_urls:\n"
        "  - https://example.com\n"
    )
    s = load_settings(str(settings_file), environ={})
    assert s.state_dir == tmp_path / "st"
    assert s.log_path == tmp_path / "st" / "kavow.log"
    assert s.lock_wait_seconds == 5
    assert s.preflight_urls == ["https://example.com"]


def test_environment_overrides_file(settings_file, tmp_path):
    settings_file.write_text("state_dir: /nowhere\nlog_level: ERROR\n")
    s = load_settings(
        str(settings_file),
        environ={"KAVOW_STATE_DIR": str(tmp_path), "LOG_LEVEL": "4"},
    )
    assert s.state_dir == tmp_path
    assert s.log_level == logging.DEBUG


def test_debug_forces_debug_level(settings_file):
    s = load_settings(str(settings_file), environ={"DEBUG": "1", "LOG_LEVEL": "1"})
    assert s.log_level == logging.DEBUG


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "absent.yaml"), environ={})


def test_non_mapping_file(settings_file):
    settings_file.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_settings(str(settings_file), environ={})


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1", logging.ERROR),
        ("2", logging.WARNING),
        ("3", logging.INFO),
        ("4", logging.DEBUG),
        ("warning", logging.WARNING),
        ("", logging.INFO),
        (None, logging.INFO),
        ("loud", logging.INFO),
    ],
)
def test_parse_log_level(value, expected):
    assert parse_log_level(value) == expected
