"""Test cases for hook settings."""

import logging

from command_gist.config import CONFIG_ENV_VAR, DEFAULT_CONFIG, DEFAULT_LOG_FILE, config_path, load_settings


def test_missing_file_uses_defaults(tmp_path):
    settings = load_settings(tmp_path / "nope.toml")
    assert settings == {"log_file": DEFAULT_LOG_FILE, "log_level": logging.INFO}


def test_valid_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(f'[logging]\nfile = "{tmp_path / "gist.log"}"\nlevel = "debug"\n')
    settings = load_settings(path)
    assert settings == {"log_file": tmp_path / "gist.log", "log_level": logging.DEBUG}


def test_invalid_toml_warns(tmp_path, capsys):
    path = tmp_path / "config.toml"
    path.write_text("[logging\n")
    settings = load_settings(path)
    assert settings["log_level"] == logging.INFO
    assert "Warning: Failed to load" in capsys.readouterr().err


def test_unknown_level_and_bad_types(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[logging]\nfile = 3\nlevel = "chatty"\n')
    assert load_settings(path) == {"log_file": DEFAULT_LOG_FILE, "log_level": logging.INFO}

    path.write_text('logging = "loud"\n')
    assert load_settings(path) == {"log_file": DEFAULT_LOG_FILE, "log_level": logging.INFO}


def test_env_override(tmp_path, monkeypatch):
    path = tmp_path / "custom.toml"
    path.write_text('[logging]\nlevel = "ERROR"\n')
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert config_path() == path
    assert load_settings()["log_level"] == logging.ERROR

    monkeypatch.delenv(CONFIG_ENV_VAR)
    assert config_path() == DEFAULT_CONFIG
