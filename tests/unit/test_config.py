"""Unit tests for config.py"""

import pytest

from infopub.config import load_config


def test_load_config_uses_env_db_url(monkeypatch):
    """INFOPUB_DB_URL env var is picked up by load_config."""
    monkeypatch.setenv("INFOPUB_DB_URL", "sqlite:///env.db")
    settings = load_config()
    assert settings.db_url == "sqlite:///env.db"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """INFOPUB_DB_URL takes precedence over config.yaml db_url."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("db_url: 'sqlite:///project.db'\n")
    monkeypatch.setenv("INFOPUB_DB_URL", "sqlite:///override.db")
    settings = load_config()
    assert settings.db_url == "sqlite:///override.db"


def test_load_config_reads_config_yaml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("base_url: 'https://info.test'\nhistory_limit: 20\n")
    settings = load_config()
    assert settings.base_url == "https://info.test"
    assert settings.history_limit == 20


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("INFOPUB_DB_URL", "sqlite:///env.db")
    settings = load_config(overrides={"db_url": "sqlite:///cli.db", "output_dir": None})
    assert settings.db_url == "sqlite:///cli.db"
    assert settings.output_dir == "dist"


def test_load_config_defaults(tmp_path, monkeypatch):
    """Defaults apply when no config.yaml, env var, or CLI override exists."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("INFOPUB_DB_URL", raising=False)
    settings = load_config()
    assert settings.db_url == "sqlite:///infopub.db"
    assert settings.delete_grace_seconds == 5.0
    assert settings.history_limit == 80
    assert (settings.free_page_limit, settings.pro_page_limit) == (3, 1000)


def test_load_config_invalid_yaml(tmp_path, monkeypatch):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


# --- generalized env var pattern ---

def test_load_config_env_grace_seconds(monkeypatch):
    """INFOPUB_DELETE_GRACE_SECONDS is coerced to float."""
    monkeypatch.setenv("INFOPUB_DELETE_GRACE_SECONDS", "2.5")
    assert load_config().delete_grace_seconds == 2.5


def test_load_config_rejects_unknown_output_format(monkeypatch):
    monkeypatch.setenv("INFOPUB_OUTPUT_FORMAT", "pdf")
    with pytest.raises(ValueError):
        load_config()
