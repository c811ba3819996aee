"""test_config.py: Unit tests for configuration factories."""

import pytest

from formflow.config import EngineConfig, config_from_env, config_from_ini


def test_config_from_env_defaults(monkeypatch) -> None:
    for name in ("FORMFLOW_LOG_DIR", "FORMFLOW_LOG_SLUG", "FORMFLOW_SILENT", "FORMFLOW_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    cfg = config_from_env()

    assert cfg.log_dir == "./log"
    assert cfg.log_slug == "API_services"
    assert cfg.silent is False
    assert cfg.cors_origins == ["http://localhost:3000"]


def test_config_from_env_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("FORMFLOW_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("FORMFLOW_LOG_SLUG", "forms")
    monkeypatch.setenv("FORMFLOW_SILENT", "yes")
    monkeypatch.setenv("FORMFLOW_CORS_ORIGINS", "https://a.example, https://b.example,")

    cfg = config_from_env()

    assert cfg == EngineConfig(
        log_dir=str(tmp_path),
        log_slug="forms",
        silent=True,
        cors_origins=["https://a.example", "https://b.example"],
    )


def test_config_from_ini(tmp_path) -> None:
    ini = tmp_path / "formflow.ini"
    ini.write_text(
        "[logging]\n"
        "log_dir = /var/log/formflow\n"
        "silent = true\n"
        "\n"
        "[api]\n"
        "cors_origins = https://forms.example\n",
        encoding="utf-8",
    )

    cfg = config_from_ini(ini)

    assert cfg.log_dir == "/var/log/formflow"
    assert cfg.log_slug == "formflow"
    assert cfg.silent is True
    assert cfg.cors_origins == ["https://forms.example"]


def test_config_from_missing_ini_raises(tmp_path) -> None:
    with pytest.raises(ValueError, match="Config file not found"):
        config_from_ini(tmp_path / "missing.ini")
