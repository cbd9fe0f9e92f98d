import importlib
import logging
import os
import sys
import types
from pathlib import Path

import pytest


def _reload_config():
    sys.modules.pop("golwarc.config", None)
    return importlib.import_module("golwarc.config")


@pytest.fixture(autouse=True)
def _restore_config_module():
    yield
    sys.modules.pop("golwarc.config", None)


def test_dotenv_present_but_fails_to_load(monkeypatch, tmp_path):
    tmp_path.joinpath(".env").write_text("USER_AGENT=FromFile")
    monkeypatch.chdir(tmp_path)

    fake = types.SimpleNamespace(load_dotenv=lambda: False)
    monkeypatch.setitem(sys.modules, "dotenv", fake)
    with pytest.raises(RuntimeError):
        _reload_config()


def test_dotenv_loads_sets_variables(monkeypatch, tmp_path):
    tmp_path.joinpath(".env").write_text("USER_AGENT=DotenvAgent\nCRAWL_CONCURRENCY=8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("USER_AGENT", raising=False)
    monkeypatch.delenv("CRAWL_CONCURRENCY", raising=False)

    def fake_load():
        # emulate dotenv behavior: read .env and set os.environ
        p = Path(".env")
        for line in p.read_text().splitlines():
            if "=" in line:
                k, v = line.split("=", 1)
                monkeypatch.setenv(k, v)
        return True

    fake = types.SimpleNamespace(load_dotenv=fake_load)
    monkeypatch.setitem(sys.modules, "dotenv", fake)
    cfg = _reload_config()
    assert cfg.get_str_env("USER_AGENT", "Fallback/1.0") == "DotenvAgent"
    assert cfg.get_int_env("CRAWL_CONCURRENCY", 5) == 8
    assert os.environ["USER_AGENT"] == "DotenvAgent"


def test_defaults_without_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("USER_AGENT", "HTTP_TIMEOUT", "CRAWL_DELAY", "DEFAULT_DEPTH", "CRAWL_CONCURRENCY", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    cfg = _reload_config()
    assert cfg.get_str_env("USER_AGENT", "Fallback/1.0") == "Fallback/1.0"
    assert cfg.get_float_env("HTTP_TIMEOUT", 30.0) == 30.0
    assert cfg.get_int_env("CRAWL_CONCURRENCY", 5) == 5
    assert cfg.log_level() == "INFO"


def test_invalid_numbers_fall_back_with_warning(monkeypatch, tmp_path, caplog):
    monkeypatch.chdir(tmp_path)
    cfg = _reload_config()
    monkeypatch.setenv("DEFAULT_DEPTH", "deep")
    monkeypatch.setenv("HTTP_TIMEOUT", "soon")
    caplog.set_level(logging.WARNING)

    assert cfg.get_int_env("DEFAULT_DEPTH", 3) == 3
    assert cfg.get_float_env("HTTP_TIMEOUT", 30.0) == 30.0
    assert "Invalid DEFAULT_DEPTH" in caplog.text
    assert "Invalid HTTP_TIMEOUT" in caplog.text


def test_string_helpers(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    cfg = _reload_config()
    monkeypatch.setenv("USER_AGENT", "   ")
    assert cfg.get_str_env("USER_AGENT", "Fallback/1.0") == "Fallback/1.0"
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    assert cfg.log_level() == "DEBUG"
