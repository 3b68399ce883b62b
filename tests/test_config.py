"""
Tests for settings loading.
"""

import json

import pytest

from config import load_settings


def _write_config(tmp_path, **values):
    path = tmp_path / "autoapply_config.json"
    path.write_text(json.dumps(values), encoding="utf-8")
    return path


def test_gemini_key_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", " env-key ")

    settings = load_settings(_write_config(tmp_path))

    assert settings.llm_provider == "gemini"
    assert settings.gemini_api_key == "env-key"
    assert settings.workers == 1
    assert settings.navigation_timeout_seconds == 30.0
    assert settings.automate is False


def test_gemini_key_file_takes_precedence(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    (tmp_path / "gemini.key").write_text("file-key\n", encoding="utf-8")

    settings = load_settings(_write_config(tmp_path, google_api_key_file="gemini.key"))

    assert settings.gemini_api_key == "file-key"


def test_missing_gemini_key_is_an_error(tmp_path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(ValueError, match="Gemini API key missing"):
        load_settings(_write_config(tmp_path))


def test_ollama_does_not_need_a_key(tmp_path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    settings = load_settings(_write_config(tmp_path, llm_provider="Ollama", ollama_model="llama3"))

    assert settings.llm_provider == "ollama"
    assert settings.gemini_api_key == ""
    assert settings.ollama_model == "llama3"


def test_relative_directories_are_resolved_and_created(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "key")

    settings = load_settings(
        _write_config(tmp_path, upload_dir="data/uploads", output_dir="out", log_file="logs/run_YYYYMMDD_HHMMSS.log")
    )

    assert settings.upload_dir == (tmp_path / "data" / "uploads").resolve()
    assert settings.upload_dir.is_dir()
    assert settings.output_dir.is_dir()
    assert settings.results_file == settings.output_dir / "results.json"
    assert "YYYYMMDD_HHMMSS" not in settings.log_file.name
    assert settings.log_file.parent.is_dir()


@pytest.mark.parametrize(
    "values, message",
    [
        ({"llm_provider": "openai"}, "llm_provider"),
        ({"workers": 0}, "workers"),
        ({"max_attempts": -1}, "max_attempts"),
        ({"llm_timeout_seconds": 0}, "llm_timeout_seconds"),
    ],
)
def test_invalid_values_are_rejected(tmp_path, monkeypatch, values, message):
    monkeypatch.setenv("GEMINI_API_KEY", "key")

    with pytest.raises(ValueError, match=message):
        load_settings(_write_config(tmp_path, **values))


def test_missing_and_invalid_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_settings(broken)


def test_redis_url_from_config_or_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://env-host:6379/2")

    from_env = load_settings(_write_config(tmp_path, llm_provider="ollama"))
    from_file = load_settings(_write_config(tmp_path, llm_provider="ollama", redis_url="redis://cfg:6379/1"))

    assert from_env.redis_url == "redis://env-host:6379/2"
    assert from_file.redis_url == "redis://cfg:6379/1"


def test_redis_url_default(tmp_path, monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)

    settings = load_settings(_write_config(tmp_path, llm_provider="ollama"))

    assert settings.redis_url == "redis://localhost:6379/0"
