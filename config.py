"""
Application configuration management.

Loads non-sensitive configuration from JSON and sensitive values
(e.g. Gemini API key) from environment variables or secret files. The Redis
URL comes from the config file or the REDIS_URL environment variable.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from job_queue import DEFAULT_REDIS_URL
from llm_handler import DEFAULT_GEMINI_MODEL, DEFAULT_OLLAMA_MODEL, DEFAULT_OLLAMA_URL

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("autoapply_config.json")
DEFAULT_UPLOAD_DIR = Path("uploads")
DEFAULT_OUTPUT_DIR = Path("cover_letters")
RESULTS_FILENAME = "results.json"
LLM_PROVIDERS = ("gemini", "ollama")


@dataclass(frozen=True)
class Settings:
    """Container for application configuration."""

    llm_provider: str
    gemini_api_key: str
    gemini_model: str
    ollama_url: str
    ollama_model: str
    llm_timeout_seconds: float
    redis_url: str
    navigation_timeout_seconds: float
    settle_seconds: float
    upload_dir: Path
    output_dir: Path
    results_file: Path
    workers: int
    max_attempts: int
    automate: bool
    submit_applications: bool
    headless: bool
    save_html: bool
    debug: bool
    log_file: Optional[Path]
    log_format: Optional[str]
    log_date_format: Optional[str]


def _read_json(path: Path) -> Dict[str, Any]:
    """Read a JSON file into a dictionary."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file missing: {path}") from None
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in configuration file: {path}") from exc


def _resolve_path(base: Path, value: Optional[str]) -> Optional[Path]:
    """Resolve a possibly relative path against a base directory."""
    if not value:
        return None
    candidate = Path(value)
    return candidate if candidate.is_absolute() else (base / candidate).resolve()


def _load_secret(base: Path, key_path: Optional[str]) -> Optional[str]:
    """Load a secret value from a text file."""
    if not key_path:
        return None
    secret_file = _resolve_path(base, key_path)
    if secret_file and secret_file.exists():
        return secret_file.read_text(encoding="utf-8").strip()
    LOGGER.warning("Secret file %s not found; skipping", secret_file)
    return None


def _positive(config: Dict[str, Any], key: str, default: float) -> float:
    value = float(config.get(key, default))
    if value <= 0:
        raise ValueError(f"Config '{key}' must be > 0.")
    return value


def load_settings(config_path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """
    Load application settings from config file and environment variables.

    Args:
        config_path: Path to the JSON configuration file.

    Returns:
        Settings dataclass populated with configuration values.
    """
    config_path = config_path.resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    config = _read_json(config_path)
    base_dir = config_path.parent

    llm_provider = str(config.get("llm_provider", "gemini")).lower()
    if llm_provider not in LLM_PROVIDERS:
        raise ValueError(f"Config 'llm_provider' must be one of {', '.join(LLM_PROVIDERS)}.")

    api_key = ""
    if llm_provider == "gemini":
        secret_key = _load_secret(base_dir, config.get("google_api_key_file"))
        api_key = secret_key or os.environ.get("GEMINI_API_KEY", "").strip()
        if not api_key:
            raise ValueError(
                "Gemini API key missing. Set GEMINI_API_KEY env or provide google_api_key_file."
            )

    workers = int(config.get("workers", 1))
    if workers <= 0:
        raise ValueError("Config 'workers' must be > 0.")
    max_attempts = int(config.get("max_attempts", 1))
    if max_attempts <= 0:
        raise ValueError("Config 'max_attempts' must be > 0.")

    upload_dir = _resolve_path(base_dir, config.get("upload_dir")) or (base_dir / DEFAULT_UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    output_dir = _resolve_path(base_dir, config.get("output_dir")) or (base_dir / DEFAULT_OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)

    results_file = _resolve_path(base_dir, config.get("results_file")) or (output_dir / RESULTS_FILENAME)

    log_file_str = config.get("log_file")
    if log_file_str:
        # Replace timestamp placeholder if present
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = _resolve_path(base_dir, log_file_str.replace("YYYYMMDD_HHMMSS", timestamp))
        log_file.parent.mkdir(parents=True, exist_ok=True)
    else:
        log_file = None

    return Settings(
        llm_provider=llm_provider,
        gemini_api_key=api_key,
        gemini_model=config.get("gemini_model", DEFAULT_GEMINI_MODEL),
        ollama_url=config.get("ollama_url", DEFAULT_OLLAMA_URL),
        ollama_model=config.get("ollama_model", DEFAULT_OLLAMA_MODEL),
        llm_timeout_seconds=_positive(config, "llm_timeout_seconds", 120.0),
        redis_url=config.get("redis_url") or os.environ.get("REDIS_URL", DEFAULT_REDIS_URL),
        navigation_timeout_seconds=_positive(config, "navigation_timeout_seconds", 30.0),
        settle_seconds=float(config.get("settle_seconds", 2.0)),
        upload_dir=upload_dir.resolve(),
        output_dir=output_dir.resolve(),
        results_file=results_file,
        workers=workers,
        max_attempts=max_attempts,
        automate=bool(config.get("automate", False)),
        submit_applications=bool(config.get("submit_applications", False)),
        headless=bool(config.get("headless", True)),
        save_html=bool(config.get("save_html", False)),
        debug=bool(config.get("debug", False)),
        log_file=log_file,
        log_format=config.get("log_format"),
        log_date_format=config.get("log_date_format"),
    )
