"""
Roastgen Configuration Module

This module implements a hierarchical configuration system:
1. API Keys are retrieved from environment variables (NOT from config files)
2. Other settings are loaded from config.yaml file

Environment Variables:
    - GEMINI_API_KEY: Google Gemini API key (used by the default transports)
    - OPENAI_API_KEY: Key for OpenAI-compatible transports (optional)
    - ROASTGEN_CONFIG: Alternative path to config.yaml (optional)

The ordered transport list and model list are exposed as an immutable
GenerationSettings object rather than module-level globals, so that every
caller (and every test) can pass its own lists into the fallback chain.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import yaml

from roastgen.services.ai.errors import ConfigurationError


# ==================== Path Configuration ====================
# Get the project root directory (backend/)
BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_PATH = Path(os.environ.get("ROASTGEN_CONFIG", BASE_DIR / "config.yaml"))


# ==================== Load YAML Configuration ====================
def _load_yaml_config():
    """Load configuration from config.yaml file."""
    if not CONFIG_PATH.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {CONFIG_PATH}\n"
            "Please create config.yaml in the backend directory."
        )

    with open(CONFIG_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


# Load config at module import time
_config = _load_yaml_config()


def get_config(key: str, default=None):
    """
    Get configuration value by dot-notation key.

    Args:
        key: Dot-separated key path (e.g., 'ai.retry.max_attempts')
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    keys = key.split(".")
    value = _config

    for k in keys:
        if isinstance(value, dict):
            value = value.get(k)
        else:
            return default

    return value if value is not None else default


# ==================== API Keys from Environment Variables ====================
def _get_env_key(key: str, required: bool = True) -> Optional[str]:
    """
    Get API key from environment variable.

    Args:
        key: Environment variable name
        required: If True, raises error when key is not set

    Returns:
        API key value or None

    Raises:
        ConfigurationError: If required key is not set
    """
    value = os.environ.get(key)
    if required and not value:
        raise ConfigurationError(
            f"Required environment variable '{key}' is not set.\n"
            f"Please set it, e.g.:\n"
            f"  export {key}=\"your_key_here\""
        )
    return value


# ==================== Public Configuration Constants ====================

# Application Settings
APP_NAME = get_config("app.name", "Roastgen")
APP_VERSION = get_config("app.version", "1.0.0")
DEBUG = get_config("app.debug", False)

# Logging
LOG_LEVEL = get_config("logging.level", "INFO")
LOG_FILE = get_config("logging.file", "")
LOG_ROTATION = get_config("logging.rotation", "10 MB")
LOG_RETENTION = get_config("logging.retention", "7 days")

# ==================== Generation Defaults ====================
DEFAULT_MODELS = ("gemini-2.5-flash", "gemini-flash-lite-latest")
DEFAULT_CONTEXT_MODEL = "gemini-flash-lite-latest"
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BACKOFF_BASE = 2.0
DEFAULT_BACKOFF_MAX = 60.0
DEFAULT_PACING_INTERVAL = 0.8
DEFAULT_REQUEST_TIMEOUT = 60


@dataclass(frozen=True)
class TransportSettings:
    """
    One configured path for reaching the generation service.

    Attributes:
        name: Human-readable name used in logs (e.g. "primary", "proxy")
        provider: Adapter name registered in the transport registry
        base_url: Override for the service base address (None = SDK default)
        api_key_env: Environment variable holding the API key
    """
    name: str
    provider: str = "gemini"
    base_url: Optional[str] = None
    api_key_env: str = "GEMINI_API_KEY"

    def resolve_api_key(self) -> str:
        return _get_env_key(self.api_key_env, required=True)


DEFAULT_TRANSPORTS = (
    TransportSettings(name="primary"),
    TransportSettings(name="proxy", base_url="https://www.yangjiehui.xyz"),
)


@dataclass(frozen=True)
class GenerationSettings:
    """
    Immutable configuration for one fallback chain.

    Transports are iterated slowest, models fastest. Both are tuples so a
    settings object can be shared read-only between concurrent requests.
    """
    transports: Tuple[TransportSettings, ...] = DEFAULT_TRANSPORTS
    models: Tuple[str, ...] = DEFAULT_MODELS
    context_model: str = DEFAULT_CONTEXT_MODEL
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_base: float = DEFAULT_BACKOFF_BASE
    backoff_max: Optional[float] = DEFAULT_BACKOFF_MAX
    pacing_interval: float = DEFAULT_PACING_INTERVAL
    stream_temperature: float = 1.3
    single_temperature: float = 1.3
    context_temperature: float = 0.7
    expected_count: int = 5
    request_timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self):
        if not self.models:
            raise ConfigurationError("At least one model identifier must be configured")
        if not self.transports:
            raise ConfigurationError("At least one transport client must be configured")
        if self.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be >= 1, got {self.max_attempts}")


def _parse_transports(raw) -> Tuple[TransportSettings, ...]:
    if not raw:
        return DEFAULT_TRANSPORTS

    transports = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigurationError(f"ai.transports[{index}] must be a mapping, got {type(item).__name__}")
        transports.append(TransportSettings(
            name=item.get("name") or f"transport-{index}",
            provider=item.get("provider", "gemini"),
            base_url=item.get("base_url"),
            api_key_env=item.get("api_key_env", "GEMINI_API_KEY"),
        ))
    return tuple(transports)


def load_generation_settings() -> GenerationSettings:
    """
    Build GenerationSettings from config.yaml.

    Missing keys fall back to the module defaults.

    Returns:
        GenerationSettings: Immutable settings for RoastService

    Raises:
        ConfigurationError: If the configured lists are empty or malformed
    """
    models = get_config("ai.models", list(DEFAULT_MODELS))
    if isinstance(models, str):
        models = [models]

    return GenerationSettings(
        transports=_parse_transports(get_config("ai.transports")),
        models=tuple(models),
        context_model=get_config("ai.context_model", DEFAULT_CONTEXT_MODEL),
        max_attempts=int(get_config("ai.retry.max_attempts", DEFAULT_MAX_ATTEMPTS)),
        backoff_base=float(get_config("ai.retry.backoff_base", DEFAULT_BACKOFF_BASE)),
        backoff_max=get_config("ai.retry.backoff_max", DEFAULT_BACKOFF_MAX),
        pacing_interval=float(get_config("ai.pacing.interval", DEFAULT_PACING_INTERVAL)),
        stream_temperature=float(get_config("ai.generation.stream_temperature", 1.3)),
        single_temperature=float(get_config("ai.generation.single_temperature", 1.3)),
        context_temperature=float(get_config("ai.generation.context_temperature", 0.7)),
        expected_count=int(get_config("ai.generation.expected_count", 5)),
        request_timeout=get_config("ai.request_timeout", DEFAULT_REQUEST_TIMEOUT),
    )


def reload_config():
    """Reload configuration from config.yaml file."""
    global _config
    _config = _load_yaml_config()


def print_config_summary():
    """Print a summary of current configuration (without exposing API keys)."""
    settings = load_generation_settings()

    print(f"\n{'='*60}")
    print(f"Application: {APP_NAME} v{APP_VERSION}")
    print(f"Debug Mode: {DEBUG}")
    print(f"{'='*60}")

    print(f"\n[Transports]")
    for transport in settings.transports:
        key_state = "*** Set ***" if os.environ.get(transport.api_key_env) else "NOT SET"
        print(f"  {transport.name}: provider={transport.provider} "
              f"base_url={transport.base_url or '(default)'} {transport.api_key_env}={key_state}")

    print(f"\n[Models]")
    for model in settings.models:
        print(f"  - {model}")
    print(f"  Context Model: {settings.context_model}")

    print(f"\n[Retry]")
    print(f"  Max Attempts: {settings.max_attempts}")
    print(f"  Backoff: base={settings.backoff_base}s max={settings.backoff_max}s")
    print(f"  Pacing Interval: {settings.pacing_interval}s")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    print_config_summary()
