"""Configuration loading utilities."""

import json
import os
from pathlib import Path

from loguru import logger

from hostbrowser.config.schema import Config

ENV_TOKEN = "BROWSERLESS_API_KEY"
ENV_ENDPOINT = "BROWSERLESS_URL"


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".hostbrowser" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Environment overrides are applied on top of whatever was loaded.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()
    config = Config()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            data = _migrate_config(data)
            config = Config.model_validate(data)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning("Failed to load config from {}: {}", path, e)
            logger.warning("Using default configuration.")

    return apply_env_overrides(config)


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(by_alias=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def apply_env_overrides(config: Config) -> Config:
    """Fill the remote token and endpoint from the environment when set."""
    token = os.environ.get(ENV_TOKEN, "").strip()
    endpoint = os.environ.get(ENV_ENDPOINT, "").strip()
    if token:
        config.remote.token = token
    if endpoint:
        config.remote.endpoint = endpoint
    return config


def _migrate_config(data: dict) -> dict:
    """Migrate old config formats to current."""
    remote_cfg = data.setdefault("remote", {})

    # Move legacy top-level browserlessApiKey / apiKey -> remote.token
    for legacy_key in ("browserlessApiKey", "apiKey"):
        legacy_token = data.pop(legacy_key, None)
        if legacy_token and not remote_cfg.get("token"):
            remote_cfg["token"] = legacy_token

    # Move legacy top-level browserlessUrl -> remote.endpoint
    legacy_url = data.pop("browserlessUrl", None)
    if legacy_url and not remote_cfg.get("endpoint"):
        remote_cfg["endpoint"] = legacy_url

    # Move legacy remote.timeout -> remote.functionTimeoutMs
    legacy_timeout = remote_cfg.pop("timeout", None)
    if legacy_timeout is not None and "functionTimeoutMs" not in remote_cfg:
        remote_cfg["functionTimeoutMs"] = legacy_timeout

    return data
