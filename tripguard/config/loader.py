"""Config file I/O: load from JSON, merge env vars, save back to disk."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from tripguard.config.schema import TripguardConfig

_DEFAULT_CONFIG_DIR = Path.home() / ".tripguard"
_DEFAULT_CONFIG_FILE = _DEFAULT_CONFIG_DIR / "config.json"


def get_config_path() -> Path:
    return _DEFAULT_CONFIG_FILE


def load_config(path: Path | None = None) -> TripguardConfig:
    """Load config from JSON file, falling back to defaults if file is missing.

    Environment variables with TRIPGUARD_ prefix override file values.
    Nested keys use __ as delimiter (e.g. TRIPGUARD_GATEWAY__PORT).
    """
    config_path = path or _DEFAULT_CONFIG_FILE
    config_path = config_path.expanduser().resolve()

    if config_path.exists():
        raw = json.loads(config_path.read_text(encoding="utf-8"))
        logger.debug("Loaded config from {}", config_path)
        return TripguardConfig(**raw)

    return TripguardConfig()


def save_config(config: TripguardConfig, path: Path | None = None) -> Path:
    """Serialize current config to JSON and write to disk atomically.

    Uses temp-file-then-rename for crash safety.
    """
    config_path = path or _DEFAULT_CONFIG_FILE
    config_path = config_path.expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")

    tmp_path = config_path.with_suffix(".tmp")
    tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.rename(config_path)
    return config_path
