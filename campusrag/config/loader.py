"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- static defaults checked into the repo
#   2. .env file           -- local developer overrides (not committed)
#   3. Environment vars    -- set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the Settings
# fields that were explicitly set (env, .env or constructor) on top.
# Settings defaults never override the YAML:
#   base = {"ingestion": {"batch_size": 5, "programs": [...]}}
#   INGEST_BATCH_SIZE=10  ->  overrides = {"ingestion": {"batch_size": 10}}
#   result = {"ingestion": {"batch_size": 10, "programs": [...]}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from campusrag.config.settings import Settings
from campusrag.utils.errors import ConfigurationError

# Settings field -> (config section, key)
_SETTINGS_KEYS: dict[str, tuple[str, str]] = {
    "app_env": ("app", "env"),
    "openai_embedding_model": ("openai", "embedding_model"),
    "openai_chat_model": ("openai", "chat_model"),
    "openai_base_url": ("openai", "base_url"),
    "chromadb_persist_dir": ("vector_store", "persist_dir"),
    "chromadb_collection": ("vector_store", "collection"),
    "embedding_dimension": ("vector_store", "dimension"),
    "chunk_size": ("ingestion", "chunk_size"),
    "chunk_overlap": ("ingestion", "chunk_overlap"),
    "ingest_batch_size": ("ingestion", "batch_size"),
    "duplicate_policy": ("ingestion", "duplicate_policy"),
    "course_base_path": ("ingestion", "course_base_path"),
    "course_programs": ("ingestion", "programs"),
    "retrieval_limit": ("retrieval", "limit"),
    "retrieval_per_channel_limit": ("retrieval", "per_channel_limit"),
    "log_level": ("logging", "level"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Only Settings fields that were explicitly set override YAML values;
    fields left at their defaults do not.

    Args:
        path: Path to the YAML configuration file.  A missing file is
            treated as empty.
        settings: Pre-built settings; read from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file cannot be parsed.
    """
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides: dict = {}
    for field, (section, key) in _SETTINGS_KEYS.items():
        if field not in settings.model_fields_set:
            continue
        value = getattr(settings, field)
        env_overrides.setdefault(section, {})[key] = list(value) if isinstance(value, list) else value

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
