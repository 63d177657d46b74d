"""Configuration: pydantic-settings ``Settings`` and the YAML loader."""

from campusrag.config.loader import load_config
from campusrag.config.settings import Settings

__all__ = ["Settings", "load_config"]
