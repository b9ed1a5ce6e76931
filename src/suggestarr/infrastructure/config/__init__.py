from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, SuggestConfig

__all__ = ["AppConfig", "EnvOverrides", "SuggestConfig", "load_config"]
