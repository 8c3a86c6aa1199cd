"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from mdderive.core.plugins import PluginDescriptor


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDDERIVE_"
_ENV_EXCLUDE = {"plugins"}      # structured fields come from config.yaml only


class Settings(BaseModel):
    parser_config:    str  = Field(default="gfm-like", description="MarkdownIt parser preset name")
    footnotes:        bool = Field(default=True, description="Enable [^label] footnotes")
    prune_length:     int  = Field(default=140, ge=0, description="Default excerpt length in characters")
    words_per_minute: int  = Field(default=265, gt=0, description="Reading speed used by time_to_read")
    retain_failures:  bool = Field(default=False, description="Keep failed parses cached until invalidated")
    link_prefix:      str  = Field(default="", description="Path prefix handed to annotate plugins")
    markdown_kind:    str  = Field(default="Markdown", description="Record kind the fields apply to")
    log_level:        str  = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR)$")
    plugins: list[PluginDescriptor] = Field(default_factory=list, description="Ordered plugin chain")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDDERIVE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if name in _ENV_EXCLUDE:
            continue
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
