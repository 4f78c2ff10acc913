"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from postdocs.core.parse import DEFAULT_PERMALINK


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "POSTDOCS_"


class Settings(BaseModel):
    app_name:      str = "postdocs"
    db_url:        str = "sqlite:///postdocs.db"
    site_root:     str = Field(default=".",    description="Root directory links and images resolve against")
    output_dir:    str = Field(default="dist", description="Directory exported documents are copied into")
    max_versions:  int = Field(default=10, ge=0, description="Max stored versions per doc; 0 disables")
    required_keys: list[str] = Field(default=["layout"], description="Header keys every document must declare")
    extensions:    list[str] = Field(default=[".md", ".markdown", ".html"], description="Document file suffixes")
    layouts_dir:   str = Field(default="_layouts", description="Template directory under site_root")
    permalink:     str = Field(default=DEFAULT_PERMALINK, description="Permalink pattern for dated posts")
    parser_config: str = Field(default="gfm-like", description="MarkdownIt parser preset name")

    @field_validator("required_keys", "extensions", mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        """Accept comma-separated strings (env vars, CLI) for list settings."""
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value

    @field_validator("extensions")
    @classmethod
    def _dotted(cls, value: list[str]) -> list[str]:
        return [v if v.startswith(".") else f".{v}" for v in value]


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then POSTDOCS_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValueError as e:
        raise ValueError(f"Invalid settings: {e}") from e
