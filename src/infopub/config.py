"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:      str = "infopub"
    db_url:        str = "sqlite:///infopub.db"
    base_url:      str = Field(default="", description="Public origin prepended to /p/<slug> links")
    tenant_email:  Optional[str] = Field(default=None, description="Owner email used to resolve the tenant")
    delete_grace_seconds:  float = Field(default=5.0, ge=0, description="Undo window before pages are deleted")
    save_debounce_seconds: float = Field(default=1.0, ge=0, description="Quiet period before an autosave")
    history_limit:   int = Field(default=80,   ge=1, description="Block undo snapshots kept per session")
    free_page_limit: int = Field(default=3,    ge=0, description="Published page ceiling on the free plan")
    pro_page_limit:  int = Field(default=1000, ge=0, description="Published page ceiling on the pro plan")
    output_dir:    str = Field(default="dist", description="Directory for exported pages + JSON files")
    output_format: str = Field(default="md", pattern="^(md|html)$", description="md or html")
    parser_config: str = Field(default="gfm-like", description="MarkdownIt preset used for HTML export")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then INFOPUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"INFOPUB_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
