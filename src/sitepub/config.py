"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "SITEPUB_"


class MenuItem(BaseModel):
    """A navigation entry; entries with a parent are nested under it."""
    identifier: str
    name:       str
    url:        str
    weight:     int = 0
    parent:     Optional[str] = None
    children:   list["MenuItem"] = []


class SocialLink(BaseModel):
    icon: str
    name: str
    url:  str


class Settings(BaseModel):
    app_name:       str = "sitepub"
    db_url:         str = "sqlite:///sitepub.db"
    content_dir:    str = Field(default="content",           description="Root directory holding Markdown posts")
    static_dir:     str = Field(default="static",            description="Files copied verbatim into the output directory")
    template_dir:   Optional[str] = Field(default=None,      description="Template overrides; bundled theme when unset")
    output_dir:     str = Field(default="public",            description="Directory for rendered HTML")
    staging_dir:    str = Field(default=".sitepub/staging",  description="Staging directory for extracted JSON")
    parser_config:  str = Field(default="gfm-like",          description="MarkdownIt parser preset name")
    max_versions:   int = Field(default=10, ge=0,            description="Max stored versions per post; 0 disables pruning")
    build_drafts:   bool = Field(default=False,              description="Render posts marked draft: true")
    build_future:   bool = Field(default=False,              description="Render posts dated in the future")
    clean_output:   bool = Field(default=False,              description="Remove output_dir before rendering")

    # site
    title:          str = "Support Tools"
    base_url:       str = Field(default="/",                 description="Absolute or root-relative site URL")
    description:    str = ""
    author:         str = ""
    language_code:  str = "en-us"
    pager_size:     int = Field(default=8, ge=0,             description="Posts per list page; 0 = single page")
    summary_length: int = Field(default=70, ge=1,            description="Words kept in derived summaries")
    rss_limit:      int = Field(default=20, ge=1,            description="Posts included in index.xml")
    menu:           list[MenuItem] = []
    social:         list[SocialLink] = []
    params:         dict[str, Any] = {}

    # server
    debug:          bool = False
    host:           str = "0.0.0.0"
    port:           int = Field(default=8080, ge=1, le=65535)
    metrics_port:   int = Field(default=9090, ge=1, le=65535)
    web_root:       str = Field(default="public",            description="Directory served over HTTP")
    use_memory:     bool = Field(default=True,               description="Load web_root into memory at startup")
    access_log:     str = Field(default="access.log",        description="nginx-format access log path")


_STRUCTURED_FIELDS = {"menu", "social", "params"}


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then SITEPUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if name in _STRUCTURED_FIELDS:
            continue
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
