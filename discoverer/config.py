"""
Extraction settings: YAML file, then ADC_* environment overrides.

Example file:

    extraction:
      encoding: utf-8
      mode: auto
      base_url: https://example.edu/staff/
      follow_weblinks: false
      fetch_timeout_s: 12.0
      surnames_path: data/surnames.txt
      first_names_path: data/first_names.txt
    ops:
      logging:
        ops_json: true
"""

from __future__ import annotations

import codecs
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from discoverer.errors import ConfigError


class ExtractionMode(str, Enum):
    AUTO = "auto"
    STRUCTURED = "structured"
    UNSTRUCTURED = "unstructured"


class ExtractionSettings(BaseModel):
    encoding: str = Field(default="utf-8", description="Codec used to decode raw documents")
    mode: ExtractionMode = Field(default=ExtractionMode.AUTO, description="Which finder/locator family to run")
    base_url: Optional[str] = Field(default=None, description="Base for resolving relative web links")
    follow_weblinks: bool = Field(default=False, description="Fetch linked pages to find an email")
    fetch_timeout_s: float = Field(default=12.0, gt=0)
    respect_robots: bool = Field(default=True)
    surnames_path: Optional[Path] = Field(default=None, description="Surname dictionary, one word per line")
    first_names_path: Optional[Path] = Field(default=None, description="First-name dictionary, one word per line")
    ops_json: bool = Field(default=False, description="Emit ops JSONL records")

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v):
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"unknown encoding: {v}")
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be a valid HTTP/HTTPS URL")
        return v


def _env_flag(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def settings_from_dict(cfg: Dict[str, Any]) -> ExtractionSettings:
    section = dict(cfg.get("extraction", {}) or {}) if isinstance(cfg, dict) else {}
    ops_cfg = cfg.get("ops", {}) if isinstance(cfg, dict) else {}
    logging_cfg = ops_cfg.get("logging", {}) if isinstance(ops_cfg, dict) else {}
    if "ops_json" not in section and isinstance(logging_cfg, dict) and "ops_json" in logging_cfg:
        section["ops_json"] = logging_cfg.get("ops_json")
    follow = _env_flag("ADC_FOLLOW_WEBLINKS")
    if follow is not None:
        section["follow_weblinks"] = follow
    ops_json = _env_flag("ADC_OPS_JSON")
    if ops_json is not None:
        section["ops_json"] = ops_json
    if os.getenv("ADC_ENCODING"):
        section["encoding"] = os.getenv("ADC_ENCODING")
    try:
        return ExtractionSettings(**section)
    except ValidationError as e:
        raise ConfigError(f"invalid extraction settings: {e}") from e


def load_settings(path: Optional[Path | str] = None) -> ExtractionSettings:
    """Settings from a YAML file (or defaults when path is None) plus env overrides."""
    if path is None:
        return settings_from_dict({})
    config_path = Path(path)
    if not config_path.exists() or not config_path.is_file():
        raise ConfigError(f"file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {config_path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"expected a mapping at the top of {config_path}")
    return settings_from_dict(cfg)
