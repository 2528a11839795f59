"""
Unit tests for YAML settings loading and ADC_* environment overrides.
"""

from pathlib import Path

import pytest

from discoverer.config import ExtractionMode, load_settings, settings_from_dict
from discoverer.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ADC_FOLLOW_WEBLINKS", "ADC_OPS_JSON", "ADC_ENCODING"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file():
    settings = load_settings()
    assert settings.encoding == "utf-8"
    assert settings.mode == ExtractionMode.AUTO
    assert settings.follow_weblinks is False
    assert settings.respect_robots is True


def test_yaml_file(tmp_path):
    cfg = tmp_path / "adc.yaml"
    cfg.write_text(
        "extraction:\n"
        "  encoding: latin-1\n"
        "  mode: unstructured\n"
        "  base_url: https://example.edu/staff/\n"
        "  surnames_path: data/surnames.txt\n"
        "ops:\n"
        "  logging:\n"
        "    ops_json: true\n",
        encoding="utf-8",
    )
    settings = load_settings(cfg)
    assert settings.encoding == "latin-1"
    assert settings.mode == ExtractionMode.UNSTRUCTURED
    assert settings.base_url == "https://example.edu/staff/"
    assert settings.surnames_path == Path("data/surnames.txt")
    assert settings.ops_json is True


def test_example_config_loads():
    example = Path(__file__).resolve().parents[2] / "config" / "example.yaml"
    assert load_settings(example).mode == ExtractionMode.AUTO


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ADC_FOLLOW_WEBLINKS", "yes")
    monkeypatch.setenv("ADC_OPS_JSON", "0")
    monkeypatch.setenv("ADC_ENCODING", "cp1252")
    settings = settings_from_dict({"extraction": {"follow_weblinks": False}, "ops": {"logging": {"ops_json": True}}})
    assert settings.follow_weblinks is True
    assert settings.ops_json is False
    assert settings.encoding == "cp1252"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="file not found"):
        load_settings(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("extraction: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid YAML"):
        load_settings(cfg)


def test_top_level_must_be_mapping(tmp_path):
    cfg = tmp_path / "list.yaml"
    cfg.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(cfg)


@pytest.mark.parametrize(
    "section",
    [
        {"encoding": "klingon"},
        {"mode": "fuzzy"},
        {"base_url": "ftp://example.edu/"},
        {"fetch_timeout_s": 0},
    ],
)
def test_invalid_values(section):
    with pytest.raises(ConfigError):
        settings_from_dict({"extraction": section})
