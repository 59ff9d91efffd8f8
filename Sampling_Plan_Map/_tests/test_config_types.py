"""
Unit tests for the typed configuration layer.

Run with: python -m pytest Sampling_Plan_Map/_tests/test_config_types.py -v
"""

from pathlib import Path

import pytest

from Sampling_Plan_Map.config import CONFIG, _env_bool, _env_or_default
from Sampling_Plan_Map.config_types import (
    AppConfig,
    LayersConfig,
    PaletteConfig,
    QualityControlConfig,
    VisualizationConfig,
)


class TestAppConfigFromDict:
    """Test AppConfig construction from the CONFIG dictionary."""

    def test_from_master_config(self):
        config = AppConfig.from_dict(CONFIG)
        assert config.sampling_year == CONFIG["sampling_year"]
        assert config.palette.size == CONFIG["palette"]["size"]
        assert config.layers.searchable_group == "Stations"
        assert config.layers.lakes.kind == "marker"
        assert len(config.visualization.base_layers) == 4
        assert config.visualization.default_base_layer.style == "carto-positron"
        assert "id" in config.column_aliases.site

    def test_empty_dict_uses_defaults(self):
        config = AppConfig.from_dict({})
        assert config.region_filter is None
        assert config.palette == PaletteConfig()
        assert config.layers == LayersConfig()
        assert config.visualization.default_base_layer.name == "Simple Carto"
        assert config.column_aliases.site == {}

    def test_blank_region_means_no_filter(self):
        assert AppConfig.from_dict({"region_filter": ""}).region_filter is None
        assert AppConfig.from_dict({"region_filter": "PRO"}).region_filter == "PRO"

    def test_partial_layers_keep_default_names(self):
        layers = LayersConfig.from_dict({"runs": {"detail": True}})
        assert layers.runs.name == "Runs"
        assert layers.runs.detail
        assert layers.watersheds.detail

    def test_file_paths(self):
        config = AppConfig.from_dict(
            {"file_paths": {"output_dir": "out", "output_html": "map.html"}}
        )
        assert config.file_paths.output_html_path == Path("out") / "map.html"
        assert config.file_paths.log_path == Path("logs")


class TestValidation:
    """Test __post_init__ validation."""

    def test_palette_size(self):
        with pytest.raises(ValueError):
            PaletteConfig(size=0)

    def test_saturation_bounds(self):
        with pytest.raises(ValueError):
            PaletteConfig(saturation_low=90.0, saturation_high=60.0)
        with pytest.raises(ValueError):
            PaletteConfig(saturation_high=120.0)

    def test_lightness_range(self):
        with pytest.raises(ValueError):
            PaletteConfig(lightness=120.0)

    def test_invalid_fraction(self):
        with pytest.raises(ValueError):
            QualityControlConfig(max_invalid_coordinate_fraction=1.5)

    def test_base_layers_required(self):
        with pytest.raises(ValueError):
            VisualizationConfig(base_layers=())


class TestEnvironmentOverrides:
    """Test environment variable helpers."""

    def test_env_or_default_unset(self, monkeypatch):
        monkeypatch.delenv("SPM_TEST_VALUE", raising=False)
        assert _env_or_default("SPM_TEST_VALUE", 12, int) == 12

    def test_env_or_default_converts(self, monkeypatch):
        monkeypatch.setenv("SPM_TEST_VALUE", "2026")
        assert _env_or_default("SPM_TEST_VALUE", 2025, int) == 2026
        assert _env_or_default("SPM_TEST_VALUE", "x") == "2026"

    @pytest.mark.parametrize(
        "raw,expected", [("true", True), ("YES", True), ("1", True), ("off", False)]
    )
    def test_env_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SPM_TEST_FLAG", raw)
        assert _env_bool("SPM_TEST_FLAG", not expected) is expected

    def test_env_bool_unset(self, monkeypatch):
        monkeypatch.delenv("SPM_TEST_FLAG", raising=False)
        assert _env_bool("SPM_TEST_FLAG", True) is True
