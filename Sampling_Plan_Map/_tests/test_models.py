"""
Unit tests for the data and map model value objects.

Run with: python -m pytest Sampling_Plan_Map/_tests/test_models.py -v
"""

import math

import pytest

from Sampling_Plan_Map.models import (
    SearchEntry,
    SearchIndex,
    Site,
    SiteSource,
    sites_from_dicts,
    sites_to_dicts,
)


class TestSite:
    """Test Site construction and conversion."""

    def test_from_dict_coerces_values(self):
        site = Site.from_dict(
            {
                "id": 1234,
                "longitude": "-79.5",
                "latitude": "bad",
                "category": "AW",
                "group": "RUN1",
                "year": 2025.0,
                "name": math.nan,
                "source": "hf_bacteria",
            }
        )
        assert site.id == "1234"
        assert site.longitude == -79.5
        assert math.isnan(site.latitude)
        assert site.year == 2025
        assert site.name is None
        assert site.source is SiteSource.HF_BACTERIA
        assert not site.has_finite_coordinates

    def test_unknown_source_falls_back(self):
        assert SiteSource.from_string("other") is SiteSource.AMBIENT

    def test_missing_required_key(self):
        with pytest.raises(KeyError):
            Site.from_dict({"id": "S1", "longitude": 0.0, "latitude": 0.0})

    def test_label(self):
        assert Site("S1", 0.0, 0.0, "AW", "R").label == "S1"
        assert Site("S1", 0.0, 0.0, "AW", "R", name="Bridge").label == "S1 Bridge"

    def test_dict_conversion_preserves_sites(self):
        sites = [
            Site("S1", -79.0, 37.0, "AW", "R1", year=2025),
            Site("L1", -78.0, 36.0, "Lakes", "Lakes", source=SiteSource.LAKES),
        ]
        assert sites_from_dicts(sites_to_dicts(sites)) == sites


class TestSearchIndex:
    """Test id / label lookup."""

    @pytest.fixture
    def index(self):
        return SearchIndex(
            layer_name="Stations",
            entries=(
                SearchEntry("2-JMS279.41", "2-JMS279.41 James at Richmond", -77.4, 37.5),
                SearchEntry("2-JMS", "2-JMS Upper James", -79.0, 37.7),
                SearchEntry("4ADAN", "4ADAN Dan River", -79.3, 36.6),
            ),
        )

    def test_substring_on_id_and_label(self, index):
        assert [e.feature_id for e in index.search("jms")] == ["2-JMS279.41", "2-JMS"]
        assert [e.feature_id for e in index.search("dan river")] == ["4ADAN"]

    def test_exact_id_match(self, index):
        assert [e.feature_id for e in index.search("2-JMS", exact=True)] == ["2-JMS"]
        assert index.search("2-jms", exact=True) == []

    def test_empty_query(self, index):
        assert index.search("   ") == []

    def test_as_dict(self, index):
        payload = index.as_dict()
        assert payload["layer"] == "Stations"
        assert payload["entries"][2] == {
            "id": "4ADAN",
            "label": "4ADAN Dan River",
            "lon": -79.3,
            "lat": 36.6,
        }
