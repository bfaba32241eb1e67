"""
Unit tests for ScoringEngine and the metric table

Covers clamping, rounding, the screening thresholds and the chart arrays.
"""

import dataclasses
import json

import pytest

from nanovision.features.extractor import particle_bins
from nanovision.models import PixelFeatures, ScreeningDecision
from nanovision.scoring.engine import ScoringEngine, density_profile
from nanovision.scoring.metrics import METRICS, MetricSpec, weighted_screening_score
from nanovision.utils import round_half_up

GROUPS = {
    "segmentation", "model", "surface_properties", "shape_irregularity", "drug_formulation",
    "screening_model", "nano_bio_interaction", "advanced_modeling", "clinical_evaluation",
    "multimodal_fusion",
}


def make_features(contrast=0.0, edge_density=0.0, bright_pixel_ratio=0.0, mean_intensity=128.0):
    return PixelFeatures(
        mean_intensity=mean_intensity,
        contrast=contrast,
        edge_density=edge_density,
        bright_pixel_ratio=bright_pixel_ratio,
        particle_bins=particle_bins(contrast, edge_density, bright_pixel_ratio),
    )


@pytest.fixture
def engine():
    return ScoringEngine()


@pytest.fixture
def flat_result(engine):
    """Scenario A features: uniform mid-gray."""
    return engine.score(make_features())


class TestScenarioA:
    """Uniform mid-gray image: contrast, edges and bright ratio all zero."""

    def test_segmentation(self, flat_result):
        seg = flat_result.group("segmentation")
        assert seg["nuclei_count"] == 25
        assert seg["mean_area"] == 180.0
        assert seg["std_area"] == 25.0
        assert seg["circularity"] == 0.98
        assert seg["aggregation_score"] == 0.68
        assert seg["dice_score"] == 0.8
        assert seg["iou_score"] == 0.72
        assert seg["density_per_unit"] == 2.5

    def test_model_group(self, flat_result):
        assert flat_result["confidence"] == 0.72
        assert flat_result["reconstruction_quality"] == 26.6

    def test_screening(self, flat_result):
        assert flat_result["stability_score"] == 71.4
        assert flat_result["uniformity_score"] == 91.4
        assert flat_result["interaction_strength"] == 52.0
        # 71.4*0.35 + 91.4*0.25 + 52*0.2 + 32*0.2 = 64.64
        assert flat_result["weighted_score"] == 64.6
        assert flat_result.screening_decision is ScreeningDecision.NEEDS_OPTIMIZATION

    def test_density_data(self, flat_result):
        assert [(d.region, d.density) for d in flat_result.density_data] == [
            ("Q1", 5), ("Q2", 5), ("Q3", 5), ("Q4", 5)
        ]

    def test_radar_data(self, flat_result):
        assert [(r.metric, r.value) for r in flat_result.radar_data] == [
            ("Stability", 71.4),
            ("Uniformity", 91.4),
            ("Low Aggr.", 32.0),
            ("Interaction", 52.0),
            ("Circularity", 98.0),
            ("Density", 12.5),
        ]
        assert all(r.full_mark == 100 for r in flat_result.radar_data)

    def test_reproducible(self, engine, flat_result):
        assert engine.score(make_features()).to_dict() == flat_result.to_dict()


class TestHighEdgeFeatures:
    """Checkerboard-like features (Scenario B)."""

    def test_promising(self, engine):
        result = engine.score(make_features(contrast=0.5, edge_density=1.0, bright_pixel_ratio=0.5))
        assert result["dice_score"] == 0.95
        assert result["interaction_strength"] == 99.0
        assert result.screening_decision is ScreeningDecision.PROMISING


class TestClamping:
    """Every metric stays inside its interval, even for out-of-range features."""

    @pytest.mark.parametrize("features", [
        make_features(),
        make_features(1.0, 1.0, 1.0),
        make_features(5.0, 5.0, 5.0),
        make_features(-5.0, -5.0, -5.0),
        make_features(0.0, 5.0, 0.0),
        make_features(0.5, -1.0, 3.0),
    ])
    def test_all_metrics_in_range(self, engine, features):
        result = engine.score(features)
        for metric in METRICS:
            value = result[metric.name]
            assert metric.low <= value <= metric.high, metric.name
        assert result.screening_decision in ScreeningDecision

    def test_values_carry_declared_precision(self, engine):
        result = engine.score(make_features(0.137, 0.291, 0.083))
        for metric in METRICS:
            value = result[metric.name]
            assert round_half_up(value, metric.precision) == value, metric.name

    def test_counts_are_integers(self, engine):
        result = engine.score(make_features(0.2, 0.3, 0.1))
        assert isinstance(result["nuclei_count"], int)
        assert isinstance(result["translational_readiness"], int)

    def test_iou_tracks_dice(self, engine):
        result = engine.score(make_features(0.21, 0.33, 0.12))
        assert result["iou_score"] == pytest.approx(result["dice_score"] - 0.08)


class TestScreeningDecision:
    """Strict cutoffs at 75 and 62."""

    @pytest.mark.parametrize("weighted, expected", [
        (96.0, ScreeningDecision.PROMISING),
        (75.01, ScreeningDecision.PROMISING),
        (75.0, ScreeningDecision.NEEDS_OPTIMIZATION),
        (62.01, ScreeningDecision.NEEDS_OPTIMIZATION),
        (62.0, ScreeningDecision.LOW_PERFORMANCE),
        (40.0, ScreeningDecision.LOW_PERFORMANCE),
    ])
    def test_thresholds(self, weighted, expected):
        assert ScreeningDecision.from_weighted_score(weighted) is expected

    def test_exactly_three_labels(self):
        assert {d.value for d in ScreeningDecision} == {
            "Promising Candidate", "Needs Optimization", "Low Performance"
        }

    def test_weighted_score(self):
        values = {"stability_score": 80, "uniformity_score": 80,
                  "interaction_strength": 60, "aggregation_score": 0.5}
        assert weighted_screening_score(values) == pytest.approx(70.0)


class TestResultRecord:

    def test_groups(self, flat_result):
        assert set(flat_result.groups) == GROUPS

    def test_flat_metrics_cover_table(self, flat_result):
        assert sorted(flat_result.metrics) == sorted(m.name for m in METRICS)

    def test_particle_sizes_passthrough(self, flat_result):
        assert [b.count for b in flat_result.particle_sizes] == [4, 10, 8, 65, 27, 13]

    def test_immutable(self, flat_result):
        with pytest.raises(TypeError):
            flat_result.groups["segmentation"]["dice_score"] = 1.0
        with pytest.raises(dataclasses.FrozenInstanceError):
            flat_result.model_name = "other"

    def test_unknown_metric(self, flat_result):
        assert "dice_score" in flat_result
        with pytest.raises(KeyError):
            flat_result["no_such_metric"]

    def test_to_dict_json_ready(self, flat_result):
        data = flat_result.to_dict()
        assert data["screening_decision"] == "Needs Optimization"
        assert data["particle_sizes"][0] == {"size": "0-50", "count": 4}
        assert data["surface_properties"]["zeta_potential"] == -12.0
        json.dumps(data)


class TestEngine:

    def test_extra_metric_without_touching_extractor(self):
        halo = MetricSpec("halo_index", "custom", lambda v: v["dice_score"] * 100, 0, 100, 1)
        result = ScoringEngine(METRICS + (halo,)).score(make_features())
        assert result.group("custom")["halo_index"] == 80.0

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            ScoringEngine(METRICS + (METRICS[0],))

    def test_overrides_are_rounded_not_clamped(self, engine):
        values = engine.evaluate(make_features(), {"circularity": 0.99951, "std_area": 20.04})
        assert values["circularity"] == 1.0
        assert values["std_area"] == 20.0

    def test_overrides_feed_later_metrics(self, engine):
        values = engine.evaluate(make_features(), {"aggregation_score": 0.5})
        # 58 + 0.5 * 42
        assert values["stability_score"] == 79.0

    def test_unknown_override(self, engine):
        with pytest.raises(ValueError):
            engine.evaluate(make_features(), {"nonsense": 1})

    def test_density_profile_ramp(self):
        assert [d.density for d in density_profile(20.0)] == [16, 18, 21, 23]


class TestRoundHalfUp:

    @pytest.mark.parametrize("value, places, expected", [
        (2.5, 0, 3),
        (0.125, 2, 0.13),
        (1.005, 2, 1.0),
        (26.56, 1, 26.6),
        (-2.5, 0, -3),
    ])
    def test_rounding(self, value, places, expected):
        assert round_half_up(value, places) == expected

    def test_int_for_zero_places(self):
        assert isinstance(round_half_up(7.2), int)
