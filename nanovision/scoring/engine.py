"""
Metric Scoring Engine
Maps PixelFeatures to the full AnalysisResult via the metric table
"""

import logging
from typing import Dict, Mapping, Optional, Sequence, Tuple

from nanovision.constants import DENSITY_REGIONS, MODEL_NAME
from nanovision.models import (
    AnalysisResult, DensityPoint, PixelFeatures, RadarPoint, ScreeningDecision
)
from nanovision.scoring.metrics import METRICS, MetricSpec, weighted_screening_score
from nanovision.utils import clamp, round_half_up

logger = logging.getLogger(__name__)


class ScoringEngine:
    """Evaluates the metric table against one set of features."""

    def __init__(self, metrics: Sequence[MetricSpec] = METRICS, model_name: str = MODEL_NAME):
        names = [m.name for m in metrics]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate metric names: {sorted(duplicates)}")
        self.metrics = tuple(metrics)
        self.model_name = model_name

    def evaluate(self, features: PixelFeatures,
                 overrides: Optional[Mapping[str, float]] = None) -> Dict[str, float]:
        """
        Compute every metric in table order.

        Overridden metrics skip their formula and clamp; the given value is
        only rounded to the metric's precision. Returns the metric values only.
        """
        overrides = overrides or {}
        unknown = set(overrides) - {m.name for m in self.metrics}
        if unknown:
            raise ValueError(f"Unknown metric overrides: {sorted(unknown)}")

        values = features.inputs()
        for metric in self.metrics:
            if metric.name in overrides:
                values[metric.name] = round_half_up(overrides[metric.name], metric.precision)
            else:
                values[metric.name] = metric.evaluate(values)
        return {m.name: values[m.name] for m in self.metrics}

    def score(self, features: PixelFeatures) -> AnalysisResult:
        """Score features into a complete AnalysisResult."""
        values = self.evaluate(features)
        decision = ScreeningDecision.from_weighted_score(weighted_screening_score(values))
        result = self.assemble(values, features, decision)
        logger.debug("Screening decision %s (weighted %.2f)",
                     decision.value, values.get("weighted_score", float("nan")))
        return result

    def assemble(self, values: Mapping[str, float], features: PixelFeatures,
                 decision: ScreeningDecision,
                 density_data: Optional[Sequence[DensityPoint]] = None) -> AnalysisResult:
        """Group metric values and attach the chart-ready arrays."""
        groups: Dict[str, Dict[str, float]] = {}
        for metric in self.metrics:
            groups.setdefault(metric.group, {})[metric.name] = values[metric.name]

        if density_data is None:
            density_data = density_profile(values["density_per_unit"])

        return AnalysisResult(
            model_name=self.model_name,
            groups=groups,
            screening_decision=decision,
            particle_sizes=features.particle_bins,
            density_data=tuple(density_data),
            radar_data=radar_profile(values),
        )


def density_profile(density_per_unit: float) -> Tuple[DensityPoint, ...]:
    """Per-quadrant densities ramping up from 0.8x the mean density."""
    return tuple(
        DensityPoint(region, round_half_up(clamp(density_per_unit * (0.8 + i * 0.12), 5, 45)))
        for i, region in enumerate(DENSITY_REGIONS)
    )


def radar_profile(values: Mapping[str, float]) -> Tuple[RadarPoint, ...]:
    """Six 0-100 axes for the candidate radar chart."""
    axes = (
        ("Stability", values["stability_score"]),
        ("Uniformity", values["uniformity_score"]),
        ("Low Aggr.", 100 - values["aggregation_score"] * 100),
        ("Interaction", values["interaction_strength"]),
        ("Circularity", values["circularity"] * 100),
        ("Density", min(values["density_per_unit"] * 5, 100)),
    )
    return tuple(RadarPoint(metric, round_half_up(value, 1)) for metric, value in axes)
