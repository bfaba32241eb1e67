"""
Sample generators for the screening dashboard.

Every generator returns an AnalysisResult, so the dashboard can be driven by
the real scoring engine, a seeded random stand-in, or a literal result.
"""

import logging
from typing import Optional

import numpy as np

from nanovision.constants import DENSITY_REGIONS, PARTICLE_BIN_LABELS
from nanovision.models import (
    AnalysisResult, DensityPoint, ParticleBin, PixelFeatures, ScreeningDecision
)
from nanovision.scoring.engine import ScoringEngine
from nanovision.utils import round_half_up

logger = logging.getLogger(__name__)

# (low, high) for integer draws, high exclusive
RANDOM_BIN_RANGES = {
    "0-50": (5, 25),
    "50-100": (15, 55),
    "100-200": (20, 50),
    "200-400": (10, 35),
    "400-600": (3, 18),
    "600+": (1, 9),
}
RANDOM_DENSITY_RANGE = (5, 35)


class SampleGenerator:
    """Strategy interface: produce one AnalysisResult per call."""

    def generate(self) -> AnalysisResult:
        raise NotImplementedError


class FixedSampleGenerator(SampleGenerator):
    """Always returns the same result."""

    def __init__(self, result: AnalysisResult):
        self.result = result

    def generate(self) -> AnalysisResult:
        return self.result


class FeatureSampleGenerator(SampleGenerator):
    """Scores a fixed set of features with the real engine."""

    def __init__(self, features: PixelFeatures, engine: Optional[ScoringEngine] = None):
        self.features = features
        self.engine = engine or ScoringEngine()

    def generate(self) -> AnalysisResult:
        return self.engine.score(self.features)


class RandomSampleGenerator(SampleGenerator):
    """
    Non-deterministic stand-in for demo screening.

    Draws the headline metrics independently (kept at their drawn ranges,
    not clamped to the table's), decides with its own additive
    rule (total > 300 promising, > 220 needs optimization) and fills every
    other group through the metric table from randomly drawn features.
    A fixed seed makes the sequence reproducible.
    """

    def __init__(self, seed: Optional[int] = None, engine: Optional[ScoringEngine] = None):
        self.rng = np.random.default_rng(seed)
        self.engine = engine or ScoringEngine()

    def generate(self) -> AnalysisResult:
        rng = self.rng

        nuclei_count = int(rng.integers(30, 150))
        dice_score = round_half_up(rng.random() * 0.15 + 0.82, 3)
        overrides = {
            "nuclei_count": nuclei_count,
            "mean_area": round_half_up(rng.random() * 500 + 200, 1),
            "std_area": round_half_up(rng.random() * 100 + 20, 1),
            "circularity": round_half_up(rng.random() * 0.4 + 0.6, 3),
            "aggregation_score": round_half_up(rng.random() * 0.6 + 0.1, 2),
            "dice_score": dice_score,
            "iou_score": round_half_up(dice_score - rng.random() * 0.1, 3),
            "density_per_unit": round_half_up(nuclei_count / (rng.random() * 5 + 8), 1),
            "stability_score": round_half_up(rng.random() * 40 + 55, 1),
            "uniformity_score": round_half_up(rng.random() * 35 + 60, 1),
            "interaction_strength": round_half_up(rng.random() * 50 + 40, 1),
        }

        features = PixelFeatures(
            mean_intensity=float(rng.random() * 120 + 60),
            contrast=float(rng.random() * 0.3 + 0.05),
            edge_density=float(rng.random() * 0.43 + 0.02),
            bright_pixel_ratio=float(rng.random() * 0.5),
            particle_bins=tuple(
                ParticleBin(label, int(rng.integers(*RANDOM_BIN_RANGES[label])))
                for label in PARTICLE_BIN_LABELS
            ),
        )
        density_data = tuple(
            DensityPoint(region, int(rng.integers(*RANDOM_DENSITY_RANGE)))
            for region in DENSITY_REGIONS
        )

        values = self.engine.evaluate(features, overrides)
        decision = additive_decision(values)
        return self.engine.assemble(values, features, decision, density_data=density_data)


def additive_decision(values) -> ScreeningDecision:
    """Stand-in rule: unweighted sum of the four screening inputs."""
    total = (values["stability_score"] + values["uniformity_score"]
             + (100 - values["aggregation_score"] * 100) + values["interaction_strength"])
    if total > 300:
        return ScreeningDecision.PROMISING
    if total > 220:
        return ScreeningDecision.NEEDS_OPTIMIZATION
    return ScreeningDecision.LOW_PERFORMANCE
