"""
Metric table for the scoring engine.

Each entry maps a metric name to its group, a closed-form formula, a clamp
range and a rounding precision. Formulas read the raw features
(contrast, edge_density, bright_pixel_ratio) and any metric defined
EARLIER in the table, using its already rounded value.
"""
from dataclasses import dataclass
from typing import Callable, Mapping, Tuple

from nanovision.utils import Number, clamp, round_half_up

Formula = Callable[[Mapping[str, float]], float]


@dataclass(frozen=True)
class MetricSpec:
    name: str
    group: str
    formula: Formula
    low: float
    high: float
    precision: int

    def finalize(self, value: float) -> Number:
        """Clamp to [low, high], then round to the metric's precision."""
        return round_half_up(clamp(value, self.low, self.high), self.precision)

    def evaluate(self, values: Mapping[str, float]) -> Number:
        return self.finalize(self.formula(values))


def weighted_screening_score(v: Mapping[str, float]) -> float:
    """Weighted blend of the four screening inputs, before clamping or rounding."""
    return (v["stability_score"] * 0.35
            + v["uniformity_score"] * 0.25
            + v["interaction_strength"] * 0.2
            + (100 - v["aggregation_score"] * 100) * 0.2)


METRICS: Tuple[MetricSpec, ...] = (
    # Segmentation / morphology
    MetricSpec("nuclei_count", "segmentation",
               lambda v: 25 + v["edge_density"] * 280 + v["bright_pixel_ratio"] * 140, 20, 220, 0),
    MetricSpec("mean_area", "segmentation",
               lambda v: 180 + v["contrast"] * 720, 180, 900, 1),
    MetricSpec("std_area", "segmentation",
               lambda v: 25 + v["contrast"] * 160, 25, 185, 1),
    MetricSpec("circularity", "segmentation",
               lambda v: 0.58 + (1 - v["edge_density"]) * 0.42, 0.55, 0.98, 3),
    MetricSpec("aggregation_score", "segmentation",
               lambda v: 0.68 - v["edge_density"] * 0.4 + v["bright_pixel_ratio"] * 0.25, 0.08, 0.82, 2),
    MetricSpec("dice_score", "segmentation",
               lambda v: 0.78 + v["contrast"] * 0.18 + v["edge_density"] * 0.08, 0.80, 0.97, 3),
    MetricSpec("iou_score", "segmentation",
               lambda v: v["dice_score"] - 0.08, 0.72, 0.97, 3),
    MetricSpec("density_per_unit", "segmentation",
               lambda v: v["nuclei_count"] / 10, 2, 22, 1),

    # Model
    MetricSpec("confidence", "model",
               lambda v: 0.7 + v["contrast"] * 0.25 + v["edge_density"] * 0.2, 0.72, 0.98, 2),
    MetricSpec("reconstruction_quality", "model",
               lambda v: 24 + v["contrast"] * 18 + (1 - v["aggregation_score"]) * 8, 22, 45, 1),

    # Surface properties
    MetricSpec("surface_roughness", "surface_properties",
               lambda v: 2.5 + v["contrast"] * 38 + v["edge_density"] * 12, 2, 45, 1),
    MetricSpec("zeta_potential", "surface_properties",
               lambda v: -12 - v["bright_pixel_ratio"] * 30 - v["contrast"] * 15, -45, -10, 1),
    MetricSpec("hydrophobicity_index", "surface_properties",
               lambda v: 0.35 + v["bright_pixel_ratio"] * 0.4 - v["contrast"] * 0.15, 0.10, 0.90, 2),
    MetricSpec("specific_surface_area", "surface_properties",
               lambda v: 35 + v["edge_density"] * 180 + (1 - v["circularity"]) * 120, 30, 250, 1),

    # Shape irregularity
    MetricSpec("aspect_ratio", "shape_irregularity",
               lambda v: 1 + v["edge_density"] * 0.9 + (1 - v["circularity"]) * 1.2, 1.0, 2.5, 2),
    MetricSpec("convexity", "shape_irregularity",
               lambda v: 0.99 - v["edge_density"] * 0.25 - v["contrast"] * 0.1, 0.70, 0.99, 3),
    MetricSpec("solidity", "shape_irregularity",
               lambda v: 0.97 - (1 - v["circularity"]) * 0.5 - v["edge_density"] * 0.1, 0.65, 0.98, 3),
    MetricSpec("irregularity_index", "shape_irregularity",
               lambda v: (1 - v["circularity"]) * 60 + v["edge_density"] * 40, 0, 60, 1),

    # Drug formulation
    MetricSpec("encapsulation_efficiency", "drug_formulation",
               lambda v: (55 + v["circularity"] * 30 - v["aggregation_score"] * 20
                          + v["contrast"] * 10), 40, 95, 1),
    MetricSpec("drug_loading", "drug_formulation",
               lambda v: 4 + (1 - v["aggregation_score"]) * 12 + v["contrast"] * 8, 3, 25, 1),
    MetricSpec("polydispersity_index", "drug_formulation",
               lambda v: 0.08 + v["aggregation_score"] * 0.35 + v["contrast"] * 0.2, 0.05, 0.60, 3),

    # Screening model inputs
    MetricSpec("stability_score", "screening_model",
               lambda v: 58 + (1 - v["aggregation_score"]) * 42, 45, 98, 1),
    MetricSpec("uniformity_score", "screening_model",
               lambda v: 62 + v["circularity"] * 30 - v["contrast"] * 10, 50, 97, 1),

    # Nano-bio interaction
    MetricSpec("interaction_strength", "nano_bio_interaction",
               lambda v: 52 + v["edge_density"] * 85 + v["contrast"] * 20, 40, 99, 1),
    MetricSpec("cellular_uptake", "nano_bio_interaction",
               lambda v: (30 + v["interaction_strength"] * 0.45
                          + (1 - v["aggregation_score"]) * 15), 20, 95, 1),
    MetricSpec("protein_corona_index", "nano_bio_interaction",
               lambda v: 0.2 + v["bright_pixel_ratio"] * 0.5 + v["aggregation_score"] * 0.4, 0.10, 0.95, 2),
    MetricSpec("hemocompatibility", "nano_bio_interaction",
               lambda v: 99 - v["aggregation_score"] * 12 - v["edge_density"] * 6, 80, 99, 1),

    MetricSpec("release_half_life", "drug_formulation",
               lambda v: 6 + v["stability_score"] * 0.3 - v["edge_density"] * 8, 4, 40, 1),
    MetricSpec("weighted_score", "screening_model",
               weighted_screening_score, 0, 100, 1),

    # Advanced modeling
    MetricSpec("predictive_toxicity", "advanced_modeling",
               lambda v: 0.15 + v["aggregation_score"] * 0.55 - v["contrast"] * 0.2, 0.04, 0.89, 2),
    MetricSpec("biodistribution_score", "advanced_modeling",
               lambda v: (50 + v["uniformity_score"] * 0.3 - v["aggregation_score"] * 20
                          + v["contrast"] * 5), 30, 95, 1),
    MetricSpec("model_uncertainty", "advanced_modeling",
               lambda v: 0.25 - v["confidence"] * 0.2 + v["aggregation_score"] * 0.1, 0.02, 0.30, 3),
    MetricSpec("ec50_estimate", "advanced_modeling",
               lambda v: 80 - v["interaction_strength"] * 0.5 + v["predictive_toxicity"] * 40, 10, 90, 1),

    # Clinical evaluation
    MetricSpec("outcome_prediction", "clinical_evaluation",
               lambda v: (0.78 - v["predictive_toxicity"] * 0.5
                          + v["interaction_strength"] / 220), 0.15, 0.96, 2),
    MetricSpec("therapeutic_index", "clinical_evaluation",
               lambda v: 2 + (1 - v["predictive_toxicity"]) * 8 + v["outcome_prediction"] * 2, 1.5, 12, 1),
    MetricSpec("safety_margin", "clinical_evaluation",
               lambda v: 100 - v["predictive_toxicity"] * 80 - v["aggregation_score"] * 10, 15, 98, 1),
    MetricSpec("translational_readiness", "clinical_evaluation",
               lambda v: 1 + v["outcome_prediction"] * 6 + v["stability_score"] / 50, 1, 9, 0),

    # Multimodal fusion
    MetricSpec("fused_confidence", "multimodal_fusion",
               lambda v: (v["confidence"] * 0.5 + v["dice_score"] * 0.3
                          + v["outcome_prediction"] * 0.2), 0.50, 0.98, 3),
    MetricSpec("consensus_score", "multimodal_fusion",
               lambda v: (v["stability_score"] * 0.3 + v["uniformity_score"] * 0.3
                          + v["interaction_strength"] * 0.2 + v["hemocompatibility"] * 0.2), 40, 99, 1),
    MetricSpec("modality_agreement", "multimodal_fusion",
               lambda v: 0.6 + v["dice_score"] * 0.3 - v["model_uncertainty"] * 0.5, 0.50, 0.95, 3),
    MetricSpec("fusion_quality_index", "multimodal_fusion",
               lambda v: v["reconstruction_quality"] * 1.5 + v["fused_confidence"] * 30, 50, 100, 1),
)
