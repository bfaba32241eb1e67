"""
Microscopy analysis pipeline
Normalizer -> {Feature Extractor, Reconstruction Filter} -> Scoring Engine
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np

from nanovision.features.extractor import FeatureExtractor
from nanovision.imaging.normalizer import ImageNormalizer, encode_png
from nanovision.models import AnalysisOutcome
from nanovision.reconstruction.filter import ReconstructionFilter
from nanovision.scoring.engine import ScoringEngine

logger = logging.getLogger(__name__)


class MicroscopyAnalyzer:
    """
    Runs the full pipeline on one image per call.

    Holds only configuration, so a single instance can serve concurrent
    calls. Decoding is the only step that can fail (DecodeError); nothing is
    returned in that case.
    """

    def __init__(self, normalizer: Optional[ImageNormalizer] = None,
                 extractor: Optional[FeatureExtractor] = None,
                 reconstruction: Optional[ReconstructionFilter] = None,
                 engine: Optional[ScoringEngine] = None):
        self.normalizer = normalizer or ImageNormalizer()
        self.extractor = extractor or FeatureExtractor()
        self.reconstruction = reconstruction or ReconstructionFilter()
        self.engine = engine or ScoringEngine()

    def analyze_bytes(self, data: bytes) -> AnalysisOutcome:
        """Analyze encoded image bytes in any format Pillow can read."""
        return self.analyze_array(self.normalizer.load_bytes(data))

    def analyze_file(self, path: Union[str, Path]) -> AnalysisOutcome:
        return self.analyze_array(self.normalizer.load_file(path))

    def analyze_array(self, rgba: np.ndarray) -> AnalysisOutcome:
        """Analyze an RGBA8 array that is already at working size."""
        features = self.extractor.extract(rgba)
        reconstructed = self.reconstruction.apply(rgba)
        result = self.engine.score(features)

        h, w = rgba.shape[:2]
        logger.info("Analyzed %dx%d image: %s", w, h, result.screening_decision.value)
        return AnalysisOutcome(
            result=result,
            reconstructed_png=encode_png(reconstructed),
            width=w,
            height=h,
        )
