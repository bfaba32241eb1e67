"""
Screening session - ranks candidate samples for drug formulation
"""

from dataclasses import dataclass
from typing import Dict, List

from nanovision.models import AnalysisResult
from nanovision.screening.generators import SampleGenerator


@dataclass(frozen=True)
class ScreeningSample:
    sample_id: str
    result: AnalysisResult

    def to_dict(self) -> Dict:
        out = {"id": self.sample_id}
        out.update(self.result.to_dict())
        return out


class ScreeningSession:
    """Collects generated samples under sequential ids S-001, S-002, ..."""

    def __init__(self, generator: SampleGenerator):
        self.generator = generator
        self._samples: List[ScreeningSample] = []

    @property
    def samples(self) -> List[ScreeningSample]:
        return list(self._samples)

    def add_sample(self) -> ScreeningSample:
        sample = ScreeningSample(f"S-{len(self._samples) + 1:03d}", self.generator.generate())
        self._samples.append(sample)
        return sample

    def ranked(self) -> List[ScreeningSample]:
        """Samples ordered by weighted screening score, best first (stable on ties)."""
        return sorted(self._samples, key=lambda s: s.result["weighted_score"], reverse=True)

    def comparison_rows(self) -> List[Dict]:
        """Stability vs. uniformity per sample, for the comparison chart."""
        return [
            {
                "id": s.sample_id,
                "stability": s.result["stability_score"],
                "uniformity": s.result["uniformity_score"],
            }
            for s in self._samples
        ]
