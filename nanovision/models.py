"""
Data models - feature and result records produced by the pipeline
"""
import base64
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from nanovision.constants import (
    NEEDS_OPTIMIZATION_THRESHOLD, PROMISING_THRESHOLD, RADAR_FULL_MARK
)


@dataclass(frozen=True)
class ParticleBin:
    """One bucket of the approximated particle-size histogram."""
    label: str
    count: int

    def to_dict(self) -> Dict:
        return {"size": self.label, "count": self.count}


@dataclass(frozen=True)
class PixelFeatures:
    """Global image statistics the scoring engine works from."""
    mean_intensity: float
    contrast: float
    edge_density: float
    bright_pixel_ratio: float
    particle_bins: Tuple[ParticleBin, ...] = ()

    def inputs(self) -> Dict[str, float]:
        """Scalar features keyed by the names metric formulas use."""
        return {
            "mean_intensity": self.mean_intensity,
            "contrast": self.contrast,
            "edge_density": self.edge_density,
            "bright_pixel_ratio": self.bright_pixel_ratio,
        }


class ScreeningDecision(Enum):
    PROMISING = "Promising Candidate"
    NEEDS_OPTIMIZATION = "Needs Optimization"
    LOW_PERFORMANCE = "Low Performance"

    @classmethod
    def from_weighted_score(cls, weighted: float) -> "ScreeningDecision":
        """Both cutoffs are strict: exactly 75 is not promising, exactly 62 is low."""
        if weighted > PROMISING_THRESHOLD:
            return cls.PROMISING
        if weighted > NEEDS_OPTIMIZATION_THRESHOLD:
            return cls.NEEDS_OPTIMIZATION
        return cls.LOW_PERFORMANCE


@dataclass(frozen=True)
class DensityPoint:
    region: str
    density: int

    def to_dict(self) -> Dict:
        return {"region": self.region, "density": self.density}


@dataclass(frozen=True)
class RadarPoint:
    metric: str
    value: float
    full_mark: int = RADAR_FULL_MARK

    def to_dict(self) -> Dict:
        return {"metric": self.metric, "value": self.value, "full_mark": self.full_mark}


@dataclass(frozen=True)
class AnalysisResult:
    """
    Scored characterization of one image.

    Metrics live in named groups (segmentation, surface_properties, ...);
    the set of groups and metrics comes from the metric table, so new
    metrics show up here without changes to this class.
    """
    model_name: str
    groups: Mapping[str, Mapping[str, float]]
    screening_decision: ScreeningDecision
    particle_sizes: Tuple[ParticleBin, ...]
    density_data: Tuple[DensityPoint, ...]
    radar_data: Tuple[RadarPoint, ...]

    def __post_init__(self):
        frozen = {name: MappingProxyType(dict(values)) for name, values in self.groups.items()}
        object.__setattr__(self, "groups", MappingProxyType(frozen))
        object.__setattr__(self, "particle_sizes", tuple(self.particle_sizes))
        object.__setattr__(self, "density_data", tuple(self.density_data))
        object.__setattr__(self, "radar_data", tuple(self.radar_data))

    @property
    def metrics(self) -> Dict[str, float]:
        """All metrics in a single flat dict, group by group."""
        flat = {}
        for values in self.groups.values():
            flat.update(values)
        return flat

    def group(self, name: str) -> Mapping[str, float]:
        return self.groups[name]

    def __getitem__(self, metric: str) -> float:
        for values in self.groups.values():
            if metric in values:
                return values[metric]
        raise KeyError(metric)

    def __contains__(self, metric: str) -> bool:
        return any(metric in values for values in self.groups.values())

    def to_dict(self) -> Dict:
        """JSON-ready dict; the screening decision becomes its label here."""
        out = {"model_name": self.model_name}
        for name, values in self.groups.items():
            out[name] = dict(values)
        out["screening_decision"] = self.screening_decision.value
        out["particle_sizes"] = [b.to_dict() for b in self.particle_sizes]
        out["density_data"] = [d.to_dict() for d in self.density_data]
        out["radar_data"] = [r.to_dict() for r in self.radar_data]
        return out


@dataclass(frozen=True)
class AnalysisOutcome:
    """Scored result plus the sharpened reconstruction (PNG bytes)."""
    result: AnalysisResult
    reconstructed_png: bytes
    width: int
    height: int

    def to_data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.reconstructed_png).decode("ascii")

    def to_dict(self, include_image: bool = False) -> Dict:
        out = self.result.to_dict()
        out["width"] = self.width
        out["height"] = self.height
        if include_image:
            out["reconstructed_image"] = self.to_data_url()
        return out
