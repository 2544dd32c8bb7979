"""Pipeline contracts: lighting, per-stage results and the final verdict.

Nothing here outlives a single validation call. `ValidationVerdict` is the
only type that crosses the package boundary.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class LightingCondition(str, Enum):
    NORMAL = "normal"
    LOW_LIGHT = "low_light"
    VERY_DARK = "very_dark"
    OVER_EXPOSED = "over_exposed"


@dataclass(frozen=True)
class LightingProfile:
    """Grid-sampled luminance summary of one frame (0..255 scale)."""

    avg_brightness: float
    min_brightness: float
    max_brightness: float
    condition: LightingCondition

    @property
    def is_low_light(self) -> bool:
        return self.condition is LightingCondition.LOW_LIGHT

    @property
    def is_very_dark(self) -> bool:
        return self.condition is LightingCondition.VERY_DARK

    @property
    def is_over_exposed(self) -> bool:
        return self.condition is LightingCondition.OVER_EXPOSED


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of one gating stage."""

    passed: bool
    confidence: float
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FaceCandidate:
    center_x: float
    center_y: float
    approximate_size: float
    confidence: float


class ValidationState(str, Enum):
    START = "start"
    LOADED = "loaded"
    BRIGHTNESS_CHECKED = "brightness_checked"
    SCREENSHOT_CHECKED = "screenshot_checked"
    FACE_CHECKED = "face_checked"
    OBJECT_CHECKED = "object_checked"
    BLUR_CHECKED = "blur_checked"
    FRAMING_CHECKED = "framing_checked"
    LIVENESS_CHECKED = "liveness_checked"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ValidationVerdict:
    """Final answer handed back to the check-in flow."""

    valid: bool
    error_reason: Optional[str] = None
    confidence: Optional[float] = None
    is_live: Optional[bool] = None
    reason_code: Optional[str] = None
    detected_face: Optional[bool] = None

    @classmethod
    def accepted(cls, confidence: float, is_live: bool) -> "ValidationVerdict":
        return cls(valid=True, confidence=confidence, is_live=is_live, detected_face=True)

    @classmethod
    def rejected(cls, reason_code: str, message: str, detected_face: Optional[bool] = None) -> "ValidationVerdict":
        return cls(valid=False, error_reason=message, reason_code=reason_code, detected_face=detected_face)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationReport:
    """Diagnostic trace of one run: visited states and every stage result."""

    verdict: ValidationVerdict
    state: ValidationState
    states: List[ValidationState] = field(default_factory=list)
    stages: Dict[str, DetectionResult] = field(default_factory=dict)
    lighting: Optional[LightingProfile] = None
    face: Optional[FaceCandidate] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.to_dict(),
            "state": self.state.value,
            "states": [s.value for s in self.states],
            "stages": {name: asdict(res) for name, res in self.stages.items()},
            "lighting": None if self.lighting is None else {
                "avg_brightness": self.lighting.avg_brightness,
                "min_brightness": self.lighting.min_brightness,
                "max_brightness": self.lighting.max_brightness,
                "condition": self.lighting.condition.value,
            },
            "face": None if self.face is None else asdict(self.face),
        }
