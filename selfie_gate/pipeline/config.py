"""Threshold tables for the validation pipeline.

Every tunable constant lives here. Lighting-dependent thresholds are grouped
into one `LightingThresholds` table per usable lighting condition, and the
detectors pick their table through `ValidatorConfig.thresholds_for` instead
of branching on low-light flags themselves.

Configs can be overridden from YAML (see `configs/validator.yaml`); keys
that are not listed are taken from the defaults below.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .contracts import LightingCondition


Range = Tuple[float, float]


@dataclass(frozen=True)
class SkinToneEnvelope:
    # Exclusive channel bounds
    red: Range
    green: Range
    blue: Range
    min_brightness: float

    # red_dominant: r > g, r > b and |r - g| > min_red_green_gap
    # otherwise:    r > g or |r - g| < red_green_tolerance
    red_dominant: bool
    min_red_green_gap: float = 0.0
    red_green_tolerance: float = 0.0


@dataclass(frozen=True)
class LightingThresholds:
    skin: SkinToneEnvelope
    min_skin_ratio: float

    # Eye band
    eye_max_brightness: float
    eye_min_brightness: float
    min_eye_ratio: float
    eye_ratio_floor: Optional[float]
    eye_local_contrast: bool
    eye_confidence_gain: float
    eyes_optional: bool

    # Confidence weights (skin / eyes / structure)
    skin_weight: float
    eye_weight: float
    structure_weight: float
    min_face_confidence: float

    # Exception policy: which checks run under this condition
    screenshot_bright_signal: bool
    object_check: bool
    blur_check: bool
    liveness_exempt: bool


NORMAL_THRESHOLDS = LightingThresholds(
    skin=SkinToneEnvelope(
        red=(90, 255),
        green=(35, 240),
        blue=(18, 200),
        min_brightness=45,
        red_dominant=True,
        min_red_green_gap=12,
    ),
    min_skin_ratio=0.16,
    eye_max_brightness=100,
    eye_min_brightness=15,
    min_eye_ratio=0.04,
    eye_ratio_floor=None,
    eye_local_contrast=True,
    eye_confidence_gain=2.0,
    eyes_optional=False,
    skin_weight=0.5,
    eye_weight=0.3,
    structure_weight=0.2,
    min_face_confidence=0.35,
    screenshot_bright_signal=True,
    object_check=True,
    blur_check=True,
    liveness_exempt=False,
)

LOW_LIGHT_THRESHOLDS = LightingThresholds(
    skin=SkinToneEnvelope(
        red=(20, 255),
        green=(12, 240),
        blue=(8, 200),
        min_brightness=12,
        red_dominant=False,
        red_green_tolerance=30,
    ),
    min_skin_ratio=0.08,
    eye_max_brightness=140,
    eye_min_brightness=5,
    min_eye_ratio=0.01,
    eye_ratio_floor=0.003,
    eye_local_contrast=False,
    eye_confidence_gain=1.5,
    eyes_optional=True,
    skin_weight=0.8,
    eye_weight=0.05,
    structure_weight=0.15,
    min_face_confidence=0.25,
    screenshot_bright_signal=False,
    object_check=False,
    blur_check=False,
    liveness_exempt=True,
)


@dataclass(frozen=True)
class LoaderConfig:
    allowed_formats: Tuple[str, ...] = ("jpeg", "png", "webp", "bmp", "gif")
    min_width: int = 200
    min_height: int = 200


@dataclass(frozen=True)
class BrightnessConfig:
    grid_size: int = 20
    very_dark_below: float = 15.0
    low_light_below: float = 50.0
    over_exposed_above: float = 240.0


@dataclass(frozen=True)
class ScreenshotConfig:
    # Border uniformity
    edge_samples: int = 20
    edge_max_variance: float = 60.0
    edge_weight: float = 2.0

    # Random pixel samples
    pattern_samples: int = 100
    gray_channel_tolerance: float = 8.0
    gray_min_red: float = 180.0
    gray_ratio: float = 0.25
    gray_weight: float = 1.5
    bright_pixel_min: float = 200.0
    bright_ratio: float = 0.4
    bright_weight: float = 1.0
    low_variation_max: float = 10.0
    low_variation_ratio: float = 0.3
    low_variation_weight: float = 0.5

    # Flat horizontal runs (UI chrome)
    run_samples: int = 30
    run_length: int = 10
    run_step_max: float = 15.0
    run_ratio: float = 0.2
    run_weight: float = 1.0

    # Hard luminance transitions
    transition_samples: int = 50
    transition_min: float = 100.0
    transition_ratio: float = 0.3
    transition_weight: float = 0.5

    max_score: float = 5.0
    flag_score: float = 4.0
    reject_confidence: float = 0.85


@dataclass(frozen=True)
class FaceConfig:
    window_fraction: float = 0.5
    skin_stride: int = 3
    # Grid points per axis for the frame-wide skin centroid
    center_grid_size: int = 60
    eye_band_start: float = 0.15
    eye_band_height: float = 0.35
    eye_channel_max: float = 150.0
    eye_contrast_border: int = 5
    eye_contrast_delta: float = 15.0
    eye_region_min_ratio: float = 0.003
    eye_confidence_floor: float = 0.01
    symmetry_samples: int = 20
    symmetry_max_diff: float = 30.0
    skin_ratio_bonus: float = 1.2
    min_size_ratio: float = 0.20
    max_center_offset: float = 0.3


@dataclass(frozen=True)
class ObjectConfig:
    samples: int = 100
    edge_min_delta: float = 80.0
    flag_ratio: float = 0.6
    reject_confidence: float = 0.7


@dataclass(frozen=True)
class BlurConfig:
    samples: int = 150
    min_mean_delta: float = 10.0


@dataclass(frozen=True)
class LivenessConfig:
    samples: int = 50
    min_pair_delta: float = 20.0
    min_variation_ratio: float = 0.3
    # A low-light exemption never covers a frame where no pair differs by more than this.
    flat_pair_delta: float = 1.0


@dataclass(frozen=True)
class ValidatorConfig:
    seed: int = 1729
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    brightness: BrightnessConfig = field(default_factory=BrightnessConfig)
    screenshot: ScreenshotConfig = field(default_factory=ScreenshotConfig)
    face: FaceConfig = field(default_factory=FaceConfig)
    object: ObjectConfig = field(default_factory=ObjectConfig)
    blur: BlurConfig = field(default_factory=BlurConfig)
    liveness: LivenessConfig = field(default_factory=LivenessConfig)
    normal: LightingThresholds = NORMAL_THRESHOLDS
    low_light: LightingThresholds = LOW_LIGHT_THRESHOLDS

    def thresholds_for(self, condition: LightingCondition) -> LightingThresholds:
        if condition is LightingCondition.NORMAL:
            return self.normal
        if condition is LightingCondition.LOW_LIGHT:
            return self.low_light
        raise ValueError(f"No detector thresholds for unusable lighting: {condition.value}")


_NESTED = {
    ValidatorConfig: {
        "loader": LoaderConfig,
        "brightness": BrightnessConfig,
        "screenshot": ScreenshotConfig,
        "face": FaceConfig,
        "object": ObjectConfig,
        "blur": BlurConfig,
        "liveness": LivenessConfig,
        "normal": LightingThresholds,
        "low_light": LightingThresholds,
    },
    LightingThresholds: {"skin": SkinToneEnvelope},
}


def _merge(cls, defaults: Dict[str, Any], overrides: Dict[str, Any], where: str) -> Any:
    if not isinstance(overrides, dict):
        raise ValueError(f"Config section '{where}' must be a mapping")

    names = {f.name for f in fields(cls)}
    unknown = sorted(set(overrides) - names)
    if unknown:
        raise ValueError(f"Unknown config keys in '{where}': {', '.join(unknown)}")

    nested = _NESTED.get(cls, {})
    kwargs: Dict[str, Any] = {}
    for name in names:
        value = overrides.get(name, defaults[name])
        if name in nested:
            value = _merge(nested[name], defaults[name], overrides.get(name, {}), f"{where}.{name}")
        elif isinstance(value, list):
            value = tuple(value)
        kwargs[name] = value
    return cls(**kwargs)


def config_from_dict(data: Optional[Dict[str, Any]]) -> ValidatorConfig:
    """Build a config from a (possibly partial) nested mapping."""
    return _merge(ValidatorConfig, config_to_dict(ValidatorConfig()), data or {}, "root")


def config_to_dict(config: ValidatorConfig) -> Dict[str, Any]:
    def _plain(value: Any) -> Any:
        if isinstance(value, dict):
            return {k: _plain(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [_plain(v) for v in value]
        return value

    return _plain(asdict(config))


def load_config(config_path: Union[str, Path]) -> ValidatorConfig:
    """Load a validator config from YAML, filling gaps from the defaults.

    Args:
        config_path: Path to a YAML file.

    Returns:
        ValidatorConfig
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f)

    return config_from_dict(data)


def save_config(config: ValidatorConfig, output_path: Union[str, Path]) -> None:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        yaml.safe_dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False)
