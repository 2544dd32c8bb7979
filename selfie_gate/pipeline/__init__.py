"""Pipeline package: decode + lighting + gating stages + aggregation.

This package is the authoritative implementation of the selfie check.
"""

from .reason_codes import CODES, MESSAGES, ReasonCodes, message_for
from .contracts import (
    DetectionResult,
    FaceCandidate,
    LightingCondition,
    LightingProfile,
    ValidationReport,
    ValidationState,
    ValidationVerdict,
)
from .config import ValidatorConfig, LightingThresholds, config_from_dict, load_config, save_config
from .decode import (
    DecodeError,
    PipelineInvariantError,
    PixelBuffer,
    PixelSampler,
    PillowPixelSampler,
    PlatformUnsupported,
    UnsupportedPixelSampler,
    decode_image_bytes,
    get_sampler,
    unwrap_encoded,
)
from .brightness import analyze_brightness, check_brightness, classify_lighting
from .screenshot import detect_screenshot
from .face import check_framing, detect_face
from .quality import detect_blur, detect_object
from .liveness import estimate_liveness
from .validator import FaceImageValidator, validate

__all__ = [
    "CODES",
    "MESSAGES",
    "ReasonCodes",
    "message_for",
    "DetectionResult",
    "FaceCandidate",
    "LightingCondition",
    "LightingProfile",
    "ValidationReport",
    "ValidationState",
    "ValidationVerdict",
    "ValidatorConfig",
    "LightingThresholds",
    "config_from_dict",
    "load_config",
    "save_config",
    "DecodeError",
    "PipelineInvariantError",
    "PixelBuffer",
    "PixelSampler",
    "PillowPixelSampler",
    "PlatformUnsupported",
    "UnsupportedPixelSampler",
    "decode_image_bytes",
    "get_sampler",
    "unwrap_encoded",
    "analyze_brightness",
    "check_brightness",
    "classify_lighting",
    "detect_screenshot",
    "check_framing",
    "detect_face",
    "detect_blur",
    "detect_object",
    "estimate_liveness",
    "FaceImageValidator",
    "validate",
]
