"""Reason code taxonomy.

Every rejection carries a machine-readable code plus a user-facing message.
The messages are shown verbatim by the check-in screens, so changing one
is a UI change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ReasonCodes:
    # Input policy / integrity
    INVALID_IMAGE: str = "IN-001"
    TOO_SMALL: str = "IN-002"
    PLATFORM_UNSUPPORTED: str = "IN-003"

    # Lighting
    TOO_DARK: str = "LT-001"
    TOO_BRIGHT: str = "LT-002"

    # Screen replay
    SCREENSHOT: str = "SC-001"

    # Face guardrails
    NO_FACE: str = "GR-001"
    OBJECT_NOT_FACE: str = "GR-002"
    NOT_CENTERED: str = "GR-003"

    # Quality gates
    TOO_BLURRY: str = "QG-001"

    # Liveness
    NOT_LIVE: str = "LV-001"

    # System
    PIPELINE_INVARIANT_FAIL: str = "SYS-001"


CODES = ReasonCodes()


MESSAGES: Dict[str, str] = {
    CODES.INVALID_IMAGE: "Invalid image. Please try again.",
    CODES.TOO_SMALL: "Image is too small. Please capture a clear photo of your face.",
    CODES.PLATFORM_UNSUPPORTED: (
        "Face verification is not supported on this device. "
        "Please try a different device or browser."
    ),
    CODES.TOO_DARK: "Image is too dark. Please ensure your face is visible with some lighting.",
    CODES.TOO_BRIGHT: "Image is too bright. Please reduce lighting or move to a better location.",
    CODES.SCREENSHOT: (
        "Please capture a live photo with your face, "
        "not a screenshot or photo of a mobile screen."
    ),
    CODES.NO_FACE: "Face not detected. Please ensure your face is clearly visible in the center of the camera.",
    CODES.OBJECT_NOT_FACE: "Please capture a photo of your face, not an object or other item.",
    CODES.NOT_CENTERED: "Please position your face in the center of the camera frame.",
    CODES.TOO_BLURRY: "Image is too blurry. Please hold the camera steady and ensure good lighting.",
    CODES.NOT_LIVE: "Please capture a live photo. Static images or photos of photos are not allowed.",
    CODES.PIPELINE_INVARIANT_FAIL: "Face detection failed. Please try again.",
}

# Shown instead of the NO_FACE message when the frame is low-light.
NO_FACE_LOW_LIGHT_MESSAGE = "Face not detected. Please ensure your face is visible in the camera frame."


def message_for(code: str, low_light: bool = False) -> str:
    if code == CODES.NO_FACE and low_light:
        return NO_FACE_LOW_LIGHT_MESSAGE
    return MESSAGES[code]
