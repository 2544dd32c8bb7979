"""Decision aggregator: runs the gating stages in a fixed order.

START -> LOADED -> BRIGHTNESS_CHECKED -> SCREENSHOT_CHECKED -> FACE_CHECKED
      -> OBJECT_CHECKED -> BLUR_CHECKED -> FRAMING_CHECKED -> LIVENESS_CHECKED
      -> ACCEPTED

The first failing stage moves straight to REJECTED with that stage's reason;
later stages never run, so the reported reason is stable for a given input.

Gating rejections are returned as data. Only unreadable input (DecodeError)
and broken buffers (PipelineInvariantError) raise; callers must treat a
raise as a rejection.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from .brightness import analyze_brightness, check_brightness
from .config import ValidatorConfig
from .contracts import (
    DetectionResult,
    FaceCandidate,
    LightingProfile,
    ValidationReport,
    ValidationState,
    ValidationVerdict,
)
from .decode import DecodeError, EncodedImage, PixelBuffer, PixelSampler, PillowPixelSampler, PlatformUnsupported
from .face import check_framing, detect_face
from .liveness import estimate_liveness
from .quality import detect_blur, detect_object
from .reason_codes import CODES, message_for
from .sampling import make_rng
from .screenshot import detect_screenshot


logger = logging.getLogger(__name__)


class _Run:
    """Mutable bookkeeping for one pass through the state machine."""

    def __init__(self):
        self.states: List[ValidationState] = [ValidationState.START, ValidationState.LOADED]
        self.stages: Dict[str, DetectionResult] = {}
        self.lighting: Optional[LightingProfile] = None
        self.face: Optional[FaceCandidate] = None

    def record(self, name: str, result: DetectionResult, next_state: ValidationState) -> bool:
        self.stages[name] = result
        if result.passed:
            self.states.append(next_state)
        return result.passed

    def reject(self, code: str, detected_face: Optional[bool] = None) -> ValidationReport:
        low_light = self.lighting is not None and self.lighting.is_low_light
        verdict = ValidationVerdict.rejected(code, message_for(code, low_light), detected_face)
        self.states.append(ValidationState.REJECTED)
        logger.info("Rejected at %s: %s", self.states[-2].value, code)
        return self._report(verdict)

    def accept(self, confidence: float, is_live: bool) -> ValidationReport:
        self.states.append(ValidationState.ACCEPTED)
        return self._report(ValidationVerdict.accepted(confidence, is_live))

    def _report(self, verdict: ValidationVerdict) -> ValidationReport:
        return ValidationReport(
            verdict=verdict,
            state=self.states[-1],
            states=list(self.states),
            stages=dict(self.stages),
            lighting=self.lighting,
            face=self.face,
        )


class FaceImageValidator:
    """Validates one captured selfie as proof of presence.

    Usage:
        validator = FaceImageValidator()
        verdict = validator.validate_sync(jpeg_bytes)
        verdict = await validator.validate(data_uri)
    """

    def __init__(self, config: Optional[ValidatorConfig] = None, sampler: Optional[PixelSampler] = None):
        self.config = config or ValidatorConfig()
        self.sampler = sampler or PillowPixelSampler(self.config.loader)

    def inspect(self, buffer: PixelBuffer) -> ValidationReport:
        """Run every gating stage on a decoded frame and keep the full trace."""
        cfg = self.config
        rng = make_rng(cfg.seed)
        run = _Run()

        size_ok = buffer.width >= cfg.loader.min_width and buffer.height >= cfg.loader.min_height
        run.stages["size"] = DetectionResult(
            passed=size_ok, confidence=1.0, metadata={"width": buffer.width, "height": buffer.height}
        )
        if not size_ok:
            return run.reject(CODES.TOO_SMALL)

        run.lighting = analyze_brightness(buffer, cfg.brightness)
        if not run.record("brightness", check_brightness(run.lighting), ValidationState.BRIGHTNESS_CHECKED):
            return run.reject(CODES.TOO_DARK if run.lighting.is_very_dark else CODES.TOO_BRIGHT)

        thresholds = cfg.thresholds_for(run.lighting.condition)

        screenshot = detect_screenshot(buffer, thresholds, cfg.screenshot, rng)
        if not run.record("screenshot", screenshot, ValidationState.SCREENSHOT_CHECKED):
            return run.reject(CODES.SCREENSHOT)

        face, run.face = detect_face(buffer, thresholds, cfg.face, rng)
        if not run.record("face", face, ValidationState.FACE_CHECKED):
            return run.reject(CODES.NO_FACE, detected_face=False)

        obj = detect_object(buffer, thresholds, cfg.object, rng)
        if not run.record("object", obj, ValidationState.OBJECT_CHECKED):
            return run.reject(CODES.OBJECT_NOT_FACE, detected_face=False)

        blur = detect_blur(buffer, thresholds, cfg.blur, rng)
        if not run.record("blur", blur, ValidationState.BLUR_CHECKED):
            return run.reject(CODES.TOO_BLURRY, detected_face=True)

        framing = check_framing(run.face, buffer.width, buffer.height, cfg.face)
        if not run.record("framing", framing, ValidationState.FRAMING_CHECKED):
            return run.reject(CODES.NOT_CENTERED, detected_face=True)

        liveness = estimate_liveness(buffer, thresholds, cfg.liveness, rng)
        if not run.record("liveness", liveness, ValidationState.LIVENESS_CHECKED):
            return run.reject(CODES.NOT_LIVE, detected_face=True)

        logger.debug("Accepted (%s light, face confidence %.3f)", run.lighting.condition.value, face.confidence)
        return run.accept(face.confidence, liveness.passed)

    def validate_buffer(self, buffer: PixelBuffer) -> ValidationVerdict:
        return self.inspect(buffer).verdict

    def load(self, image: EncodedImage) -> PixelBuffer:
        try:
            return self.sampler.load(image)
        except DecodeError as e:
            logger.warning("Unreadable image (%s): %s", e.reason_code, e)
            raise

    def validate_sync(self, image: EncodedImage) -> ValidationVerdict:
        try:
            buffer = self.load(image)
        except PlatformUnsupported as e:
            logger.warning("Rejecting without analysis: %s", e)
            return ValidationVerdict.rejected(e.reason_code, message_for(e.reason_code), detected_face=False)
        return self.validate_buffer(buffer)

    async def validate(self, image: EncodedImage) -> ValidationVerdict:
        """Decode and validate off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.validate_sync, image)


async def validate(
    image: EncodedImage,
    config: Optional[ValidatorConfig] = None,
    sampler: Optional[PixelSampler] = None,
) -> ValidationVerdict:
    """Single entry point: encoded image -> verdict.

    Raises DecodeError when the image cannot be read at all.
    """
    return await FaceImageValidator(config, sampler).validate(image)
