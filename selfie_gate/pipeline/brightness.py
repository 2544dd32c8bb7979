"""Brightness analysis on a coarse fixed grid.

A ~20x20 grid gives a stable global estimate independent of resolution, so
large captures cost the same as small ones.
"""

from __future__ import annotations

import logging

from .config import BrightnessConfig
from .contracts import DetectionResult, LightingCondition, LightingProfile
from .decode import PixelBuffer
from .sampling import luminance


logger = logging.getLogger(__name__)


def classify_lighting(avg_brightness: float, cfg: BrightnessConfig) -> LightingCondition:
    if avg_brightness < cfg.very_dark_below:
        return LightingCondition.VERY_DARK
    if avg_brightness > cfg.over_exposed_above:
        return LightingCondition.OVER_EXPOSED
    if avg_brightness < cfg.low_light_below:
        return LightingCondition.LOW_LIGHT
    return LightingCondition.NORMAL


def analyze_brightness(buffer: PixelBuffer, cfg: BrightnessConfig) -> LightingProfile:
    step_x = max(1, buffer.width // cfg.grid_size)
    step_y = max(1, buffer.height // cfg.grid_size)

    grid = luminance(buffer.rgb[::step_y, ::step_x])
    avg = float(grid.mean())

    profile = LightingProfile(
        avg_brightness=avg,
        min_brightness=float(grid.min()),
        max_brightness=float(grid.max()),
        condition=classify_lighting(avg, cfg),
    )
    logger.debug("Lighting %s (avg=%.1f over %d samples)", profile.condition.value, avg, grid.size)
    return profile


def check_brightness(profile: LightingProfile) -> DetectionResult:
    """Very dark and over-exposed frames are unusable; low light only relaxes later stages."""
    passed = profile.condition in (LightingCondition.NORMAL, LightingCondition.LOW_LIGHT)
    return DetectionResult(
        passed=passed,
        confidence=1.0,
        metadata={
            "avg_brightness": profile.avg_brightness,
            "min_brightness": profile.min_brightness,
            "max_brightness": profile.max_brightness,
            "condition": profile.condition.value,
        },
    )
