"""Sharp-edge object check and blur gate.

Both are random-pair estimates on the full frame. The lighting table
decides whether they run at all: underexposed captures are noisy (spurious
hard edges) and legitimately soft, so neither check applies in low light.
"""

from __future__ import annotations

import logging

import numpy as np

from .config import BlurConfig, LightingThresholds, ObjectConfig
from .contracts import DetectionResult
from .decode import PixelBuffer
from .sampling import luminance, random_points


logger = logging.getLogger(__name__)


def detect_object(
    buffer: PixelBuffer,
    thresholds: LightingThresholds,
    cfg: ObjectConfig,
    rng: np.random.Generator,
) -> DetectionResult:
    """Flag geometric objects: organic faces rarely show hard edges everywhere."""
    w, h = buffer.width, buffer.height
    rgb = buffer.rgb
    xs, ys = random_points(rng, cfg.samples, w - 2, h - 2)

    here = luminance(rgb[ys, xs])
    edge_x = np.abs(here - luminance(rgb[ys, np.minimum(xs + 1, w - 1)]))
    edge_y = np.abs(here - luminance(rgb[np.minimum(ys + 1, h - 1), xs]))
    sharp_ratio = float(((edge_x > cfg.edge_min_delta) | (edge_y > cfg.edge_min_delta)).mean())

    flagged = thresholds.object_check and sharp_ratio > cfg.flag_ratio
    rejected = flagged and sharp_ratio > cfg.reject_confidence
    return DetectionResult(
        passed=not rejected,
        confidence=sharp_ratio,
        metadata={"sharp_edge_ratio": sharp_ratio, "flagged": flagged, "enabled": thresholds.object_check},
    )


def detect_blur(
    buffer: PixelBuffer,
    thresholds: LightingThresholds,
    cfg: BlurConfig,
    rng: np.random.Generator,
) -> DetectionResult:
    if not thresholds.blur_check:
        return DetectionResult(passed=True, confidence=1.0, metadata={"skipped": True})

    w, h = buffer.width, buffer.height
    rgb = buffer.rgb
    xs, ys = random_points(rng, cfg.samples, w - 2, h - 2)
    here = rgb[ys, xs].astype(np.int32)
    right = rgb[ys, np.minimum(xs + 1, w - 1)].astype(np.int32)
    delta = np.abs(here - right).sum(axis=1)
    mean_delta = float(delta.mean())

    blurry = mean_delta < cfg.min_mean_delta
    if blurry:
        logger.debug("Blurry frame: mean adjacent delta %.2f", mean_delta)
    return DetectionResult(
        passed=not blurry,
        confidence=min(mean_delta / cfg.min_mean_delta, 1.0),
        metadata={"mean_delta": mean_delta, "skipped": False},
    )
