"""Coarse liveness estimate from random-pair luminance variation.

A direct sensor capture carries natural noise and shading; flat, synthetic
or heavily recompressed stills show less random local variation. This is
an anti-replay hint, not proof of a live subject.
"""

from __future__ import annotations

import logging

import numpy as np

from .config import LightingThresholds, LivenessConfig
from .contracts import DetectionResult
from .decode import PixelBuffer
from .sampling import luminance, random_points


logger = logging.getLogger(__name__)


def estimate_liveness(
    buffer: PixelBuffer,
    thresholds: LightingThresholds,
    cfg: LivenessConfig,
    rng: np.random.Generator,
) -> DetectionResult:
    w, h = buffer.width, buffer.height
    rgb = buffer.rgb
    x1, y1 = random_points(rng, cfg.samples, w, h)
    x2, y2 = random_points(rng, cfg.samples, w, h)

    diff = np.abs(luminance(rgb[y1, x1]) - luminance(rgb[y2, x2]))
    variation_ratio = float((diff > cfg.min_pair_delta).mean())
    flat = bool((diff <= cfg.flat_pair_delta).all())

    if variation_ratio > cfg.min_variation_ratio:
        is_live = True
    else:
        is_live = thresholds.liveness_exempt and not flat

    logger.debug("Liveness variation=%.2f flat=%s live=%s", variation_ratio, flat, is_live)
    return DetectionResult(
        passed=is_live,
        confidence=variation_ratio,
        metadata={"variation_ratio": variation_ratio, "flat": flat, "exempt": thresholds.liveness_exempt},
    )
