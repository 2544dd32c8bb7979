"""Screenshot / photo-of-a-screen detection.

Five independent signals each add a fixed weight to a score:
- uniform borders (status bars, letterboxing)
- near-gray bright pixels (backlit panel)
- many globally bright pixels (skipped in low light)
- flat neighbourhoods and flat horizontal runs (UI chrome)
- hard luminance transitions

Only an overwhelming combination flags the frame, and the stage rejects
only when the flag comes with high confidence. A false positive here
blocks a genuine check-in.
"""

from __future__ import annotations

import logging

import numpy as np

from .config import LightingThresholds, ScreenshotConfig
from .contracts import DetectionResult
from .decode import PixelBuffer
from .sampling import luminance, random_points


logger = logging.getLogger(__name__)


def _uniform(edge: np.ndarray, max_variance: float) -> bool:
    values = edge.astype(np.float64).reshape(-1)
    if values.size < 9:
        return False
    return bool(values.var() < max_variance)


def edges_uniform(buffer: PixelBuffer, cfg: ScreenshotConfig) -> bool:
    rgb = buffer.rgb
    nx = min(cfg.edge_samples, buffer.width)
    ny = min(cfg.edge_samples, buffer.height)
    edges = (
        rgb[0, :nx],
        rgb[buffer.height - 1, :nx],
        rgb[:ny, 0],
        rgb[:ny, buffer.width - 1],
    )
    return all(_uniform(edge, cfg.edge_max_variance) for edge in edges)


def detect_screenshot(
    buffer: PixelBuffer,
    thresholds: LightingThresholds,
    cfg: ScreenshotConfig,
    rng: np.random.Generator,
) -> DetectionResult:
    w, h = buffer.width, buffer.height
    rgb = buffer.rgb
    score = 0.0

    uniform = edges_uniform(buffer, cfg)
    if uniform:
        score += cfg.edge_weight

    # Random pixel samples
    xs, ys = random_points(rng, cfg.pattern_samples, w, h)
    px = rgb[ys, xs].astype(np.int32)
    r, g, b = px[:, 0], px[:, 1], px[:, 2]
    gray = (
        (np.abs(r - g) < cfg.gray_channel_tolerance)
        & (np.abs(g - b) < cfg.gray_channel_tolerance)
        & (r > cfg.gray_min_red)
    )
    bright = luminance(px) > cfg.bright_pixel_min
    has_right = (xs < w - 1) & (ys < h - 1)
    right = rgb[ys, np.minimum(xs + 1, w - 1)].astype(np.int32)
    low_variation = has_right & (np.abs(px - right).sum(axis=1) < cfg.low_variation_max)

    gray_ratio = float(gray.mean())
    bright_ratio = float(bright.mean())
    low_variation_ratio = float(low_variation.mean())

    if gray_ratio > cfg.gray_ratio:
        score += cfg.gray_weight
    if thresholds.screenshot_bright_signal and bright_ratio > cfg.bright_ratio:
        score += cfg.bright_weight
    if low_variation_ratio > cfg.low_variation_ratio:
        score += cfg.low_variation_weight

    # Flat horizontal runs
    span = cfg.run_length
    xs, ys = random_points(rng, cfg.run_samples, w - span, h - span)
    cols = np.minimum(xs[:, None] + np.arange(span + 1), w - 1)
    runs = rgb[ys[:, None], cols].astype(np.int32)
    steps = np.abs(runs[:, 1:] - runs[:, :-1]).sum(axis=2)
    flat_ratio = float((steps <= cfg.run_step_max).all(axis=1).mean())
    if flat_ratio > cfg.run_ratio:
        score += cfg.run_weight

    # Hard transitions
    xs, ys = random_points(rng, cfg.transition_samples, w - 2, h - 2)
    jump = np.abs(luminance(rgb[ys, xs]) - luminance(rgb[ys, np.minimum(xs + 1, w - 1)]))
    sharp_ratio = float((jump > cfg.transition_min).mean())
    if sharp_ratio > cfg.transition_ratio:
        score += cfg.transition_weight

    flagged = score >= cfg.flag_score
    confidence = min(score / cfg.max_score, 1.0)
    rejected = flagged and confidence > cfg.reject_confidence

    if flagged:
        logger.debug("Screen-like frame: score=%.1f confidence=%.2f", score, confidence)

    return DetectionResult(
        passed=not rejected,
        confidence=confidence,
        metadata={
            "score": score,
            "flagged": flagged,
            "edges_uniform": uniform,
            "gray_ratio": gray_ratio,
            "bright_ratio": bright_ratio,
            "low_variation_ratio": low_variation_ratio,
            "flat_run_ratio": flat_ratio,
            "sharp_transition_ratio": sharp_ratio,
        },
    )
