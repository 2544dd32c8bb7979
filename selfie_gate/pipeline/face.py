"""Face presence heuristic and framing check.

No landmark model is involved. The detector looks at a centered square
window (half the shorter side) and combines three cues:

1) skin-tone ratio on a stride grid,
2) dark "eye-like" pixels in the upper band of the window,
3) left/right luminance symmetry around the vertical center line.

Thresholds come from the lighting table: in low light the skin envelope
widens and the eye cue is almost ignored, because sensor noise swamps
dark-region contrast.

The candidate center is the skin centroid over a coarse grid of the whole
frame, so a face that spills off to one side pulls it away from the
window and the framing check can see it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .config import FaceConfig, LightingThresholds, SkinToneEnvelope
from .contracts import DetectionResult, FaceCandidate
from .decode import PixelBuffer
from .sampling import luminance


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FaceWindow:
    x0: int
    y0: int
    x1: int
    y1: int
    center_x: int
    center_y: int
    side: float


def face_window(width: int, height: int, cfg: FaceConfig) -> FaceWindow:
    cx, cy = width // 2, height // 2
    side = min(width, height) * cfg.window_fraction
    half = side / 2
    return FaceWindow(
        x0=max(0, int(cx - half)),
        y0=max(0, int(cy - half)),
        x1=min(width, int(cx + half)),
        y1=min(height, int(cy + half)),
        center_x=cx,
        center_y=cy,
        side=side,
    )


def skin_mask(px: np.ndarray, envelope: SkinToneEnvelope) -> np.ndarray:
    """Boolean mask of skin-coloured samples in an (..., 3) int array."""
    r, g, b = px[..., 0], px[..., 1], px[..., 2]
    mask = (
        (r > envelope.red[0]) & (r < envelope.red[1])
        & (g > envelope.green[0]) & (g < envelope.green[1])
        & (b > envelope.blue[0]) & (b < envelope.blue[1])
        & (luminance(px) > envelope.min_brightness)
    )
    if envelope.red_dominant:
        mask &= (r > g) & (r > b) & (np.abs(r - g) > envelope.min_red_green_gap)
    else:
        mask &= (r > g) | (np.abs(r - g) < envelope.red_green_tolerance)
    return mask


def _skin_cue(rgb: np.ndarray, win: FaceWindow, thresholds: LightingThresholds, cfg: FaceConfig) -> float:
    stride = cfg.skin_stride
    grid = rgb[win.y0:win.y1:stride, win.x0:win.x1:stride].astype(np.int32)
    mask = skin_mask(grid, thresholds.skin)
    return float(mask.mean()) if mask.size else 0.0


def _skin_center(rgb: np.ndarray, thresholds: LightingThresholds, cfg: FaceConfig) -> Optional[Tuple[float, float]]:
    """Centroid of skin-tone samples on a coarse grid over the whole frame."""
    h, w = rgb.shape[:2]
    step_x = max(1, w // cfg.center_grid_size)
    step_y = max(1, h // cfg.center_grid_size)
    mask = skin_mask(rgb[::step_y, ::step_x].astype(np.int32), thresholds.skin)
    if not mask.any():
        return None

    rows, cols = np.nonzero(mask)
    return float(cols.mean() * step_x), float(rows.mean() * step_y)


def _eye_cue(rgb: np.ndarray, win: FaceWindow, thresholds: LightingThresholds, cfg: FaceConfig) -> Tuple[float, float]:
    """Returns (eye-like pixel ratio, locally-dark eye region ratio)."""
    window_h = win.y1 - win.y0
    y0 = win.y0 + int(window_h * cfg.eye_band_start)
    y1 = min(win.y1, y0 + int(window_h * cfg.eye_band_height))
    band = rgb[y0:y1, win.x0:win.x1]
    if band.size == 0:
        return 0.0, 0.0

    lum = luminance(band)
    eye_like = (
        (lum < thresholds.eye_max_brightness)
        & (lum > thresholds.eye_min_brightness)
        & (band < cfg.eye_channel_max).all(axis=-1)
    )
    eye_ratio = float(eye_like.mean())

    if not thresholds.eye_local_contrast:
        return eye_ratio, 0.0

    # Eye pixels should sit darker than their 5x5 neighbourhood
    local = sliding_window_view(np.pad(lum, 2, mode="edge"), (5, 5)).mean(axis=(2, 3))
    m = cfg.eye_contrast_border
    interior = np.zeros_like(eye_like)
    interior[m + 1:lum.shape[0] - m, m + 1:lum.shape[1] - m] = True
    region = eye_like & interior & (lum < local - cfg.eye_contrast_delta)
    return eye_ratio, float(region.sum()) / lum.size


def _symmetry_cue(rgb: np.ndarray, win: FaceWindow, cfg: FaceConfig, rng: np.random.Generator) -> float:
    n = cfg.symmetry_samples
    rows = rng.integers(win.y0, max(win.y0 + 1, win.y1), size=n)
    # Both mirrored columns stay inside [x0, x1)
    reach = max(0, min(win.center_x - win.x0, win.x1 - 1 - win.center_x))
    offsets = np.floor(reach * rng.random(n)).astype(np.int64)

    diff = np.abs(
        luminance(rgb[rows, win.center_x - offsets])
        - luminance(rgb[rows, win.center_x + offsets])
    )
    return float((diff < cfg.symmetry_max_diff).sum()) / n


def detect_face(
    buffer: PixelBuffer,
    thresholds: LightingThresholds,
    cfg: FaceConfig,
    rng: np.random.Generator,
) -> Tuple[DetectionResult, Optional[FaceCandidate]]:
    rgb = buffer.rgb
    win = face_window(buffer.width, buffer.height, cfg)

    skin_ratio = _skin_cue(rgb, win, thresholds, cfg)
    eye_ratio, eye_region_ratio = _eye_cue(rgb, win, thresholds, cfg)
    structure = _symmetry_cue(rgb, win, cfg, rng)

    min_skin = thresholds.min_skin_ratio
    has_skin = skin_ratio >= min_skin
    has_eyes = (
        eye_ratio >= thresholds.min_eye_ratio
        or (thresholds.eye_ratio_floor is not None and eye_ratio >= thresholds.eye_ratio_floor)
        or eye_region_ratio >= cfg.eye_region_min_ratio
    )
    has_face = has_skin and (
        has_eyes or thresholds.eyes_optional or skin_ratio >= min_skin * cfg.skin_ratio_bonus
    )

    skin_conf = min(skin_ratio / min_skin, 1.0)
    eye_conf = min(
        eye_ratio / max(thresholds.min_eye_ratio, cfg.eye_confidence_floor) * thresholds.eye_confidence_gain,
        1.0,
    )
    confidence = min(
        skin_conf * thresholds.skin_weight
        + eye_conf * thresholds.eye_weight
        + structure * thresholds.structure_weight,
        1.0,
    )

    size_ratio = win.side / min(buffer.width, buffer.height)
    passed = (
        has_face
        and size_ratio >= cfg.min_size_ratio
        and confidence >= thresholds.min_face_confidence
    )

    metadata = {
        "skin_ratio": skin_ratio,
        "eye_ratio": eye_ratio,
        "eye_region_ratio": eye_region_ratio,
        "structure_score": structure,
        "has_skin": has_skin,
        "has_eyes": has_eyes,
        "size_ratio": size_ratio,
    }
    logger.debug("Face cues: %s confidence=%.3f", metadata, confidence)

    candidate = None
    if passed:
        center_x, center_y = _skin_center(rgb, thresholds, cfg) or (float(win.center_x), float(win.center_y))
        candidate = FaceCandidate(
            center_x=center_x,
            center_y=center_y,
            approximate_size=win.side,
            confidence=confidence,
        )
    return DetectionResult(passed=passed, confidence=confidence, metadata=metadata), candidate


def check_framing(candidate: Optional[FaceCandidate], width: int, height: int, cfg: FaceConfig) -> DetectionResult:
    """Face center must lie within `max_center_offset` of the frame center on both axes."""
    if candidate is None:
        return DetectionResult(passed=False, confidence=0.0, metadata={"reason": "no face candidate"})

    offset_x = abs(candidate.center_x - width / 2) / width
    offset_y = abs(candidate.center_y - height / 2) / height
    passed = offset_x < cfg.max_center_offset and offset_y < cfg.max_center_offset
    return DetectionResult(
        passed=passed,
        confidence=max(0.0, 1.0 - max(offset_x, offset_y) / cfg.max_center_offset),
        metadata={"offset_x": offset_x, "offset_y": offset_y},
    )
