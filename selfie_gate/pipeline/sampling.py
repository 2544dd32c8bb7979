"""Luminance helpers and the seeded random source shared by the detectors.

Detectors never touch numpy's global RNG; each validation call builds one
Generator from the configured seed and passes it down, so the same bytes
always sample the same pixel positions.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np


LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def make_rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Perceptual brightness of (..., >=3) samples, 0..255 float64."""
    return rgb[..., :3].astype(np.float64) @ LUMA_WEIGHTS


def random_points(rng: np.random.Generator, n: int, x_span: int, y_span: int) -> Tuple[np.ndarray, np.ndarray]:
    """`n` random (x, y) positions with 0 <= x < x_span and 0 <= y < y_span."""
    xs = rng.integers(0, max(1, x_span), size=n)
    ys = rng.integers(0, max(1, y_span), size=n)
    return xs, ys
