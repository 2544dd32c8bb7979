"""Synthetic frames for the selfie-gate tests.

The "face" frame is a 300x300 capture stand-in: a skin-coloured disc on a
blue-gray background, two dark eye patches in the upper part of the disc,
and per-pixel luminance noise (the same offset on all three channels) to
mimic sensor grain.
"""

from __future__ import annotations

import io
from typing import Callable, Tuple

import numpy as np
import pytest
from PIL import Image

from selfie_gate.pipeline import FaceImageValidator, PixelBuffer, ValidatorConfig


BACKGROUND = (60, 100, 150)
SKIN = (200, 150, 120)
EYE = (70, 50, 45)

# Average luminance of the default face frame is ~115; this lands it near 30.
LOW_LIGHT_FACTOR = 0.26


def build_face_frame(size: int = 300, noise: int = 40, seed: int = 7) -> np.ndarray:
    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[0:size, 0:size]
    c = size // 2
    scale = size / 300

    frame = np.empty((size, size, 3), dtype=np.float64)
    frame[:] = BACKGROUND
    frame[(xx - c) ** 2 + (yy - c) ** 2 <= (100 * scale) ** 2] = SKIN
    eye_y = c - 30 * scale
    for eye_x in (c - 40 * scale, c + 40 * scale):
        frame[(xx - eye_x) ** 2 + (yy - eye_y) ** 2 <= (15 * scale) ** 2] = EYE

    grain = rng.integers(-noise, noise + 1, size=(size, size, 1))
    return np.clip(frame + grain, 0, 255).astype(np.uint8)


def build_off_center_frame(size: int = 400, skin_until: float = 0.36, noise: int = 40, seed: int = 7) -> np.ndarray:
    """Skin fills the left edge of the frame, reaching just into the center window."""
    rng = np.random.default_rng(seed)
    frame = np.empty((size, size, 3), dtype=np.float64)
    frame[:] = BACKGROUND
    frame[:, : int(size * skin_until)] = SKIN
    grain = rng.integers(-noise, noise + 1, size=(size, size, 1))
    return np.clip(frame + grain, 0, 255).astype(np.uint8)


def build_skin_checkerboard(size: int = 300) -> np.ndarray:
    """Alternating skin and black pixels: skin-toned but all hard edges."""
    yy, xx = np.mgrid[0:size, 0:size]
    frame = np.zeros((size, size, 3), dtype=np.uint8)
    frame[(xx + yy) % 2 == 0] = SKIN
    return frame


def scale_frame(frame: np.ndarray, factor: float) -> np.ndarray:
    return np.clip(np.round(frame.astype(np.float64) * factor), 0, 255).astype(np.uint8)


def uniform_frame(color: Tuple[int, int, int], size: int = 300) -> np.ndarray:
    frame = np.empty((size, size, 3), dtype=np.uint8)
    frame[:] = color
    return frame


def encode(frame: np.ndarray, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    Image.fromarray(frame).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def face_frame() -> np.ndarray:
    return build_face_frame()


@pytest.fixture
def low_light_face_frame(face_frame: np.ndarray) -> np.ndarray:
    return scale_frame(face_frame, LOW_LIGHT_FACTOR)


@pytest.fixture
def face_png(face_frame: np.ndarray) -> bytes:
    return encode(face_frame)


@pytest.fixture
def to_buffer() -> Callable[[np.ndarray], PixelBuffer]:
    return PixelBuffer.from_array


@pytest.fixture
def config() -> ValidatorConfig:
    return ValidatorConfig()


@pytest.fixture
def validator(config: ValidatorConfig) -> FaceImageValidator:
    return FaceImageValidator(config)


@pytest.fixture
def png() -> Callable[..., bytes]:
    return encode


@pytest.fixture
def uniform() -> Callable[..., np.ndarray]:
    return uniform_frame


@pytest.fixture
def scaled() -> Callable[[np.ndarray, float], np.ndarray]:
    return scale_frame
