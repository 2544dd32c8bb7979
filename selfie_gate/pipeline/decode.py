"""Image loading: encoded bytes / base64 -> RGBA pixel buffer.

This module enforces a single decode path and implements:
- base64 and data URI unwrapping (the mobile client posts data URIs)
- file integrity checks
- supported format allowlist
- EXIF orientation application
- RGBA channel order

Decoding sits behind the `PixelSampler` interface. Runtimes that cannot
decode use `UnsupportedPixelSampler`, which fails closed with a distinct
reason instead of letting an unchecked photo through.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
from PIL import Image, ImageOps

from .config import LoaderConfig
from .reason_codes import CODES


logger = logging.getLogger(__name__)

EncodedImage = Union[bytes, bytearray, str]

_DATA_URI = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,", re.IGNORECASE)


class DecodeError(ValueError):
    def __init__(self, message: str, reason_code: str = CODES.INVALID_IMAGE):
        super().__init__(message)
        self.reason_code = reason_code


class PlatformUnsupported(RuntimeError):
    def __init__(self, message: str = "No image decoding capability on this runtime"):
        super().__init__(message)
        self.reason_code = CODES.PLATFORM_UNSUPPORTED


class PipelineInvariantError(RuntimeError):
    def __init__(self, message: str):
        super().__init__(message)
        self.reason_code = CODES.PIPELINE_INVARIANT_FAIL


@dataclass(frozen=True)
class PixelBuffer:
    """Decoded frame, RGBA uint8, row-major (height, width, 4)."""

    width: int
    height: int
    samples: np.ndarray

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise PipelineInvariantError(f"Empty frame: {self.width}x{self.height}")
        if self.samples.dtype != np.uint8:
            raise PipelineInvariantError(f"Expected uint8 samples, got {self.samples.dtype}")
        if self.samples.size != self.width * self.height * 4 or self.samples.shape != (self.height, self.width, 4):
            raise PipelineInvariantError(
                f"Sample buffer {self.samples.shape} does not match {self.width}x{self.height} RGBA"
            )
        self.samples.setflags(write=False)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "PixelBuffer":
        """Wrap an (H, W, 3) RGB or (H, W, 4) RGBA uint8 array."""
        arr = np.asarray(arr)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise PipelineInvariantError(f"Expected HxWx3 or HxWx4 array, got shape {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=2)
        samples = np.ascontiguousarray(arr, dtype=np.uint8).copy()
        return cls(width=samples.shape[1], height=samples.shape[0], samples=samples)

    @property
    def rgb(self) -> np.ndarray:
        return self.samples[..., :3]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


def unwrap_encoded(image: EncodedImage) -> bytes:
    """Return raw encoded bytes; strings are treated as (data URI) base64."""
    if isinstance(image, (bytes, bytearray)):
        data = bytes(image)
    elif isinstance(image, str):
        payload = _DATA_URI.sub("", image.strip(), count=1)
        payload = "".join(payload.split())
        padding = len(payload) % 4
        if padding:
            payload += "=" * (4 - padding)
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Invalid base64 image: {e}") from e
    else:
        raise DecodeError(f"Unsupported image payload type: {type(image).__name__}")

    if not data:
        raise DecodeError("Empty image payload")
    return data


def detect_format(pil_image: Image.Image) -> str:
    fmt = (pil_image.format or "").lower()
    return "jpeg" if fmt == "jpg" else fmt


def decode_image_bytes(data: bytes, cfg: LoaderConfig) -> PixelBuffer:
    """Decode bytes into an RGBA PixelBuffer.

    Raises DecodeError with a reason code on failure.
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except Exception as e:
        raise DecodeError(f"Corrupt/invalid image: {e}") from e

    fmt = detect_format(img)
    if fmt not in cfg.allowed_formats:
        raise DecodeError(f"Unsupported format: {img.format}")

    try:
        img = ImageOps.exif_transpose(img)
        arr = np.array(img.convert("RGBA"), dtype=np.uint8)
    except Exception as e:
        raise DecodeError(f"Unreadable image orientation/pixels: {e}") from e

    if arr.ndim != 3 or arr.shape[2] != 4:
        raise PipelineInvariantError(f"Decoded image is not RGBA: {arr.shape}")

    return PixelBuffer(width=arr.shape[1], height=arr.shape[0], samples=arr)


class PixelSampler:
    """Capability interface: turn an encoded image into pixels."""

    name = "base"

    def load(self, image: EncodedImage) -> PixelBuffer:
        raise NotImplementedError


class PillowPixelSampler(PixelSampler):
    name = "pillow"

    def __init__(self, cfg: LoaderConfig = LoaderConfig()):
        self.cfg = cfg

    def load(self, image: EncodedImage) -> PixelBuffer:
        buffer = decode_image_bytes(unwrap_encoded(image), self.cfg)
        logger.debug("Decoded %dx%d frame", buffer.width, buffer.height)
        return buffer


class UnsupportedPixelSampler(PixelSampler):
    name = "unsupported"

    def load(self, image: EncodedImage) -> PixelBuffer:
        raise PlatformUnsupported()


def get_sampler(backend: str = "pillow", cfg: LoaderConfig = LoaderConfig()) -> PixelSampler:
    if backend == "pillow":
        return PillowPixelSampler(cfg)
    if backend == "unsupported":
        return UnsupportedPixelSampler()
    raise ValueError(f"Unknown sampler backend: {backend}")
