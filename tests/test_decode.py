"""Loader tests: payload unwrapping, decode failures, sampler backends."""

from __future__ import annotations

import base64

import numpy as np
import pytest
from PIL import ImageOps

from selfie_gate.pipeline import (
    CODES,
    DecodeError,
    FaceImageValidator,
    PipelineInvariantError,
    PixelBuffer,
    PlatformUnsupported,
    UnsupportedPixelSampler,
    ValidatorConfig,
    get_sampler,
    unwrap_encoded,
)
from selfie_gate.pipeline.config import LoaderConfig
from selfie_gate.pipeline.decode import decode_image_bytes


def test_decode_png_to_rgba(face_frame, face_png):
    buffer = decode_image_bytes(face_png, LoaderConfig())
    assert (buffer.width, buffer.height) == (300, 300)
    assert buffer.samples.shape == (300, 300, 4)
    assert buffer.samples.dtype == np.uint8
    assert np.array_equal(buffer.rgb, face_frame)
    assert (buffer.samples[..., 3] == 255).all()


def test_buffer_is_read_only(face_png):
    buffer = decode_image_bytes(face_png, LoaderConfig())
    with pytest.raises(ValueError):
        buffer.samples[0, 0, 0] = 1


def test_base64_and_data_uri_payloads_decode_identically(face_png):
    encoded = base64.b64encode(face_png).decode("ascii")
    sampler = get_sampler("pillow")

    raw = sampler.load(face_png)
    from_b64 = sampler.load(encoded)
    from_uri = sampler.load(f"data:image/png;base64,{encoded}")

    assert np.array_equal(raw.samples, from_b64.samples)
    assert np.array_equal(raw.samples, from_uri.samples)


def test_missing_base64_padding_is_repaired(face_png):
    encoded = base64.b64encode(face_png).decode("ascii").rstrip("=")
    assert unwrap_encoded(encoded) == face_png


def test_invalid_base64_raises_decode_error():
    with pytest.raises(DecodeError) as exc:
        unwrap_encoded("data:image/png;base64,@@not*base64@@")
    assert exc.value.reason_code == CODES.INVALID_IMAGE


@pytest.mark.parametrize("payload", [b"", b"definitely not an image", b"\x89PNG\r\n\x1a\n" + b"\x00" * 32])
def test_corrupt_bytes_raise_decode_error(payload):
    with pytest.raises(DecodeError):
        get_sampler("pillow").load(payload)


def test_format_outside_allowlist_is_rejected(face_frame, png):
    tiff = png(face_frame, fmt="TIFF")
    with pytest.raises(DecodeError, match="Unsupported format"):
        decode_image_bytes(tiff, LoaderConfig())


def test_jpeg_is_accepted(face_frame, png):
    buffer = decode_image_bytes(png(face_frame, fmt="JPEG"), LoaderConfig())
    assert buffer.size == (300, 300)


def test_buffer_invariant_violation_raises():
    with pytest.raises(PipelineInvariantError):
        PixelBuffer(width=10, height=10, samples=np.zeros((10, 10, 3), dtype=np.uint8))
    with pytest.raises(PipelineInvariantError):
        PixelBuffer(width=12, height=10, samples=np.zeros((10, 10, 4), dtype=np.uint8))


def test_from_array_adds_opaque_alpha(face_frame):
    buffer = PixelBuffer.from_array(face_frame)
    assert buffer.samples.shape == (300, 300, 4)
    assert (buffer.samples[..., 3] == 255).all()


def test_unsupported_sampler_raises_platform_unsupported(face_png):
    with pytest.raises(PlatformUnsupported):
        UnsupportedPixelSampler().load(face_png)


def test_unsupported_platform_fails_closed(face_png):
    validator = FaceImageValidator(ValidatorConfig(), get_sampler("unsupported"))
    verdict = validator.validate_sync(face_png)
    assert verdict.valid is False
    assert verdict.reason_code == CODES.PLATFORM_UNSUPPORTED
    assert "different device" in verdict.error_reason


def test_unknown_backend():
    with pytest.raises(ValueError):
        get_sampler("canvas")


def test_orientation_failure_raises_decode_error(face_png, monkeypatch):
    def broken_exif(image):
        raise SyntaxError("corrupt EXIF block")

    monkeypatch.setattr(ImageOps, "exif_transpose", broken_exif)
    with pytest.raises(DecodeError) as exc:
        decode_image_bytes(face_png, LoaderConfig())
    assert exc.value.reason_code == CODES.INVALID_IMAGE
