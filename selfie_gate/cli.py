#!/usr/bin/env python3
"""Validate a selfie from the command line.

Usage:
    selfie-gate photo.jpg
    selfie-gate photo.jpg --config configs/validator.yaml --json
    selfie-gate photo.b64 --base64 --verbose

Exit code 0 = accepted, 1 = rejected, 2 = unreadable image
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .pipeline import (
    DecodeError,
    FaceImageValidator,
    PlatformUnsupported,
    ValidationVerdict,
    ValidatorConfig,
    get_sampler,
    load_config,
)
from .pipeline.reason_codes import message_for


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Proof-of-presence selfie validation")
    parser.add_argument("image", type=Path, help="Encoded image file (JPEG/PNG/WebP/...)")
    parser.add_argument("--base64", action="store_true", help="File holds base64 text or a data URI")
    parser.add_argument("--config", type=Path, default=None, help="YAML threshold overrides")
    parser.add_argument("--seed", type=int, default=None, help="Override the sampling seed")
    parser.add_argument("--backend", type=str, default="pillow", choices=["pillow", "unsupported"])
    parser.add_argument("--json", action="store_true", help="Print the full stage report as JSON")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else ValidatorConfig()
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 2
    if args.seed is not None:
        config = replace(config, seed=args.seed)

    if not args.image.exists():
        print(f"ERROR: Image not found: {args.image}")
        return 2

    try:
        payload = args.image.read_text(encoding="utf-8") if args.base64 else args.image.read_bytes()
    except UnicodeDecodeError:
        print(f"ERROR: {args.image} is not base64 text")
        return 2
    validator = FaceImageValidator(config, get_sampler(args.backend, config.loader))

    try:
        buffer = validator.load(payload)
    except DecodeError as e:
        print(message_for(e.reason_code))
        return 2
    except PlatformUnsupported as e:
        logger.warning("%s", e)
        report = None
        verdict = ValidationVerdict.rejected(e.reason_code, message_for(e.reason_code), detected_face=False)
    else:
        report = validator.inspect(buffer)
        verdict = report.verdict

    if args.json:
        body = report.to_dict() if report is not None else {"verdict": verdict.to_dict()}
        print(json.dumps(body, indent=2, default=float))
    elif verdict.valid:
        print(f"✓ ACCEPTED (confidence={verdict.confidence:.2f}, live={verdict.is_live})")
    else:
        print(f"✗ REJECTED [{verdict.reason_code}] {verdict.error_reason}")

    return 0 if verdict.valid else 1


if __name__ == "__main__":
    sys.exit(main())
