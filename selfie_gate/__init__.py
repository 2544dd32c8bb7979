"""selfie-gate: proof-of-presence checks for attendance selfies.

Rejects captures that are not a live, in-frame human face (screenshots,
photos of a screen, stock images, objects) while tolerating the dim and
over-bright shots typical of phones in the field.

This is a heuristic gate, not biometric matching: it never compares the
face to a stored identity.
"""

from .pipeline import FaceImageValidator, ValidationVerdict, ValidatorConfig, validate

__version__ = "0.1.0"

__all__ = ["FaceImageValidator", "ValidationVerdict", "ValidatorConfig", "validate", "__version__"]
