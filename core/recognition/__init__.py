"""Recognition: backend contract, enrollment and matching."""

from .backend import (
    BoundingBox,
    Detection,
    LabeledEmbedding,
    RecognitionBackend,
    RecognitionError,
)
from .matcher import DEFAULT_DISTANCE_THRESHOLD, UNKNOWN_LABEL, FaceMatcher, MatchResult
from .enrollment import (
    EnrollmentLoader,
    Identity,
    RosterError,
    load_image,
    load_roster,
    roster_from_faces_dir,
    validate_roster,
)

__all__ = [
    'BoundingBox',
    'Detection',
    'LabeledEmbedding',
    'RecognitionBackend',
    'RecognitionError',
    'DEFAULT_DISTANCE_THRESHOLD',
    'UNKNOWN_LABEL',
    'FaceMatcher',
    'MatchResult',
    'EnrollmentLoader',
    'Identity',
    'RosterError',
    'load_image',
    'load_roster',
    'roster_from_faces_dir',
    'validate_roster',
]
