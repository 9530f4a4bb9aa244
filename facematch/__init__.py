"""Face enrollment and similarity matching service.

Descriptors come from an external capture model; this package averages
samples, stores enrollments and decides matches by cosine similarity.
"""
from .errors import (
    DegenerateVector,
    DimensionMismatch,
    FaceMatchError,
    InsufficientSamples,
    StorageFailure,
    Throttled,
    ValidationError,
)
from .matcher import Matched, MatchingEngine, NoMatch
from .service import FaceMatchService

__all__ = [
    "DegenerateVector",
    "DimensionMismatch",
    "FaceMatchError",
    "FaceMatchService",
    "InsufficientSamples",
    "Matched",
    "MatchingEngine",
    "NoMatch",
    "StorageFailure",
    "Throttled",
    "ValidationError",
]
