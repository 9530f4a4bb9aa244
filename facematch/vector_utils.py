# facematch/vector_utils.py
from typing import Optional, Sequence

import numpy as np

from .errors import DegenerateVector, DimensionMismatch, ValidationError


def as_vector(values: Sequence[float], dimension: Optional[int] = None) -> np.ndarray:
    """
    Coerce a sequence of numbers into a 1-D float64 array.
    Raises DimensionMismatch when `dimension` is given and the length differs.
    """
    try:
        vec = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Embedding must be a sequence of numbers: {e}")
    if vec.ndim != 1:
        raise ValidationError(f"Embedding must be one-dimensional, got shape {vec.shape}.")
    if not np.all(np.isfinite(vec)):
        raise ValidationError("Embedding contains non-finite values.")
    if dimension is not None and vec.shape[0] != dimension:
        raise DimensionMismatch(dimension, vec.shape[0])
    return vec


def normalize(v: Sequence[float]) -> np.ndarray:
    """
    Scale a vector to unit Euclidean norm.
    Raises DegenerateVector when the norm is zero.
    """
    vec = np.asarray(v, dtype=np.float64)
    norm = float(np.linalg.norm(vec))
    if norm == 0.0 or not np.isfinite(norm):
        raise DegenerateVector("Cannot normalize a zero-norm vector.")
    return vec / norm


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Compute cosine similarity between two 1-D vectors.
    Returns -1.0 when either side has zero norm so a degenerate vector can never pass a threshold.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatch(a.shape[0], b.shape[0])
    den = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if den == 0:
        return -1.0
    num = float(np.dot(a, b))
    return float(np.clip(num / den, -1.0, 1.0))
