# facematch/errors.py


class FaceMatchError(Exception):
    """Base class for every error raised by the matching core."""


class ValidationError(FaceMatchError):
    """Missing or malformed input. Raised before any store access."""


class DimensionMismatch(ValidationError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Embedding dimension mismatch: expected {expected}, got {actual}.")
        self.expected = expected
        self.actual = actual


class DegenerateVector(FaceMatchError):
    """Zero-norm vector. Never a match."""


class InsufficientSamples(FaceMatchError):
    """No usable capture sample was collected; the caller should try again."""


class Throttled(FaceMatchError):
    """An automatic match attempt was rejected by the throttle."""


class StorageFailure(FaceMatchError):
    """I/O failure (or timeout) in the enrollment store."""
