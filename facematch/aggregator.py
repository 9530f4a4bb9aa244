# facematch/aggregator.py
import logging
import time
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np

from .errors import DimensionMismatch, InsufficientSamples
from .vector_utils import as_vector, normalize

logger = logging.getLogger(__name__)

Sample = Optional[Sequence[float]]
# External extraction model: returns every descriptor found in one capture
CaptureFn = Callable[[], Sequence[Sequence[float]]]


def aggregate_samples(samples: Iterable[Sample], dimension: Optional[int] = None) -> np.ndarray:
    """
    Average the valid capture samples and L2-normalize the result.

    Absent samples (None) are skipped, not zero-filled. All remaining samples
    must share one length (and match `dimension` when given).

    Raises:
        InsufficientSamples: no valid sample was collected
        DimensionMismatch: samples disagree in length
        DegenerateVector: the mean vector has zero norm
    """
    valid: List[np.ndarray] = []
    for sample in samples:
        if sample is None:
            continue
        vec = as_vector(sample)
        expected = dimension if dimension is not None else (valid[0].shape[0] if valid else None)
        if expected is not None and vec.shape[0] != expected:
            raise DimensionMismatch(expected, vec.shape[0])
        valid.append(vec)

    if not valid:
        raise InsufficientSamples("No face samples were captured. Please try again.")

    mean = np.mean(np.stack(valid), axis=0)
    return normalize(mean)


def collect_samples(
    capture: CaptureFn,
    frame_count: int = 5,
    interval: float = 0.2,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Sample]:
    """
    Run the capture callable `frame_count` times, `interval` seconds apart.

    A capture that fails, finds no face or finds several faces leaves its slot empty.
    """
    slots: List[Sample] = []
    for i in range(frame_count):
        try:
            found = list(capture())
        except Exception as e:
            logger.warning(f"Capture {i + 1}/{frame_count} failed: {e}")
            found = []
        if len(found) == 1:
            slots.append(found[0])
        else:
            if len(found) > 1:
                logger.info(f"Capture {i + 1}/{frame_count}: {len(found)} faces, only one allowed")
            slots.append(None)
        if i < frame_count - 1:
            sleep(interval)
    return slots


def capture_descriptor(
    capture: CaptureFn,
    frame_count: int = 5,
    interval: float = 0.2,
    dimension: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> np.ndarray:
    slots = collect_samples(capture, frame_count=frame_count, interval=interval, sleep=sleep)
    return aggregate_samples(slots, dimension=dimension)
