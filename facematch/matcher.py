# facematch/matcher.py
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from .errors import DimensionMismatch
from .storage import EnrollmentRecord, EnrollmentStore
from .vector_utils import as_vector, cosine_similarity

logger = logging.getLogger(__name__)

NO_ENROLLMENTS = "no registrations available"
BELOW_THRESHOLD = "no matching face found"
THROTTLED = "throttled"


@dataclass(frozen=True)
class Matched:
    record: EnrollmentRecord
    similarity: float


@dataclass(frozen=True)
class NoMatch:
    reason: str
    best_similarity: Optional[float] = None


MatchResult = Union[Matched, NoMatch]


class MatchingEngine:
    """Exact linear-scan matcher over a store snapshot.

    Holds no lock: one `list_all` read, then pure in-memory computation.
    """

    def __init__(self, store: EnrollmentStore, dimension: int, threshold: float = 0.8):
        self.store = store
        self.dimension = dimension
        self.threshold = threshold

    def match(self, query: Sequence[float]) -> MatchResult:
        q = as_vector(query, dimension=self.dimension)

        records = self.store.list_all()
        if not records:
            return NoMatch(NO_ENROLLMENTS)

        # zero-norm query can never match, whatever the threshold
        if float(np.linalg.norm(q)) == 0.0:
            return NoMatch(BELOW_THRESHOLD)

        best_match: Optional[EnrollmentRecord] = None
        best_similarity = -1.0
        for record in records:
            if record.embedding.shape[0] != self.dimension:
                raise DimensionMismatch(self.dimension, record.embedding.shape[0])
            similarity = cosine_similarity(q, record.embedding)
            # strict: the first record wins ties
            if similarity > best_similarity:
                best_similarity = similarity
                best_match = record

        if best_match is not None and best_similarity >= self.threshold:
            logger.info(f"Match found: {best_match.name} (ID: {best_match.id}, similarity: {best_similarity:.4f})")
            return Matched(best_match, best_similarity)

        logger.info(f"No match among {len(records)} registrations (best similarity: {best_similarity:.4f})")
        return NoMatch(BELOW_THRESHOLD, best_similarity if best_match is not None else None)
