# facematch/service.py
import logging
from typing import Hashable, Optional, Sequence

import numpy as np

from .aggregator import Sample, aggregate_samples
from .codec import EmbeddingCodec
from .config import ServiceConfig
from .errors import DegenerateVector, Throttled, ValidationError
from .matcher import THROTTLED, MatchingEngine, MatchResult, NoMatch
from .storage import EnrollmentStore, JsonFileStorage
from .storage_mongo import MongoStorage
from .throttle import DEFAULT_KEY, MatchThrottle
from .vector_utils import as_vector, normalize

logger = logging.getLogger(__name__)


def build_store(config: ServiceConfig) -> EnrollmentStore:
    codec = EmbeddingCodec.from_key_file(config.embedding_key_file)
    if config.storage_backend == "mongo":
        return MongoStorage(
            config.mongo_uri,
            config.mongo_db,
            config.mongo_collection,
            codec=codec,
            timeout=config.storage_timeout,
        )
    return JsonFileStorage(config.db_path, codec=codec, timeout=config.storage_timeout)


class FaceMatchService:
    """
    Owns the enrollment store, the matching engine and the auto-match throttle.
    One instance per process; created at startup and closed at shutdown.
    """

    def __init__(self, store: EnrollmentStore, config: Optional[ServiceConfig] = None,
                 throttle: Optional[MatchThrottle] = None):
        self.config = config or ServiceConfig()
        self.store = store
        self.engine = MatchingEngine(store, self.config.dimension, self.config.threshold)
        self.throttle = throttle or MatchThrottle(
            self.config.auto_match_interval, max_keys=self.config.auto_match_max_sessions
        )

    @classmethod
    def from_config(cls, config: Optional[ServiceConfig] = None) -> "FaceMatchService":
        config = config or ServiceConfig()
        return cls(build_store(config), config)

    # --- Enrollment ---

    def enroll(self, name: str, embedding: Sequence[float], portrait: bytes) -> int:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Missing required field: name.")
        if not portrait:
            raise ValidationError("Missing required field: portrait.")
        vec = as_vector(embedding, dimension=self.config.dimension)
        try:
            unit = normalize(vec)
        except DegenerateVector:
            raise ValidationError("Embedding has zero norm and cannot be enrolled.")
        return self.store.append(name, unit, portrait)

    def enroll_samples(self, name: str, samples: Sequence[Sample], portrait: bytes) -> int:
        try:
            descriptor = aggregate_samples(samples, dimension=self.config.dimension)
        except DegenerateVector:
            raise ValidationError("Averaged samples have zero norm and cannot be enrolled.")
        return self.enroll(name, descriptor, portrait)

    # --- Matching ---

    def match(self, embedding: Sequence[float]) -> MatchResult:
        return self.engine.match(embedding)

    def match_samples(self, samples: Sequence[Sample]) -> MatchResult:
        try:
            descriptor = aggregate_samples(samples, dimension=self.config.dimension)
        except DegenerateVector:
            descriptor = np.zeros(self.config.dimension)
        return self.engine.match(descriptor)

    def auto_match(self, embedding: Sequence[float], session: Optional[Hashable] = None) -> MatchResult:
        """
        Match on behalf of a capture loop. Rejected attempts are a soft no-op.
        """
        vec = as_vector(embedding, dimension=self.config.dimension)
        key = DEFAULT_KEY if session is None else session
        try:
            with self.throttle.guard(key):
                return self.engine.match(vec)
        except Throttled as e:
            logger.info(f"Auto-match throttled ({key}): {e}")
            return NoMatch(THROTTLED)

    # --- Lifecycle ---

    def enrollment_count(self) -> int:
        return self.store.count()

    def close(self) -> None:
        self.store.close()
