# facematch/config.py
# Central place for thresholds and constants
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

# --- Biometric Config ---
# Descriptor length produced by the capture model (face-api.js descriptors are 128-d)
EMBED_DIM = int(os.getenv("EMBED_DIM", "128"))

# Cosine similarity threshold for deciding a match (best >= threshold)
FACE_THRESHOLD = float(os.getenv("FACE_THRESHOLD", "0.8"))

# Minimum gap between two automatic match attempts
AUTO_MATCH_INTERVAL_MS = int(os.getenv("AUTO_MATCH_INTERVAL_MS", "3000"))
# Upper bound on capture sessions tracked by the auto-match throttle
AUTO_MATCH_MAX_SESSIONS = int(os.getenv("AUTO_MATCH_MAX_SESSIONS", "1024"))

# Sample collection window: frames averaged into one descriptor
SAMPLE_FRAME_COUNT = int(os.getenv("SAMPLE_FRAME_COUNT", "5"))
SAMPLE_INTERVAL_MS = int(os.getenv("SAMPLE_INTERVAL_MS", "200"))

# --- Storage Config ---
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "json")  # "json" or "mongo"
DB_PATH = os.getenv("DB_PATH", "data/enrollments.json")
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "face_db")
MONGO_COLLECTION = os.getenv("MONGO_COLLECTION", "users")
STORAGE_TIMEOUT_MS = int(os.getenv("STORAGE_TIMEOUT_MS", "5000"))

# Fernet key used to encrypt stored embeddings. Empty disables encryption.
# In production: use secure key management (Vault/KMS) and never commit keys.
EMBEDDING_KEY_FILE = os.getenv("EMBEDDING_KEY_FILE", "")

# --- API Config ---
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass
class ServiceConfig:
    dimension: int = EMBED_DIM
    threshold: float = FACE_THRESHOLD
    auto_match_interval: float = AUTO_MATCH_INTERVAL_MS / 1000.0
    auto_match_max_sessions: int = AUTO_MATCH_MAX_SESSIONS
    sample_frame_count: int = SAMPLE_FRAME_COUNT
    sample_interval: float = SAMPLE_INTERVAL_MS / 1000.0
    storage_backend: str = STORAGE_BACKEND
    db_path: str = DB_PATH
    mongo_uri: str = MONGO_URI
    mongo_db: str = MONGO_DB
    mongo_collection: str = MONGO_COLLECTION
    storage_timeout: float = STORAGE_TIMEOUT_MS / 1000.0
    embedding_key_file: str = EMBEDDING_KEY_FILE
    cors_origins: List[str] = field(default_factory=lambda: list(CORS_ORIGINS))

    def __post_init__(self):
        if self.dimension <= 0:
            raise ValueError(f"dimension must be positive, got {self.dimension}")
        if not -1.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must lie in [-1, 1], got {self.threshold}")
        if self.auto_match_interval < 0:
            raise ValueError("auto_match_interval must not be negative")
        if self.auto_match_max_sessions < 1:
            raise ValueError("auto_match_max_sessions must be at least 1")
        if self.storage_backend not in ("json", "mongo"):
            raise ValueError(f"Unknown storage backend: {self.storage_backend}")
