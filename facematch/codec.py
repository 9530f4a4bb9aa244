# facematch/codec.py
import base64
import binascii
import logging
import os
from typing import Optional

import numpy as np
from cryptography.fernet import Fernet, InvalidToken

from .errors import StorageFailure

logger = logging.getLogger(__name__)

# Fixed-width little-endian float64
EMBEDDING_DTYPE = np.dtype("<f8")


def load_fernet(key_file: str) -> Fernet:
    """Load the Fernet key from `key_file`, generating it on first use."""
    key_dir = os.path.dirname(key_file)
    if key_dir:
        os.makedirs(key_dir, exist_ok=True)
    if not os.path.exists(key_file):
        fernet_key = Fernet.generate_key()
        with open(key_file, "wb") as kf:
            kf.write(fernet_key)
        logger.info(f"Generated new embedding key at {key_file}")
    else:
        with open(key_file, "rb") as kf:
            fernet_key = kf.read()
    return Fernet(fernet_key)


class EmbeddingCodec:
    """
    Serializes embeddings to base64 text for storage, optionally Fernet-encrypted.
    """

    def __init__(self, fernet: Optional[Fernet] = None):
        self.fernet = fernet

    @classmethod
    def from_key_file(cls, key_file: str) -> "EmbeddingCodec":
        if not key_file:
            return cls()
        return cls(load_fernet(key_file))

    @property
    def encrypted(self) -> bool:
        return self.fernet is not None

    def encode(self, embedding: np.ndarray) -> str:
        raw = np.asarray(embedding, dtype=EMBEDDING_DTYPE).tobytes()
        if self.fernet is not None:
            raw = self.fernet.encrypt(raw)
        return base64.b64encode(raw).decode("utf-8")

    def decode(self, text: str) -> np.ndarray:
        try:
            raw = base64.b64decode(text, validate=True)
            if self.fernet is not None:
                raw = self.fernet.decrypt(raw)
        except (binascii.Error, ValueError, TypeError) as e:
            raise StorageFailure(f"Stored embedding is not valid base64: {e}")
        except InvalidToken:
            raise StorageFailure("Stored embedding could not be decrypted with the configured key.")
        if len(raw) % EMBEDDING_DTYPE.itemsize != 0:
            raise StorageFailure(f"Stored embedding has a truncated payload ({len(raw)} bytes).")
        return np.frombuffer(raw, dtype=EMBEDDING_DTYPE).astype(np.float64)
