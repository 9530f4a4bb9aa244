# facematch/storage.py
import base64
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from .codec import EmbeddingCodec
from .errors import StorageFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrollmentRecord:
    id: int
    name: str
    embedding: np.ndarray  # unit norm, written once
    portrait: bytes


class EnrollmentStore(ABC):
    """Interface the matching core uses to persist and read enrollments."""

    @abstractmethod
    def append(self, name: str, embedding: np.ndarray, portrait: bytes) -> int:
        """
        Persist one enrollment atomically and return its new id.

        Raises:
            StorageFailure: the underlying engine failed or timed out
        """

    @abstractmethod
    def list_all(self) -> List[EnrollmentRecord]:
        """
        Snapshot of every enrollment, in insertion order.
        Writes that commit while the snapshot is taken may be missing.
        """

    def count(self) -> int:
        return len(self.list_all())

    def close(self) -> None:
        pass


class JsonFileStorage(EnrollmentStore):
    """
    Enrollments kept in a single JSON document on disk.

    Writers are serialized by a lock; the document is replaced atomically so
    readers never observe a half-written file and never need the lock.
    """

    def __init__(self, path: str, codec: Optional[EmbeddingCodec] = None, timeout: float = 5.0):
        self.path = path
        self.codec = codec or EmbeddingCodec()
        self.timeout = timeout
        self._write_lock = threading.Lock()
        # Make sure data folder exists
        folder = os.path.dirname(os.path.abspath(path))
        os.makedirs(folder, exist_ok=True)

    def _read_db(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {"next_id": 1, "users": []}
        except ValueError as e:  # JSONDecodeError, UnicodeDecodeError
            logger.error(f"Enrollment file {self.path} is corrupted: {e}")
            raise StorageFailure(f"Enrollment file is corrupted: {e}")
        except OSError as e:
            logger.error(f"Error reading {self.path}: {e}")
            raise StorageFailure(f"Error reading enrollment file: {e}")
        if not isinstance(data, dict) or not isinstance(data.get("users"), list):
            raise StorageFailure("Enrollment file has an unexpected layout.")
        return data

    def _write_db(self, data: Dict[str, Any]) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=folder, prefix=".enrollments-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing {self.path}: {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageFailure(f"Error writing enrollment file: {e}")

    def append(self, name: str, embedding: np.ndarray, portrait: bytes) -> int:
        if not self._write_lock.acquire(timeout=self.timeout):
            raise StorageFailure(f"Timed out after {self.timeout}s waiting for the enrollment writer lock.")
        try:
            db = self._read_db()
            try:
                record_id = int(db.get("next_id", len(db["users"]) + 1))
            except (TypeError, ValueError) as e:
                raise StorageFailure(f"Enrollment file has an invalid next_id: {e}")
            db["users"].append({
                "id": record_id,
                "name": name,
                "embedding": self.codec.encode(embedding),
                "portrait": base64.b64encode(portrait).decode("utf-8"),
            })
            db["next_id"] = record_id + 1
            self._write_db(db)
        finally:
            self._write_lock.release()
        logger.info(f"Registered: {name} (ID: {record_id})")
        return record_id

    def list_all(self) -> List[EnrollmentRecord]:
        records = []
        for row in self._read_db()["users"]:
            try:
                portrait = base64.b64decode(row["portrait"])
                records.append(EnrollmentRecord(
                    id=int(row["id"]),
                    name=row["name"],
                    embedding=self.codec.decode(row["embedding"]),
                    portrait=portrait,
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise StorageFailure(f"Malformed enrollment row in {self.path}: {e}")
        return records
