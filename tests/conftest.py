from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure repo root is on sys.path so tests can import `facematch` without installing.
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from facematch.config import ServiceConfig
from facematch.service import FaceMatchService
from facematch.storage import JsonFileStorage

DIM = 4
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def unit(*values) -> np.ndarray:
    v = np.asarray(values, dtype=np.float64)
    return v / np.linalg.norm(v)


def with_similarity(base: np.ndarray, target: float) -> np.ndarray:
    """A unit vector whose cosine with unit vector `base` is exactly `target`."""
    ortho = np.zeros_like(base)
    ortho[int(np.argmin(np.abs(base)))] = 1.0
    ortho = ortho - np.dot(ortho, base) * base
    ortho = ortho / np.linalg.norm(ortho)
    return target * base + np.sqrt(1.0 - target ** 2) * ortho


@pytest.fixture
def config(tmp_path: Path) -> ServiceConfig:
    return ServiceConfig(
        dimension=DIM,
        threshold=0.8,
        auto_match_interval=3.0,
        storage_backend="json",
        db_path=str(tmp_path / "enrollments.json"),
        embedding_key_file="",
        cors_origins=["http://localhost:3000"],
    )


@pytest.fixture
def store(config: ServiceConfig) -> JsonFileStorage:
    return JsonFileStorage(config.db_path, timeout=1.0)


@pytest.fixture
def service(store: JsonFileStorage, config: ServiceConfig) -> FaceMatchService:
    return FaceMatchService(store, config)
