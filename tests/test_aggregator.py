from __future__ import annotations

import numpy as np
import pytest

from facematch.aggregator import aggregate_samples, capture_descriptor, collect_samples
from facematch.errors import DegenerateVector, DimensionMismatch, InsufficientSamples
from facematch.vector_utils import normalize


def test_identical_samples_equal_single_normalized_sample():
    sample = [0.5, -1.0, 2.0, 0.25]
    out = aggregate_samples([sample] * 5)
    np.testing.assert_allclose(out, normalize(sample))


def test_mean_is_taken_before_normalizing():
    out = aggregate_samples([[2.0, 0.0], [0.0, 2.0]])
    np.testing.assert_allclose(out, normalize([1.0, 1.0]))


def test_one_absent_slot_of_five_still_succeeds():
    samples = [[1.0, 0.0, 0.0], None, [1.0, 0.2, 0.0], [0.9, 0.0, 0.1], [1.1, -0.1, 0.0]]
    out = aggregate_samples(samples, dimension=3)
    expected = normalize(np.mean([s for s in samples if s is not None], axis=0))
    np.testing.assert_allclose(out, expected)


def test_all_slots_absent_raises():
    with pytest.raises(InsufficientSamples):
        aggregate_samples([None] * 5)
    with pytest.raises(InsufficientSamples):
        aggregate_samples([])


def test_samples_with_different_lengths_raise():
    with pytest.raises(DimensionMismatch):
        aggregate_samples([[1.0, 0.0], [1.0, 0.0, 0.0]])
    with pytest.raises(DimensionMismatch):
        aggregate_samples([[1.0, 0.0]], dimension=3)


def test_opposite_samples_are_degenerate():
    with pytest.raises(DegenerateVector):
        aggregate_samples([[1.0, 0.0], [-1.0, 0.0]])


def test_collect_samples_skips_failed_and_ambiguous_captures():
    frames = iter([
        [[1.0, 0.0]],                 # one face
        [],                           # no face
        RuntimeError("camera busy"),  # capture failure
        [[1.0, 0.0], [0.0, 1.0]],     # two faces
        [[0.0, 1.0]],
    ])

    def capture():
        frame = next(frames)
        if isinstance(frame, Exception):
            raise frame
        return frame

    sleeps = []
    slots = collect_samples(capture, frame_count=5, interval=0.2, sleep=sleeps.append)
    assert slots == [[1.0, 0.0], None, None, None, [0.0, 1.0]]
    assert sleeps == [0.2] * 4


def test_capture_descriptor_with_no_faces_raises():
    with pytest.raises(InsufficientSamples):
        capture_descriptor(lambda: [], frame_count=3, sleep=lambda _: None)
