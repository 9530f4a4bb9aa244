from __future__ import annotations

import pytest

from conftest import DIM, PNG, unit, with_similarity
from facematch.errors import DimensionMismatch
from facematch.matcher import BELOW_THRESHOLD, NO_ENROLLMENTS, Matched, MatchingEngine, NoMatch
from facematch.storage import JsonFileStorage


@pytest.fixture
def engine(store: JsonFileStorage) -> MatchingEngine:
    return MatchingEngine(store, dimension=DIM, threshold=0.8)


def test_empty_store_is_no_match(engine):
    result = engine.match(unit(1, 0, 0, 0))
    assert isinstance(result, NoMatch)
    assert result.reason == NO_ENROLLMENTS


def test_exact_query_matches_with_similarity_one(store, engine):
    v_a = unit(0.2, 0.9, -0.4, 0.1)
    store.append("Alice", v_a, PNG)
    result = engine.match(v_a)
    assert isinstance(result, Matched)
    assert result.record.name == "Alice"
    assert result.record.portrait == PNG
    assert result.similarity == pytest.approx(1.0)


def test_best_of_two_is_returned(store, engine):
    q = unit(1, 2, 3, 4)
    store.append("ninety", with_similarity(q, 0.90), PNG)
    store.append("ninety-five", with_similarity(q, 0.95), PNG)
    result = engine.match(q)
    assert isinstance(result, Matched)
    assert result.record.name == "ninety-five"
    assert result.similarity == pytest.approx(0.95)


def test_tie_goes_to_first_inserted(store, engine):
    q = unit(1, 2, 3, 4)
    v = with_similarity(q, 0.9)
    first_id = store.append("first", v, PNG)
    store.append("second", v, PNG)
    result = engine.match(q)
    assert isinstance(result, Matched)
    assert result.record.id == first_id
    assert result.record.name == "first"


def test_threshold_is_inclusive(store):
    q = unit(1, 0, 0, 0)
    store.append("edge", unit(1, 0, 0, 0), PNG)
    engine = MatchingEngine(store, dimension=DIM, threshold=1.0)
    assert isinstance(engine.match(q), Matched)


def test_below_threshold_is_no_match(store, engine):
    q = unit(0, 1, 0, 0)
    store.append("Bob", with_similarity(q, 0.5), PNG)
    result = engine.match(q)
    assert isinstance(result, NoMatch)
    assert result.reason == BELOW_THRESHOLD
    assert result.best_similarity == pytest.approx(0.5)


@pytest.mark.parametrize("threshold", [-1.0, 0.0, 0.8])
def test_zero_query_never_matches(store, threshold):
    store.append("Alice", unit(1, 1, 1, 1), PNG)
    engine = MatchingEngine(store, dimension=DIM, threshold=threshold)
    result = engine.match([0.0] * DIM)
    assert isinstance(result, NoMatch)
    assert result.reason == BELOW_THRESHOLD


def test_same_name_matches_per_record(store, engine):
    q = unit(1, 0, 0, 0)
    store.append("Sam", unit(0, 1, 0, 0), PNG)
    second = store.append("Sam", q, PNG)
    result = engine.match(q)
    assert isinstance(result, Matched)
    assert result.record.id == second


def test_query_dimension_is_checked(store, engine):
    with pytest.raises(DimensionMismatch):
        engine.match([1.0, 0.0])
