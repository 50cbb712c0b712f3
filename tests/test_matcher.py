import math

import pytest

from core.recognition import FaceMatcher, LabeledEmbedding, MatchResult, UNKNOWN_LABEL
from helpers import vec


def _labeled():
    # distance from origin: A = 0.3, B = 0.8
    return [
        LabeledEmbedding("A", vec(0.3, 0.0, 0.0)),
        LabeledEmbedding("B", vec(0.0, 0.8, 0.0)),
    ]


def test_returns_closest_label_within_threshold():
    matcher = FaceMatcher(_labeled(), distance_threshold=0.6)

    result = matcher.find_best_match(vec(0.0, 0.0, 0.0))

    assert result.label == "A"
    assert result.distance == pytest.approx(0.3)


def test_rejects_when_closest_is_beyond_threshold():
    matcher = FaceMatcher(_labeled(), distance_threshold=0.2)

    result = matcher.find_best_match(vec(0.0, 0.0, 0.0))

    assert result.label == UNKNOWN_LABEL
    assert result.is_unknown
    assert result.distance == pytest.approx(0.3)


def test_distance_equal_to_threshold_is_accepted():
    matcher = FaceMatcher([LabeledEmbedding("A", vec(0.5, 0.0))], distance_threshold=0.5)

    assert matcher.find_best_match(vec(0.0, 0.0)).label == "A"


def test_empty_labeled_set_is_always_unknown():
    matcher = FaceMatcher([], distance_threshold=0.6)

    result = matcher.find_best_match(vec(0.0, 0.0, 0.0))

    assert result.label == UNKNOWN_LABEL
    assert math.isinf(result.distance)


def test_ties_go_to_first_enrolled_label():
    labeled = [
        LabeledEmbedding("first", vec(0.1, 0.0)),
        LabeledEmbedding("second", vec(-0.1, 0.0)),
    ]
    matcher = FaceMatcher(labeled)

    assert matcher.find_best_match(vec(0.0, 0.0)).label == "first"
    assert FaceMatcher(list(reversed(labeled))).find_best_match(vec(0.0, 0.0)).label == "second"


def test_same_input_gives_same_result():
    queries = [vec(0.1, 0.2, 0.0), vec(0.0, 0.7, 0.1), vec(2.0, 2.0, 2.0)]

    first = [FaceMatcher(_labeled()).find_best_match(q) for q in queries]
    second = [FaceMatcher(_labeled()).find_best_match(q) for q in queries]

    assert first == second


def test_embedding_size_mismatch_raises():
    matcher = FaceMatcher(_labeled())

    with pytest.raises(ValueError):
        matcher.find_best_match(vec(0.0, 0.0))


def test_match_result_caption():
    assert str(MatchResult("Shilpi", 0.4567)) == "Shilpi (0.46)"


def test_labeled_embedding_is_read_only():
    item = LabeledEmbedding("A", [0.1, 0.2])

    with pytest.raises(ValueError):
        item.embedding[0] = 1.0
