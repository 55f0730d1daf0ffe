import pytest

from boxscan.curves import (CurveShape, classify_curve, count_rises_after_peak, decreases_from,
                            increases_before, max_index, never_decreases_before,
                            never_increases_after, never_increasing)


@pytest.mark.parametrize("values, shape", [
    ([1, 2, 3, 2, 1], CurveShape.CURVED),
    ([1, 2, 3, 4, 5], CurveShape.NOT_CURVED),
    ([], CurveShape.UNKNOWN),
    ([5, 5, 5, 5], CurveShape.NOT_CURVED),
    ([5, 4, 3, 2], CurveShape.NOT_CURVED),
    ([1, 3, 2, 3, 1], CurveShape.NOT_CURVED),
    ([7.0], CurveShape.UNKNOWN),
    ([float("nan"), float("inf")], CurveShape.UNKNOWN),
])
def test_classify(values, shape):
    assert classify_curve(values).shape is shape


def test_bad_entries_are_dropped_before_classifying():
    res = classify_curve([1, float("nan"), 2, 3, float("inf"), 2, 1])
    assert res.shape is CurveShape.CURVED
    assert res.max_index == 2


def test_facts_of_a_hump():
    res = classify_curve([1, 2, 3, 2, 1])
    assert res.max_index == 2
    assert res.rises_to_max and res.falls_after_max
    assert res.falls_from_max and res.rises_before_max
    assert res.is_humped
    assert res.shape.value == "humped"


def test_max_index_is_last_strict_rise():
    assert max_index([1, 2, 3, 2, 1]) == 2
    assert max_index([1, 3, 2, 3, 1]) == 3
    assert max_index([3, 3, 2]) == 0
    assert max_index([]) is None


def test_monotone_predicates():
    a = [1, 2, 3, 2, 1]
    assert never_decreases_before(a, 2)
    assert not never_decreases_before(a, 0)
    assert never_increases_after(a, 2)
    assert not never_increases_after(a, 4)
    assert decreases_from(a, 2)
    assert not decreases_from([1, 2, 3], 2)
    assert increases_before(a, 2)
    assert not increases_before(a, 1)


def test_never_increasing_tolerance():
    values = [1, 1.0001, 1, 1]
    assert never_increasing(values, 0.001)
    assert not never_increasing(values, 0.00001)
    assert never_increasing([], 0.0)
    assert never_increasing([3.0], 0.0)
    assert never_increasing([3, float("nan"), 2, 1], 0.0)


def test_rises_after_peak():
    assert count_rises_after_peak([1, 5, 2, 3, 1, 4]) == 2
    assert count_rises_after_peak([1, 2, 3, 2, 1]) == 0
    assert count_rises_after_peak([]) == 0


def test_classification_is_deterministic():
    curve = [0.2, 0.9, 1.4, 1.1, 0.3, 0.1]
    first = classify_curve(curve)
    second = classify_curve(curve)
    assert first == second
    assert first is not second


def test_missing_curve_is_rejected():
    with pytest.raises(ValueError):
        classify_curve(None)
