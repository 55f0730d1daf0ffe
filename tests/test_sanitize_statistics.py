import math

import numpy as np
import pytest

from boxscan.sanitize import filter_bad_entries, filter_bad_pairs
from boxscan.statistics import coefficient_of_variation, describe


def test_filter_keeps_finite_in_order():
    raw = [3.0, float("nan"), -1.0, float("inf"), 0.0, -float("inf"), 2.5]
    out = filter_bad_entries(raw)
    assert out.tolist() == [3.0, -1.0, 0.0, 2.5]
    assert filter_bad_entries(out).tolist() == out.tolist()
    # input untouched
    assert len(raw) == 7 and math.isnan(raw[1])


def test_filter_all_bad_is_empty():
    assert filter_bad_entries([float("nan"), float("inf")]).size == 0
    assert filter_bad_entries([]).size == 0


def test_filter_pairs_drops_either_side():
    x, y = filter_bad_pairs([1, 2, float("nan"), 4], [1, float("inf"), 3, 4])
    assert x.tolist() == [1.0, 4.0]
    assert y.tolist() == [1.0, 4.0]
    with pytest.raises(ValueError):
        filter_bad_pairs([1, 2], [1])


def test_missing_input_is_rejected():
    with pytest.raises(ValueError):
        filter_bad_entries(None)
    with pytest.raises(ValueError):
        filter_bad_pairs(None, [1.0])
    with pytest.raises(ValueError):
        filter_bad_pairs([1.0], None)
    with pytest.raises(ValueError):
        describe(None)


def test_describe_basic():
    st = describe([2.0, 4.0, float("nan"), 6.0])
    assert st.n == 3
    assert abs(st.mean - 4.0) < 1e-12
    assert abs(st.std - np.std([2.0, 4.0, 6.0])) < 1e-12
    assert abs(st.cv - st.std / 4.0) < 1e-12
    assert abs(st.cv_sq - st.cv ** 2) < 1e-12
    assert st.min == 2.0 and st.max == 6.0


def test_describe_not_computed():
    assert describe([]) is None
    assert describe([float("nan")]) is None
    assert coefficient_of_variation([]) is None


def test_zero_mean_has_no_cv():
    st = describe([-1.0, 1.0])
    assert st.mean == 0.0
    assert st.cv is None and st.cv_sq is None
