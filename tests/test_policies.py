import pytest

from riordino.domain.models import RoundingStrategy
from riordino.domain.policies import evaluate_slow_mover, round_order_qty, round_to_multiple


def test_round_to_multiple():
    assert round_to_multiple(10, 5) == 10
    assert round_to_multiple(11, 5) == 15
    assert round_to_multiple(3, 0) == 3


@pytest.mark.parametrize(
    "gap, min_qty, mult, expected_multiple, expected_min_then",
    [
        (2, 7, 5, 10, 7),
        (12, 1, 5, 15, 15),
        (3, 1, 1, 3, 3),
        (4, 10, 1, 10, 10),
    ],
)
def test_round_order_qty(gap, min_qty, mult, expected_multiple, expected_min_then):
    assert round_order_qty(gap, min_qty, mult, RoundingStrategy.TO_MULTIPLE) == expected_multiple
    assert round_order_qty(gap, min_qty, mult, RoundingStrategy.TO_MIN_THEN_MULTIPLE) == expected_min_then


def _check(**kw):
    base = dict(
        raw_qty_sold=1,
        effective_qty_sold=1,
        effective_value_sold=10,
        days_since_sale=200,
        qty_threshold=3,
        days_threshold=120,
        min_revenue_threshold=0,
    )
    base.update(kw)
    return evaluate_slow_mover(**base)


def test_slow_mover_needs_both_quantity_and_staleness():
    assert _check().flag
    assert not _check(effective_qty_sold=5).flag
    assert not _check(days_since_sale=120).flag


def test_revenue_condition_only_enriches_the_reason():
    check = _check(effective_value_sold=10, min_revenue_threshold=50)
    assert check.low_revenue
    assert "valore 10 < 50€" in check.reason

    not_slow = _check(effective_qty_sold=50, effective_value_sold=10, min_revenue_threshold=50)
    assert not_slow.low_revenue
    assert not not_slow.flag
    assert not_slow.reason == ""


def test_revenue_condition_disabled_by_zero_threshold():
    check = _check(effective_value_sold=0, min_revenue_threshold=0)
    assert not check.low_revenue
    assert "valore" not in check.reason
