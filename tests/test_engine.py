from datetime import date, datetime, timedelta

from riordino.domain.engine import calculate
from riordino.domain.formulas import (
    IMPLEMENTED_RUN_RATE_METHODS,
    available_stock,
    cover_qty,
    daily_run_rate,
    days_since,
    is_run_rate_method_implemented,
)
from riordino.domain.models import Item, PolicyParams, RoundingStrategy, RunRateMethod, SalesSnapshot

NOW = datetime(2025, 6, 30, 10, 0)


def _item(**kw):
    base = dict(id=1, code="A1", lead_time_days=None, min_order_qty=1, order_multiple=1, current_stock=0)
    base.update(kw)
    return Item(**base)


def _sale(qty=365.0, value=3650.0, last_sale=None, **kw):
    return SalesSnapshot(
        item_id=1,
        qty_sold_365=qty,
        value_sold_365=value,
        last_sale_date=last_sale if last_sale is not None else NOW.date(),
        **kw,
    )


def _policy(**kw):
    base = dict(name="test", lead_time_default_days=2, safety_stock_days=7)
    base.update(kw)
    return PolicyParams(**base)


# -------------------------
# formulas
# -------------------------

def test_daily_run_rate_and_cover():
    assert daily_run_rate(365) == 1.0
    assert daily_run_rate(0) == 0.0
    assert cover_qty(2 / 365, 7) == 1
    assert cover_qty(1.0, 0) == 0


def test_available_stock_never_negative():
    assert available_stock(10, 3) == 7
    assert available_stock(2, 5) == 0


def test_days_since_uses_sentinel_without_date():
    assert days_since(None, NOW) == 9999
    assert days_since(date(2025, 6, 20), NOW) == 10


def test_only_simple_average_is_implemented():
    assert IMPLEMENTED_RUN_RATE_METHODS == {RunRateMethod.SIMPLE_AVG}
    assert is_run_rate_method_implemented("simple_avg")
    assert not is_run_rate_method_implemented(RunRateMethod.WEIGHTED_AVG)


# -------------------------
# engine
# -------------------------

def test_basic_recommendation_uses_policy_lead_time():
    calc = calculate(_item(), _sale(), _policy(), now=NOW)
    assert calc.daily_run_rate == 1.0
    assert calc.safety_stock == 7
    assert calc.lead_time_cover_qty == 2
    assert calc.forecast_60d == 60
    assert calc.recommended_order_qty == 69
    assert not calc.slow_mover_flag
    assert calc.slow_mover_reason == ""
    assert calc.calc_date == NOW


def test_zero_lead_time_is_an_override_not_a_fallback():
    calc = calculate(_item(lead_time_days=0), _sale(), _policy(), now=NOW)
    assert calc.lead_time_cover_qty == 0
    assert calc.recommended_order_qty == 67


def test_available_stock_reduces_the_gap():
    calc = calculate(_item(current_stock=50, reserved_qty=10), _sale(), _policy(), now=NOW)
    assert calc.recommended_order_qty == 69 - 40


def test_no_order_when_stock_covers_target():
    calc = calculate(_item(current_stock=500), _sale(), _policy(), now=NOW)
    assert calc.recommended_order_qty == 0


def test_rounding_strategies_diverge():
    # target 67 (lead 0), stock 65 -> gap 2; min 7, multiple 5
    item = _item(lead_time_days=0, current_stock=65, min_order_qty=7, order_multiple=5)
    to_multiple = calculate(item, _sale(), _policy(rounding_strategy=RoundingStrategy.TO_MULTIPLE), now=NOW)
    min_then = calculate(item, _sale(), _policy(rounding_strategy=RoundingStrategy.TO_MIN_THEN_MULTIPLE), now=NOW)
    assert to_multiple.recommended_order_qty == 10
    assert min_then.recommended_order_qty == 7


def test_reorder_blocked_wins_over_a_large_gap():
    calc = calculate(_item(reorder_blocked=True), _sale(qty=36500, value=1e6), _policy(), now=NOW)
    assert calc.recommended_order_qty == 0
    # the coverage numbers are still computed
    assert calc.forecast_60d == 6000


def test_slow_mover_zeroes_recommendation():
    sale = _sale(qty=2, value=10, last_sale=(NOW - timedelta(days=200)).date())
    policy = _policy(min_revenue_threshold=50)
    calc = calculate(_item(), sale, policy, now=NOW)
    assert calc.slow_mover_flag
    assert calc.recommended_order_qty == 0
    assert calc.slow_mover_reason.startswith("Poco movimentato:")
    assert "vendute 2/3 u." in calc.slow_mover_reason
    assert "ultima vendita 200/120gg fa" in calc.slow_mover_reason
    assert "valore 10 < 50€" in calc.slow_mover_reason


def test_low_quantity_alone_is_not_a_slow_mover():
    sale = _sale(qty=2, value=10, last_sale=(NOW - timedelta(days=5)).date())
    calc = calculate(_item(), sale, _policy(min_revenue_threshold=50), now=NOW)
    assert not calc.slow_mover_flag
    assert calc.recommended_order_qty == 3


def test_missing_last_sale_counts_as_stale():
    sale = SalesSnapshot(item_id=1, qty_sold_365=1, value_sold_365=5, last_sale_date=None)
    calc = calculate(_item(), sale, _policy(), now=NOW)
    assert calc.slow_mover_flag
    assert "9999/120gg" in calc.slow_mover_reason


def test_negative_sales_behave_like_zero():
    old = (NOW - timedelta(days=200)).date()
    negative = calculate(_item(), _sale(qty=-50, value=-100, last_sale=old), _policy(), now=NOW)
    zero = calculate(_item(), _sale(qty=0, value=0, last_sale=old), _policy(), now=NOW)
    assert negative.daily_run_rate == zero.daily_run_rate == 0.0
    assert negative.forecast_60d == zero.forecast_60d == 0
    assert negative.safety_stock == zero.safety_stock == 0
    assert negative.recommended_order_qty == zero.recommended_order_qty
    # the raw value is shown in the reason
    assert "vendute -50/3 u." in negative.slow_mover_reason


def test_unimplemented_methods_compute_the_simple_average():
    simple = calculate(_item(), _sale(), _policy(run_rate_method="simple_avg"), now=NOW)
    weighted = calculate(_item(), _sale(), _policy(run_rate_method="weighted_avg"), now=NOW)
    smoothing = calculate(_item(), _sale(), _policy(run_rate_method="exp_smoothing"), now=NOW)
    assert simple == weighted == smoothing
