from riordino.domain.models import FullItemData, Item, ItemKey, ReplenishmentCalculation, SalesSnapshot
from riordino.usecases.analysis import analyze_codes, match_keys, split_codes
from riordino.usecases.reports import filter_items, kpi_summary, order_value, unit_value


def _data(item_id, code, qty=0, slow=False, sold=100.0, value=1000.0, **item_kw):
    item = Item(id=item_id, code=code, **item_kw)
    sale = SalesSnapshot(item_id=item_id, qty_sold_365=sold, value_sold_365=value)
    calc = ReplenishmentCalculation(item_id, sold / 365, 0, 0, 0, recommended_order_qty=qty, slow_mover_flag=slow)
    return FullItemData(item=item, sale=sale, calculation=calc)


class _FakeCatalog:
    def __init__(self, items):
        self.items = items

    def find_by_codes(self, codes):
        wanted = {c.strip().lower() for c in codes}
        return [d for d in self.items if d.code.lower() in wanted]

    def find_by_keys(self, keys):
        by_key = {d.key: d for d in self.items}
        return [by_key[k] for k in keys if k in by_key]


def test_unit_and_order_value():
    d = _data(1, "A1", qty=5, sold=10, value=25)
    assert unit_value(d) == 2.5
    assert order_value(d) == 12.5
    assert unit_value(_data(2, "B2", sold=0, value=50)) == 0.0
    assert unit_value(_data(3, "C3", sold=-4, value=-40)) == 0.0


def test_kpi_summary():
    items = [
        _data(1, "A1", qty=10, sold=100, value=200),
        _data(2, "B2", qty=0, slow=True),
        _data(3, "C3", qty=3, sold=4, value=10),
    ]
    kpi = kpi_summary(items)
    assert kpi == {
        "total_items": 3,
        "items_to_reorder": 2,
        "reorder_pct": 66.7,
        "order_value": 27.5,
        "slow_movers": 1,
    }


def test_kpi_summary_of_an_empty_catalog():
    assert kpi_summary([])["reorder_pct"] == 0.0


def test_filter_items():
    items = [
        _data(1, "A1", qty=2, description="Vite inox", ubicazione="S1"),
        _data(2, "B2", slow=True, description="Dado", precodice="X"),
        _data(3, "C3", qty=1, slow=True),
    ]
    assert [d.code for d in filter_items(items, "INOX")] == ["A1"]
    assert [d.code for d in filter_items(items, "x")] == ["A1", "B2"]
    assert [d.code for d in filter_items(items, only_slow_movers=True)] == ["B2", "C3"]
    assert [d.code for d in filter_items(items, only_recommended=True)] == ["A1", "C3"]
    assert [d.code for d in filter_items(items, only_slow_movers=True, only_recommended=True)] == ["C3"]
    assert len(filter_items(items, "  ")) == 3


def test_split_codes():
    assert split_codes("A1, B2;C3\n D4  ") == ["A1", "B2", "C3", "D4"]
    assert split_codes("") == []


def test_analyze_codes_reports_missing_codes_once():
    catalog = _FakeCatalog([_data(1, "A1"), _data(2, "B2")])
    results, not_found = analyze_codes(catalog, ["a1", " Z9 ", "", "z9", "B2"])
    assert [d.code for d in results] == ["A1", "B2"]
    assert not_found == ["Z9"]


def test_analyze_codes_with_nothing_to_look_up():
    assert analyze_codes(_FakeCatalog([]), ["", "  "]) == ([], [])


def test_match_keys():
    catalog = _FakeCatalog([_data(1, "A1", precodice="P"), _data(2, "B2")])
    found, missing = match_keys(catalog, [ItemKey("P", "A1"), ItemKey("", "A1"), ItemKey("", "B2")])
    assert [d.id for d in found] == [1, 2]
    assert missing == [ItemKey("", "A1")]
