import pytest

from ask_data.core.aggregation import aggregate, extract_limit, to_number
from ask_data.models import QueryIntent

KV_ROWS = [{"k": "A", "v": 10}, {"k": "A", "v": 20}, {"k": "B", "v": 5}]


def test_sum_by_group():
    intent = QueryIntent(group_by_field="k", aggregate_field="v", aggregation_type="sum")
    assert aggregate(KV_ROWS, intent) == [{"k": "A", "total_v": 30}, {"k": "B", "total_v": 5}]


def test_avg_by_group():
    intent = QueryIntent(group_by_field="k", aggregate_field="v", aggregation_type="avg")
    assert aggregate(KV_ROWS, intent) == [{"k": "A", "avg_v": 15}, {"k": "B", "avg_v": 5}]


def test_count_by_group_sorted_descending():
    rows = [{"k": "B"}, {"k": "A"}, {"k": "A"}]
    intent = QueryIntent(group_by_field="k")
    assert aggregate(rows, intent) == [{"k": "A", "count": 2}, {"k": "B", "count": 1}]


def test_count_only_default():
    rows = [{"k": str(i)} for i in range(7)]
    intent = QueryIntent(group_by_field="   ")
    assert intent.is_grouped is False
    assert aggregate(rows, intent) == [{"count": 7}]


def test_ungrouped_sum_and_avg():
    assert aggregate(KV_ROWS, QueryIntent(aggregate_field="v", aggregation_type="sum")) == [{"total_v": 35}]
    result = aggregate(KV_ROWS, QueryIntent(aggregate_field="v", aggregation_type="avg"))
    assert result[0]["avg_v"] == pytest.approx(35 / 3)


def test_aggregate_name_is_lower_cased():
    rows = [{"Region": "N", "Cost": 2}]
    intent = QueryIntent(group_by_field="Region", aggregate_field="Cost", aggregation_type="sum")
    assert aggregate(rows, intent) == [{"Region": "N", "total_cost": 2}]


def test_truncates_to_default_cap():
    rows = [{"k": f"g{i}", "v": i} for i in range(37)]
    intent = QueryIntent(group_by_field="k", aggregate_field="v", aggregation_type="sum")
    result = aggregate(rows, intent)
    assert len(result) == 20
    assert result[0] == {"k": "g36", "total_v": 36}


def test_sql_limit_wins_over_cap():
    rows = [{"k": f"g{i}", "v": i} for i in range(37)]
    intent = QueryIntent(
        group_by_field="k", aggregate_field="v", aggregation_type="sum",
        sql="SELECT k, SUM(v) FROM dataset GROUP BY k ORDER BY 2 DESC limit 5",
    )
    assert [r["k"] for r in aggregate(rows, intent)] == ["g36", "g35", "g34", "g33", "g32"]
    assert len(aggregate(rows, intent.model_copy(update={"sql": "... LIMIT 30"}))) == 30


def test_non_numeric_values_contribute_zero():
    rows = [
        {"k": "A", "v": "n/a"},
        {"k": "A", "v": None},
        {"k": "B", "v": True},
        {"k": "B"},
        {"k": "C", "v": "7.5"},
    ]
    intent = QueryIntent(group_by_field="k", aggregate_field="v", aggregation_type="sum")
    assert aggregate(rows, intent) == [
        {"k": "C", "total_v": 7.5},
        {"k": "A", "total_v": 0},
        {"k": "B", "total_v": 0},
    ]


def test_missing_group_values_become_unknown():
    rows = [{"k": None, "v": 1}, {"k": "", "v": 2}, {"v": 3}]
    intent = QueryIntent(group_by_field="k", aggregate_field="v", aggregation_type="sum")
    assert aggregate(rows, intent) == [{"k": "Unknown", "total_v": 6}]


def test_ties_keep_discovery_order():
    rows = [{"k": "x", "v": 1}, {"k": "y", "v": 1}, {"k": "z", "v": 1}]
    intent = QueryIntent(group_by_field="k", aggregate_field="v", aggregation_type="sum")
    assert [r["k"] for r in aggregate(rows, intent)] == ["x", "y", "z"]


def test_group_keys_are_strings():
    rows = [{"year": 2023, "v": 1}, {"year": 2024, "v": 2}]
    intent = QueryIntent(group_by_field="year", aggregate_field="v", aggregation_type="sum")
    assert [r["year"] for r in aggregate(rows, intent)] == ["2024", "2023"]


@pytest.mark.parametrize("value, expected", [
    (5, 5.0),
    (2.5, 2.5),
    ("12.5 EUR", 12.5),
    ("-3", -3.0),
    ("abc", 0.0),
    (None, 0.0),
    (False, 0.0),
    (float("nan"), 0.0),
])
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_extract_limit():
    assert extract_limit("SELECT * FROM dataset LIMIT 10") == 10
    assert extract_limit("select a from dataset") is None
    assert extract_limit("") is None
