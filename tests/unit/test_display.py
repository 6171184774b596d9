import pytest

from ask_data.core.display import chart_config_from_result, classify_display
from ask_data.core.insights import build_explanations
from ask_data.models import QueryIntent

GROUPED = QueryIntent(group_by_field="k", aggregate_field="v", aggregation_type="sum")
UNGROUPED = QueryIntent()


@pytest.mark.parametrize("query", ["", "filter and show all rows", "total cost by indication", "pie"])
def test_single_value_is_a_number(query):
    assert classify_display(query, UNGROUPED, [{"count": 5}]) == "number"
    assert classify_display(query, GROUPED, [{"total_v": 5}]) == "number"


@pytest.mark.parametrize("query", [
    "filter to cancer and show the rows",
    "Filter by region and LIST them",
    "filter and give me all treatments",
])
def test_listing_request_is_a_table(query):
    result = [{"k": "A", "total_v": 1}, {"k": "B", "total_v": 2}]
    assert classify_display(query, GROUPED, result) == "table"


def test_filter_without_listing_verb_is_not_a_table():
    result = [{"k": "A", "total_v": 1}, {"k": "B", "total_v": 2}]
    assert classify_display("filter by region", GROUPED, result) == "chart"


def test_grouped_is_always_a_chart():
    result = [{"k": f"g{i}", "total_v": i} for i in range(50)]
    assert classify_display("total v by k", GROUPED, result) == "chart"


def test_large_ungrouped_result_is_a_table():
    result = [{"a": i, "b": i} for i in range(25)]
    assert classify_display("show everything", UNGROUPED, result) == "table"
    assert classify_display("show everything", UNGROUPED, result, row_threshold=30) == "chart"


def test_default_is_a_chart():
    result = [{"a": 1, "b": 2}, {"a": 3, "b": 4}]
    assert classify_display("anything", UNGROUPED, result) == "chart"


def test_chart_config_uses_first_two_keys():
    config = chart_config_from_result([{"indication": "Cancer", "total_cost": 8000, "x": 1}], "pie")
    assert config.model_dump(by_alias=True) == {"type": "pie", "xField": "indication", "yField": "total_cost"}


def test_chart_config_needs_two_fields():
    assert chart_config_from_result([], "bar") is None
    assert chart_config_from_result([{"count": 3}], "bar") is None


def test_explanations_describe_choices():
    text = build_explanations(
        QueryIntent(group_by_field="age_group", aggregate_field="cost", aggregation_type="avg", chart_type="line"),
        "chart",
        [{"age_group": "a", "avg_cost": 1}, {"age_group": "b", "avg_cost": 2}],
    )
    assert 'Used AVG on "cost"' in text
    assert "different age group values" in text
    assert "line chart" in text
    assert "(2 categories)" in text


def test_explanations_for_single_number():
    text = build_explanations(UNGROUPED, "number", [{"count": 3}])
    assert "Aggregation Choice" not in text
    assert "single number" in text
