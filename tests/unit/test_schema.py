from ask_data.core.schema import describe_schema, infer_schema

VALID_TYPES = {"string", "number", "date", "boolean"}


def test_classifies_first_row_values():
    rows = [{
        "name": "Cancer",
        "cost": 5000,
        "price": "12.5",
        "date": "2023-01-15",
        "active": True,
        "note": None,
    }]
    schema = infer_schema(rows)
    assert [(c.name, c.type) for c in schema] == [
        ("name", "string"),
        ("cost", "number"),
        ("price", "number"),
        ("date", "date"),
        ("active", "boolean"),
        ("note", "string"),
    ]
    assert schema[5].sample == ""


def test_empty_input_returns_empty_schema():
    assert infer_schema([]) == []


def test_one_descriptor_per_first_row_key():
    rows = [{"a": "1", "b": "x"}, {"a": "2", "b": "y", "c": "later"}]
    schema = infer_schema(rows)
    assert [c.name for c in schema] == ["a", "b"]
    assert all(c.type in VALID_TYPES for c in schema)


def test_mixed_strings_are_not_numbers():
    schema = infer_schema([{"code": "12abc", "ts": "2023-01-15T10:00:00", "neg": "-3e2"}])
    assert [c.type for c in schema] == ["string", "date", "number"]


def test_sample_is_truncated():
    schema = infer_schema([{"text": "x" * 80}])
    assert len(schema[0].sample) == 50


def test_sample_size_skips_blank_first_value():
    rows = [{"cost": None}, {"cost": "3"}]
    assert infer_schema(rows)[0].type == "string"
    assert infer_schema(rows, sample_size=2)[0].type == "number"


def test_describe_schema():
    schema = infer_schema([{"indication": "Cancer", "cost": 5000}])
    assert describe_schema(schema) == "indication (string): Cancer\ncost (number): 5000"
