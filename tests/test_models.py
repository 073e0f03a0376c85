"""Tests for pydantic models."""

import datetime
import math
import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError

from dashquery.models import (
    MetricDefinition,
    MetricResult,
    ParameterDeclaration,
    ParameterType,
    RowSet,
    Scalar,
    ScalarKind,
)


class TestParameterDeclaration:
    def test_parses_config_spelling(self):
        param = ParameterDeclaration.model_validate({"name": "id", "type": "int"})
        assert param.type is ParameterType.INTEGER
        assert param.required is True

    def test_optional(self):
        param = ParameterDeclaration(name="q", type=ParameterType.STRING, required=False)
        assert param.required is False

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ParameterDeclaration(name="", type=ParameterType.STRING)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ParameterDeclaration.model_validate({"name": "x", "type": "date"})


class TestMetricDefinition:
    def test_minimal(self):
        metric = MetricDefinition(name="total", query="SELECT 1")
        assert metric.tabular is False
        assert metric.parameters == ()

    def test_config_aliases(self):
        metric = MetricDefinition.model_validate(
            {
                "name": "rows_by_id",
                "query": "SELECT v FROM t WHERE id = ?",
                "multi_row": True,
                "params": [{"name": "id", "type": "int", "required": True}],
            }
        )
        assert metric.tabular is True
        assert [p.name for p in metric.parameters] == ["id"]

    def test_empty_query_rejected(self):
        with pytest.raises(ValidationError):
            MetricDefinition(name="x", query="")

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            MetricDefinition(name="", query="SELECT 1")

    def test_duplicate_parameter_names_rejected(self):
        with pytest.raises(ValidationError, match="more than once"):
            MetricDefinition.model_validate(
                {
                    "name": "x",
                    "query": "SELECT ? + ?",
                    "params": [{"name": "a", "type": "int"}, {"name": "a", "type": "int"}],
                }
            )

    def test_is_frozen(self):
        metric = MetricDefinition(name="x", query="SELECT 1")
        with pytest.raises(ValidationError):
            metric.name = "y"

    def test_get_parameter(self):
        metric = MetricDefinition.model_validate(
            {"name": "x", "query": "SELECT ?", "params": [{"name": "a", "type": "float"}]}
        )
        assert metric.get_parameter("a").type is ParameterType.FLOAT
        assert metric.get_parameter("b") is None


class TestScalar:
    @pytest.mark.parametrize(
        "raw, kind, value",
        [
            (None, ScalarKind.NULL, None),
            (7, ScalarKind.INTEGER, 7),
            (True, ScalarKind.INTEGER, 1),
            (2.5, ScalarKind.FLOAT, 2.5),
            (Decimal("10.25"), ScalarKind.FLOAT, 10.25),
            ("x", ScalarKind.STRING, "x"),
            ("", ScalarKind.STRING, ""),
            (datetime.date(2024, 1, 15), ScalarKind.STRING, "2024-01-15"),
            (datetime.datetime(2024, 1, 15, 8, 30), ScalarKind.STRING, "2024-01-15T08:30:00"),
            (b"\x01\xff", ScalarKind.STRING, "01ff"),
            (2**70, ScalarKind.FLOAT, float(2**70)),
        ],
    )
    def test_of_normalizes(self, raw, kind, value):
        scalar = Scalar.of(raw)
        assert scalar.kind is kind
        assert scalar.value == value
        assert type(scalar.value) is type(value)

    def test_uuid_becomes_string(self):
        u = uuid.uuid4()
        assert Scalar.of(u).value == str(u)

    def test_kind_must_match_value(self):
        with pytest.raises(ValidationError):
            Scalar(kind=ScalarKind.INTEGER, value="7")
        with pytest.raises(ValidationError):
            Scalar(kind=ScalarKind.FLOAT, value=1)
        with pytest.raises(ValidationError):
            Scalar(kind=ScalarKind.NULL, value=0)

    def test_null_distinct_from_empty_and_zero(self):
        assert Scalar.null() != Scalar.of("")
        assert Scalar.null() != Scalar.of(0)

    def test_serializes_to_payload(self):
        assert Scalar.of(3).model_dump() == 3
        assert Scalar.null().model_dump() is None

    def test_non_finite_float_serializes_as_null(self):
        assert Scalar.of(math.inf).model_dump() is None


class TestMetricResult:
    def test_scalar_result_json(self):
        result = MetricResult(name="total", value=Scalar.of(10))
        assert result.model_dump(mode="json") == {"name": "total", "value": 10}

    def test_rows_result_json(self):
        rows = RowSet.from_records(["v", "n"], [("x", None)])
        result = MetricResult(name="rows_by_id", value=rows)
        assert result.model_dump(mode="json") == {
            "name": "rows_by_id",
            "value": [{"v": "x", "n": None}],
        }

    def test_value_tag_is_matchable(self):
        result = MetricResult(name="r", value=RowSet())
        assert result.value.shape == "rows"
        assert len(result.value) == 0
