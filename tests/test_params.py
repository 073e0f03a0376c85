"""Tests for parameter conversion."""

import math

import pytest

from dashquery.engine.params import (
    convert_parameters,
    convert_value,
    parse_float,
    parse_integer,
)
from dashquery.errors import (
    ErrorKind,
    MissingParameterError,
    ParameterConversionError,
    UnsupportedOptionalParameterError,
)
from dashquery.models import MetricDefinition, ParameterType


@pytest.fixture
def metric() -> MetricDefinition:
    return MetricDefinition.model_validate(
        {
            "name": "orders_above",
            "query": "SELECT COUNT(*) FROM orders WHERE amount > ? AND status = ? AND id < ?",
            "params": [
                {"name": "min_amount", "type": "float"},
                {"name": "status", "type": "string"},
                {"name": "max_id", "type": "int"},
            ],
        }
    )


class TestParseInteger:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0", 0),
            ("7", 7),
            ("-42", -42),
            ("+5", 5),
            ("007", 7),
            ("9223372036854775807", 2**63 - 1),
            ("-9223372036854775808", -(2**63)),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_integer(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["", "nope", "1.5", "1e3", " 7", "7 ", "1_000", "0x10", "9223372036854775808", "--1"],
    )
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_integer(raw)


class TestParseFloat:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0", 0.0),
            ("3.14", 3.14),
            ("-2.5", -2.5),
            ("1.", 1.0),
            (".5", 0.5),
            ("1e3", 1000.0),
            ("2.5E-2", 0.025),
            ("+7", 7.0),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_float(raw) == expected

    def test_special_values(self):
        assert parse_float("inf") == math.inf
        assert parse_float("-Infinity") == -math.inf
        assert math.isnan(parse_float("NaN"))

    @pytest.mark.parametrize("raw", ["", "abc", "1.2.3", " 1.0", "1_0.0", "e5", "1e", "1e400"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_float(raw)


class TestConvertValue:
    def test_string_is_identity(self):
        assert convert_value("", ParameterType.STRING) == ""
        assert convert_value(" padded ", ParameterType.STRING) == " padded "

    def test_integer(self):
        value = convert_value("12", ParameterType.INTEGER)
        assert value == 12 and isinstance(value, int)

    def test_float(self):
        value = convert_value("12", ParameterType.FLOAT)
        assert value == 12.0 and isinstance(value, float)


class TestConvertParameters:
    def test_declaration_order(self, metric):
        # input order is irrelevant, declaration order decides positions
        args = convert_parameters(
            metric, {"max_id": "10", "status": "completed", "min_amount": "99.5"}
        )
        assert args == [99.5, "completed", 10]

    def test_no_parameters(self):
        metric = MetricDefinition(name="total", query="SELECT 1")
        assert convert_parameters(metric, {"anything": "x"}) == []

    def test_extra_inputs_ignored(self, metric):
        args = convert_parameters(
            metric, {"min_amount": "1", "status": "", "max_id": "2", "unused": "x"}
        )
        assert args == [1.0, "", 2]

    def test_missing_required(self, metric):
        with pytest.raises(MissingParameterError) as exc_info:
            convert_parameters(metric, {"min_amount": "1", "max_id": "2"})
        assert exc_info.value.metric == "orders_above"
        assert exc_info.value.param == "status"
        assert exc_info.value.kind is ErrorKind.MISSING_PARAMETER

    def test_missing_optional_is_an_error(self):
        metric = MetricDefinition.model_validate(
            {
                "name": "search",
                "query": "SELECT * FROM t WHERE name = ?",
                "params": [{"name": "q", "type": "string", "required": False}],
            }
        )
        with pytest.raises(UnsupportedOptionalParameterError) as exc_info:
            convert_parameters(metric, {})
        assert exc_info.value.param == "q"
        # supplying it works as usual
        assert convert_parameters(metric, {"q": "x"}) == ["x"]

    def test_conversion_failure(self, metric):
        with pytest.raises(ParameterConversionError) as exc_info:
            convert_parameters(metric, {"min_amount": "lots", "status": "x", "max_id": "1"})
        error = exc_info.value
        assert error.metric == "orders_above"
        assert error.param == "min_amount"
        assert error.raw_value == "lots"
        assert error.kind is ErrorKind.PARAMETER_CONVERSION
        assert isinstance(error.__cause__, ValueError)

    def test_first_failing_declaration_wins(self, metric):
        with pytest.raises(ParameterConversionError) as exc_info:
            convert_parameters(metric, {"min_amount": "bad", "status": "x", "max_id": "bad"})
        assert exc_info.value.param == "min_amount"
