"""Conversion of request inputs into positional query arguments.

inputs arrive as strings (query-string values), the declarations say what
type each placeholder wants. parsing is deliberately strict - python's int()
and float() happily accept things like " 42 " or "1_000" that nobody would
expect a metrics api to accept.
"""

import math
import re
from collections.abc import Mapping

from dashquery.errors import (
    MissingParameterError,
    ParameterConversionError,
    UnsupportedOptionalParameterError,
)
from dashquery.models.metric import MetricDefinition, ParameterType
from dashquery.models.result import INT64_MAX, INT64_MIN

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_FLOAT_SPECIALS = {"inf", "infinity", "nan"}

QueryArg = str | int | float


def parse_integer(raw: str) -> int:
    """Parse a base-10 signed 64-bit integer.

    Raises:
        ValueError: if `raw` isn't a plain decimal integer or overflows int64.
    """
    if not _INTEGER_RE.fullmatch(raw):
        raise ValueError(f"invalid integer literal: {raw!r}")
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"integer out of range: {raw!r}")
    return value


def parse_float(raw: str) -> float:
    """Parse a 64-bit float in decimal or exponential notation.

    inf / infinity / nan (any case, optional sign) are accepted as well.
    finite literals too large for a double are rejected instead of silently
    becoming inf.
    """
    unsigned = raw[1:] if raw[:1] in ("+", "-") else raw
    if unsigned.lower() in _FLOAT_SPECIALS:
        return float(raw)
    if not _FLOAT_RE.fullmatch(raw):
        raise ValueError(f"invalid float literal: {raw!r}")
    value = float(raw)
    if math.isinf(value):
        raise ValueError(f"float out of range: {raw!r}")
    return value


def convert_value(raw: str, param_type: ParameterType) -> QueryArg:
    """Convert one raw string to the declared parameter type."""
    if param_type is ParameterType.STRING:
        return raw
    if param_type is ParameterType.INTEGER:
        return parse_integer(raw)
    if param_type is ParameterType.FLOAT:
        return parse_float(raw)
    raise ValueError(f"unsupported parameter type: {param_type}")


def convert_parameters(
    definition: MetricDefinition, inputs: Mapping[str, str]
) -> list[QueryArg]:
    """Build the positional argument list for a metric.

    walks the declarations in order, so the returned list lines up with the
    `?` placeholders in the query. inputs the metric doesn't declare are
    ignored - a batch request shares one input map across all its metrics.
    """
    args: list[QueryArg] = []
    for param in definition.parameters:
        if param.name not in inputs:
            if param.required:
                raise MissingParameterError(definition.name, param.name)
            raise UnsupportedOptionalParameterError(definition.name, param.name)

        raw = inputs[param.name]
        try:
            args.append(convert_value(raw, param.type))
        except ValueError as exc:
            raise ParameterConversionError(
                definition.name, param.name, raw, param.type.value
            ) from exc
    return args
