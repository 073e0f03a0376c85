"""Error taxonomy for dashquery.

every error the engine can raise carries an ErrorKind so callers (the http
layer mostly) can map to status codes by kind. the original service sniffed
error strings for "not found" / "invalid" which broke the first time someone
reworded a message.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Discriminator for error handling at the edges."""

    CATALOG_INVALID = "catalog_invalid"
    METRIC_NOT_FOUND = "metric_not_found"
    MISSING_PARAMETER = "missing_parameter"
    UNSUPPORTED_OPTIONAL_PARAMETER = "unsupported_optional_parameter"
    PARAMETER_CONVERSION = "parameter_conversion"
    NO_ROWS = "no_rows"
    EXECUTION_FAILED = "execution_failed"
    TIMEOUT = "timeout"


class DashQueryError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.EXECUTION_FAILED


class ConfigError(ValueError):
    """Metric manifest could not be parsed or failed syntactic validation."""


class CatalogValidationError(DashQueryError, ValueError):
    """Catalog construction rejected the metric set (empty or duplicates)."""

    kind = ErrorKind.CATALOG_INVALID


class MetricNotFoundError(DashQueryError):
    kind = ErrorKind.METRIC_NOT_FOUND

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"metric {name!r} not found")


# --- parameter errors ---
# all of these are request-time problems, so they carry metric + param names


class ParameterError(DashQueryError):
    """Base for errors raised while preparing positional arguments."""

    def __init__(self, metric: str, param: str, message: str) -> None:
        self.metric = metric
        self.param = param
        super().__init__(f"metric {metric!r}: parameter {param!r}: {message}")


class MissingParameterError(ParameterError):
    kind = ErrorKind.MISSING_PARAMETER

    def __init__(self, metric: str, param: str) -> None:
        super().__init__(metric, param, "required parameter is missing")


class UnsupportedOptionalParameterError(ParameterError):
    """An optional parameter was omitted.

    positional placeholders can't be skipped without rewriting the query,
    so there is nothing sane to bind in its place.
    """

    kind = ErrorKind.UNSUPPORTED_OPTIONAL_PARAMETER

    def __init__(self, metric: str, param: str) -> None:
        super().__init__(
            metric, param, "optional parameters must be supplied (no default binding exists)"
        )


class ParameterConversionError(ParameterError):
    kind = ErrorKind.PARAMETER_CONVERSION

    def __init__(self, metric: str, param: str, raw_value: str, expected: str) -> None:
        self.raw_value = raw_value
        self.expected = expected
        super().__init__(metric, param, f"invalid {expected} value {raw_value!r}")


# --- gateway errors ---


class GatewayError(DashQueryError):
    """Raised by the data store gateway.

    `metric` is filled in by the engine when it adds context, see for_metric().
    """

    def __init__(self, message: str, metric: str | None = None) -> None:
        self.metric = metric
        super().__init__(message)

    def for_metric(self, metric: str) -> "GatewayError":
        """Return a copy of this error with the metric name as context.

        keeps the concrete class so the error kind survives the extra layer.
        """
        return type(self)(f"metric {metric!r} failed: {self}", metric=metric)


class NoRowsError(GatewayError):
    """A scalar query returned zero rows."""

    kind = ErrorKind.NO_ROWS


class ExecutionError(GatewayError):
    """SQL, connection, or cancellation failure inside the gateway."""

    kind = ErrorKind.EXECUTION_FAILED


class QueryTimeoutError(ExecutionError):
    kind = ErrorKind.TIMEOUT
