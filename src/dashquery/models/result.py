"""Pydantic models for metric results.

results are a small tagged union instead of "whatever the driver handed back".
every value is either a Scalar (string / integer / float / null) or a RowSet
of column -> Scalar mappings, and both serialize straight to plain json.
"""

import datetime
import math
import uuid
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    model_serializer,
    model_validator,
)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ScalarKind(str, Enum):
    """The closed set of value types a metric can produce."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    NULL = "null"


class Scalar(BaseModel):
    """A single typed value.

    `kind` is the tag, `value` the payload. the validator keeps the two in
    sync so code can match on kind without re-checking the python type.
    """

    model_config = ConfigDict(frozen=True)

    shape: Literal["scalar"] = "scalar"
    kind: ScalarKind
    value: StrictStr | StrictInt | StrictFloat | None = None

    @model_validator(mode="after")
    def check_kind_matches_value(self) -> Self:
        expected: dict[ScalarKind, Any] = {
            ScalarKind.STRING: str,
            ScalarKind.INTEGER: int,
            ScalarKind.FLOAT: float,
            ScalarKind.NULL: type(None),
        }
        # bool is an int subclass - never let one sneak in as an integer
        if type(self.value) is not expected[self.kind]:
            raise ValueError(
                f"Scalar of kind '{self.kind.value}' cannot hold {type(self.value).__name__}"
            )
        return self

    @classmethod
    def null(cls) -> "Scalar":
        return cls(kind=ScalarKind.NULL, value=None)

    @classmethod
    def of(cls, value: Any) -> "Scalar":
        """Normalize a raw driver value into a Scalar.

        duckdb hands back a zoo of python types (Decimal, date, UUID, bytes...).
        everything collapses into the four kinds here so the rest of the code
        never sees them.
        """
        if value is None:
            return cls.null()
        if isinstance(value, bool):
            # sqlite-style semantics: booleans are integers
            return cls(kind=ScalarKind.INTEGER, value=int(value))
        if isinstance(value, int):
            if INT64_MIN <= value <= INT64_MAX:
                return cls(kind=ScalarKind.INTEGER, value=value)
            # HUGEINT and friends - lossy but still a number
            return cls(kind=ScalarKind.FLOAT, value=float(value))
        if isinstance(value, float):
            return cls(kind=ScalarKind.FLOAT, value=value)
        if isinstance(value, Decimal):
            return cls(kind=ScalarKind.FLOAT, value=float(value))
        if isinstance(value, str):
            return cls(kind=ScalarKind.STRING, value=value)
        if isinstance(value, (datetime.date, datetime.time)):
            # datetime is a date subclass so this covers timestamps too
            return cls(kind=ScalarKind.STRING, value=value.isoformat())
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(kind=ScalarKind.STRING, value=bytes(value).hex())
        if isinstance(value, (uuid.UUID, datetime.timedelta)):
            return cls(kind=ScalarKind.STRING, value=str(value))
        # lists / structs / maps - not something metric queries should return
        return cls(kind=ScalarKind.STRING, value=str(value))

    @property
    def is_null(self) -> bool:
        return self.kind is ScalarKind.NULL

    @model_serializer
    def serialize(self) -> str | int | float | None:
        # json has no NaN/Infinity, emit null rather than produce invalid output
        if self.kind is ScalarKind.FLOAT and not math.isfinite(self.value):
            return None
        return self.value


class RowSet(BaseModel):
    """Rows returned by a tabular metric, in query order."""

    model_config = ConfigDict(frozen=True)

    shape: Literal["rows"] = "rows"
    rows: tuple[dict[str, Scalar], ...] = ()

    @classmethod
    def from_records(cls, columns: list[str], records: list[tuple[Any, ...]]) -> "RowSet":
        return cls(
            rows=tuple(
                {col: Scalar.of(val) for col, val in zip(columns, record)}
                for record in records
            )
        )

    def __len__(self) -> int:
        return len(self.rows)

    @model_serializer
    def serialize(self) -> list[dict[str, Any]]:
        return [{col: val.serialize() for col, val in row.items()} for row in self.rows]


ResolvedValue = Annotated[Scalar | RowSet, Field(discriminator="shape")]


class MetricResult(BaseModel):
    """Value of one metric, as returned to api callers.

    serializes to {"name": ..., "value": ...} where value is plain json.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    value: ResolvedValue
