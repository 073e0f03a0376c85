"""Pydantic models for metric definitions.

a metric is just a named sql query plus the contract for its inputs. the
loader builds these from yaml; after that they are frozen and shared across
every request.
"""

from enum import Enum
from typing import Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class ParameterType(str, Enum):
    """Types a query parameter can be converted to.

    values match the spelling used in the yaml manifest.
    """

    STRING = "string"
    INTEGER = "int"
    FLOAT = "float"


class ParameterDeclaration(BaseModel):
    """A single positional parameter of a metric query."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    type: ParameterType
    # optional params are accepted in config but can never be omitted at
    # request time - see UnsupportedOptionalParameterError
    required: bool = True


class MetricDefinition(BaseModel):
    """A named sql query with its result shape and parameter contract.

    the order of `parameters` is the order values are bound to `?`
    placeholders in `query`. the placeholder count isn't checked here -
    a mismatch shows up as an execution error (or via `dq validate`).
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    query: str = Field(min_length=1)
    tabular: bool = Field(
        default=False, validation_alias=AliasChoices("tabular", "multi_row")
    )
    parameters: tuple[ParameterDeclaration, ...] = Field(
        default=(), validation_alias=AliasChoices("parameters", "params")
    )

    @model_validator(mode="after")
    def validate_parameter_names(self) -> Self:
        """Parameter names must be unique within a metric.

        two params with the same name would both pull the same request input,
        which is never what the author meant.
        """
        seen: set[str] = set()
        for param in self.parameters:
            if param.name in seen:
                raise ValueError(
                    f"Metric '{self.name}' declares parameter '{param.name}' more than once"
                )
            seen.add(param.name)
        return self

    def get_parameter(self, name: str) -> ParameterDeclaration | None:
        """Get a parameter declaration by name."""
        for param in self.parameters:
            if param.name == name:
                return param
        return None
