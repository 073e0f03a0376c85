"""Metric resolution engine.

the engine is the one place that knows how a metric request turns into a
query: look up the definition, convert the inputs, pick scalar vs rows, and
package the result. the batch entry point fans out with a TaskGroup so the
first failure cancels everything else still in flight.
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol

from dashquery.catalog import Catalog
from dashquery.engine.params import convert_parameters
from dashquery.errors import GatewayError, MetricNotFoundError, QueryTimeoutError
from dashquery.models.result import MetricResult, RowSet, Scalar

logger = logging.getLogger(__name__)


class Gateway(Protocol):
    """What the engine needs from a data store."""

    async def query_scalar(self, sql: str, args: Sequence[Any] = ()) -> Scalar: ...

    async def query_rows(self, sql: str, args: Sequence[Any] = ()) -> RowSet: ...


class MetricEngine:
    """Resolves metrics against a catalog and a gateway.

    stateless apart from its two collaborators, so one instance serves every
    request concurrently.
    """

    def __init__(self, catalog: Catalog, gateway: Gateway) -> None:
        self.catalog = catalog
        self.gateway = gateway

    def metric_names(self) -> list[str]:
        return self.catalog.all_names()

    async def resolve(self, name: str, inputs: Mapping[str, str]) -> MetricResult:
        """Resolve a single metric.

        Args:
            name: Metric name as registered in the catalog.
            inputs: Raw request inputs, keyed by parameter name.

        Returns:
            MetricResult wrapping a Scalar or a RowSet.

        Raises:
            MetricNotFoundError: unknown metric name.
            ParameterError: missing / unsupported / unconvertible inputs.
            GatewayError: NoRowsError or ExecutionError, with the metric name
                added as context.
        """
        definition = self.catalog.lookup(name)
        if definition is None:
            raise MetricNotFoundError(name)

        args = convert_parameters(definition, inputs)

        try:
            if definition.tabular:
                value: Scalar | RowSet = await self.gateway.query_rows(definition.query, args)
            else:
                value = await self.gateway.query_scalar(definition.query, args)
        except GatewayError as exc:
            logger.warning("Metric %s failed: %s", name, exc)
            raise exc.for_metric(name) from exc

        return MetricResult(name=name, value=value)

    async def resolve_many(
        self,
        names: Iterable[str],
        inputs: Mapping[str, str],
        timeout: float | None = None,
    ) -> list[MetricResult]:
        """Resolve several metrics concurrently, fail-fast.

        every name gets its own task (duplicates included) sharing `inputs`.
        the first failure cancels the siblings and is raised on its own -
        callers get all results in `names` order or a single error, never a
        partial list.

        Args:
            names: Metric names, in the order results should come back.
            inputs: Raw request inputs shared by all metrics.
            timeout: Optional limit in seconds for the whole batch.

        Raises:
            QueryTimeoutError: the batch didn't finish within `timeout`.
            DashQueryError: the first error any resolution raised.
        """
        names = list(names)
        if not names:
            return []

        # one slot per requested name so completion order doesn't matter
        results: list[MetricResult | None] = [None] * len(names)

        async def resolve_into(index: int, name: str) -> None:
            results[index] = await self.resolve(name, inputs)

        try:
            async with asyncio.timeout(timeout):
                async with asyncio.TaskGroup() as group:
                    for index, name in enumerate(names):
                        group.create_task(resolve_into(index, name))
        except TimeoutError as exc:
            logger.warning("Metric batch %s timed out after %ss", names, timeout)
            raise QueryTimeoutError(f"metric batch timed out after {timeout}s") from exc
        except BaseExceptionGroup as group_error:
            # exceptions are recorded in the order the tasks failed
            first = group_error.exceptions[0]
            raise first from first.__cause__

        return [result for result in results if result is not None]
