"""FastAPI application exposing metrics over http.

routes:
    GET /metrics                 -> every metric name
    GET /metrics?names=a,b&x=1   -> values of a and b, with x as an input
    GET /metrics/{name}?x=1      -> value of one metric
    GET /health

status codes come from the error kind, never from the message text.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from dashquery.config import Settings
from dashquery.engine.orchestrator import MetricEngine
from dashquery.errors import DashQueryError, ErrorKind
from dashquery.models.result import MetricResult
from dashquery.store import MetricStore

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.METRIC_NOT_FOUND: 404,
    ErrorKind.MISSING_PARAMETER: 400,
    ErrorKind.UNSUPPORTED_OPTIONAL_PARAMETER: 400,
    ErrorKind.PARAMETER_CONVERSION: 400,
    ErrorKind.NO_ROWS: 500,
    ErrorKind.EXECUTION_FAILED: 500,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.CATALOG_INVALID: 500,
}

router = APIRouter(tags=["Metrics"])


def get_engine(request: Request) -> MetricEngine:
    return request.app.state.engine


def get_timeout(request: Request) -> float | None:
    return request.app.state.request_timeout


engine_dep = Annotated[MetricEngine, Depends(get_engine)]
timeout_dep = Annotated[float | None, Depends(get_timeout)]


def extract_inputs(request: Request) -> dict[str, str]:
    """Every query parameter except `names` becomes a metric input.

    repeated keys keep their first value.
    """
    inputs: dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        if key != "names" and key not in inputs:
            inputs[key] = value
    return inputs


def error_response(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


def results_response(results: list[MetricResult]) -> JSONResponse:
    return JSONResponse(content=[r.model_dump(mode="json") for r in results])


@router.get("/metrics")
async def get_metrics(request: Request, engine: engine_dep, timeout: timeout_dep):
    """List metric names, or resolve the ones named in ?names=."""
    names_param = request.query_params.get("names", "")
    if not names_param:
        # listing mirrors the value shape so clients can parse both alike
        return JSONResponse(
            content=[{"name": name, "value": name} for name in sorted(engine.metric_names())]
        )

    names = [name.strip() for name in names_param.split(",") if name.strip()]
    if not names:
        return error_response(400, "no valid metric names provided")

    results = await engine.resolve_many(names, extract_inputs(request), timeout=timeout)
    return results_response(results)


@router.get("/metrics/{name}")
async def get_metric(name: str, request: Request, engine: engine_dep, timeout: timeout_dep):
    """Resolve a single metric."""
    results = await engine.resolve_many([name], extract_inputs(request), timeout=timeout)
    return results_response(results)


@router.get("/health")
async def health():
    return {"status": "ok"}


def create_app(settings: Settings | None = None, engine: MetricEngine | None = None) -> FastAPI:
    """Build the FastAPI app.

    pass `engine` to serve a pre-built engine (tests do this); otherwise the
    lifespan builds a MetricStore from settings and closes it on shutdown.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = None
        if engine is None:
            store = MetricStore(
                settings.METRICS_PATH,
                settings.DB_PATH,
                max_open=settings.MAX_OPEN_CONNECTIONS,
                max_idle=settings.MAX_IDLE_CONNECTIONS,
            )
        try:
            if store is not None:
                # fail at startup, not on the first request
                store.gateway.ping()
                app.state.engine = store.engine
                logger.info(
                    "Loaded %d metrics from %s", len(store.catalog), settings.METRICS_PATH
                )
            yield
        finally:
            if store is not None:
                store.close()

    app = FastAPI(title="dashquery metrics API", lifespan=lifespan)
    app.state.engine = engine
    app.state.request_timeout = settings.REQUEST_TIMEOUT

    @app.exception_handler(DashQueryError)
    async def handle_engine_error(request: Request, exc: DashQueryError) -> JSONResponse:
        status = STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            logger.error("Request %s failed: %s", request.url.path, exc)
        else:
            logger.info("Request %s rejected: %s", request.url.path, exc)
        if status == 500:
            # driver errors can leak schema details, keep them in the logs
            return error_response(status, "internal server error")
        return error_response(status, str(exc))

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "%s %s -> %d (%.1fms) request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response

    app.include_router(router)
    return app
