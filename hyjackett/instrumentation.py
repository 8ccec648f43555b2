import os

import structlog
from fastapi import Request
from fastapi.responses import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Gauge,
    Histogram,
    generate_latest,
    multiprocess,
)

from hyjackett import config

log = structlog.get_logger(__name__)

single_proc_registry = CollectorRegistry()


def multiprocess_enabled() -> bool:
    return "PROMETHEUS_MULTIPROC_DIR" in os.environ


def registry() -> CollectorRegistry:
    """
    uvicorn workers each write their samples to PROMETHEUS_MULTIPROC_DIR,
    a fresh collector reads them all back
    """
    if multiprocess_enabled():
        reg = CollectorRegistry()
        multiprocess.MultiProcessCollector(reg)
        return reg
    return single_proc_registry


Gauge(
    name="build_info",
    documentation="build information",
    multiprocess_mode="livemin",
    labelnames=["version"],
    registry=registry(),
).labels(version=config.VERSION).set(1)

HTTP_REQUEST_DURATION = Histogram(
    name="request_duration_seconds",
    documentation="Duration of HTTP requests served by the addon in seconds",
    labelnames=["method", "route", "status"],
    registry=registry(),
)

SEARCH_DURATION = Histogram(
    name="api_request_duration_seconds",
    documentation="Duration of stream searches in seconds",
    labelnames=["type"],
    registry=registry(),
)

JACKETT_REQUEST_DURATION = Histogram(
    name="jackett_request_duration_seconds",
    documentation="Duration of Jackett requests in seconds",
    labelnames=["method", "indexer", "status"],
    registry=registry(),
)

HTTP_CLIENT_REQUEST_DURATION = Histogram(
    name="http_client_request_duration_seconds",
    documentation="Duration of metadata lookups in seconds",
    labelnames=["client", "method", "url", "status_code", "error"],
    registry=registry(),
)

RESOLUTION_DURATION = Histogram(
    name="stream_resolution_duration_seconds",
    documentation="Duration of resolving a search result into a stream in seconds",
    labelnames=["outcome"],
    registry=registry(),
)


async def metrics_handler(_: Request):
    data = generate_latest(registry())
    return Response(
        content=data,
        headers={
            "Content-Type": CONTENT_TYPE_LATEST,
            "Content-Length": str(len(data)),
        },
    )


def shutdown():
    # a worker that exits must drop its live gauges from the shared directory
    if not multiprocess_enabled():
        return
    log.info("marking worker dead for prometheus", pid=os.getpid())
    multiprocess.mark_process_dead(os.getpid())  # type: ignore
