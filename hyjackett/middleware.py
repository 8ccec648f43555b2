import uuid
from datetime import datetime
from typing import Any, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.contextvars import bound_contextvars

from hyjackett.instrumentation import HTTP_REQUEST_DURATION

log = structlog.get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


def route_path(request: Request) -> str | None:
    """
    The route template that served the request, /stream/{type}/{id}.json
    rather than the concrete url. None when nothing matched.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None)


class CORS(BaseHTTPMiddleware):
    """
    Stremio clients run in browsers, every answer must be readable cross
    origin. Preflight requests are answered here without reaching a route.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        response: Response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response


class RequestContext(BaseHTTPMiddleware):
    """
    Binds a request id to every log line written while serving the request
    and logs the request once it is answered.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        rid: str = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start_time = datetime.now()
        with bound_contextvars(request_id=rid):
            response: Response = await call_next(request)
            duration = (datetime.now() - start_time).total_seconds()
            log.info(
                "http_response",
                method=request.method,
                path=route_path(request) or request.url.path,
                status=response.status_code,
                duration=f"{duration:.3f}s",
                remote=request.client.host if request.client else None,
            )
        response.headers["X-Request-ID"] = rid
        response.headers["X-Process-Time"] = f"{duration:.3f}s"
        return response


class Metrics(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        start_time = datetime.now()
        response: Response = await call_next(request)
        # unmatched urls would give every scanner its own label
        if path := route_path(request):
            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                route=path,
                status=f"{response.status_code // 100}xx",
            ).observe((datetime.now() - start_time).total_seconds())
        return response
