from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI

from hyjackett import config, instrumentation, logging, middleware
from hyjackett.api import stremio

logging.init()

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    log.info("starting", version=config.VERSION, engine=config.ENABLE_TORRENT_ENGINE)
    yield
    instrumentation.shutdown()


app = FastAPI(title=config.APP_NAME, version=config.VERSION, lifespan=lifespan)

# XXX These are executed in reverse order
app.add_middleware(middleware.Metrics)
app.add_middleware(middleware.RequestContext)
app.add_middleware(middleware.CORS)

app.add_route("/metrics", instrumentation.metrics_handler)
app.include_router(stremio.router)
