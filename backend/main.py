import argparse
import logging
from typing import Annotated, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import QueryContext, Settings, configure_logging, get_settings
from errors import QueryError
from resolvers import run_query
from schemas import Metric, QueryRequest, QueryResponse, SearchRequest

logger = logging.getLogger(__name__)

app = FastAPI(title="Logdash Query API")

# Grafana proxies requests, but direct browser access needs CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def app_settings(request: Request, settings: Annotated[Settings, Depends(get_settings)]) -> Settings:
    """Settings the server was started with, or the environment defaults."""
    return getattr(request.app.state, "settings", settings)


settings_dep = Annotated[Settings, Depends(app_settings)]


@app.exception_handler(QueryError)
async def query_error_handler(request: Request, error: QueryError):
    if error.status_code >= 500:
        logger.error(f"{request.url.path} failed: {error.message} ({error.__cause__})")
    else:
        logger.warning(f"{request.url.path} rejected: {error.message}")
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


@app.get("/")
async def root():
    """Root endpoint the dashboard uses to test the datasource."""
    return {"message": "Logdash query API is running"}


@app.post("/search", response_model=List[str])
async def search(request: SearchRequest):
    """List the metric names that can be queried."""
    logger.debug(f"Search received: {request}")
    return [metric.value for metric in Metric]


@app.post("/query", response_model=QueryResponse)
def query(request: QueryRequest, settings: settings_dep):
    """
    Answer a query for a single target.

    Series targets return one entry per series with [value, epoch ms]
    datapoints covering the whole range. Table targets return one table.
    """
    logger.debug(f"Query received: {request}")
    return run_query(request, QueryContext.from_settings(settings))


def parse_args(settings: Settings, argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve access log metrics to Grafana")
    parser.add_argument("--addr", default=settings.host, help="Address to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument("--db", default=settings.db, help="Path to the SQLite access log database")
    parser.add_argument("--ip", default=settings.ip, help="Remote address left out of outbound and blog statistics")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    defaults = get_settings()
    args = parse_args(defaults, argv)
    settings = defaults.model_copy(
        update={"host": args.addr, "port": args.port, "db": args.db, "ip": args.ip}
    )
    configure_logging(settings.log_level)

    # Read by app_settings for every request; not changed after this point
    app.state.settings = settings

    logger.info(f"Serving {settings.db} on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
