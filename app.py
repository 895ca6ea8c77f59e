import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hype_engine.api.endpoints import (
    hype_response, mentions_response, quotes_response, reddit_probe_response,
)
from hype_engine.config import Settings
from hype_engine.models.payloads import iso_utc
from hype_sources.orchestrator import HypeService

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
log = logging.getLogger("hm.app")

VERSION = "3.2.0"


def create_app(settings: Optional[Settings] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = httpx.AsyncClient(
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
            timeout=settings.fetch_timeout,
            transport=transport,
        )
        app.state.service = HypeService(settings, client)
        log.info(f"HypeMeter API {VERSION} up: mentions={settings.mentions_backend} "
                 f"quotes={settings.quotes_shape} "
                 f"finnhub={'configured' if settings.finnhub_api_key else 'MISSING'}")
        yield
        await client.aclose()

    app = FastAPI(
        title="HypeMeter API",
        description="Social mentions, news volume and quotes combined into a hype score.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    def service(request: Request) -> HypeService:
        return request.app.state.service

    def reply(result) -> JSONResponse:
        status, body = result
        return JSONResponse(status_code=status, content=body)

    @app.get("/")
    async def root():
        return {
            "message": "HypeMeter.ai API",
            "version": VERSION,
            "status": "running",
            "mentions_backend": settings.mentions_backend,
            "quotes_shape": settings.quotes_shape,
            "endpoints": {
                "health":      "/health",
                "test_reddit": "/api/test/reddit/NVDA?window=60",
                "mentions":    "/api/mentions?tickers=NVDA,AAPL&window=60",
                "quotes":      "/api/quotes?tickers=NVDA,AAPL",
                "hype":        "/api/hype?tickers=NVDA,AAPL&window=60",
            },
        }

    @app.get("/health")
    async def health(request: Request):
        return {
            "status": "ok",
            "timestamp": iso_utc(time.time()),
            "cache_size": service(request).cache_size(),
            "mentions_backend": settings.mentions_backend,
            "quotes_shape": settings.quotes_shape,
            "finnhub": "configured" if settings.finnhub_api_key else "missing",
        }

    @app.get("/keepalive")
    async def keepalive():
        return {"status": "alive", "timestamp": iso_utc(time.time())}

    @app.get("/api/mentions", tags=["Hype"])
    async def mentions(
        request: Request,
        tickers: Optional[str] = Query(None, description="Comma-separated tickers e.g. NVDA,AAPL"),
        window: Optional[str] = Query(None, description="Lookback window in minutes (1-1440)"),
    ):
        return reply(await mentions_response(service(request), tickers, window))

    @app.get("/api/quotes", tags=["Hype"])
    async def quotes(
        request: Request,
        tickers: Optional[str] = Query(None, description="Comma-separated tickers e.g. NVDA,AAPL"),
    ):
        return reply(await quotes_response(service(request), tickers))

    @app.get("/api/hype", tags=["Hype"])
    async def hype(
        request: Request,
        tickers: Optional[str] = Query(None, description="Comma-separated tickers e.g. NVDA,AAPL"),
        window: Optional[str] = Query(None, description="Lookback window in minutes (1-1440)"),
    ):
        return reply(await hype_response(service(request), tickers, window))

    @app.get("/api/test/reddit/{ticker}", tags=["Debug"])
    async def reddit_probe(request: Request, ticker: str, window: Optional[str] = Query(None)):
        return reply(await reddit_probe_response(service(request), ticker, window))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=app.state.settings.port, reload=False, log_level="info")
