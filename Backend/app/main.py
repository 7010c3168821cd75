# Backend/app/main.py
from __future__ import annotations

import httpx
from fastapi import FastAPI, Response, APIRouter, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# --- Logging & request-id ---
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from app.config import settings
from app.core.logging import configure_logging, logger
from app.core.request_id import REQUEST_ID_HEADER, request_id_scope
from services.content_service import ExaContentClient, MediastackClient
from services.openai_service import build_llm
from services.redis_service import close_redis, create_redis

from api.routers.news import router as news_router

configure_logging(service_name="api")

app = FastAPI(
    title="Epigram News - Backend",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.on_event("startup")
async def _startup_clients() -> None:
    # Process-wide clients; routes reach them through app.deps.services.
    app.state.redis = create_redis(settings.REDIS_URL, settings.REDIS_TOKEN)
    app.state.http = httpx.AsyncClient(
        timeout=settings.NEWS_FETCH_TIMEOUT_S,
        headers={"User-Agent": "epigram-news/1.0"},
    )
    app.state.exa_client = ExaContentClient(
        app.state.http,
        api_key=settings.EXA_API_KEY or "",
        base_url=settings.EXA_BASE_URL,
    )
    app.state.mediastack_client = MediastackClient(
        app.state.http,
        api_key=settings.MEDIASTACK_API_KEY or "",
        base_url=settings.MEDIASTACK_BASE_URL,
    )
    app.state.llm = build_llm()
    app.state.openai = app.state.llm.client if app.state.llm is not None else None
    logger.info("clients_started", model=settings.OPENAI_MODEL_NAME)


@app.on_event("shutdown")
async def _shutdown_clients() -> None:
    http = getattr(app.state, "http", None)
    if http is not None:
        await http.aclose()
    openai_client = getattr(app.state, "openai", None)
    if openai_client is not None:
        await openai_client.close()
    await close_redis(getattr(app.state, "redis", None))
    logger.info("clients_stopped")


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        with request_id_scope(request.headers) as req_id:
            logger.info("request_started", method=request.method, path=str(request.url.path))
            try:
                response: StarletteResponse = await call_next(request)
            except Exception as exc:
                logger.error("request_exception", error=str(exc.__class__.__name__))
                raise
            logger.info("request_ended", status_code=response.status_code)
            response.headers[REQUEST_ID_HEADER] = req_id
            return response

# --- CORS ---
# Added first so it is the outermost middleware.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    expose_headers=["Content-Length", "Retry-After"],
)

app.add_middleware(RequestIdMiddleware)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=dict(exc.headers or {}))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=str(request.url.path), exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

# --- Health endpoints ---
@app.get("/")
async def root():
    return {"ok": True, "app": "Epigram News Backend", "message": "Up & running"}

@app.head("/")
async def root_head():
    return Response(status_code=200)

@app.get("/healthz")
async def healthz():
    return {"status": "healthy"}

@app.get("/health")
async def health():
    return {"ok": True}

# --- API router ---
api_router = APIRouter(prefix="/api")
api_router.include_router(news_router)
app.include_router(api_router)

logger.info("routers_registered", routers=["api(news)"])
