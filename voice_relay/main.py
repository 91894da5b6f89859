import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from voice_relay.api.deps import RelayServices, get_services
from voice_relay.api.endpoints import text, upload
from voice_relay.api.schemas import ClientConfigResponse
from voice_relay.core.config import Settings, get_settings
from voice_relay.core.errors import RelayError

LIVENESS_MESSAGE = "語音轉文字後端服務運行中"


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def create_app(settings: Optional[Settings] = None, services: Optional[RelayServices] = None) -> FastAPI:
    settings = settings or get_settings()
    services = services or RelayServices.from_settings(settings)
    _configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        os.makedirs(settings.upload_dir, exist_ok=True)
        logger.info(
            f"Voice relay up: upload_dir={settings.upload_dir}, "
            f"stt={settings.transcription_model}, chat={settings.chat_model}, "
            f"ffmpeg_workers={settings.ffmpeg_workers}, upstream_workers={settings.upstream_workers}"
        )
        if not settings.openai_key:
            logger.warning("OPENAI_KEY is not set; transcription and text tools will fail.")
        yield
        services.shutdown()
        logger.info("Voice relay stopped")

    app = FastAPI(
        title="Voice Relay",
        version="1.0",
        description="Uploads audio and documents, converts them locally and relays them to OpenAI speech and chat APIs.",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # ---------- errors -> {"error": ...} ----------
    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {exc.status_code} {type(exc).__name__}: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {type(exc).__name__}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.warning(f"{request.method} {request.url.path} -> 400: {message}")
        return JSONResponse(status_code=400, content={"error": message})

    # ---------- routes ----------
    app.include_router(upload.router, tags=["Uploads"])
    app.include_router(text.router, tags=["Text tools"])

    @app.get("/", response_class=PlainTextResponse, tags=["Service"])
    async def liveness():
        return LIVENESS_MESSAGE

    @app.get("/healthz", tags=["Service"])
    async def healthcheck():
        return {"status": "ok"}

    @app.get("/config", response_model=ClientConfigResponse, tags=["Service"])
    async def client_config(relay: RelayServices = Depends(get_services)):
        """
        Keys for the browser frontend. Returned only when EXPOSE_CLIENT_KEYS is on,
        since anyone who can reach the service can read them.
        """
        cfg = relay.settings
        if not cfg.expose_client_keys:
            return ClientConfigResponse()
        return ClientConfigResponse(
            apiKeyGoogle=cfg.google_api_key or None,
            openAIKey=cfg.openai_key or None,
        )

    # mounted last so the API routes above win; frontend assets resolve from the site root
    if settings.frontend_dir and os.path.isdir(settings.frontend_dir):
        app.mount("/", StaticFiles(directory=settings.frontend_dir, html=True), name="frontend")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "voice_relay.main:app",
        host=_settings.host,
        port=_settings.port,
        log_level=_settings.log_level.lower(),
    )
