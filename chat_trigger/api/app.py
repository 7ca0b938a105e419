from __future__ import annotations

from pathlib import Path

import structlog
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from chat_trigger import __version__
from chat_trigger.api.schema import SetUrlRequest, StartRequest, StatusResponse
from chat_trigger.config import ChatTriggerConfig, get_config
from chat_trigger.engine import MonitorEngine, build_engine
from chat_trigger.errors import ControlInputError

LOGGER = structlog.get_logger("chat_trigger.api")

_URL_REQUIRED = "URL is required"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def create_app(config: ChatTriggerConfig | None = None, engine: MonitorEngine | None = None) -> FastAPI:
    app = FastAPI(title="Chat Trigger Server", version=__version__, docs_url=None, redoc_url=None)
    app.state.config = config or get_config()
    app.state.engine = engine or build_engine(app.state.config)
    app.state.templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    def _engine() -> MonitorEngine:
        return app.state.engine

    # Malformed control bodies are client errors like a missing URL.
    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _describe_validation(exc)
        LOGGER.warning("Rejected control request", path=request.url.path, error=message)
        return _error(400, message)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        LOGGER.info("Shutting down")
        await _engine().shutdown()

    @app.get("/status", response_model=StatusResponse)
    async def get_status() -> dict:
        return _engine().status()

    @app.post("/setUrl")
    async def set_url(body: SetUrlRequest | None = None):
        url = (body.url if body else None) or ""
        if not url.strip():
            return _error(400, _URL_REQUIRED)
        try:
            await _engine().set_url(url)
        except Exception as e:
            return _error(500, str(e))
        return {"success": True}

    @app.post("/start")
    async def start(body: StartRequest | None = None):
        url = (body.url if body else None) or ""
        if not url.strip():
            return _error(400, _URL_REQUIRED)
        engine = _engine()
        try:
            if body.triggers is not None:
                engine.triggers.replace([t.model_dump() for t in body.triggers])
            await engine.start(url)
        except ControlInputError as e:
            return _error(400, str(e))
        except Exception as e:
            return _error(500, str(e))
        return {"success": True}

    @app.post("/stop")
    async def stop():
        try:
            await _engine().stop()
        except Exception as e:
            LOGGER.exception("Stop failed")
            return _error(500, str(e))
        return {"success": True}

    @app.get("/", response_class=HTMLResponse)
    async def home(request: Request):
        engine = _engine()
        return app.state.templates.TemplateResponse(
            request,
            "status.html",
            {
                "running": engine.running,
                "url": engine.session.url,
                "trigger_count": len(engine.triggers),
                "listener_count": len(engine.hub),
                "host": request.headers.get("host", ""),
            },
        )

    @app.websocket("/")
    async def listener_channel(websocket: WebSocket) -> None:
        engine = _engine()
        await websocket.accept()
        listener = engine.hub.subscribe(websocket)
        try:
            while True:
                raw = await websocket.receive_text()
                await engine.hub.handle_message(listener, raw, engine.triggers)
        except WebSocketDisconnect:
            pass
        finally:
            await engine.hub.unsubscribe(listener)

    return app
