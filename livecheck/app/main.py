"""FastAPI entry-point for the liveness controller."""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, Response, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse
from fastapi.websockets import WebSocketState

from .config import Settings, get_settings
from .logging_config import configure_logging
from .schemas import FrameRequest, FrameResponse, SessionSnapshot
from .session_manager import SessionManager, SessionNotActive


def create_app(manager: Optional[SessionManager] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or (manager.settings if manager else get_settings())
    manager = manager or SessionManager(settings=settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await manager.start()
        try:
            yield
        finally:
            await manager.stop()

    app = FastAPI(title="livecheck-controller", version="0.1.0", lifespan=lifespan)
    app.state.manager = manager

    @app.get("/healthz")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok", "phase": manager.phase.value})

    @app.post("/session", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
    async def start_session() -> SessionSnapshot:
        return SessionSnapshot(**await manager.start_session())

    @app.get("/session", response_model=SessionSnapshot)
    async def get_session() -> SessionSnapshot:
        snapshot = manager.snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="no_active_session")
        return SessionSnapshot(**snapshot)

    @app.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
    async def cancel_session() -> Response:
        await manager.cancel_session()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/session/frames", response_model=FrameResponse)
    async def submit_frame(frame: FrameRequest) -> FrameResponse:
        faces = [face.to_observation() for face in frame.faces]
        try:
            outcome = await manager.submit_faces(faces)
        except SessionNotActive as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return FrameResponse(accepted=outcome.accepted, **outcome.snapshot)

    @app.websocket("/ws/ui")
    async def ui_socket(ws: WebSocket) -> None:
        await ws.accept()
        queue = manager.register_ui()

        async def forward_events() -> None:
            while True:
                event = await queue.get()
                await ws.send_json(event.to_payload())

        sender = asyncio.create_task(forward_events(), name="ui-socket-sender")
        try:
            # client messages are ignored; receiving only surfaces the disconnect
            while True:
                await ws.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            sender.cancel()
            await asyncio.gather(sender, return_exceptions=True)
            manager.unregister_ui(queue)
            if ws.client_state is WebSocketState.CONNECTED:
                await ws.close()

    return app


def build_default_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    return create_app(settings=settings)


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        build_default_app(),
        host=settings.controller_host,
        port=settings.controller_port,
        log_config=None,
    )


if __name__ == "__main__":
    run()


__all__ = ["build_default_app", "create_app", "run"]
