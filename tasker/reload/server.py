"""Live reload endpoint speaking the livereload protocol.

Browsers (through the livereload client script or extension) connect to
/livereload over a WebSocket. Each changed file is pushed as:

    {"command": "reload", "path": "/css/site.css", "liveCSS": true}

Build tools that run in another process can trigger a push with
GET /changed?files=a.css,b.js or POST /changed {"files": [...]}.
"""

import itertools
import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Dict, Iterable, List, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

PROTOCOL = 'http://livereload.com/protocols/official-7'


def _package_version() -> str:
    try:
        return version('tasker')
    except PackageNotFoundError:
        return '0+unknown'


class ChangedFiles(BaseModel):
    files: List[str] = Field(default_factory=list)


class ReloadHub:
    """Connected clients and the broadcast to them."""

    def __init__(self):
        self._clients: Dict[str, WebSocket] = {}
        self._ids = itertools.count(1)

    def add(self, websocket: WebSocket) -> str:
        client_id = f"client-{next(self._ids)}"
        self._clients[client_id] = websocket
        return client_id

    def remove(self, client_id: str) -> None:
        self._clients.pop(client_id, None)

    @property
    def client_ids(self) -> List[str]:
        return list(self._clients)

    async def broadcast(self, files: Iterable[str]) -> List[str]:
        """Send one reload command per file to every client.

        Clients that fail to receive are dropped.

        Returns:
            Ids of the clients that received every message
        """
        files = list(files)
        delivered = []
        for client_id, websocket in list(self._clients.items()):
            try:
                for path in files:
                    await websocket.send_json(
                        {"command": "reload", "path": path, "liveCSS": True}
                    )
            except Exception as e:
                logger.debug("dropping %s: %s", client_id, e)
                self.remove(client_id)
                continue
            delivered.append(client_id)
        return delivered


def create_app(hub: ReloadHub, server_version: Optional[str] = None) -> FastAPI:
    """Build the reload endpoint application around a hub."""
    server_version = server_version or _package_version()
    app = FastAPI(title="tasker livereload", docs_url=None, redoc_url=None)

    @app.get("/")
    async def welcome() -> dict:
        return {"tasker": "Welcome", "version": server_version}

    @app.get("/changed")
    async def changed_get(files: str = "") -> dict:
        names = [f for f in files.split(",") if f]
        clients = await hub.broadcast(names)
        return {"clients": clients, "files": names}

    @app.post("/changed")
    async def changed_post(body: ChangedFiles) -> dict:
        clients = await hub.broadcast(body.files)
        return {"clients": clients, "files": body.files}

    @app.websocket("/livereload")
    async def livereload(websocket: WebSocket) -> None:
        await websocket.accept()
        client_id = hub.add(websocket)
        logger.debug("%s connected", client_id)
        try:
            while True:
                message = await websocket.receive_json()
                if isinstance(message, dict) and message.get("command") == "hello":
                    await websocket.send_json({
                        "command": "hello",
                        "protocols": [PROTOCOL],
                        "serverName": "tasker",
                    })
        except WebSocketDisconnect:
            pass
        finally:
            hub.remove(client_id)
            logger.debug("%s disconnected", client_id)

    return app
