"""ReloadNotifier: owns the live reload endpoint of one application.

State machine:
    NOT_STARTED --listen() ok--> LISTENING

listen() binds the port itself before handing the socket to uvicorn, so
a port conflict is reported as a NetworkError instead of the server
exiting the process. Under test configuration nothing is bound at all.
"""

import asyncio
import inspect
import logging
import socket
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import uvicorn

from ..config import TaskerConfig
from ..exceptions import NetworkError
from .server import ReloadHub, create_app


logger = logging.getLogger(__name__)

DEFAULT_PORT = 9999


class ReloadState(Enum):
    NOT_STARTED = "not-started"
    LISTENING = "listening"


class ReloadNotifier:
    """Push changed file lists to connected browsers.

    Attributes:
        on_listen: Called (and awaited if needed) once the endpoint is live;
                   the Tasker passes its watch() here
    """

    def __init__(
        self,
        config: TaskerConfig,
        host: str = '127.0.0.1',
        on_listen: Optional[Callable[[], Any]] = None,
    ):
        self.config = config
        self.host = host
        self.on_listen = on_listen
        self.state = ReloadState.NOT_STARTED
        self.port: Optional[int] = None
        self.hub = ReloadHub()
        self.app = create_app(self.hub)
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional['asyncio.Task[None]'] = None

    @property
    def listening(self) -> bool:
        return self.state is ReloadState.LISTENING

    def _bind(self, port: int) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, port))
        except OSError:
            sock.close()
            raise
        sock.set_inheritable(True)
        return sock

    async def listen(self, port: int = DEFAULT_PORT) -> bool:
        """Bind the endpoint and start serving.

        Returns:
            True if the endpoint started listening on this call
        """
        if self.config.is_testing:
            logger.debug("test mode, live reload endpoint not started")
            return False
        if self.listening:
            logger.warning("live reload endpoint already listening on port %s", self.port)
            return False

        try:
            sock = self._bind(port)
        except OSError as e:
            logger.error("%s", NetworkError(f"cannot listen on port {port}: {e}"))
            return False

        server_config = uvicorn.Config(self.app, log_level='warning', lifespan='off')
        self._server = uvicorn.Server(server_config)
        self._serve_task = asyncio.create_task(self._server.serve(sockets=[sock]))
        self.port = sock.getsockname()[1]
        self.state = ReloadState.LISTENING
        logger.info("LiveReload server listening on port %s", self.port)

        if self.on_listen is not None:
            result = self.on_listen()
            if inspect.isawaitable(result):
                await result
        return True

    async def changed(self, payload: Dict[str, Any]) -> List[str]:
        """Broadcast a {"body": {"files": [...]}} payload.

        Returns:
            Ids of the clients that were notified (empty when not listening)
        """
        if not self.listening:
            return []
        files = payload.get('body', {}).get('files', [])
        return await self.hub.broadcast(files)

    async def notify(self, changed_files: Sequence[str]) -> List[str]:
        """Tell every client that changed_files changed."""
        return await self.changed({'body': {'files': list(changed_files)}})

    async def close(self) -> None:
        """Stop the endpoint if it is running."""
        if self._server is None:
            return
        self._server.should_exit = True
        if self._serve_task is not None:
            await self._serve_task
        self._server = None
        self._serve_task = None
        self.state = ReloadState.NOT_STARTED
        logger.debug("live reload endpoint on port %s closed", self.port)
