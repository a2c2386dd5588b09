"""
Server Lifecycle Manager.

Runs the LocalDrop app under uvicorn on a background thread so the embedding
application keeps its own thread. The listening socket is bound here, before
uvicorn starts, which turns "port in use" into a ``BindError`` on the
caller's thread; ``stop()`` returns only after that socket is closed.

    STOPPED --start()--> STARTING --listener up--> RUNNING --stop()--> STOPPED
"""

import logging
import socket
import threading
import time
from enum import Enum

import uvicorn

from localdrop.app import create_app
from localdrop.config import API_HOST, LOG_LEVEL, START_TIMEOUT, STOP_TIMEOUT
from localdrop.context import SessionContext
from localdrop.errors import BindError, InternalError

logger = logging.getLogger(__name__)


class ServerState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


class ServerLifecycle:
    """Starts and stops the HTTP listener for one session."""

    def __init__(
        self,
        ctx: SessionContext,
        host: str = API_HOST,
        log_level: str = LOG_LEVEL,
        start_timeout: float = START_TIMEOUT,
    ) -> None:
        self._ctx = ctx
        self._host = host
        self._log_level = log_level.lower()
        self._start_timeout = start_timeout
        self._lock = threading.RLock()
        self._state = ServerState.STOPPED
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._socket: socket.socket | None = None

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ServerState.RUNNING

    @property
    def port(self) -> int:
        return self._ctx.address.port

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self._host, self._ctx.address.port))
            sock.listen(128)
        except OSError:
            sock.close()
            raise
        sock.setblocking(False)
        return sock

    def start(self) -> None:
        """Bind the port and serve. Raises ``BindError`` if the port is taken."""
        with self._lock:
            if self._state is not ServerState.STOPPED:
                return
            self._state = ServerState.STARTING
            port = self._ctx.address.port

            try:
                sock = self._bind()
            except OSError as e:
                self._state = ServerState.STOPPED
                logger.error(f"Cannot bind {self._host}:{port}: {e}")
                raise BindError(f"Port {port} is unavailable: {e}") from e

            # Port 0 asks the OS for a free port
            self._ctx.set_port(sock.getsockname()[1])

            config = uvicorn.Config(
                create_app(self._ctx),
                log_level=self._log_level,
                timeout_keep_alive=5,
            )
            server = uvicorn.Server(config)
            thread = threading.Thread(
                target=server.run,
                kwargs={"sockets": [sock]},
                name="localdrop-http",
                daemon=True,
            )
            self._server, self._thread, self._socket = server, thread, sock
            thread.start()

            deadline = time.monotonic() + self._start_timeout
            while not server.started:
                if not thread.is_alive() or time.monotonic() > deadline:
                    self._teardown()
                    raise InternalError("Server failed to start")
                time.sleep(0.02)

            self._state = ServerState.RUNNING
            logger.info(f"Server running on {self._host}:{self._ctx.address.port}")

    def _teardown(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=STOP_TIMEOUT)
            if self._thread.is_alive():
                logger.warning("Server did not stop in time, forcing exit")
                self._server.force_exit = True
                self._thread.join(timeout=STOP_TIMEOUT)
        if self._socket is not None:
            self._socket.close()
        self._server = self._thread = self._socket = None
        self._state = ServerState.STOPPED

    def stop(self) -> None:
        """Release the listener. Stopping a stopped server does nothing."""
        with self._lock:
            if self._state is ServerState.STOPPED:
                return
            self._teardown()
            logger.info("Server stopped")

    def restart(self) -> None:
        with self._lock:
            self.stop()
            self.start()

    def __enter__(self) -> "ServerLifecycle":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
