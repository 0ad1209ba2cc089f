"""Protocol-agnostic TCP relay.

Lets clients on the outward-facing network reach a service of a peripheral
device that is only reachable from the controller.  Each accepted client gets
its own fresh connection to the remote endpoint, and raw bytes are pumped in
both directions until either side closes.  Works for streaming (MJPEG),
request/response (HTTP) and persistent duplex (WebSocket) services alike.
"""

from __future__ import annotations

import logging
import socket
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096
CONNECT_TIMEOUT_SECONDS = 1.0
READ_TIMEOUT_SECONDS = 2.0
ACCEPT_POLL_SECONDS = 0.5


@dataclass(frozen=True, slots=True)
class RelayLink:
    """Where a relay listens and where it forwards to."""

    bind_host: str
    bind_port: int
    remote_host: str
    remote_port: int

    def __str__(self) -> str:
        return f"{self.bind_host}:{self.bind_port} -> {self.remote_host}:{self.remote_port}"


def _shutdown(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass


class ByteRelay:
    """Forward every connection on a local port to one fixed remote endpoint."""

    def __init__(
        self,
        bind_host: str,
        bind_port: int,
        remote_host: str,
        remote_port: int,
        *,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        read_timeout: float = READ_TIMEOUT_SECONDS,
    ) -> None:
        self._link = RelayLink(bind_host, bind_port, remote_host, remote_port)
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._running = False
        self._lock = threading.Lock()
        self._listener: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._active = 0

    @property
    def link(self) -> RelayLink:
        return self._link

    @property
    def running(self) -> bool:
        return self._running

    @property
    def port(self) -> int:
        """Bound local port (the OS-assigned one when ``bind_port`` is 0)."""
        listener = self._listener
        if listener is not None:
            return int(listener.getsockname()[1])
        return self._link.bind_port

    @property
    def active_connections(self) -> int:
        return self._active

    def start(self) -> None:
        """Bind the local port and start accepting in a daemon thread.  Idempotent.

        Raises :class:`OSError` if the port cannot be bound.
        """
        with self._lock:
            if self._running:
                return
            listener = socket.create_server((self._link.bind_host, self._link.bind_port))
            listener.settimeout(ACCEPT_POLL_SECONDS)
            self._listener = listener
            self._running = True
        self._thread = threading.Thread(
            target=self._accept_loop, name=f"telecast-relay-{self.port}", daemon=True
        )
        self._thread.start()
        logger.info("Relay listening: %s", self._link)

    def close(self) -> None:
        """Stop accepting and close the listening socket.

        Connections already being pumped end on their own once a socket
        closes or the next read timeout observes the shutdown.
        """
        with self._lock:
            was_running = self._running
            self._running = False
            listener, self._listener = self._listener, None
        if listener is not None:
            _shutdown(listener)
            listener.close()
        if was_running:
            logger.info("Relay stopped: %s", self._link)

    def __enter__(self) -> ByteRelay:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _accept_loop(self) -> None:
        listener = self._listener
        if listener is None:
            return
        while self._running:
            try:
                client, address = listener.accept()
            except TimeoutError:
                continue
            except OSError:
                if self._running:
                    logger.warning("Relay accept failed on %s", self._link, exc_info=True)
                break
            threading.Thread(
                target=self._handle_client,
                args=(client, address),
                name=f"telecast-relay-client-{address}",
                daemon=True,
            ).start()
        self._running = False

    def _handle_client(self, client: socket.socket, address: object) -> None:
        try:
            remote = socket.create_connection(
                (self._link.remote_host, self._link.remote_port),
                timeout=self._connect_timeout,
            )
        except OSError:
            logger.debug("Relay %s: remote unreachable for %s", self._link, address, exc_info=True)
            _shutdown(client)
            client.close()
            return

        with self._lock:
            self._active += 1
        logger.debug("Relay %s: client %s connected", self._link, address)
        try:
            with client, remote:
                for sock in (client, remote):
                    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                    sock.settimeout(self._read_timeout)
                downstream = threading.Thread(
                    target=self._pump,
                    args=(remote, client),
                    name=f"telecast-relay-down-{address}",
                    daemon=True,
                )
                downstream.start()
                self._pump(client, remote)
                downstream.join(timeout=self._read_timeout * 2)
        finally:
            with self._lock:
                self._active -= 1
            logger.debug("Relay %s: client %s closed", self._link, address)

    def _pump(self, source: socket.socket, sink: socket.socket) -> None:
        """Copy bytes from *source* to *sink* until EOF, an error, or shutdown."""
        try:
            while self._running:
                try:
                    data = source.recv(CHUNK_SIZE)
                except TimeoutError:
                    continue
                if not data:
                    break
                sink.sendall(data)
        except OSError:
            logger.debug("Relay %s: pump ended with error", self._link, exc_info=True)
        finally:
            # Either direction ending tears down the pair so the peer pump exits.
            _shutdown(source)
            _shutdown(sink)
