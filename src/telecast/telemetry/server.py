"""Threaded TCP server that broadcasts telemetry snapshots to monitoring clients.

The owning control loop publishes one :class:`TelemetrySnapshot` per cycle via
:meth:`TelemetryServer.set_snapshot`.  A broadcast thread wakes every few
milliseconds and sends each subscribed client the latest snapshot, limited to
that client's fields and rate.  Snapshots are "latest value wins": a slow
client may skip intermediate cycles.

Every socket operation runs on a dedicated daemon thread (one accept loop, one
broadcast loop, one reader per client) so a stalled peer never blocks the
control loop or other clients.  Transport errors close only the affected
session.
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from enum import StrEnum
from typing import TYPE_CHECKING

from telecast.telemetry import protocol
from telecast.telemetry.snapshot import TelemetrySnapshot

if TYPE_CHECKING:
    from collections.abc import Callable

    from telecast.telemetry.config_registry import ConfigRegistry
    from telecast.telemetry.fields import FieldCatalog

logger = logging.getLogger(__name__)

DEFAULT_MAX_RATE_HZ = 100
TICK_SECONDS = 0.005
READ_TIMEOUT_SECONDS = 2.0
ACCEPT_POLL_SECONDS = 0.5
RECV_CHUNK = 4096


class ServerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    CLOSED = "closed"


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


class ClientSession:
    """One client connection: a command reader thread plus broadcast-driven writes."""

    def __init__(
        self,
        sock: socket.socket,
        address: tuple[str, int] | str,
        catalog: FieldCatalog,
        config_registry: ConfigRegistry | None,
        min_interval_ms: int,
        on_close: Callable[[ClientSession], None],
    ) -> None:
        self._sock = sock
        self._address = address
        self._catalog = catalog
        self._config = config_registry
        self._min_interval_ms = min_interval_ms
        self._on_close = on_close
        self._subscription = protocol.Subscription(
            indices=(),
            interval_ms=max(min_interval_ms, 1000 // protocol.DEFAULT_RATE_HZ),
        )
        # Touched only by the broadcast thread.
        self._last_sent_ms = 0
        self._write_lock = threading.Lock()
        self._close_lock = threading.Lock()
        self._closed = False
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int] | str:
        return self._address

    @property
    def subscribed(self) -> tuple[int, ...]:
        return self._subscription.indices

    @property
    def interval_ms(self) -> int:
        return self._subscription.interval_ms

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the command reader thread."""
        self._thread = threading.Thread(
            target=self._read_loop, name=f"telecast-session-{self._address}", daemon=True
        )
        self._thread.start()

    def maybe_send(self, snapshot: TelemetrySnapshot, now_ms: int) -> bool:
        """Send a ``DATA`` line if subscribed and the session's interval has elapsed.

        Returns ``True`` if a line was written.
        """
        sub = self._subscription
        if not sub.indices or self._closed:
            return False
        if now_ms - self._last_sent_ms < sub.interval_ms:
            return False
        if not self._send_line(protocol.render_data(snapshot.to_csv(sub.indices))):
            return False
        self._last_sent_ms = now_ms
        return True

    def handle_line(self, line: str) -> str | None:
        """React to one command line and return the reply (``None`` for blank lines)."""
        cmd = protocol.parse_command(line)
        if cmd is None:
            return None
        if cmd.verb in ("HELLO", "FIELDS"):
            return protocol.render_fields(self._catalog.fields)
        if cmd.verb == "LISTCFG":
            return protocol.render_config(self._config.list() if self._config else [])
        if cmd.verb == "SET":
            return self._handle_set(cmd.args)
        if cmd.verb == "SUB":
            self._subscription = protocol.parse_subscription(
                cmd.args, self._catalog, self._min_interval_ms
            )
            logger.debug(
                "Client %s subscribed to %d field(s) every %d ms",
                self._address,
                len(self._subscription.indices),
                self._subscription.interval_ms,
            )
            return protocol.OK
        return protocol.ERR_UNKNOWN

    def _handle_set(self, args: str) -> str:
        if self._config is None:
            return protocol.ERR_NO_CONFIG
        assignment = protocol.parse_assignment(args)
        if assignment is None:
            return protocol.ERR_BAD_FORMAT
        name, value = assignment
        return protocol.OK if self._config.set(name, value) else protocol.ERR_INVALID

    def _read_loop(self) -> None:
        buffer = b""
        try:
            while not self._closed:
                try:
                    chunk = self._sock.recv(RECV_CHUNK)
                except TimeoutError:
                    continue
                if not chunk:
                    return
                buffer += chunk
                while b"\n" in buffer:
                    raw, buffer = buffer.split(b"\n", 1)
                    reply = self.handle_line(raw.decode("utf-8", errors="replace"))
                    if reply is not None and not self._send_line(reply):
                        return
        except OSError:
            logger.debug("Read failed for client %s", self._address, exc_info=True)
        finally:
            self.close()

    def _send_line(self, line: str) -> bool:
        try:
            with self._write_lock:
                self._sock.sendall(line.encode("utf-8") + b"\n")
        except OSError:
            logger.debug("Write failed for client %s", self._address, exc_info=True)
            self.close()
            return False
        return True

    def close(self) -> None:
        """Close the connection and drop the session.  Safe to call repeatedly from any thread."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()
        self._on_close(self)


class TelemetryServer:
    """Broadcast server for one field catalog.

    Lifecycle is ``idle -> running -> closed``; ``closed`` is terminal.
    """

    def __init__(
        self,
        port: int,
        catalog: FieldCatalog,
        config_registry: ConfigRegistry | None = None,
        max_rate_hz: int = DEFAULT_MAX_RATE_HZ,
        host: str = "0.0.0.0",
    ) -> None:
        self._host = host
        self._port = port
        self._catalog = catalog
        self._config = config_registry
        self._min_interval_ms = protocol.min_interval_ms(max_rate_hz)
        self._latest = TelemetrySnapshot.empty(catalog.size())
        self._sessions: tuple[ClientSession, ...] = ()
        self._sessions_lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()
        self._state = ServerState.IDLE
        self._stop = threading.Event()
        self._listener: socket.socket | None = None
        self._accept_thread: threading.Thread | None = None
        self._broadcast_thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Bind the listening socket and start the accept and broadcast threads.

        No-op while already running.  Raises :class:`RuntimeError` after
        :meth:`close` and :class:`OSError` if the port cannot be bound.
        """
        with self._lifecycle_lock:
            if self._state is ServerState.RUNNING:
                return
            if self._state is ServerState.CLOSED:
                raise RuntimeError("TelemetryServer is closed")
            listener = socket.create_server((self._host, self._port))
            listener.settimeout(ACCEPT_POLL_SECONDS)
            self._listener = listener
            self._state = ServerState.RUNNING

        self._accept_thread = threading.Thread(
            target=self._accept_loop, name="telecast-accept", daemon=True
        )
        self._broadcast_thread = threading.Thread(
            target=self._broadcast_loop, name="telecast-broadcast", daemon=True
        )
        self._accept_thread.start()
        self._broadcast_thread.start()
        logger.info("Telemetry server listening on %s:%d", self._host, self.port)

    def close(self) -> None:
        """Stop accepting, close the listening socket and every session.  Idempotent."""
        with self._lifecycle_lock:
            if self._state is ServerState.CLOSED:
                return
            was_running = self._state is ServerState.RUNNING
            self._state = ServerState.CLOSED
            self._stop.set()
            listener, self._listener = self._listener, None
        if listener is not None:
            try:
                listener.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            listener.close()
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, ()
        for session in sessions:
            session.close()
        if was_running:
            logger.info("Telemetry server stopped")

    def __enter__(self) -> TelemetryServer:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def set_snapshot(self, snapshot: TelemetrySnapshot) -> None:
        """Replace the published snapshot; picked up on the next broadcast tick."""
        if snapshot.size() != self._catalog.size():
            raise ValueError(
                f"Snapshot has {snapshot.size()} values, catalog has {self._catalog.size()}"
            )
        self._latest = snapshot

    @property
    def latest_snapshot(self) -> TelemetrySnapshot:
        return self._latest

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def port(self) -> int:
        """Bound port (the OS-assigned one when constructed with ``port=0``)."""
        listener = self._listener
        if listener is not None:
            return int(listener.getsockname()[1])
        return self._port

    @property
    def sessions(self) -> tuple[ClientSession, ...]:
        return self._sessions

    @property
    def min_interval_ms(self) -> int:
        return self._min_interval_ms

    # ------------------------------------------------------------------
    # Session collection (copy-on-write)
    # ------------------------------------------------------------------

    def _add_session(self, session: ClientSession) -> bool:
        with self._sessions_lock:
            if self._stop.is_set():
                return False
            self._sessions = (*self._sessions, session)
        return True

    def _discard_session(self, session: ClientSession) -> None:
        with self._sessions_lock:
            if session not in self._sessions:
                return
            self._sessions = tuple(s for s in self._sessions if s is not session)
            remaining = len(self._sessions)
        logger.info("Client disconnected: %s (remaining: %d)", session.address, remaining)

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def _accept_loop(self) -> None:
        listener = self._listener
        if listener is None:
            return
        while not self._stop.is_set():
            try:
                conn, address = listener.accept()
            except TimeoutError:
                continue
            except OSError:
                if not self._stop.is_set():
                    logger.warning("Telemetry accept loop failed", exc_info=True)
                break
            conn.settimeout(READ_TIMEOUT_SECONDS)
            conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            session = ClientSession(
                conn,
                address,
                self._catalog,
                self._config,
                self._min_interval_ms,
                self._discard_session,
            )
            if not self._add_session(session):
                session.close()
                break
            logger.info("Client connected: %s (total: %d)", address, len(self._sessions))
            session.start()

    def _broadcast_loop(self) -> None:
        while not self._stop.wait(TICK_SECONDS):
            now_ms = _now_ms()
            snapshot = self._latest
            for session in self._sessions:
                session.maybe_send(snapshot, now_ms)
