"""UDP and TCP listeners feeding the engine ingestion queue"""
import asyncio
from typing import Optional, Set, Tuple
from logging_config import get_logger


logger = get_logger(__name__)


def split_lines(data: bytes):
    """Decode a payload into non-blank protocol lines"""
    text = data.decode("utf-8", errors="replace")
    return [line.strip() for line in text.splitlines() if line.strip()]


class StatsdDatagramProtocol(asyncio.DatagramProtocol):
    """Each datagram may carry several newline-separated lines"""

    def __init__(self, engine):
        self.engine = engine

    def datagram_received(self, data: bytes, addr) -> None:
        for line in split_lines(data):
            self.engine.enqueue(line)

    def error_received(self, exc: Exception) -> None:
        logger.warning("statsd udp socket error", error=str(exc), event_type="udp_error")


class StatsdListener:
    """Binds the UDP and TCP sockets on the same address and port"""

    def __init__(self, config, engine):
        self.config = config
        self.engine = engine
        self.transport: Optional[asyncio.DatagramTransport] = None
        self.tcp_server: Optional[asyncio.AbstractServer] = None
        self._writers: Set[asyncio.StreamWriter] = set()

    async def start(self) -> None:
        """Open both sockets"""
        logger.debug("binding statsd tcp and udp sockets", bind=self.config.bind, port=self.config.port)
        loop = asyncio.get_running_loop()

        self.tcp_server = await asyncio.start_server(
            self._handle_connection,
            host=self.config.bind,
            port=self.config.port
        )
        # An ephemeral TCP port is reused for UDP so both share one number
        port = self.tcp_server.sockets[0].getsockname()[1]

        self.transport, _ = await loop.create_datagram_endpoint(
            lambda: StatsdDatagramProtocol(self.engine),
            local_addr=(self.config.bind, port)
        )
        logger.info("statsd listener started", bind=self.config.bind, port=port, event_type="listener_start")

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Read one protocol line at a time until the client disconnects"""
        peer = writer.get_extra_info("peername")
        self._writers.add(writer)
        try:
            while True:
                data = await reader.readline()
                if not data:
                    break
                for line in split_lines(data):
                    self.engine.enqueue(line)
        except (ConnectionError, ValueError) as e:
            # readline raises ValueError for lines over the stream limit
            logger.warning("statsd tcp connection error", peer=str(peer), error=str(e), event_type="tcp_error")
        finally:
            self._writers.discard(writer)
            writer.close()

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Bound (host, port) of the UDP socket"""
        if self.transport is None:
            return None
        return self.transport.get_extra_info("sockname")[:2]

    async def stop(self) -> None:
        """Close both sockets"""
        if self.transport is not None:
            self.transport.close()
            self.transport = None
        if self.tcp_server is not None:
            self.tcp_server.close()
            for writer in list(self._writers):
                writer.close()
            await self.tcp_server.wait_closed()
            self.tcp_server = None
        logger.info("statsd listener stopped", event_type="listener_stop")
