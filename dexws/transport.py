"""
Duplex message channel to the exchange.

Uses websocket-client WebSocketApp on a background thread. The transport
only moves frames: no reconnect, no framing beyond what the socket does.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import websocket

logger = logging.getLogger(__name__)

OpenHandler = Callable[[], None]
MessageHandler = Callable[[bytes], None]
ErrorHandler = Callable[[Exception], None]
CloseHandler = Callable[[Optional[int], Optional[str]], None]


class Transport(ABC):
    """Base class for message channels used by DexClient."""

    @abstractmethod
    def open(
        self,
        on_open: OpenHandler,
        on_message: MessageHandler,
        on_error: ErrorHandler,
        on_close: CloseHandler,
    ) -> None:
        """Open the channel and start delivering events to the handlers."""
        pass

    @abstractmethod
    def send(self, data: str) -> None:
        """Send one text frame."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the channel."""
        pass


class WebSocketTransport(Transport):
    """
    WebSocket channel on a dedicated daemon thread.

    Handlers are called from the socket thread, one frame at a time.
    """

    def __init__(
        self,
        url: str,
        name: str = "DEX-WS",
        ping_interval: int = 20,
        ping_timeout: int = 10,
    ):
        self._url = url
        self._name = name
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout

        self._ws: Optional[websocket.WebSocketApp] = None
        self._thread: Optional[threading.Thread] = None
        self._connected = False

    @property
    def connected(self) -> bool:
        """Check if connected."""
        return self._connected

    def open(
        self,
        on_open: OpenHandler,
        on_message: MessageHandler,
        on_error: ErrorHandler,
        on_close: CloseHandler,
    ) -> None:
        """Connect in a background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning(f"{self._name}: Already running")
            return

        def _on_open(ws) -> None:
            logger.info(f"{self._name}: Connected")
            self._connected = True
            on_open()

        def _on_message(ws, message: Any) -> None:
            # Message can be str or bytes
            if isinstance(message, str):
                message = message.encode("utf-8")
            on_message(message)

        def _on_error(ws, error: Exception) -> None:
            logger.warning(f"{self._name}: WebSocket error: {error}")
            on_error(error)

        def _on_close(ws, close_status_code, close_msg) -> None:
            self._connected = False
            logger.info(f"{self._name}: Connection closed (code={close_status_code})")
            on_close(close_status_code, close_msg)

        logger.info(f"{self._name}: Connecting to {self._url[:60]}...")
        self._ws = websocket.WebSocketApp(
            self._url,
            on_open=_on_open,
            on_message=_on_message,
            on_error=_on_error,
            on_close=_on_close,
        )

        # Note: websocket-client requires ping_interval > ping_timeout
        self._thread = threading.Thread(
            target=self._ws.run_forever,
            kwargs={
                "ping_interval": self._ping_interval,
                "ping_timeout": self._ping_timeout,
                "skip_utf8_validation": True,
            },
            name=f"{self._name}-thread",
            daemon=True,
        )
        self._thread.start()

    def send(self, data: str) -> None:
        """Send a text frame."""
        if not self._ws or not self._connected:
            raise websocket.WebSocketConnectionClosedException(
                f"{self._name}: not connected"
            )
        self._ws.send(data)

    def close(self, timeout: float = 5.0) -> None:
        """Close the socket and wait for the thread."""
        logger.info(f"{self._name}: Stopping...")
        if self._ws:
            self._ws.close()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"{self._name}: Thread did not stop in time")

        self._connected = False
        logger.info(f"{self._name}: Stopped")
