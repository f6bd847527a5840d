"""
Exchange client.

Thin orchestration over the codec and order pipeline:
- validates method parameters and tags them with the method name and a
  request id
- decodes inbound frames and dispatches them to event listeners
- settles requests by id, through a callback or a Future
- caches the config and listed packets for order construction

Callbacks get (channel, event, error, message, parsed). Event listeners get
(channel, event, message, parsed). Both run on the transport thread.

A request that cannot complete (connection closed, deferred order that
fails to build) still reaches its callback, with a DexError as `error`.
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional, Union

import orjson

from .codec import METHOD_KEY, PacketDecoder, decode_packet, parse_frame, validate
from .config import ClientConfig
from .crypto import OrderSigner
from .errors import (
    ConnectionClosedError,
    DexError,
    RequestError,
    ResolutionError,
    ValidationError,
)
from .orders import OrderBuilder, OrderHasher
from .schemas import CLIENT_METHODS, EVENT_NAMES, SERVER_EVENTS, SERVER_STRUCTS
from .transport import Transport, WebSocketTransport
from .types import CanonicalOrder, ListedSnapshot, Packet, RawOrder, Response, wall_ms

logger = logging.getLogger(__name__)

# Events raised by the client itself rather than the server
CLIENT_EVENTS = ("packet", "wsOpen", "wsMessage", "wsSend", "wsError", "wsClose")

Callback = Callable[[Any, str, Optional[Any], Any, Any], None]


@dataclass(slots=True)
class _Pending:
    """A request waiting for its answer."""
    callback: Optional[Callback] = None
    future: Optional[Future] = None


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


def _chain(source: Future, target: Future) -> None:
    """Copy the outcome of one future into another."""
    def _done(f: Future) -> None:
        if target.cancelled():
            return
        error = f.exception()
        if error is not None:
            target.set_exception(error)
        else:
            target.set_result(f.result())
    source.add_done_callback(_done)


class DexClient:
    """
    Client for the exchange WebSocket API.

    Usage:
        client = DexClient(ClientConfig(account="0x..."))
        client.on("orderStatus", handler)
        client.connect()
        response = client.invoke("getBalances").result(timeout=5)
        client.place_order({"market": "ENGETH", "amount": 30, "rate": 0.004})
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
    ):
        """
        Initialize client.

        Args:
            config: Client configuration (defaults to mainnet, no keys)
            transport: Message channel (defaults to a WebSocket to config.endpoint)
        """
        self._config = config or ClientConfig()
        self._transport = transport or WebSocketTransport(self._config.endpoint)
        self._decoder = PacketDecoder(SERVER_STRUCTS, max_depth=self._config.max_schema_depth)
        self._hasher = OrderHasher()

        self._account_signer = OrderSigner(self._config.account) if self._config.account else None
        self._delegate_signer = OrderSigner(self._config.delegate) if self._config.delegate else None

        # Request id bookkeeping
        self._lock = threading.Lock()
        self._next_rid = 1
        self._pending: dict[int, _Pending] = {}

        self._listeners: dict[str, list[Callable]] = {
            name: [] for name in (*CLIENT_EVENTS, *SERVER_EVENTS)
        }

        # Connection-scoped caches
        self._config_packet: Optional[dict] = None
        self._listed: Optional[ListedSnapshot] = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def listed(self) -> Optional[ListedSnapshot]:
        """Listed tokens and markets, once received on this connection."""
        return self._listed

    @property
    def config_packet(self) -> Optional[dict]:
        """Decoded server config packet, once received on this connection."""
        return self._config_packet

    @property
    def pending_count(self) -> int:
        """Number of requests waiting for an answer."""
        with self._lock:
            return len(self._pending)

    @property
    def _order_signer(self) -> Optional[OrderSigner]:
        return self._account_signer or self._delegate_signer

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    def connect(self) -> None:
        """Open the transport. wsOpen fires once connected (and authenticated)."""
        self._transport.open(
            on_open=self._on_open,
            on_message=self.handle_frame,
            on_error=self._on_error,
            on_close=self._on_close,
        )

    def disconnect(self) -> None:
        """Close the transport."""
        self._transport.close()

    def _on_open(self) -> None:
        if self._config.no_auto_auth:
            self._emit("wsOpen")
        elif self._config.account:
            self.authenticate(self._config.account, callback=self._on_authenticated)
        elif self._config.delegate:
            self.authenticate_delegate(self._config.delegate, callback=self._on_authenticated)
        else:
            self._emit("wsOpen")

    def _on_authenticated(self, channel, event, error, message, parsed) -> None:
        # Closed before the auth answer arrived: the channel never opened
        if isinstance(error, ConnectionClosedError):
            return
        self._emit("wsOpen")

    def _on_error(self, error: Exception) -> None:
        if not self._listeners["wsError"]:
            logger.error(f"Transport error with no wsError listener: {error}")
        self._emit("wsError", error)

    def _on_close(self, code: Optional[int], reason: Optional[str]) -> None:
        # Snapshots belong to the connection; a new one must re-fetch them
        self._listed = None
        self._config_packet = None
        self._hasher.contract_address = None

        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        if pending:
            logger.warning(f"Connection closed with {len(pending)} pending requests")
        for request in pending:
            error = ConnectionClosedError(f"connection closed (code={code})")
            if request.callback is not None:
                request.callback(None, "wsClose", error, None, None)
            elif request.future is not None and not request.future.cancelled():
                request.future.set_exception(error)

        self._emit("wsClose", code, reason)

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def on(self, event: str, callback: Callable) -> None:
        """Add a listener for a server event or a client event."""
        if event not in self._listeners:
            raise ValueError(f"unknown event: {event}")
        if not callable(callback):
            raise ValueError("invalid or missing callback function")
        self._listeners[event].append(callback)

    def clear(self, event: str, callback: Callable) -> None:
        """Remove a listener added with on()."""
        if event not in self._listeners:
            raise ValueError(f"unknown event: {event}")
        if not callable(callback):
            raise ValueError("invalid or missing callback function")
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            callback(*args)

    # -------------------------------------------------------------------------
    # Outbound
    # -------------------------------------------------------------------------

    def invoke(
        self,
        method: str,
        params: Optional[dict] = None,
        callback: Optional[Callback] = None,
    ) -> Optional[Future]:
        """
        Validate and send a method call.

        Args:
            method: Client method name (see schemas/client_methods.json)
            params: Method parameters
            callback: Called with the answer; if None a Future is returned

        Returns:
            Future resolving to a Response, or None when a callback is given

        Raises:
            ValidationError: Unknown method or invalid parameters
        """
        schema = CLIENT_METHODS.get(method)
        if schema is None:
            raise ValidationError(f"Unknown method: {method}")

        params = dict(params or {})
        validate(schema, params)
        params[METHOD_KEY] = method
        return self.send_with_callback(params, callback)

    def send_with_callback(
        self,
        message: Union[dict, list[dict]],
        callback: Optional[Callback] = None,
    ) -> Optional[Future]:
        """
        Send one packet or a batch under a new request id.

        All packets of a batch share the request id.
        """
        with self._lock:
            rid = self._next_rid
            self._next_rid += 1
            pending = _Pending(callback=callback) if callback else _Pending(future=Future())
            self._pending[rid] = pending

        messages = message if isinstance(message, list) else [message]
        messages = [dict(m, rid=rid) for m in messages]

        try:
            self.send(messages)
        except Exception:
            with self._lock:
                self._pending.pop(rid, None)
            raise

        return pending.future

    def send(self, message: Any) -> None:
        """Send a raw message (serialized with orjson unless already a string)."""
        if isinstance(message, str):
            text = message
        else:
            text = orjson.dumps(message, default=_json_default).decode("utf-8")
        self._transport.send(text)
        logger.debug(f"Sent: {text[:200]}")
        self._emit("wsSend", text)

    def authenticate(self, private_key: str, callback: Optional[Callback] = None) -> Optional[Future]:
        """Log in with the account key by signing a millisecond nonce."""
        signer = OrderSigner(private_key)
        result = self._authenticate("authenticate", signer, callback)
        self._account_signer = signer
        return result

    def authenticate_delegate(self, private_key: str, callback: Optional[Callback] = None) -> Optional[Future]:
        """Log in with a delegate key by signing a millisecond nonce."""
        signer = OrderSigner(private_key)
        result = self._authenticate("authenticateDelegate", signer, callback)
        self._delegate_signer = signer
        return result

    def _authenticate(self, method: str, signer: OrderSigner, callback: Optional[Callback]) -> Optional[Future]:
        nonce = wall_ms()
        logger.info(f"Authenticating {signer.address} ({method})")
        return self.invoke(method, {
            "message": str(nonce),
            "nonce": nonce,
            "signature": signer.sign_text(str(nonce)),
        }, callback)

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    def build_order(self, order: Union[RawOrder, dict]) -> CanonicalOrder:
        """
        Resolve, normalize and (with a key configured) sign an order.

        Raises:
            ResolutionError: No listed snapshot, or unknown market/token
            OrderConstructionError: Incomplete or contradictory input
        """
        if self._listed is None:
            raise ResolutionError("No listed snapshot; request getListed first")
        builder = OrderBuilder(
            snapshot=self._listed,
            hasher=self._hasher,
            signer=self._order_signer,
            default_expiry=self._config.default_expiry,
        )
        return builder.build(order)

    def place_order(
        self,
        order: Union[RawOrder, dict],
        callback: Optional[Callback] = None,
    ) -> Optional[Future]:
        """
        Build and send an order.

        Without a listed snapshot, getListed is requested first and the
        order is placed once when it arrives.
        """
        if self._listed is not None:
            return self.invoke("placeOrder", self.build_order(order).to_params(), callback)

        logger.info("No listed snapshot yet, fetching before placing order")
        future: Optional[Future] = None if callback else Future()

        def _retry(channel, event, error, message, parsed) -> None:
            if error is not None:
                if future is None:
                    callback(channel, event, error, message, parsed)
                elif not future.cancelled():
                    if not isinstance(error, DexError):
                        error = RequestError(str(error))
                    future.set_exception(error)
                return

            try:
                inner = self.invoke("placeOrder", self.build_order(order).to_params(), callback)
            except DexError as e:
                logger.warning(f"Deferred order not placed: {e}")
                if future is None:
                    callback(channel, "error", e, None, None)
                elif not future.cancelled():
                    future.set_exception(e)
                return

            if future is not None:
                _chain(inner, future)

        self.invoke("getListed", callback=_retry)
        return future

    # -------------------------------------------------------------------------
    # Inbound
    # -------------------------------------------------------------------------

    def handle_frame(self, data: Union[bytes, str]) -> None:
        """
        Decode and dispatch one transport frame.

        Raises:
            DecodeError: On a malformed frame or packet; packets before it
                in the frame have already been dispatched
        """
        self._emit("wsMessage", data)
        for item in parse_frame(data):
            self._dispatch(decode_packet(item, SERVER_EVENTS, EVENT_NAMES, self._decoder))

    def _dispatch(self, packet: Packet) -> None:
        if packet.event == "config":
            self._config_packet = packet.parsed
            self._hasher.contract_address = packet.parsed.get("contractAddress")
        elif packet.event == "listed" and self._listed is None:
            self._listed = ListedSnapshot.from_parsed(packet.parsed)
            logger.info(
                f"Listed {len(self._listed.tokens)} tokens, "
                f"{len(self._listed.markets)} markets"
            )

        self._emit(packet.event, packet.channel, packet.event, packet.message, packet.parsed)

        if packet.request_id is not None:
            with self._lock:
                pending = self._pending.pop(packet.request_id, None)
            if pending is not None:
                self._settle(pending, packet)

        self._emit("packet", packet)

    @staticmethod
    def _settle(pending: _Pending, packet: Packet) -> None:
        is_error = packet.event == "error"

        if pending.callback is not None:
            error = packet.message if is_error else None
            pending.callback(packet.channel, packet.event, error, packet.message, packet.parsed)
            return

        future = pending.future
        if future is None or future.cancelled():
            return
        if is_error:
            future.set_exception(RequestError(str(packet.message)))
            return

        parsed = packet.parsed
        if str(packet.channel) != "0" and isinstance(parsed, dict):
            parsed = {**parsed, "market": packet.channel}
        future.set_result(Response(
            channel=packet.channel,
            event=packet.event,
            message=packet.message,
            parsed=parsed,
        ))
