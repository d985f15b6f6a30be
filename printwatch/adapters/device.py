"""Websocket client for the printer's filament-monitor bridge."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import random
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set, Tuple
from urllib.parse import urlparse, urlunparse

import aiohttp

from ..config import DeviceConfig
from ..sync.event_types import EVENT_NAMES, EventName

LOGGER = logging.getLogger(__name__)

EventHandler = Callable[[Any], Awaitable[None] | None]

# Dashboard command -> value of the ``command`` field the bridge expects.
COMMANDS: Dict[str, str] = {
    "pause": "pause",
    "resume": "resume",
    "cancel": "cancel",
    "light": "light",
}

_TYPED_FRAMES = {
    EventName.STATUS,
    EventName.SENSOR,
    EventName.POSITION,
    EventName.FULL_STATUS,
}


class DeviceClient:
    """Persistent websocket connection to the device.

    Frames are decoded into ``(event_name, payload)`` pairs and delivered to
    handlers registered through :meth:`on`. The connection is re-established
    with jittered exponential backoff until :meth:`close` is called.
    """

    def __init__(
        self,
        config: DeviceConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        reconnect_initial: float = 1.0,
        reconnect_max: float = 30.0,
    ) -> None:
        self.config = config
        self.reconnect_initial = reconnect_initial
        self.reconnect_max = reconnect_max

        self._ws_url = build_ws_url(config.url)
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._listener_task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()
        self._connected_event = asyncio.Event()
        self._active_ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._pending_sends: Set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def url(self) -> str:
        return self._ws_url

    @property
    def connected(self) -> bool:
        ws = self._active_ws
        return ws is not None and not ws.closed

    def on(self, event_name: str, handler: EventHandler) -> None:
        """Register ``handler`` for one of the device event names."""

        if event_name not in EVENT_NAMES:
            raise ValueError(f"Unknown device event: {event_name!r}")
        self._handlers.setdefault(event_name, []).append(handler)

    async def connect(self) -> None:
        """Start the background listener; returns without waiting for the socket."""

        if self._listener_task is not None:
            return

        if self._owns_session and self._session is None:
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)

        self._stop_event.clear()
        self._listener_task = asyncio.create_task(self._listen_loop())
        await asyncio.sleep(0)

    async def wait_connected(self, timeout: float = 10.0) -> bool:
        try:
            async with asyncio.timeout(timeout):
                await self._connected_event.wait()
        except asyncio.TimeoutError:
            return False
        return True

    async def close(self) -> None:
        """Stop listening and close the underlying resources."""

        self._stop_event.set()

        await self.flush()

        if self._listener_task is not None:
            self._listener_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener_task
            self._listener_task = None

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def flush(self) -> None:
        """Wait for queued commands to be written to the socket."""

        if self._pending_sends:
            await asyncio.gather(*list(self._pending_sends), return_exceptions=True)

    def pause_print(self) -> None:
        self.send_command("pause")

    def resume_print(self) -> None:
        self.send_command("resume")

    def cancel_print(self) -> None:
        self.send_command("cancel")

    def toggle_light(self) -> None:
        self.send_command("light")

    def send_command(self, action: str) -> None:
        """Queue a command frame; fire-and-forget.

        Raises:
            ValueError: If ``action`` is not a known command.
        """

        command = COMMANDS.get(action.strip().lower())
        if command is None:
            raise ValueError(f"Unsupported device command: {action!r}")

        ws = self._active_ws
        if ws is None or ws.closed:
            LOGGER.warning("Dropping %s command: device is not connected", command)
            return

        task = asyncio.create_task(
            self._send_json(ws, {"type": "command", "command": command})
        )
        self._pending_sends.add(task)
        task.add_done_callback(self._pending_sends.discard)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def _send_json(
        self, ws: aiohttp.ClientWebSocketResponse, payload: Mapping[str, Any]
    ) -> None:
        try:
            await ws.send_json(dict(payload))
            LOGGER.debug("Sent %s", payload)
        except Exception as exc:
            LOGGER.warning("Failed to send %s command: %s", payload.get("command"), exc)
            await self._emit(EventName.ERROR, exc)

    async def _listen_loop(self) -> None:
        backoff = self.reconnect_initial

        while not self._stop_event.is_set():
            try:
                session = await self._ensure_session()
                async with session.ws_connect(self._ws_url, heartbeat=30.0) as ws:
                    LOGGER.info("Connected to device websocket at %s", self._ws_url)
                    backoff = self.reconnect_initial
                    self._active_ws = ws
                    self._connected_event.set()
                    await self._emit(EventName.CONNECTED, None)
                    try:
                        async for message in ws:
                            if self._stop_event.is_set():
                                break
                            if message.type == aiohttp.WSMsgType.TEXT:
                                await self._handle_text(message.data)
                            elif message.type == aiohttp.WSMsgType.ERROR:
                                raise ws.exception() or RuntimeError("Websocket error")
                    finally:
                        self._active_ws = None
                        self._connected_event.clear()
                        await self._emit(EventName.DISCONNECTED, None)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if self._stop_event.is_set():
                    break
                LOGGER.warning("Device websocket error: %s", exc)
                await self._emit(EventName.ERROR, exc)

            if self._stop_event.is_set():
                break

            # Full jitter: sleep uniformly in [0, backoff] then double the cap.
            await asyncio.sleep(random.uniform(0, backoff))
            backoff = min(backoff * 2, self.reconnect_max)

    async def _handle_text(self, raw_data: str) -> None:
        try:
            frame = json.loads(raw_data)
        except json.JSONDecodeError:
            LOGGER.debug("Discarding non-JSON frame: %r", raw_data[:80])
            return

        LOGGER.debug("Frame from device: %s", raw_data[:200])
        for name, payload in decode_frame(frame):
            await self._emit(name, payload)

    async def _emit(self, event_name: str, payload: Any) -> None:
        for handler in list(self._handlers.get(event_name, ())):
            try:
                result = handler(payload)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                LOGGER.exception("Device %s handler failed", event_name)


def decode_frame(frame: Any) -> List[Tuple[str, Any]]:
    """Split a device frame into ``(event_name, payload)`` pairs.

    Recognised shapes:

    - ``{"type": "alert", "alertType": ..., "message": ...}``
    - ``{"type": "status" | "sensor" | "position" | "fullStatus", "data": {...}}``
      (the frame itself, minus ``type``, when ``data`` is absent)
    - ``{"status": {...}, "sensor": {...}}``, the periodic full frame; it
      yields ``fullStatus`` followed by ``sensor``.
    """

    if not isinstance(frame, Mapping):
        return []

    frame_type = frame.get("type")

    if frame_type == EventName.ALERT:
        alert_type = frame.get("alertType")
        if alert_type is None:
            alert_type = frame.get("kind")
        return [(EventName.ALERT, {"type": alert_type, "message": frame.get("message")})]

    if frame_type in _TYPED_FRAMES:
        data = frame.get("data")
        if data is None:
            data = {key: value for key, value in frame.items() if key != "type"}
        return [(frame_type, data)]

    if frame_type is not None:
        LOGGER.debug("Ignoring frame of unknown type %r", frame_type)
        return []

    events: List[Tuple[str, Any]] = []
    status = frame.get("status")
    if isinstance(status, Mapping):
        events.append((EventName.FULL_STATUS, dict(status)))
    sensor = frame.get("sensor")
    if isinstance(sensor, Mapping):
        events.append((EventName.SENSOR, dict(sensor)))
    return events


def build_ws_url(url: str) -> str:
    """Normalise ``url`` to a websocket URL, mapping http(s) to ws(s)."""

    text = url.strip()
    if "://" not in text:
        text = f"ws://{text}"

    parsed = urlparse(text)
    scheme = {"http": "ws", "ws": "ws", "https": "wss", "wss": "wss"}.get(
        parsed.scheme.lower()
    )
    if scheme is None:
        raise ValueError(f"Unsupported device URL scheme: {parsed.scheme!r}")

    return urlunparse((scheme, parsed.netloc, parsed.path or "/", "", parsed.query, ""))
