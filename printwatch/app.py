"""Main application entry-point for printwatch."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from .adapters import DeviceClient
from .config import WatchConfig, load_config
from .health import HealthReporter, HealthServer
from .logging import configure_logging
from .render import LoggingRenderSink, RenderSink
from .status_codes import label_for
from .sync import EventName, PrinterStateStore, Synchronizer, snapshot_to_dict

LOGGER = logging.getLogger(__name__)


class PrintWatchApp:
    """Wires the device client, state store, synchronizer and render sink.

    Each instance owns its own store, so several dashboards (or tests) can
    run side by side without sharing state.
    """

    def __init__(
        self,
        config: Optional[WatchConfig] = None,
        *,
        client: Optional[Any] = None,
        sink: Optional[RenderSink] = None,
    ) -> None:
        self._config = config or load_config()
        self._store = PrinterStateStore()
        self._sink: RenderSink = sink or LoggingRenderSink(
            motion_timeout_ms=self._config.sensor.motion_timeout_ms
        )
        self._client = client or DeviceClient(
            self._config.device,
            reconnect_initial=self._config.resilience.reconnect_initial_seconds,
            reconnect_max=self._config.resilience.reconnect_max_seconds,
        )
        self._synchronizer = Synchronizer(self._store, self._sink)
        self._health = HealthReporter()
        self._health_server: Optional[HealthServer] = None
        self._shutdown_event: Optional[asyncio.Event] = None

    @property
    def synchronizer(self) -> Synchronizer:
        return self._synchronizer

    @property
    def health(self) -> HealthReporter:
        return self._health

    def status_payload(self) -> Dict[str, Any]:
        snapshot = self._synchronizer.snapshot()
        return {
            "connected": self._synchronizer.connected,
            "statusLabel": label_for(snapshot.print_status),
            "snapshot": snapshot_to_dict(snapshot),
        }

    async def run(self) -> None:
        """Connect to the device and keep rendering until shutdown is requested."""

        self._shutdown_event = asyncio.Event()

        LOGGER.info("printwatch starting; device at %s", self._config.device.url)
        await self._start_services()

        try:
            await self._shutdown_event.wait()
        except asyncio.CancelledError:
            LOGGER.info("printwatch received shutdown signal")
            raise
        finally:
            await self._stop_services()

    def request_shutdown(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    @classmethod
    def start(cls, config: Optional[WatchConfig] = None) -> None:
        instance = cls(config=config)
        configure_logging(
            instance._config.logging.level,
            log_path=instance._config.logging.path,
            log_network=instance._config.logging.log_network,
        )
        try:
            asyncio.run(instance.run())
        except KeyboardInterrupt:
            LOGGER.info("printwatch received shutdown signal")

    async def _start_services(self) -> None:
        await self._health.update("device", False, "connecting")

        self._synchronizer.attach(self._client)
        self._client.on(EventName.CONNECTED, self._on_device_connected)
        self._client.on(EventName.DISCONNECTED, self._on_device_disconnected)

        resilience = self._config.resilience
        if resilience.health_enabled:
            self._health_server = HealthServer(
                self._health,
                resilience.health_host,
                resilience.health_port,
                status_provider=self.status_payload,
            )
            try:
                await self._health_server.start()
            except OSError as exc:
                LOGGER.warning("Health endpoint unavailable: %s", exc)
                self._health_server = None

        await self._client.connect()

    async def _stop_services(self) -> None:
        await self._client.close()
        await self._health.update("device", False, "shutdown")

        if self._health_server is not None:
            await self._health_server.stop()
            self._health_server = None

    async def _on_device_connected(self, _payload: Any = None) -> None:
        await self._health.update("device", True, None)

    async def _on_device_disconnected(self, _payload: Any = None) -> None:
        await self._health.update("device", False, "disconnected")
