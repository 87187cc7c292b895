"""Agent runner - connects to libvirt and runs collection passes on an interval."""
import asyncio
import logging
from typing import Optional

from virtwatch_agent.collector import collect
from virtwatch_agent.config import AgentConfig
from virtwatch_agent.errors import HypervisorUnavailableError
from virtwatch_agent.hypervisor import HypervisorConnection
from virtwatch_agent.sink import PushgatewaySink

logger = logging.getLogger(__name__)

CONNECT_ATTEMPTS = 10


class CollectorAgent:
    def __init__(self, config: AgentConfig, connection: Optional[HypervisorConnection] = None, sink=None):
        self.config = config
        self.connection = connection or HypervisorConnection(
            uri=config.libvirt.uri,
            read_only=config.libvirt.read_only,
        )
        self.sink = sink or PushgatewaySink(
            config.pushgateway.url,
            job=config.pushgateway.job,
            timeout=config.pushgateway.timeout,
            delete_on_close=config.pushgateway.delete_on_shutdown,
        )
        self._stop: Optional[asyncio.Event] = None

    def collect_once(self) -> None:
        """Run a single synchronous collection pass."""
        self.connection.open()
        collect(self.connection, self.sink)

    async def connect(self) -> bool:
        """Open the libvirt connection with retry. Returns False if stopped while waiting."""
        for attempt in range(CONNECT_ATTEMPTS):
            try:
                self.connection.open()
                return True
            except HypervisorUnavailableError as e:
                wait = min(2 ** attempt, 60)
                logger.warning(f"Connect failed (attempt {attempt + 1}): {e.message} ({e.detail}). Retry in {wait}s")
                if await self._wait_stopped(wait):
                    return False
        raise HypervisorUnavailableError(f"Failed to connect to {self.connection.uri} after {CONNECT_ATTEMPTS} attempts")

    def stop(self):
        """Request shutdown; an in-flight pass completes first."""
        if self._stop is not None:
            self._stop.set()

    async def _wait_stopped(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def _collect_loop(self):
        """Metrics collection loop."""
        interval = self.config.metrics.interval
        loop = asyncio.get_running_loop()
        while not self._stop.is_set():
            try:
                await loop.run_in_executor(None, collect, self.connection, self.sink)
            except Exception as e:
                logger.warning(f"Collection pass failed: {e}")
            if await self._wait_stopped(interval):
                break

    async def start(self):
        """Start the agent: connect, then collect every interval until stopped."""
        self._stop = asyncio.Event()
        logger.info(f"Hypervisor: {self.connection.uri}")
        logger.info(f"Pushgateway: {self.config.pushgateway.url} (job={self.config.pushgateway.job})")
        try:
            if not await self.connect():
                return
            logger.info(f"Collecting every {self.config.metrics.interval}s. Press Ctrl+C to stop.")
            await self._collect_loop()
        finally:
            self.close()

    def close(self):
        self.sink.close()
        self.connection.close()
        logger.info("Agent stopped")
