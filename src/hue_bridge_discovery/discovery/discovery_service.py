"""
Service responsible for discovering Hue bridges by combining the SSDP probe,
the cloud registry and, as a last resort, a scan of the local subnets.
"""
import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import aclosing

import aiohttp
import structlog

from ..config import Config
from ..exceptions import DiscoveryFailed
from ..http_client import create_session
from ..models.bridge import ConfirmedBridge
from ..models.common import DiscoveryMode, DiscoverySource, DiscoveryState
from .confirmer import CandidateConfirmer
from .network import LocalSubnetScanner
from .nupnp import CloudRegistryProber
from .ssdp import MulticastProber

logger = structlog.get_logger(__name__)

# Bounded wait for the next confirmed bridge. Re-armed after every event and after escalation.
DISCOVERY_TIMEOUT = 3.0


class DiscoveryRun:
    """State of a single discover() call. Only the orchestrator mutates it."""

    def __init__(self, mode: DiscoveryMode):
        self.mode = mode
        self.state = DiscoveryState.SEARCHING
        self.seen: set[str] = set() # Candidates already submitted for confirmation
        self.bridges: list[ConfirmedBridge] = []
        self.scan_escalated = False
        self.started_at = time.monotonic()

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def has_bridge(self, address: str) -> bool:
        return any(bridge.address == address for bridge in self.bridges)


class ConfirmationPipeline:
    """
    Merges candidate sources into one stream of confirmed addresses.

    Every source is drained in its own task. New candidates are confirmed
    concurrently (bounded by a semaphore); confirmed addresses are put on
    `results`. A `None` is put on `results` whenever no source is open and no
    confirmation is in flight.
    """

    def __init__(self, confirmer: CandidateConfirmer, seen: set[str], concurrency: int):
        self.confirmer = confirmer
        self.results: asyncio.Queue[str | None] = asyncio.Queue()
        self._seen = seen
        self._semaphore = asyncio.Semaphore(concurrency)
        self._open_sources: set[DiscoverySource] = set()
        self._sources: set[asyncio.Task] = set()
        self._confirmations: set[asyncio.Task] = set()
        self.logger = logger.bind(service="ConfirmationPipeline")

    @property
    def closed(self) -> bool:
        return not self._open_sources and not self._confirmations

    def is_open(self, source: DiscoverySource) -> bool:
        return source in self._open_sources

    def add_source(self, source: DiscoverySource, candidates: AsyncIterator[str]) -> None:
        self._open_sources.add(source)
        task = asyncio.create_task(self._drain(source, candidates), name=f"discovery-{source.value}")
        self._sources.add(task)
        task.add_done_callback(self._sources.discard)

    async def _drain(self, source: DiscoverySource, candidates: AsyncIterator[str]) -> None:
        log = self.logger.bind(source=source.value)
        try:
            async with aclosing(candidates):
                async for address in candidates:
                    self._submit(address, log)
            log.debug("Discovery source exhausted.")
        except asyncio.CancelledError:
            log.debug("Discovery source cancelled.")
            raise
        except Exception as e:
            # A failing source never aborts the run
            log.warning("Discovery source failed", error_type=type(e).__name__, error=str(e))
        finally:
            self._open_sources.discard(source)
            self._signal_if_closed()

    def _submit(self, address: str, log: structlog.stdlib.BoundLogger) -> None:
        if address in self._seen:
            log.debug("Duplicate candidate ignored", address=address)
            return
        self._seen.add(address)
        log.debug("New candidate", address=address)
        task = asyncio.create_task(self._confirm(address), name=f"confirm-{address}")
        self._confirmations.add(task)
        task.add_done_callback(self._confirmation_done)

    async def _confirm(self, address: str) -> None:
        async with self._semaphore:
            if await self.confirmer.confirm(address):
                self.results.put_nowait(address)

    def _confirmation_done(self, task: asyncio.Task) -> None:
        self._confirmations.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.warning("Candidate confirmation crashed", error=str(task.exception()))
        self._signal_if_closed()

    def _signal_if_closed(self) -> None:
        if self.closed:
            self.results.put_nowait(None)

    async def aclose(self) -> None:
        """Cancels every source and confirmation task and waits for them to finish."""
        tasks = list(self._sources) + list(self._confirmations)
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class BridgeDiscoveryService:
    """
    Orchestrates bridge discovery.

    SSDP and the cloud registry run concurrently and feed one confirmation
    pipeline. If neither yields a bridge before the stream closes or the wait
    times out, the subnet scan is started once. Timeouts do not end the run
    while the scan is still sweeping. If it also produces nothing,
    DiscoveryFailed is raised.
    """

    def __init__(
        self,
        app_config: Config,
        session: aiohttp.ClientSession | None = None,
        ssdp_prober: MulticastProber | None = None,
        registry_prober: CloudRegistryProber | None = None,
        subnet_scanner: LocalSubnetScanner | None = None,
        confirmer: CandidateConfirmer | None = None,
    ):
        self.app_config = app_config
        self.discovery_config = app_config.discovery
        self.logger = logger.bind(service="BridgeDiscoveryService")
        self._session = session
        self._owns_session = False
        self._ssdp_prober = ssdp_prober
        self._registry_prober = registry_prober
        self._subnet_scanner = subnet_scanner
        self._confirmer = confirmer

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self.logger.debug("Creating aiohttp session for discovery.")
            self._session = create_session(self.app_config.http_client)
            self._owns_session = True
        return self._session

    async def _prepare(self) -> None:
        needs_session = self._confirmer is None or (self._registry_prober is None and self.discovery_config.enable_cloud_registry)
        session = await self._get_session() if needs_session else None
        if self._confirmer is None:
            self._confirmer = CandidateConfirmer(self.app_config.http_client, session)
        if self._registry_prober is None and self.discovery_config.enable_cloud_registry:
            self._registry_prober = CloudRegistryProber(self.discovery_config, self.app_config.http_client, session)
        if self._ssdp_prober is None:
            self._ssdp_prober = MulticastProber(self.discovery_config)
        if self._subnet_scanner is None:
            self._subnet_scanner = LocalSubnetScanner(self.discovery_config.scan_max_prefix)

    def _start_network_probes(self, pipeline: ConfirmationPipeline) -> None:
        if self.discovery_config.enable_ssdp:
            pipeline.add_source(DiscoverySource.SSDP, self._ssdp_prober.probe())
        if self.discovery_config.enable_cloud_registry:
            pipeline.add_source(DiscoverySource.CLOUD, self._registry_prober.probe())
        if pipeline.closed:
            self.logger.warning("SSDP and cloud registry are both disabled.")
            pipeline.results.put_nowait(None)

    def _escalate(self, run: DiscoveryRun, pipeline: ConfirmationPipeline) -> bool:
        """Starts the subnet scan. Returns False if scanning is disabled."""
        run.scan_escalated = True
        run.state = DiscoveryState.SCAN_ESCALATED
        if not self.discovery_config.enable_subnet_scan:
            self.logger.info("No bridge found and subnet scan is disabled.")
            return False
        self.logger.info("No bridge found by SSDP or cloud registry, scanning local network.", elapsed=round(run.elapsed(), 3))
        cfg = self.discovery_config
        pipeline.add_source(
            DiscoverySource.SCAN,
            self._subnet_scanner.scan(cfg.scan_port, cfg.scan_concurrency, cfg.scan_timeout_seconds),
        )
        return True

    async def discover(self, mode: DiscoveryMode = DiscoveryMode.FIRST_MATCH) -> list[ConfirmedBridge]:
        """
        Runs one discovery.

        FIRST_MATCH returns as soon as one bridge is confirmed. EXHAUSTIVE keeps
        collecting until the sources are exhausted or the stream goes quiet for
        DISCOVERY_TIMEOUT. Raises DiscoveryFailed if nothing is confirmed.
        """
        mode = DiscoveryMode(mode)
        run = DiscoveryRun(mode)
        await self._prepare()
        pipeline = ConfirmationPipeline(self._confirmer, run.seen, self.discovery_config.confirm_concurrency)
        self.logger.info("Starting bridge discovery", mode=mode.value)

        try:
            self._start_network_probes(pipeline)
            while True:
                try:
                    address = await asyncio.wait_for(pipeline.results.get(), timeout=DISCOVERY_TIMEOUT)
                except TimeoutError:
                    if pipeline.is_open(DiscoverySource.SCAN):
                        # Each connect attempt is bounded, so the scan always ends
                        self.logger.debug("Subnet scan still running", elapsed=round(run.elapsed(), 3))
                        continue
                    address = None
                    self.logger.debug("Discovery wait timed out", state=run.state.value, bridges=len(run.bridges))
                else:
                    if address is None and not pipeline.closed:
                        continue # Stale close signal from before the scan was added

                if address is not None:
                    if not run.has_bridge(address):
                        run.bridges.append(ConfirmedBridge(address=address))
                    if mode is DiscoveryMode.FIRST_MATCH:
                        break
                    continue

                # Stream closed or timed out
                if run.bridges:
                    break
                if not run.scan_escalated and self._escalate(run, pipeline):
                    continue

                run.state = DiscoveryState.DONE_FAILURE
                self.logger.warning("Bridge discovery failed", elapsed=round(run.elapsed(), 3))
                raise DiscoveryFailed(elapsed_seconds=run.elapsed())
        finally:
            await pipeline.aclose()

        run.state = DiscoveryState.DONE_SUCCESS
        self.logger.info("Bridge discovery finished", bridges=[b.address for b in run.bridges], elapsed=round(run.elapsed(), 3))
        return list(run.bridges)

    async def close(self) -> None:
        """Closes the HTTP session if this service created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._owns_session = False

    async def __aenter__(self) -> "BridgeDiscoveryService":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()


async def discover_bridges(
    mode: DiscoveryMode = DiscoveryMode.FIRST_MATCH, config: Config | None = None
) -> list[ConfirmedBridge]:
    """Discovers bridges with a throwaway service. See BridgeDiscoveryService.discover."""
    async with BridgeDiscoveryService(config or Config()) as service:
        return await service.discover(mode)
