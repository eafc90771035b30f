"""Network interface utilities and the local subnet scanner."""

import asyncio
import ipaddress
from collections.abc import AsyncGenerator

import netifaces
import structlog

logger = structlog.get_logger(__name__)


def get_network_interfaces(skip_loopback: bool = True) -> list[str]:
    """Get list of network interfaces.

    Args:
        skip_loopback: Whether to exclude loopback interfaces.

    Returns:
        list[str]: List of interface names.
    """
    try:
        interfaces = netifaces.interfaces()
    except (OSError, ValueError) as e:
        logger.warning("netifaces interface listing failed", error=str(e))
        return []
    if skip_loopback:
        # 'lo' on Unix, 'Loopback' on Windows
        interfaces = [
            iface for iface in interfaces
            if not iface.lower().startswith(("lo", "loopback"))
        ]
    return interfaces

def get_interface_networks(interface: str) -> list[ipaddress.IPv4Interface]:
    """Get the IPv4 address/netmask pairs configured on an interface.

    Args:
        interface: Network interface name.

    Returns:
        list[IPv4Interface]: One entry per address, e.g. 192.168.1.10/24.
    """
    networks = []
    try:
        addr_info = netifaces.ifaddresses(interface)
    except (ValueError, KeyError, OSError) as e:
        logger.error("Failed to get addresses for interface", interface=interface, error=str(e))
        return []
    for addr in addr_info.get(netifaces.AF_INET, []):
        if "addr" not in addr:
            continue
        try:
            networks.append(ipaddress.IPv4Interface(f"{addr['addr']}/{addr.get('netmask', '255.255.255.255')}"))
        except ValueError as e:
            logger.debug("Skipping unparsable interface address", interface=interface, addr=addr, error=str(e))
    return networks

def get_active_interfaces() -> list[str]:
    """Get list of non-loopback interfaces that have an IPv4 address."""
    return [iface for iface in get_network_interfaces() if get_interface_networks(iface)]

def local_scan_targets(max_prefix: int = 24) -> list[str]:
    """
    Enumerates the hosts of every subnet the machine is attached to, excluding its own addresses.
    Networks wider than `max_prefix` are narrowed to the `max_prefix` network around the local address.
    """
    own_addresses: set[ipaddress.IPv4Address] = set()
    networks: list[ipaddress.IPv4Network] = []
    for iface in get_active_interfaces():
        for if_addr in get_interface_networks(iface):
            if if_addr.ip.is_loopback:
                continue
            own_addresses.add(if_addr.ip)
            network = if_addr.network
            if network.prefixlen < max_prefix:
                network = ipaddress.IPv4Network(f"{if_addr.ip}/{max_prefix}", strict=False)
            if network not in networks:
                networks.append(network)

    targets: list[str] = []
    seen: set[ipaddress.IPv4Address] = set()
    for network in networks:
        for host in network.hosts():
            if host in own_addresses or host in seen:
                continue
            seen.add(host)
            targets.append(str(host))
    return targets


class LocalSubnetScanner:
    """Finds hosts on the local subnets that accept TCP connections on a given port."""

    def __init__(self, max_prefix: int = 24):
        self.max_prefix = max_prefix
        self.logger = logger.bind(service="LocalSubnetScanner")

    def targets(self) -> list[str]:
        return local_scan_targets(self.max_prefix)

    async def _probe_host(self, host: str, port: int, timeout: float) -> bool:
        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
        except (TimeoutError, OSError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass # Peer reset while closing; the port did accept
        return True

    async def _worker(self, pending: asyncio.Queue, reachable: asyncio.Queue, port: int, timeout: float) -> None:
        """Takes hosts off `pending` until it is empty. Puts None on `reachable` when done."""
        try:
            while True:
                try:
                    host = pending.get_nowait()
                except asyncio.QueueEmpty:
                    return
                if await self._probe_host(host, port, timeout):
                    reachable.put_nowait(host)
        finally:
            reachable.put_nowait(None)

    async def scan(self, port: int, concurrency: int, timeout: float) -> AsyncGenerator[str, None]:
        """
        Yields reachable hosts as their connection attempts complete.
        A fixed pool of `concurrency` workers shares the target list, so at most
        that many attempts (and tasks) exist at any time.
        """
        hosts = self.targets()
        self.logger.info("Scanning local subnets", hosts=len(hosts), port=port, concurrency=concurrency)
        pending: asyncio.Queue[str] = asyncio.Queue()
        for host in hosts:
            pending.put_nowait(host)
        reachable: asyncio.Queue[str | None] = asyncio.Queue()
        workers = [
            asyncio.create_task(self._worker(pending, reachable, port, timeout), name=f"scan-worker-{i}")
            for i in range(min(concurrency, len(hosts)))
        ]
        finished = 0
        found = 0
        try:
            while finished < len(workers):
                host = await reachable.get()
                if host is None:
                    finished += 1
                    continue
                found += 1
                yield host
        finally:
            for worker in workers:
                if not worker.done():
                    worker.cancel()
            for result in await asyncio.gather(*workers, return_exceptions=True):
                if isinstance(result, Exception):
                    self.logger.warning("Scan worker crashed", error=str(result))
            self.logger.info("Subnet scan finished", reachable=found)
