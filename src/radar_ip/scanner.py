"""
Bounded scan coordinator.

Probes every host of a range concurrently and returns the first host whose
interface list holds the target MAC. A fixed pool of max_concurrent workers
pulls addresses from a lazy iterator over the range, so open connections
and tasks stay bounded whatever the range size.

Outcomes are consumed in completion order by a single loop, so the "first
match" and "first error" decisions never race. When several hosts report
the same MAC, whichever probe completes first wins. Once a match is found
the workers are cancelled, along with their in-flight probes. Hosts not
yet handed to a worker are never probed.

A host that cannot be reached is skipped silently. The first failure of a
reachable host (authentication or command) is attached to a NOT_FOUND
result as a debugging hint.
"""

import asyncio
import logging
from typing import Iterator, List, Optional

from .exceptions import ConnectionFailed, HostError, ScanTimeout
from .models import ProbeConfig, ProbeOutcome, ProbeStatus, ScanResult
from .probe import ProbeClient
from .ranges import iter_hosts

logger = logging.getLogger(__name__)

# Maximum number of concurrent SSH connections.
MAX_CONCURRENT = 50


class Scanner:
    """Scan an IP range over SSH looking for a specific MAC address."""

    def __init__(
        self,
        config: ProbeConfig,
        target_mac: str,
        max_concurrent: int = MAX_CONCURRENT,
        client: Optional[ProbeClient] = None,
    ):
        """
        Args:
            config: SSH settings shared by every probe
            target_mac: MAC to look for, any case
            max_concurrent: Cap on probes in flight at once
            client: Probe client (injectable for tests)
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.config = config
        self.target_mac = target_mac.strip().lower()
        self.max_concurrent = max_concurrent
        self.client = client or ProbeClient()

    async def _probe(self, address: str) -> ProbeOutcome:
        try:
            identity = await self.client.fetch_macs(address, self.config)
        except HostError as e:
            return ProbeOutcome.failed(e)

        if identity.has_mac(self.target_mac):
            return ProbeOutcome.matched(address)
        return ProbeOutcome.no_match(address)

    async def _worker(self, hosts: Iterator[str], outcomes: asyncio.Queue):
        # Workers share one iterator; next() never awaits, so no address is
        # handed out twice.
        try:
            for address in hosts:
                outcomes.put_nowait(await self._probe(address))
        except Exception as e:
            outcomes.put_nowait(e)

    def _log_failure(self, error: HostError):
        if isinstance(error, ConnectionFailed):
            logger.debug(str(error))
        else:
            logger.warning(str(error))

    async def scan(self, ip_range: str) -> ScanResult:
        """
        Scan every host in ip_range (e.g. "192.168.1.0/24").

        Returns:
            ScanResult FOUND with the first matching address, or NOT_FOUND

        Raises:
            InvalidRange: before any probe is issued
        """
        total, hosts = iter_hosts(ip_range)
        logger.info(
            f"Scanning {total} host(s) in {ip_range} for {self.target_mac} "
            f"(max {self.max_concurrent} concurrent)"
        )

        await self.client.prepare(self.config)

        outcomes: asyncio.Queue = asyncio.Queue()
        workers: List[asyncio.Task] = [
            asyncio.ensure_future(self._worker(hosts, outcomes))
            for _ in range(min(self.max_concurrent, total))
        ]

        first_error: Optional[HostError] = None
        completed = 0

        try:
            while completed < total:
                outcome = await outcomes.get()
                if isinstance(outcome, Exception):
                    raise outcome
                completed += 1

                if outcome.status == ProbeStatus.MATCHED:
                    logger.info(f"Found target MAC {self.target_mac} on {outcome.address}")
                    return ScanResult.found(self.target_mac, outcome.address, completed)

                if outcome.status == ProbeStatus.FAILED:
                    self._log_failure(outcome.error)
                    if first_error is None and not isinstance(outcome.error, ConnectionFailed):
                        first_error = outcome.error
        finally:
            await _cancel_pending(workers)

        logger.info(f"MAC {self.target_mac} not found in {ip_range} ({completed} host(s) probed)")
        return ScanResult.not_found(self.target_mac, first_error, completed)


async def _cancel_pending(tasks: List[asyncio.Task]):
    pending = [task for task in tasks if not task.done()]
    if not pending:
        return

    logger.debug(f"Cancelling {len(pending)} outstanding probe worker(s)")
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)


async def scan_with_deadline(
    scanner: Scanner,
    ip_range: str,
    deadline: Optional[float] = None,
) -> ScanResult:
    """
    Run scanner.scan under an outer deadline.

    Raises:
        ScanTimeout: deadline expired before the scan concluded
        InvalidRange: range could not be expanded
    """
    if deadline is None:
        return await scanner.scan(ip_range)

    try:
        return await asyncio.wait_for(scanner.scan(ip_range), timeout=deadline)
    except asyncio.TimeoutError as e:
        raise ScanTimeout(deadline, ip_range) from e


async def find_mac(
    target_mac: str,
    ip_range: str,
    config: ProbeConfig,
    max_concurrent: int = MAX_CONCURRENT,
    deadline: Optional[float] = None,
) -> ScanResult:
    """Convenience function for a one-off scan."""
    scanner = Scanner(config, target_mac, max_concurrent=max_concurrent)
    return await scan_with_deadline(scanner, ip_range, deadline)
