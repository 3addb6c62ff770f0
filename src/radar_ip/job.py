"""
Background scan job.

Runs one scan on a worker thread with its own event loop and exposes a
state a front end can poll (or be notified about) without blocking:

    IDLE -> SCANNING -> FOUND | ERROR
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from .config import DEFAULT_SCAN_DEADLINE, RadarSettings, ScanRequest
from .exceptions import RadarError
from .models import ScanResult
from .scanner import Scanner, scan_with_deadline

logger = logging.getLogger(__name__)


class ScanState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    FOUND = "found"
    ERROR = "error"


class ScanJob:
    """
    Thread-safe holder for the state of the current scan.

    Args:
        deadline: Outer deadline for each scan, seconds
        on_change: Called with the job after every state change,
            from whichever thread made the change
        scanner_factory: Builds the Scanner for a request (tests)
    """

    def __init__(
        self,
        deadline: float = DEFAULT_SCAN_DEADLINE,
        on_change: Optional[Callable[["ScanJob"], None]] = None,
        scanner_factory: Optional[Callable[[ScanRequest], Scanner]] = None,
    ):
        self.deadline = deadline
        self.on_change = on_change
        self._scanner_factory = scanner_factory or _default_scanner
        self._lock = threading.Lock()
        self._state = ScanState.IDLE
        self._address: Optional[str] = None
        self._message: Optional[str] = None
        self._result: Optional[ScanResult] = None
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_settings(
        cls,
        settings: RadarSettings,
        on_change: Optional[Callable[["ScanJob"], None]] = None,
    ) -> "ScanJob":
        return cls(deadline=settings.radar_scan_deadline, on_change=on_change)

    @property
    def state(self) -> ScanState:
        with self._lock:
            return self._state

    @property
    def address(self) -> Optional[str]:
        with self._lock:
            return self._address

    @property
    def message(self) -> Optional[str]:
        with self._lock:
            return self._message

    @property
    def result(self) -> Optional[ScanResult]:
        with self._lock:
            return self._result

    @property
    def is_running(self) -> bool:
        return self.state == ScanState.SCANNING

    def _set(self, state: ScanState, address=None, message=None, result=None):
        with self._lock:
            self._state = state
            self._address = address
            self._message = message
            self._result = result
        self._notify()

    def _notify(self):
        if self.on_change:
            try:
                self.on_change(self)
            except Exception as e:
                logger.warning(f"on_change callback failed: {e}")

    def start(self, request: ScanRequest) -> bool:
        """Start a scan in the background. Returns False if one is already running."""
        with self._lock:
            if self._state == ScanState.SCANNING:
                return False
            self._state = ScanState.SCANNING
            self._address = None
            self._message = None
            self._result = None
        self._notify()

        self._thread = threading.Thread(
            target=self._run, args=(request,), name="radar-scan", daemon=True
        )
        self._thread.start()
        return True

    def wait(self, timeout: Optional[float] = None) -> ScanState:
        """Block until the current scan finishes (or timeout). Returns the state."""
        if self._thread is not None:
            self._thread.join(timeout)
        return self.state

    def reset(self):
        """Back to IDLE. Ignored while a scan is running."""
        if not self.is_running:
            self._set(ScanState.IDLE)

    def _run(self, request: ScanRequest):
        try:
            scanner = self._scanner_factory(request)
            result = asyncio.run(scan_with_deadline(scanner, request.ip_range, self.deadline))
        except RadarError as e:
            self._set(ScanState.ERROR, message=str(e))
            return
        except Exception as e:
            logger.error(f"Scan crashed: {type(e).__name__}: {e}", exc_info=True)
            self._set(ScanState.ERROR, message=f"{type(e).__name__}: {e}")
            return

        if result.is_found:
            self._set(ScanState.FOUND, address=result.address, result=result)
        else:
            self._set(ScanState.ERROR, message=result.describe(), result=result)


def _default_scanner(request: ScanRequest) -> Scanner:
    return Scanner(
        request.to_probe_config(),
        request.target_mac,
        max_concurrent=request.max_concurrent,
    )
