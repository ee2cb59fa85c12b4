from __future__ import annotations

import logging
import os
import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence

from .models import ScanResult
from .progress import PROGRESS_EVERY, NullProgress, ProgressSink, compute_progress, should_report

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 0.5
DEFAULT_WORKERS = 8


class ScanStartupError(RuntimeError):
    """The worker pool could not be brought up, so nothing was scanned."""


def default_workers() -> int:
    return os.cpu_count() or DEFAULT_WORKERS


def resolve_target(target: str) -> Optional[str]:
    """
    Resolves `target` to one IPv4 address, once per scan.
    Returns None when the name cannot be resolved or encoded.
    """
    try:
        return socket.gethostbyname(target.strip())
    except (OSError, UnicodeError) as e:
        log.warning("Could not resolve target '%s': %s", target, e)
        return None


def probe(address: str, port: int, timeout_s: float = DEFAULT_TIMEOUT_S) -> bool:
    """
    Single connect attempt to an already resolved address. The connection is
    closed as soon as it is up; refused, timed out and unreachable all count
    as closed.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.settimeout(timeout_s)
        sock.connect((address, port))
        return True
    except OSError:
        return False
    finally:
        sock.close()


class ScanState:
    """
    Shared between workers for one scan.

    The completion counter and the open-port list each have their own lock
    and no code path holds both.
    """

    def __init__(
        self,
        total: int,
        progress: ProgressSink,
        progress_every: int = PROGRESS_EVERY,
        start: Optional[float] = None,
    ):
        self.total = total
        self.progress = progress
        self.progress_every = progress_every
        self.start = time.perf_counter() if start is None else start
        self.completed = 0
        self.open_ports: List[int] = []
        self._count_lock = threading.Lock()
        self._open_lock = threading.Lock()

    def record_probe(self) -> None:
        with self._count_lock:
            self.completed += 1
            if should_report(self.completed, self.total, self.progress_every):
                elapsed = time.perf_counter() - self.start
                self.progress.update(compute_progress(self.completed, self.total, elapsed))

    def merge_open(self, ports: Sequence[int]) -> None:
        if not ports:
            return
        with self._open_lock:
            self.open_ports.extend(ports)

    def sorted_open(self) -> List[int]:
        with self._open_lock:
            return sorted(set(self.open_ports))


def scan_batch(
    address: Optional[str],
    batch: Sequence[int],
    state: ScanState,
    timeout_s: float,
    cancel: threading.Event,
) -> None:
    found: List[int] = []
    for port in sorted(batch):
        if cancel.is_set():
            break
        # unresolved target: every port is closed, no connect attempt
        if address is not None and probe(address, port, timeout_s):
            log.debug("Open port %s:%d", address, port)
            found.append(port)
        state.record_probe()

    # merged once per batch, never while holding the counter lock
    state.merge_open(found)
    log.debug("Batch of %d ports done (%d open)", len(batch), len(found))


def scan(
    target: str,
    batches: Iterable[Sequence[int]],
    *,
    workers: Optional[int] = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    progress: Optional[ProgressSink] = None,
    progress_every: int = PROGRESS_EVERY,
    cancel: Optional[threading.Event] = None,
) -> ScanResult:
    """
    Probes every port in `batches` against `target`, one pool task per batch.

    Blocks until every submitted batch has finished. Setting `cancel` stops
    further submissions and makes running batches stop before their next
    probe; the result then carries cancelled=True.
    """
    batches = [b for b in batches if b]
    total = sum(len(b) for b in batches)
    start = time.perf_counter()

    if total == 0:
        return ScanResult(target=target, open_ports=(), elapsed_s=0.0, scanned=0, total=0)

    if workers is None:
        workers = default_workers()
    if progress is None:
        progress = NullProgress()
    if cancel is None:
        cancel = threading.Event()

    state = ScanState(total, progress, progress_every, start=start)
    address = resolve_target(target)

    try:
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scan")
    except ValueError as e:
        raise ScanStartupError(f"Could not create worker pool with {workers} workers: {e}") from e

    log.info(
        "Scanning %s (%s): %d ports in %d batches on %d workers",
        target, address, total, len(batches), workers,
    )

    with pool:
        futures = []
        try:
            for batch in batches:
                if cancel.is_set():
                    break
                futures.append(pool.submit(scan_batch, address, batch, state, timeout_s, cancel))
        except RuntimeError as e:
            # thread creation failed; stop whatever did start
            cancel.set()
            raise ScanStartupError(f"Could not start scan workers: {e}") from e

        try:
            for fut in futures:
                fut.result()
        except KeyboardInterrupt:
            cancel.set()
            log.warning("Interrupted, waiting for running batches to stop")
            raise

    open_ports = state.sorted_open()
    elapsed = time.perf_counter() - start
    cancelled = state.completed < total
    if cancelled:
        log.warning("Scan of %s cancelled after %d/%d ports", target, state.completed, total)
    log.info("Scan of %s finished in %.2fs, %d open", target, elapsed, len(open_ports))

    return ScanResult(
        target=target,
        open_ports=tuple(open_ports),
        elapsed_s=elapsed,
        scanned=state.completed,
        total=total,
        cancelled=cancelled,
    )
