"""
Single-flight scan guard and the identifier channel feeding it.

Deutsch:
    Single-Flight-Sperre für Scans und der zugehörige Identifikator-Kanal.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Generic, Iterator, Optional, TypeVar

from .models import ScanSession

log = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


class IdentifierChannel:
    """
    Single-consumer queue of raw identifiers.

    A camera decoder (or any other producer) calls ``emit``; the scan guard is
    the only reader.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, raw_identifier: str) -> None:
        if self._closed:
            log.debug("channel closed; ignoring %s", raw_identifier)
            return
        self._queue.put(raw_identifier)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[str]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield str(item)


class ScanGuard(Generic[T]):
    """
    Admit at most one identifier into the downstream pipeline at a time.

    Contended or out-of-session submissions are dropped, not queued. The lock
    is held from acceptance until ``downstream`` returns or raises.
    """

    def __init__(self, downstream: Callable[[str], T], session: Optional[ScanSession] = None) -> None:
        self._downstream = downstream
        self.session = session or ScanSession()
        self._gate = threading.Lock()
        # Token of the call currently holding the lock; a stale call must not release a newer holder.
        self._holder = 0
        self._issued = 0

    @property
    def busy(self) -> bool:
        return self.session.lock_held

    def start_session(self) -> None:
        with self._gate:
            self.session.active = True
            self.session.lock_held = False
            self._holder = 0
        log.debug("scan session started")

    def stop_session(self) -> None:
        # An in-flight lookup keeps its lock and is allowed to finish.
        with self._gate:
            self.session.active = False
        log.debug("scan session stopped")

    def submit(self, raw_identifier: str) -> Optional[T]:
        """Scan path: requires an active session."""

        return self._run(raw_identifier, require_active=True)

    def submit_manual(self, raw_identifier: str) -> Optional[T]:
        """Manual entry: no active session needed, same single-flight lock."""

        return self._run(raw_identifier, require_active=False)

    def consume(self, channel: IdentifierChannel) -> Iterator[T]:
        """
        Read ``channel`` until it closes, yielding results of accepted identifiers.

        Identifiers arriving while the session is inactive are discarded; the
        session is deactivated by every accepted scan, so callers restart it
        when the operator is ready for the next item.
        """

        for raw_identifier in channel:
            result = self.submit(raw_identifier)
            if result is not None:
                yield result

    def _run(self, raw_identifier: str, require_active: bool) -> Optional[T]:
        if not raw_identifier:
            log.debug("ignoring empty identifier")
            return None
        with self._gate:
            if self.session.lock_held:
                log.debug("dropping %s: another identifier is in flight", raw_identifier)
                return None
            if require_active and not self.session.active:
                log.debug("dropping %s: no active scan session", raw_identifier)
                return None
            self._issued += 1
            token = self._issued
            self._holder = token
            self.session.lock_held = True
            self.session.active = False
        try:
            return self._downstream(raw_identifier)
        finally:
            with self._gate:
                if self._holder == token:
                    self._holder = 0
                    self.session.lock_held = False
                else:
                    log.debug("%s finished after its lock was reset; leaving current holder in place", raw_identifier)
