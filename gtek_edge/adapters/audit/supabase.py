"""Supabase REST audit sink.

Events are inserted into the ``audit_logs`` table through PostgREST. Writes
happen on a background thread fed by a bounded queue:

- ``emit()`` only enqueues; when the queue is full the event is dropped.
- HTTP and network failures are logged at debug level and dropped, no retry.
- ``close(timeout)`` lets the worker drain the queue for at most ``timeout``
  seconds; whatever is still queued after that is discarded.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any

import httpx

from gtek_edge.adapters.audit.base import AbstractAuditSink

logger = logging.getLogger(__name__)

# How often an idle worker checks for shutdown
_POLL_SECONDS = 0.1


class SupabaseAuditSink(AbstractAuditSink):
    """Fire-and-forget audit writer backed by Supabase ``audit_logs``."""

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str,
        entity: str = "api.middleware",
        queue_size: int = 1000,
        timeout_seconds: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the sink; the worker thread starts on first emit.

        Args:
            base_url: Supabase project URL.
            service_key: Service role key (sent as ``apikey`` and bearer token).
            entity: Value stored in the row's ``entity`` column.
            queue_size: Maximum number of pending events.
            timeout_seconds: Timeout for each insert request.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        self._endpoint = f"{base_url.rstrip('/')}/rest/v1/audit_logs"
        self._entity = entity
        self._queue: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=queue_size)
        self._client = httpx.Client(
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Prefer": "resolution=merge-duplicates,return=minimal",
            },
        )
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()
        self._stopping = threading.Event()
        self._closed = False
        self._dropped = 0

    @property
    def dropped(self) -> int:
        """Events discarded: queue full, sink closed, or still queued at close."""
        with self._lock:
            return self._dropped

    def emit(self, action: str, meta: dict[str, Any]) -> None:
        payload = {"action": action, "entity": self._entity, "meta": dict(meta)}
        with self._lock:
            if self._closed:
                self._dropped += 1
                return
            self._ensure_worker_locked()
            try:
                self._queue.put_nowait(payload)
            except queue.Full:
                self._dropped += 1
                logger.debug("audit.dropped", extra={"action": action, "reason": "queue_full"})

    def close(self, timeout: float | None = None) -> None:
        """Stop accepting events and wait up to ``timeout`` for the queue to drain.

        Never blocks longer than ``timeout`` (when given). Events the worker
        has not picked up by then are counted as dropped.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker

        if worker is None:
            self._client.close()
            return

        self._stopping.set()
        worker.join(timeout)
        if worker.is_alive():
            discarded = self._discard_pending()
            logger.warning(
                "audit.close_timeout",
                extra={"discarded": discarded, "timeout_s": timeout},
            )

    def _ensure_worker_locked(self) -> None:
        if self._worker is None:
            self._worker = threading.Thread(
                target=self._run,
                name="supabase-audit-sink",
                daemon=True,
            )
            self._worker.start()

    def _discard_pending(self) -> int:
        discarded = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
            discarded += 1
        with self._lock:
            self._dropped += discarded
        return discarded

    def _run(self) -> None:
        try:
            while True:
                try:
                    item = self._queue.get(timeout=_POLL_SECONDS)
                except queue.Empty:
                    if self._stopping.is_set():
                        return
                    continue
                self._send(item)
        finally:
            self._client.close()

    def _send(self, payload: dict[str, Any]) -> None:
        try:
            response = self._client.post(self._endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug(
                "audit.write_failed",
                extra={
                    "action": payload.get("action"),
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
        except Exception as exc:
            # Keep the worker alive; one bad payload must not stop auditing.
            logger.warning(
                "audit.write_error",
                extra={
                    "action": payload.get("action"),
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
