"""
Logging handler that ships records to EasyLogs.

Records are queued by ``emit`` and posted from a background worker thread,
in batches of ``batch_size`` or every ``flush_interval`` seconds, whichever
comes first. Extra structured fields can be attached to a record with
``logger.info(..., extra={'easylogs_metadata': {...}})``.
"""
import logging
import queue
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests

DEFAULT_API_URL = "https://ingest.easylogs.co/logs"


class DjangoEasyLogsHandler(logging.Handler):

    def __init__(self, api_key: str = '', api_url: str = DEFAULT_API_URL,
                 environment: str = 'development', service: str = 'puzzle-planner',
                 batch_size: int = 10, flush_interval: float = 5.0,
                 timeout: float = 5.0, start_worker: bool = True, level=logging.NOTSET):
        super().__init__(level)
        self.api_key = api_key
        self.api_url = api_url or DEFAULT_API_URL
        self.environment = environment
        self.service = service
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.timeout = timeout
        self.batch_queue: "queue.Queue[Tuple[Dict[str, Any], logging.LogRecord]]" = queue.Queue(maxsize=1000)
        self._stop = threading.Event()
        self._send_lock = threading.Lock()
        self.worker_thread: Optional[threading.Thread] = None
        if start_worker and self.api_key:
            self.worker_thread = threading.Thread(target=self._worker, name='easylogs-worker', daemon=True)
            self.worker_thread.start()

    def build_entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        metadata = {
            "service": self.service,
            "env": self.environment,
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }
        extra = getattr(record, 'easylogs_metadata', None)
        if isinstance(extra, dict):
            metadata.update(extra)
        if record.exc_info and record.exc_info[0] is not None:
            formatter = self.formatter or logging.Formatter()
            metadata["exception"] = formatter.formatException(record.exc_info)
        return {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace('+00:00', 'Z'),
            "level": record.levelname.lower(),
            "message": self.format(record),
            "metadata": metadata,
        }

    def emit(self, record):
        if not self.api_key:
            return
        try:
            entry = self.build_entry(record)
        except Exception:
            self.handleError(record)
            return
        try:
            self.batch_queue.put_nowait((entry, record))
        except queue.Full:
            # Worker is behind; send this one inline
            self._send_batch([(entry, record)])

    def _drain(self, limit: Optional[int] = None) -> List[Tuple[Dict[str, Any], logging.LogRecord]]:
        items = []
        while limit is None or len(items) < limit:
            try:
                items.append(self.batch_queue.get_nowait())
            except queue.Empty:
                break
        return items

    def _worker(self):
        """Background worker that posts queued entries."""
        batch = []
        last_flush = time.monotonic()
        while not self._stop.is_set():
            timeout = max(0.1, self.flush_interval - (time.monotonic() - last_flush))
            try:
                batch.append(self.batch_queue.get(timeout=timeout))
            except queue.Empty:
                pass

            now = time.monotonic()
            if len(batch) >= self.batch_size or (batch and now - last_flush >= self.flush_interval):
                self._send_batch(batch)
                batch = []
                last_flush = now

        if batch:
            self._send_batch(batch)

    def _send_batch(self, batch):
        if not batch:
            return
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        with self._send_lock:
            for entry, record in batch:
                try:
                    response = requests.post(self.api_url, headers=headers, json=entry, timeout=self.timeout)
                    response.raise_for_status()
                except requests.RequestException:
                    self.handleError(record)

    def flush(self):
        """Send everything queued so far from the calling thread."""
        self._send_batch(self._drain())

    def close(self):
        self._stop.set()
        if self.worker_thread is not None and self.worker_thread.is_alive():
            self.worker_thread.join(timeout=self.timeout)
        self.flush()
        super().close()
