"""Structured event log fan-out."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from swarmAgent.utils.error_handler import ExecutionStateError

LOGGER = logging.getLogger(__name__)

LogObserver = Callable[[Dict[str, Any]], None]


class LogStream:
    """Emit flat, timestamped records to registered observers.

    Observers must be registered before the first execution; the stream is
    frozen when an execution starts and later ``subscribe`` calls raise.
    Emission is synchronous and in registration order.
    """

    def __init__(self):
        self._observers: List[LogObserver] = []
        self._frozen = False

    def subscribe(self, observer: LogObserver) -> LogObserver:
        if self._frozen:
            raise ExecutionStateError("Cannot register log observers after execution has started")
        self._observers.append(observer)
        return observer

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def reset(self) -> None:
        self._observers = []
        self._frozen = False

    def emit(self, **data: Any) -> Dict[str, Any]:
        """Normalize ``data`` into a record and deliver it.

        Adds an ISO-8601 UTC ``timestamp`` and drops None values. Returns the
        record so callers can keep their own copy.
        """
        record = {k: v for k, v in data.items() if v is not None}
        record["timestamp"] = datetime.now(timezone.utc).isoformat()

        for observer in self._observers:
            try:
                observer(record)
            except Exception as e:
                LOGGER.warning(f"Log observer {getattr(observer, '__name__', observer)!r} failed: {e}")
        return record
