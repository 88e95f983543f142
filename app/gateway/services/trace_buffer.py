from __future__ import annotations

import re
from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Deque, Dict, List

from app.gateway import constants


TraceEvent = Dict[str, Any]

_SECRET_KEY_RE = re.compile(r"key|token|secret|password", re.IGNORECASE)
_RESERVED_KEYS = ("ts", "svc", "event")


def now_iso() -> str:
	return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def preview(text: str | None, limit: int = constants.PREVIEW_CHARS) -> str:
	return " ".join((text or "").split())[:limit]


def redact(fields: Dict[str, Any]) -> Dict[str, Any]:
	return {
		key: constants.TRACE_REDACTED if _SECRET_KEY_RE.search(key) else value
		for key, value in fields.items()
	}


class TraceBuffer:
	"""Fixed-capacity FIFO of redacted trace events.

	Only ``append`` and ``query`` are exposed. Every stored event is a fresh
	dict, so callers never share mutable state through the buffer.
	"""

	def __init__(self, capacity: int = constants.TRACE_CAPACITY):
		if capacity < 1:
			raise ValueError("capacity must be at least 1.")
		self._capacity = capacity
		self._events: Deque[TraceEvent] = deque(maxlen=capacity)
		self._lock = Lock()

	@property
	def capacity(self) -> int:
		return self._capacity

	def append(self, svc: str, event: str, **fields: Any) -> TraceEvent:
		extra = {key: value for key, value in fields.items() if key not in _RESERVED_KEYS}
		record: TraceEvent = {"ts": now_iso(), "svc": svc, "event": event}
		record.update(redact(extra))
		with self._lock:
			self._events.append(record)
		return dict(record)

	def query(self, n: int = 1) -> List[TraceEvent]:
		count = max(1, min(int(n), self._capacity))
		with self._lock:
			tail = list(self._events)[-count:]
		return [dict(event) for event in tail]

	def clear(self) -> None:
		with self._lock:
			self._events.clear()


_BUFFER = TraceBuffer()


def buffer() -> TraceBuffer:
	return _BUFFER


def record_trace(svc: str, event: str, **fields: Any) -> TraceEvent:
	return _BUFFER.append(svc, event, **fields)


def last_trace(n: int = 1) -> List[TraceEvent]:
	return _BUFFER.query(n)
