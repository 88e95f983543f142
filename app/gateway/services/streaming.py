from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Tuple

from app.gateway import config, constants
from app.gateway.schemas import ChatRequest, PromptMessage
from app.gateway.services.orchestrator import Orchestrator, resolve_trace_id
from app.gateway.services.trace_buffer import preview, record_trace


logger = logging.getLogger(__name__)

DisconnectFn = Callable[[], Awaitable[bool]]
SleepFn = Callable[[float], Awaitable[None]]

_SVC = "relay"


def encode_block(data: Dict[str, Any], event: str | None = None) -> str:
	payload = json.dumps(data, ensure_ascii=False)
	if event:
		return f"event: {event}\ndata: {payload}\n\n"
	return f"data: {payload}\n\n"


def end_block(model_used: str, engine: str, **extra: Any) -> str:
	return encode_block({"modelUsed": model_used, "engine": engine, **extra}, "end")


def error_block(error: str, status: int) -> str:
	return encode_block({"error": error, "status": status}, "error")


def fixed_slices(text: str, size: int) -> List[str]:
	if size < 1:
		raise ValueError("size must be at least 1.")
	return [text[i : i + size] for i in range(0, len(text), size)]


def even_slices(text: str, pieces: int = constants.STREAM_SLICES) -> List[str]:
	if not text:
		return []
	size = max(1, math.ceil(len(text) / max(1, pieces)))
	return fixed_slices(text, size)


def demo_text(messages: List[PromptMessage]) -> str:
	last_user = next((m.content for m in reversed(messages) if m.role == "user"), "")
	said = " ".join(last_user.split()) or "(nothing)"
	return f'DEMO STREAM (no provider configured). You said: "{said}"'


async def _plan_demo(request: ChatRequest, trace_id: str) -> Tuple[List[str], str, float]:
	text = demo_text(request.messages)
	record_trace(_SVC, "demo_stream", traceId=trace_id, chars=len(text))
	return (
		fixed_slices(text, constants.DEMO_SLICE_CHARS),
		end_block(constants.DEMO_MODEL, constants.DEMO_ENGINE, traceId=trace_id),
		constants.DEMO_SLICE_DELAY_S,
	)


async def _plan_orchestrated(
	request: ChatRequest,
	orchestrator: Orchestrator,
) -> Tuple[List[str], str, float]:
	result = await orchestrator.orchestrate(request)
	if result.error:
		record_trace(_SVC, "stream_error", traceId=result.trace_id, status=result.status, message=result.error)
		return [], error_block(result.error, result.status or 502), 0.0
	slices = even_slices(result.content)
	record_trace(
		_SVC,
		"stream_response",
		traceId=result.trace_id,
		engine=result.engine,
		model=result.model_used,
		slices=len(slices),
		summary=preview(result.content),
	)
	terminal = end_block(result.model_used, result.engine, traceId=result.trace_id, attempts=result.attempts)
	return slices, terminal, constants.STREAM_SLICE_DELAY_S


async def relay_events(
	request: ChatRequest,
	is_disconnected: DisconnectFn,
	*,
	orchestrator: Orchestrator | None = None,
	sleep: SleepFn = asyncio.sleep,
) -> AsyncIterator[str]:
	"""Yield event blocks for one chat request.

	Zero or more delta blocks are followed by exactly one ``end`` or ``error``
	block. Nothing is yielded once the client has disconnected.
	"""
	trace_id = resolve_trace_id(request.trace_id)
	request = request.model_copy(update={"trace_id": trace_id})
	try:
		if config.any_provider_configured():
			deltas, terminal, delay = await _plan_orchestrated(request, orchestrator or Orchestrator())
		else:
			deltas, terminal, delay = await _plan_demo(request, trace_id)
	except Exception:
		logger.exception("stream preparation failed for trace %s", trace_id)
		record_trace(_SVC, "route_error", traceId=trace_id, status=500, message="Stream failed")
		deltas, terminal, delay = [], error_block("Stream failed", 500), 0.0

	for index, chunk in enumerate(deltas):
		if index:
			await sleep(delay)
		if await is_disconnected():
			record_trace(_SVC, "client_disconnected", traceId=trace_id, sent=index)
			return
		yield encode_block({"delta": chunk})

	if await is_disconnected():
		record_trace(_SVC, "client_disconnected", traceId=trace_id, sent=len(deltas))
		return
	yield terminal
