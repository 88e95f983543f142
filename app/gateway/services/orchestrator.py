from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Mapping

from app.gateway.adapters import AdapterRequest, ProviderAdapter, get_adapter
from app.gateway.schemas import ChatRequest, ChatResult, PromptMessage
from app.gateway.services import model_registry, persona, routing_policy
from app.gateway.services.trace_buffer import preview, record_trace


logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

_SVC = "orchestrator"
_EXHAUSTED_STATUS = 502
_EXHAUSTED_MESSAGE = "Upstream error after retries"


class OrchestrationState(str, Enum):
	SELECT = "select"
	COMPOSE = "compose"
	CALL = "call"
	VALIDATE = "validate"
	RETRY = "retry"
	SUCCESS = "success"
	EXHAUSTED = "exhausted"


_TERMINAL = frozenset({OrchestrationState.SUCCESS, OrchestrationState.EXHAUSTED})


@dataclass
class OrchestrationRun:
	request: ChatRequest
	trace_id: str
	engine: str = routing_policy.DEFAULT_ENGINE
	model: str = ""
	history: List[PromptMessage] = field(default_factory=list)
	attempts: int = 0
	outcome: ChatResult | None = None
	last_error: Exception | None = None
	result: ChatResult | None = None


def resolve_trace_id(trace_id: str | None) -> str:
	cleaned = (trace_id or "").strip()
	return cleaned or uuid.uuid4().hex


def compose_history(request: ChatRequest) -> List[PromptMessage]:
	inline_system = next((m.content for m in request.messages if m.role == "system"), None)
	base = request.system_instruction or inline_system
	block = request.persona
	system = persona.build_system_instruction(
		base,
		block.user_profile if block else None,
		block.task_manifest if block else None,
	)
	rest = [message for message in request.messages if message.role != "system"]
	return [PromptMessage(role="system", content=system), *rest]


def _error_status(exc: Exception | None) -> int | None:
	status = getattr(exc, "status", None)
	return status if isinstance(status, int) else None


def _error_message(exc: Exception | None) -> str | None:
	if exc is None:
		return None
	message = getattr(exc, "message", None)
	if isinstance(message, str) and message:
		return message
	return str(exc) or None


class Orchestrator:
	"""Routes, composes and calls a provider, retrying on failure or empty output.

	``orchestrate`` never raises for provider failures: every outcome is a
	ChatResult whose content is non-empty or whose error is set.
	"""

	def __init__(
		self,
		adapters: Mapping[str, ProviderAdapter] | None = None,
		*,
		policy: routing_policy.RetryPolicy = routing_policy.RETRY_POLICY,
		sleep: SleepFn = asyncio.sleep,
	):
		self._adapters = dict(adapters) if adapters is not None else None
		self._policy = policy
		self._sleep = sleep
		self._handlers: Dict[OrchestrationState, Callable[[OrchestrationRun], Awaitable[OrchestrationState]]] = {
			OrchestrationState.SELECT: self._select,
			OrchestrationState.COMPOSE: self._compose,
			OrchestrationState.CALL: self._call,
			OrchestrationState.VALIDATE: self._validate,
			OrchestrationState.RETRY: self._retry,
		}

	@property
	def policy(self) -> routing_policy.RetryPolicy:
		return self._policy

	async def orchestrate(self, request: ChatRequest) -> ChatResult:
		run = OrchestrationRun(request=request, trace_id=resolve_trace_id(request.trace_id))
		state = OrchestrationState.SELECT
		while state not in _TERMINAL:
			state = await self._handlers[state](run)
		if state is OrchestrationState.EXHAUSTED:
			run.result = self._exhausted(run)
		assert run.result is not None
		return run.result

	def _adapter(self, engine: str) -> ProviderAdapter:
		if self._adapters is None:
			return get_adapter(engine)
		return self._adapters[engine]

	async def _select(self, run: OrchestrationRun) -> OrchestrationState:
		request = run.request
		engine = request.engine
		if not engine:
			manifest = request.persona.task_manifest if request.persona else None
			engine = routing_policy.select_engine_by_intent(manifest.intent if manifest else None)
		decision = routing_policy.select_engine_and_model(engine, request.model)
		run.engine = decision.engine
		run.model = decision.model
		if decision.is_fallback and request.model:
			logger.info("model %r not allowed for %s; using %s", request.model, decision.engine, decision.model)
		return OrchestrationState.COMPOSE

	async def _compose(self, run: OrchestrationRun) -> OrchestrationState:
		run.history = compose_history(run.request)
		record_trace(
			_SVC,
			"request",
			traceId=run.trace_id,
			engine=run.engine,
			model=run.model,
			personaPreview=preview(run.history[0].content),
			parts=len(run.history),
		)
		if self._policy.max_attempts < 1:
			return OrchestrationState.EXHAUSTED
		return OrchestrationState.CALL

	async def _call(self, run: OrchestrationRun) -> OrchestrationState:
		run.attempts += 1
		run.outcome = None
		record_trace(_SVC, "attempt", traceId=run.trace_id, attempt=run.attempts, engine=run.engine, model=run.model)
		request = run.request
		try:
			adapter = self._adapter(run.engine)
			run.outcome = await adapter.execute(
				AdapterRequest(
					engine=run.engine,
					model=run.model,
					messages=list(run.history),
					trace_id=run.trace_id,
					temperature=request.temperature,
					max_tokens=request.max_tokens,
					project_id=request.project_id,
					location=request.location,
				)
			)
		except Exception as exc:
			run.last_error = exc
			status = _error_status(exc)
			message = _error_message(exc)
			logger.warning(
				"attempt %d on %s/%s failed (status=%s): %s",
				run.attempts,
				run.engine,
				run.model,
				status,
				message,
			)
			record_trace(
				_SVC,
				"error",
				traceId=run.trace_id,
				attempt=run.attempts,
				engine=run.engine,
				model=run.model,
				status=status,
				message=message,
			)
			return OrchestrationState.RETRY
		return OrchestrationState.VALIDATE

	async def _validate(self, run: OrchestrationRun) -> OrchestrationState:
		outcome = run.outcome
		content = outcome.content if outcome else ""
		if not content.strip():
			logger.info("attempt %d on %s/%s returned empty content", run.attempts, run.engine, run.model)
			record_trace(
				_SVC,
				"empty_content",
				traceId=run.trace_id,
				attempt=run.attempts,
				engine=run.engine,
				model=run.model,
			)
			return OrchestrationState.RETRY
		assert outcome is not None
		record_trace(
			_SVC,
			"response",
			traceId=run.trace_id,
			attempt=run.attempts,
			engine=run.engine,
			model=outcome.model_used,
			chars=len(content),
			summary=preview(content),
		)
		run.result = ChatResult(
			content=content,
			model_used=outcome.model_used,
			engine=run.engine,
			attempts=run.attempts,
			trace_id=run.trace_id,
		)
		return OrchestrationState.SUCCESS

	async def _retry(self, run: OrchestrationRun) -> OrchestrationState:
		run.model = model_registry.fallback_for(run.engine, run.model)
		if run.attempts >= self._policy.max_attempts:
			return OrchestrationState.EXHAUSTED
		await self._sleep(self._policy.backoff_s)
		return OrchestrationState.CALL

	def _exhausted(self, run: OrchestrationRun) -> ChatResult:
		status = _error_status(run.last_error) or _EXHAUSTED_STATUS
		error = _error_message(run.last_error) or _EXHAUSTED_MESSAGE
		record_trace(
			_SVC,
			"exhausted",
			traceId=run.trace_id,
			attempts=run.attempts,
			engine=run.engine,
			model=run.model,
			status=status,
		)
		return ChatResult(
			content="",
			model_used=run.model,
			engine=run.engine,
			attempts=run.attempts,
			trace_id=run.trace_id,
			status=status,
			error=error,
		)


async def orchestrate(request: ChatRequest) -> ChatResult:
	return await Orchestrator().orchestrate(request)
