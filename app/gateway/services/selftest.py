from __future__ import annotations

import uuid
from typing import Any, Dict, Tuple

from app.gateway.adapters import AdapterRequest, ProviderError, get_adapter
from app.gateway.schemas import PromptMessage
from app.gateway.services import model_registry
from app.gateway.services.persona import build_system_instruction
from app.gateway.services.trace_buffer import preview, record_trace


SELFTEST_INSTRUCTION = "You are a terse test assistant."
SELFTEST_TEMPERATURE = 0.2
SELFTEST_MAX_TOKENS = 60

_SELFTEST_DEFAULTS: Dict[str, str] = {
	"openai": "gpt-5-mini",
	"gemini": "gemini-2.5-flash",
}
_SELFTEST_TOKENS: Dict[str, str] = {
	"openai": "OPENAI_OK",
	"gemini": "GEMINI_OK",
}
# Models exercised by the offline runner, per engine.
RUNNER_MODELS: Dict[str, Tuple[str, ...]] = {
	"openai": ("gpt-5-mini", "gpt-4o-mini"),
	"gemini": ("gemini-2.5-flash", "gemini-2.5-pro"),
}


def selftest_model(engine: str, requested: str | None) -> str:
	candidate = (requested or "").strip()
	if candidate and model_registry.is_supported(engine, candidate):
		return candidate
	return _SELFTEST_DEFAULTS[engine]


async def run_selftest(engine: str, model: str | None = None) -> Dict[str, Any]:
	"""One real upstream call through the engine's adapter.

	Raises ProviderError on failure so callers can surface the upstream status.
	"""
	if engine not in _SELFTEST_DEFAULTS:
		raise ProviderError(f"Unknown engine '{engine}'.", status=404)
	chosen = selftest_model(engine, model)
	system = build_system_instruction(SELFTEST_INSTRUCTION)
	request = AdapterRequest(
		engine=engine,
		model=chosen,
		messages=[
			PromptMessage(role="system", content=system),
			PromptMessage(role="user", content=f"Reply with the token {_SELFTEST_TOKENS[engine]} only."),
		],
		trace_id=uuid.uuid4().hex,
		temperature=SELFTEST_TEMPERATURE,
		max_tokens=SELFTEST_MAX_TOKENS,
	)
	record_trace(engine, "selftest_request", model=chosen, parts=len(request.messages))
	try:
		result = await get_adapter(engine).execute(request)
	except ProviderError as exc:
		record_trace(engine, "selftest_error", model=chosen, status=exc.status, message=exc.message)
		raise
	record_trace(engine, "selftest_response", model=chosen, chars=len(result.content), summary=preview(result.content))
	return {"model": chosen, "content": result.content}


async def run_all() -> Dict[str, Any]:
	results: Dict[str, Any] = {}
	for engine, models in RUNNER_MODELS.items():
		per_model: Dict[str, Any] = {}
		for model in models:
			try:
				outcome = await run_selftest(engine, model)
			except ProviderError as exc:
				per_model[model] = {"ok": False, "status": exc.status, "error": exc.message}
				continue
			per_model[model] = {
				"ok": True,
				"len": len(outcome["content"]),
				"preview": preview(outcome["content"], 120),
			}
		results[engine] = per_model
	return results
