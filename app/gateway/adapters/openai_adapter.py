from __future__ import annotations

from typing import Any, Dict, List

import openai
from openai import AsyncOpenAI

from app.gateway import config, constants
from app.gateway.adapters.base import AdapterRequest, ConfigurationError, ProviderAdapter, UpstreamError
from app.gateway.schemas import ChatResult


def _build_openai_client(*, api_key: str, timeout_s: float) -> AsyncOpenAI:
	return AsyncOpenAI(api_key=api_key, timeout=timeout_s, max_retries=0)


def _uses_completion_tokens(model: str) -> bool:
	# gpt-5 family rejects temperature and renames the token limit.
	return model.startswith("gpt-5")


def _request_params(request: AdapterRequest) -> Dict[str, Any]:
	messages: List[Dict[str, str]] = [
		{"role": message.role, "content": message.content} for message in request.messages
	]
	params: Dict[str, Any] = {"model": request.model, "messages": messages}
	max_tokens = request.max_tokens or constants.DEFAULT_MAX_TOKENS
	if _uses_completion_tokens(request.model):
		params["max_completion_tokens"] = max_tokens
	else:
		params["temperature"] = (
			request.temperature if request.temperature is not None else constants.DEFAULT_TEMPERATURE
		)
		params["max_tokens"] = max_tokens
	return params


def _extract_content(response: Any) -> str:
	choices = getattr(response, "choices", None) or []
	if not choices:
		return ""
	message = getattr(choices[0], "message", None)
	content = getattr(message, "content", None)
	return content.strip() if isinstance(content, str) else ""


def _openai_error(exc: Exception) -> UpstreamError:
	if isinstance(exc, openai.APITimeoutError):
		return UpstreamError("OpenAI request timed out.", status=504)
	if isinstance(exc, openai.APIStatusError):
		return UpstreamError(exc.message or str(exc), status=exc.status_code)
	if isinstance(exc, openai.APIConnectionError):
		return UpstreamError("OpenAI connection failed.", status=502)
	return UpstreamError(str(exc) or "OpenAI request failed.", status=502)


class OpenAIAdapter(ProviderAdapter):
	engine = "openai"

	async def execute(self, request: AdapterRequest) -> ChatResult:
		api_key = config.openai_api_key()
		if not api_key:
			raise ConfigurationError("Missing OPENAI_API_KEY")
		try:
			timeout_s = config.openai_timeout()
		except config.ConfigurationValueError as exc:
			raise ConfigurationError(str(exc)) from exc

		client = _build_openai_client(api_key=api_key, timeout_s=timeout_s)
		try:
			response = await client.chat.completions.create(**_request_params(request))
		except openai.OpenAIError as exc:
			raise _openai_error(exc) from exc
		return self._result(request, _extract_content(response))
