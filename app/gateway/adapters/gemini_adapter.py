from __future__ import annotations

import json
from typing import Any, List

from google import genai
from google.auth.exceptions import GoogleAuthError
from google.genai import errors as genai_errors
from google.genai import types
from google.oauth2 import service_account

from app.gateway import config, constants
from app.gateway.adapters.base import AdapterRequest, ConfigurationError, ProviderAdapter, UpstreamError
from app.gateway.schemas import ChatResult


_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


def _credentials() -> Any:
	raw = config.gemini_service_account_json()
	if not raw:
		return None
	try:
		info = json.loads(raw)
	except json.JSONDecodeError as exc:
		raise ConfigurationError("GEMINI_SERVICE_ACCOUNT_JSON is not valid JSON.") from exc
	try:
		return service_account.Credentials.from_service_account_info(info, scopes=_SCOPES)
	except (ValueError, GoogleAuthError) as exc:
		raise ConfigurationError("GEMINI_SERVICE_ACCOUNT_JSON is not a usable service account.") from exc


def _build_gemini_client(*, project: str, location: str) -> genai.Client:
	try:
		return genai.Client(vertexai=True, project=project, location=location, credentials=_credentials())
	except GoogleAuthError as exc:
		raise ConfigurationError(f"Failed to obtain Google credentials: {exc}") from exc


def _contents(request: AdapterRequest) -> List[types.Content]:
	return [
		types.Content(
			role="model" if message.role == "assistant" else "user",
			parts=[types.Part(text=message.content)],
		)
		for message in request.history()
	]


def _generation_config(request: AdapterRequest) -> types.GenerateContentConfig:
	return types.GenerateContentConfig(
		system_instruction=request.system_text(),
		temperature=request.temperature if request.temperature is not None else constants.DEFAULT_TEMPERATURE,
		max_output_tokens=request.max_tokens or constants.DEFAULT_MAX_TOKENS,
	)


def _extract_content(response: Any) -> str:
	candidates = getattr(response, "candidates", None) or []
	if not candidates:
		return ""
	content = getattr(candidates[0], "content", None)
	parts = getattr(content, "parts", None) or []
	texts = [part.text for part in parts if isinstance(getattr(part, "text", None), str) and part.text]
	return "\n".join(texts)


def _gemini_error(exc: genai_errors.APIError) -> UpstreamError:
	status = exc.code if isinstance(exc.code, int) and exc.code > 0 else 502
	return UpstreamError(exc.message or str(exc), status=status)


class GeminiAdapter(ProviderAdapter):
	engine = "gemini"

	async def execute(self, request: AdapterRequest) -> ChatResult:
		project = (request.project_id or "").strip() or config.google_project_id()
		if not project:
			raise ConfigurationError("Missing GOOGLE_PROJECT_ID")
		location = (request.location or "").strip() or config.google_location()

		client = _build_gemini_client(project=project, location=location)
		try:
			response = await client.aio.models.generate_content(
				model=request.model,
				contents=_contents(request),
				config=_generation_config(request),
			)
		except genai_errors.APIError as exc:
			raise _gemini_error(exc) from exc
		except GoogleAuthError as exc:
			raise ConfigurationError(f"Failed to obtain Google access token: {exc}") from exc
		return self._result(request, _extract_content(response))
