import os
from types import SimpleNamespace
from unittest import IsolatedAsyncioTestCase
from unittest.mock import patch

import httpx
import openai
from google.genai import errors as genai_errors

from app.gateway.adapters import AdapterRequest, ConfigurationError, GeminiAdapter, OpenAIAdapter, UpstreamError
from app.gateway.schemas import PromptMessage


def _messages():
	return [
		PromptMessage(role="system", content="Composed system."),
		PromptMessage(role="user", content="Hello"),
		PromptMessage(role="assistant", content="Hi!"),
		PromptMessage(role="user", content="Tell me more"),
	]


class _FakeCompletions:
	def __init__(self, *, content: str | None = "ok", error: Exception | None = None):
		self._content = content
		self._error = error
		self.calls = []

	async def create(self, **kwargs):
		self.calls.append(kwargs)
		if self._error is not None:
			raise self._error
		message = SimpleNamespace(content=self._content)
		return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class _FakeOpenAIClient:
	def __init__(self, **kwargs):
		self.completions = _FakeCompletions(**kwargs)
		self.chat = SimpleNamespace(completions=self.completions)


class _FakeGeminiModels:
	def __init__(self, *, parts=None, error: Exception | None = None):
		self._parts = parts if parts is not None else ["ok"]
		self._error = error
		self.calls = []

	async def generate_content(self, **kwargs):
		self.calls.append(kwargs)
		if self._error is not None:
			raise self._error
		content = SimpleNamespace(parts=[SimpleNamespace(text=text) for text in self._parts])
		return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


class _FakeGeminiClient:
	def __init__(self, **kwargs):
		self.models = _FakeGeminiModels(**kwargs)
		self.aio = SimpleNamespace(models=self.models)


def _status_error(status: int, message: str) -> openai.APIStatusError:
	request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
	response = httpx.Response(status, request=request)
	return openai.APIStatusError(message, response=response, body=None)


class OpenAIAdapterTests(IsolatedAsyncioTestCase):
	def _request(self, model: str, **kwargs) -> AdapterRequest:
		return AdapterRequest(engine="openai", model=model, messages=_messages(), trace_id="t", **kwargs)

	async def test_gpt4o_sends_temperature_and_max_tokens(self) -> None:
		client = _FakeOpenAIClient(content="  Answer  ")
		with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}, clear=False), patch(
			"app.gateway.adapters.openai_adapter._build_openai_client", return_value=client
		):
			result = await OpenAIAdapter().execute(self._request("gpt-4o-mini", temperature=0.3))
		params = client.completions.calls[0]
		self.assertEqual(params["model"], "gpt-4o-mini")
		self.assertEqual(params["temperature"], 0.3)
		self.assertEqual(params["max_tokens"], 600)
		self.assertNotIn("max_completion_tokens", params)
		self.assertEqual([m["role"] for m in params["messages"]], ["system", "user", "assistant", "user"])
		self.assertEqual(result.content, "Answer")
		self.assertEqual(result.model_used, "gpt-4o-mini")
		self.assertEqual(result.engine, "openai")
		self.assertEqual(result.attempts, 1)

	async def test_gpt5_omits_temperature_and_uses_completion_tokens(self) -> None:
		client = _FakeOpenAIClient()
		with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}, clear=False), patch(
			"app.gateway.adapters.openai_adapter._build_openai_client", return_value=client
		):
			await OpenAIAdapter().execute(self._request("gpt-5-mini", temperature=0.9, max_tokens=80))
		params = client.completions.calls[0]
		self.assertNotIn("temperature", params)
		self.assertNotIn("max_tokens", params)
		self.assertEqual(params["max_completion_tokens"], 80)

	async def test_missing_key_is_configuration_error(self) -> None:
		with patch.dict(os.environ, {"OPENAI_API_KEY": ""}, clear=False):
			with self.assertRaises(ConfigurationError) as ctx:
				await OpenAIAdapter().execute(self._request("gpt-4o"))
		self.assertEqual(ctx.exception.status, 500)
		self.assertIn("OPENAI_API_KEY", ctx.exception.message)

	async def test_invalid_timeout_is_configuration_error(self) -> None:
		env = {"OPENAI_API_KEY": "test-key", "GATEWAY_OPENAI_TIMEOUT_S": "soon"}
		with patch.dict(os.environ, env, clear=False):
			with self.assertRaises(ConfigurationError):
				await OpenAIAdapter().execute(self._request("gpt-4o"))

	async def test_upstream_status_is_preserved(self) -> None:
		client = _FakeOpenAIClient(error=_status_error(429, "Rate limit reached"))
		with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}, clear=False), patch(
			"app.gateway.adapters.openai_adapter._build_openai_client", return_value=client
		):
			with self.assertRaises(UpstreamError) as ctx:
				await OpenAIAdapter().execute(self._request("gpt-4o"))
		self.assertEqual(ctx.exception.status, 429)
		self.assertIn("Rate limit", ctx.exception.message)

	async def test_timeout_maps_to_504(self) -> None:
		request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
		client = _FakeOpenAIClient(error=openai.APITimeoutError(request=request))
		with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}, clear=False), patch(
			"app.gateway.adapters.openai_adapter._build_openai_client", return_value=client
		):
			with self.assertRaises(UpstreamError) as ctx:
				await OpenAIAdapter().execute(self._request("gpt-4o"))
		self.assertEqual(ctx.exception.status, 504)

	async def test_missing_content_returns_empty_string(self) -> None:
		client = _FakeOpenAIClient(content=None)
		with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}, clear=False), patch(
			"app.gateway.adapters.openai_adapter._build_openai_client", return_value=client
		):
			result = await OpenAIAdapter().execute(self._request("gpt-4o"))
		self.assertEqual(result.content, "")


class GeminiAdapterTests(IsolatedAsyncioTestCase):
	def _request(self, **kwargs) -> AdapterRequest:
		return AdapterRequest(engine="gemini", model="gemini-2.5-flash", messages=_messages(), trace_id="g", **kwargs)

	async def test_maps_history_and_system_instruction(self) -> None:
		client = _FakeGeminiClient(parts=["Line one", "Line two"])
		with patch.dict(os.environ, {"GOOGLE_PROJECT_ID": "proj"}, clear=False), patch(
			"app.gateway.adapters.gemini_adapter._build_gemini_client", return_value=client
		) as build:
			result = await GeminiAdapter().execute(self._request(max_tokens=120))
		call = client.models.calls[0]
		self.assertEqual(call["model"], "gemini-2.5-flash")
		self.assertEqual([content.role for content in call["contents"]], ["user", "model", "user"])
		self.assertEqual(call["contents"][0].parts[0].text, "Hello")
		self.assertEqual(call["config"].system_instruction, "Composed system.")
		self.assertEqual(call["config"].max_output_tokens, 120)
		self.assertEqual(call["config"].temperature, 0.6)
		self.assertEqual(result.content, "Line one\nLine two")
		self.assertEqual(result.engine, "gemini")
		build.assert_called_once_with(project="proj", location="us-central1")

	async def test_request_overrides_project_and_location(self) -> None:
		client = _FakeGeminiClient()
		with patch.dict(os.environ, {"GOOGLE_PROJECT_ID": "", "GOOGLE_LOCATION": "us-east1"}, clear=False), patch(
			"app.gateway.adapters.gemini_adapter._build_gemini_client", return_value=client
		) as build:
			await GeminiAdapter().execute(self._request(project_id="other", location="europe-west4"))
		build.assert_called_once_with(project="other", location="europe-west4")

	async def test_missing_project_is_configuration_error(self) -> None:
		with patch.dict(os.environ, {"GOOGLE_PROJECT_ID": ""}, clear=False):
			with self.assertRaises(ConfigurationError) as ctx:
				await GeminiAdapter().execute(self._request())
		self.assertEqual(ctx.exception.status, 500)
		self.assertIn("GOOGLE_PROJECT_ID", ctx.exception.message)

	async def test_invalid_service_account_json_is_configuration_error(self) -> None:
		env = {"GOOGLE_PROJECT_ID": "proj", "GEMINI_SERVICE_ACCOUNT_JSON": "{not json"}
		with patch.dict(os.environ, env, clear=False):
			with self.assertRaises(ConfigurationError):
				await GeminiAdapter().execute(self._request())

	async def test_api_error_status_is_preserved(self) -> None:
		error = genai_errors.ClientError(
			429,
			{"error": {"code": 429, "message": "Resource exhausted", "status": "RESOURCE_EXHAUSTED"}},
		)
		client = _FakeGeminiClient(error=error)
		with patch.dict(os.environ, {"GOOGLE_PROJECT_ID": "proj"}, clear=False), patch(
			"app.gateway.adapters.gemini_adapter._build_gemini_client", return_value=client
		):
			with self.assertRaises(UpstreamError) as ctx:
				await GeminiAdapter().execute(self._request())
		self.assertEqual(ctx.exception.status, 429)

	async def test_no_candidates_returns_empty_string(self) -> None:
		client = _FakeGeminiClient(parts=[])
		with patch.dict(os.environ, {"GOOGLE_PROJECT_ID": "proj"}, clear=False), patch(
			"app.gateway.adapters.gemini_adapter._build_gemini_client", return_value=client
		):
			result = await GeminiAdapter().execute(self._request())
		self.assertEqual(result.content, "")
