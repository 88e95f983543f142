from typing import Dict, Mapping

from app.gateway.adapters.base import (
	AdapterRequest,
	ConfigurationError,
	ProviderAdapter,
	ProviderError,
	UpstreamError,
)
from app.gateway.adapters.gemini_adapter import GeminiAdapter
from app.gateway.adapters.openai_adapter import OpenAIAdapter


_ADAPTERS: Dict[str, ProviderAdapter] = {
	OpenAIAdapter.engine: OpenAIAdapter(),
	GeminiAdapter.engine: GeminiAdapter(),
}


def default_adapters() -> Mapping[str, ProviderAdapter]:
	return dict(_ADAPTERS)


def get_adapter(engine: str) -> ProviderAdapter:
	try:
		return _ADAPTERS[engine]
	except KeyError as exc:
		raise ConfigurationError(f"No provider adapter registered for engine '{engine}'.") from exc


__all__ = [
	"AdapterRequest",
	"ConfigurationError",
	"GeminiAdapter",
	"OpenAIAdapter",
	"ProviderAdapter",
	"ProviderError",
	"UpstreamError",
	"default_adapters",
	"get_adapter",
]
