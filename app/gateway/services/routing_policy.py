from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, NamedTuple

from app.gateway.services import model_registry


DEFAULT_ENGINE = "openai"

_INTENT_ENGINES: Dict[str, str] = {
	"editorial": "openai",
	"edit": "openai",
	"outline": "openai",
	"tone": "gemini",
	"style": "gemini",
	"voice": "gemini",
}


@dataclass(frozen=True)
class RetryPolicy:
	max_attempts: int
	backoff_ms: int

	@property
	def backoff_s(self) -> float:
		return self.backoff_ms / 1000.0


RETRY_POLICY = RetryPolicy(max_attempts=2, backoff_ms=250)


class RouteDecision(NamedTuple):
	engine: str
	model: str
	is_fallback: bool


def intent_table() -> Dict[str, str]:
	return dict(_INTENT_ENGINES)


def select_engine_by_intent(intent: str | None) -> str:
	key = (intent or "").strip().lower()
	return _INTENT_ENGINES.get(key, DEFAULT_ENGINE)


def select_engine_and_model(engine: str | None = None, model: str | None = None) -> RouteDecision:
	chosen = engine if engine in model_registry.engines() else DEFAULT_ENGINE
	choice = model_registry.normalize(chosen, model)
	return RouteDecision(engine=chosen, model=choice.model, is_fallback=choice.is_fallback)
