from __future__ import annotations

from typing import Dict, NamedTuple, Tuple


OPENAI_MODELS: Tuple[str, ...] = (
	"gpt-5",
	"gpt-5-mini",
	"gpt-4o",
	"gpt-4o-mini",
)
GEMINI_MODELS: Tuple[str, ...] = (
	"gemini-2.5-pro",
	"gemini-2.5-flash",
)

_ALLOWLISTS: Dict[str, Tuple[str, ...]] = {
	"openai": OPENAI_MODELS,
	"gemini": GEMINI_MODELS,
}
_DEFAULT_MODELS: Dict[str, str] = {
	"openai": "gpt-4o-mini",
	"gemini": "gemini-2.5-flash",
}
# (primary, alternate) per engine; fallback_for toggles between the two.
_FALLBACK_PAIRS: Dict[str, Tuple[str, str]] = {
	"openai": ("gpt-4o-mini", "gpt-4o"),
	"gemini": ("gemini-2.5-flash", "gemini-2.5-pro"),
}


class ModelChoice(NamedTuple):
	model: str
	is_fallback: bool


def engines() -> Tuple[str, ...]:
	return tuple(_ALLOWLISTS)


def _require_engine(engine: str) -> str:
	if engine not in _ALLOWLISTS:
		raise ValueError(f"Unknown engine '{engine}'.")
	return engine


def list_models(engine: str) -> Tuple[str, ...]:
	return _ALLOWLISTS[_require_engine(engine)]


def default_model(engine: str) -> str:
	return _DEFAULT_MODELS[_require_engine(engine)]


def is_supported(engine: str, model: str) -> bool:
	return model in list_models(engine)


def normalize(engine: str, requested_model: str | None) -> ModelChoice:
	fallback = default_model(engine)
	candidate = (requested_model or "").strip()
	if candidate and is_supported(engine, candidate):
		return ModelChoice(model=candidate, is_fallback=False)
	return ModelChoice(model=fallback, is_fallback=True)


def fallback_for(engine: str, current_model: str) -> str:
	primary, alternate = _FALLBACK_PAIRS[_require_engine(engine)]
	return alternate if current_model == primary else primary
