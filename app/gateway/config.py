from __future__ import annotations

import logging
import os
from typing import Dict, List

from app.gateway import constants


_DEFAULT_OPENAI_TIMEOUT_S = 30.0
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ConfigurationValueError(ValueError):
	"""Raised when an environment value is present but unusable."""


def _env(name: str) -> str:
	return os.getenv(name, "").strip()


def _float_env(name: str, default: float) -> float:
	raw = _env(name)
	if not raw:
		return default
	try:
		value = float(raw)
	except ValueError as exc:
		raise ConfigurationValueError(f"{name} must be numeric.") from exc
	if value <= 0:
		raise ConfigurationValueError(f"{name} must be greater than zero.")
	return value


def openai_api_key() -> str:
	return _env("OPENAI_API_KEY")


def openai_timeout() -> float:
	return _float_env("GATEWAY_OPENAI_TIMEOUT_S", _DEFAULT_OPENAI_TIMEOUT_S)


def google_project_id() -> str:
	return _env("GOOGLE_PROJECT_ID")


def google_location() -> str:
	return _env("GOOGLE_LOCATION") or constants.DEFAULT_GOOGLE_LOCATION


def gemini_service_account_json() -> str:
	return _env("GEMINI_SERVICE_ACCOUNT_JSON")


def openai_configured() -> bool:
	return bool(openai_api_key())


def gemini_configured() -> bool:
	return bool(google_project_id())


def any_provider_configured() -> bool:
	return openai_configured() or gemini_configured()


def provider_warnings() -> Dict[str, List[str]]:
	warnings: Dict[str, List[str]] = {"openai": [], "gemini": []}
	if not openai_configured():
		warnings["openai"].append("OpenAI API key not configured. Set OPENAI_API_KEY.")
	if not gemini_configured():
		warnings["gemini"].append("Missing GOOGLE_PROJECT_ID.")
	elif not gemini_service_account_json() and not _env("GOOGLE_APPLICATION_CREDENTIALS"):
		warnings["gemini"].append(
			"No GEMINI_SERVICE_ACCOUNT_JSON or GOOGLE_APPLICATION_CREDENTIALS; using application default credentials."
		)
	return warnings


def configure_logging() -> None:
	level_name = _env("GATEWAY_LOG_LEVEL").upper() or "INFO"
	level = logging.getLevelName(level_name)
	if not isinstance(level, int):
		level = logging.INFO
	root = logging.getLogger("app.gateway")
	root.setLevel(level)
	if not root.handlers:
		handler = logging.StreamHandler()
		handler.setFormatter(logging.Formatter(_LOG_FORMAT))
		root.addHandler(handler)
