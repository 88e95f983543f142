from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from app.gateway import config, constants
from app.gateway.adapters import ProviderError
from app.gateway.response import error_response, health_payload
from app.gateway.schemas import EngineModels, HealthData, ModelsData, SelftestData
from app.gateway.services import model_registry, routing_policy, selftest
from app.gateway.services.trace_buffer import last_trace


router = APIRouter(tags=["ops"])


@router.get("/health", response_model=HealthData)
def health():
	return health_payload()


@router.get("/trace/last")
def trace_last(n: int = Query(default=1)):
	return last_trace(max(1, min(n, constants.TRACE_CAPACITY)))


@router.get("/v1/models", response_model=ModelsData, response_model_by_alias=True)
def models():
	warnings = config.provider_warnings()
	configured = {
		"openai": config.openai_configured(),
		"gemini": config.gemini_configured(),
	}
	engines = {
		engine: EngineModels(
			models=list(model_registry.list_models(engine)),
			default_model=model_registry.default_model(engine),
			configured=configured[engine],
			warnings=warnings[engine],
		)
		for engine in model_registry.engines()
	}
	return ModelsData(
		engines=engines,
		default_engine=routing_policy.DEFAULT_ENGINE,
		demo_mode=not config.any_provider_configured(),
	)


@router.get("/selftest/{engine}", response_model=SelftestData)
async def run_selftest(request: Request, engine: Literal["openai", "gemini"], model: str | None = None):
	try:
		return await selftest.run_selftest(engine, model)
	except ProviderError as exc:
		return JSONResponse(
			status_code=exc.status,
			content=error_response(status=exc.status, message=exc.message, request=request),
		)
