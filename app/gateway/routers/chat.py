from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from app.gateway import constants
from app.gateway.response import error_response
from app.gateway.schemas import ChatRequest, ChatResult
from app.gateway.services import orchestrator, streaming
from app.gateway.services.trace_buffer import record_trace


logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


async def _chat(request: Request, payload: ChatRequest) -> JSONResponse:
	try:
		result = await orchestrator.orchestrate(payload)
	except Exception as exc:
		logger.exception("orchestration failed")
		record_trace("orchestrator", "route_error", status=500, message=str(exc) or exc.__class__.__name__)
		return JSONResponse(
			status_code=500,
			content=error_response(status=500, message="Orchestration failed", request=request),
		)
	status_code = 200 if not result.error else (result.status or 502)
	return JSONResponse(status_code=status_code, content=result.wire())


@router.post("/v1/chat", response_model=ChatResult, response_model_by_alias=True)
async def chat(request: Request, payload: ChatRequest):
	return await _chat(request, payload)


@router.post("/api/chat", response_model=ChatResult, response_model_by_alias=True, include_in_schema=False)
async def chat_legacy(request: Request, payload: ChatRequest):
	return await _chat(request, payload)


@router.post("/v1/chat/stream")
async def chat_stream(request: Request, payload: ChatRequest):
	return StreamingResponse(
		streaming.relay_events(payload, request.is_disconnected),
		media_type="text/event-stream",
		headers=dict(constants.STREAM_HEADERS),
	)
