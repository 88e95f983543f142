from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Request

from app.gateway.services.trace_buffer import now_iso


def _request_id(request: Optional[Request]) -> Optional[str]:
	if request is None:
		return None
	return getattr(request.state, "request_id", None)


def health_payload() -> Dict[str, Any]:
	return {"ok": True, "ts": now_iso()}


def error_response(
	*,
	status: int,
	message: str,
	request: Optional[Request] = None,
	evidence: Optional[List[str]] = None,
) -> Dict[str, Any]:
	payload: Dict[str, Any] = {
		"error": message,
		"status": status,
	}
	if evidence:
		payload["evidence"] = evidence
	request_id = _request_id(request)
	if request_id:
		payload["requestId"] = request_id
	return payload
