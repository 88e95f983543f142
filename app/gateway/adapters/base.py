from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from app.gateway.schemas import ChatResult, PromptMessage


class ProviderError(Exception):
	def __init__(self, message: str, *, status: int = 502):
		super().__init__(message)
		self.status = status
		self.message = message


class ConfigurationError(ProviderError):
	"""A provider credential or setting is missing or invalid."""

	def __init__(self, message: str, *, status: int = 500):
		super().__init__(message, status=status)


class UpstreamError(ProviderError):
	"""The provider call failed; ``status`` is the upstream status code."""


@dataclass
class AdapterRequest:
	engine: str
	model: str
	messages: List[PromptMessage] = field(default_factory=list)
	trace_id: str = ""
	temperature: float | None = None
	max_tokens: int | None = None
	project_id: str | None = None
	location: str | None = None

	def system_text(self) -> str | None:
		for message in self.messages:
			if message.role == "system":
				return message.content
		return None

	def history(self) -> List[PromptMessage]:
		return [message for message in self.messages if message.role != "system"]


class ProviderAdapter(ABC):
	engine: str

	@abstractmethod
	async def execute(self, request: AdapterRequest) -> ChatResult:
		"""Run one provider call and normalize it to a single-attempt ChatResult."""

	def _result(self, request: AdapterRequest, content: str) -> ChatResult:
		return ChatResult(
			content=content,
			model_used=request.model,
			engine=self.engine,
			attempts=1,
			trace_id=request.trace_id,
		)
