from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Engine = Literal["openai", "gemini"]
Role = Literal["system", "user", "assistant"]


class _WireModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PromptMessage(_WireModel):
	model_config = ConfigDict(extra="forbid")

	role: Role
	content: str


class PersonaPreferences(_WireModel):
	model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

	tone: Optional[str] = None
	depth: Optional[str] = None


class PersonaProfile(_WireModel):
	model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

	name: Optional[str] = None
	role: Optional[str] = None
	domain: Optional[str] = None
	preferences: Optional[PersonaPreferences] = None


class TaskManifest(_WireModel):
	model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

	intent: Optional[str] = None
	constraints: List[str] = Field(default_factory=list)
	output_format: Optional[str] = None


class PersonaBlock(_WireModel):
	model_config = ConfigDict(extra="ignore")

	user_profile: Optional[PersonaProfile] = None
	task_manifest: Optional[TaskManifest] = None


class ChatRequest(_WireModel):
	model_config = ConfigDict(extra="forbid")

	engine: Optional[Engine] = Field(default=None, description="Explicit engine preference.")
	model: Optional[str] = Field(default=None, description="Requested model; normalized against the allow-list.")
	temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
	max_tokens: Optional[int] = Field(default=None, ge=1)
	messages: List[PromptMessage] = Field(..., min_length=1)
	persona: Optional[PersonaBlock] = None
	system_instruction: Optional[str] = Field(default=None, description="Overrides any inline system message.")
	trace_id: Optional[str] = None
	project_id: Optional[str] = Field(default=None, description="Gemini project override.")
	location: Optional[str] = Field(default=None, description="Gemini location override.")


class ChatResult(_WireModel):
	content: str
	model_used: str
	engine: Engine
	attempts: int
	trace_id: str
	status: Optional[int] = None
	error: Optional[str] = None

	def wire(self) -> Dict[str, Any]:
		return self.model_dump(by_alias=True, exclude_none=True)


class HealthData(BaseModel):
	ok: bool
	ts: str


class EngineModels(_WireModel):
	models: List[str] = Field(default_factory=list)
	default_model: str
	configured: bool
	warnings: List[str] = Field(default_factory=list)


class ModelsData(_WireModel):
	engines: Dict[str, EngineModels]
	default_engine: Engine
	demo_mode: bool


class SelftestData(BaseModel):
	model: str
	content: str
