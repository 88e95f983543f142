from __future__ import annotations

import logging
from typing import List

from app.gateway.schemas import PersonaProfile, TaskManifest


logger = logging.getLogger(__name__)

DEFAULT_TONE = "concise"
DEFAULT_DEPTH = "brief"
STANDING_DIRECTIVE = "Avoid profanity. Keep responses actionable, using short paragraphs."
EMPTY_INSTRUCTION = "You are helpful and concise."


def build_system_instruction(
	base: str | None = None,
	user_profile: PersonaProfile | None = None,
	task_manifest: TaskManifest | None = None,
) -> str:
	"""Fold base text, profile and task manifest into one system instruction.

	Clause order is fixed: base, name, role, domain, tone/depth, intent,
	constraints, output format, then the standing directive.
	"""
	parts: List[str] = []
	if base and base.strip():
		parts.append(base.strip())

	preferences = user_profile.preferences if user_profile else None
	if user_profile is not None:
		if user_profile.name:
			parts.append(f"Address the user as {user_profile.name}.")
		if user_profile.role:
			parts.append(f"The user is a {user_profile.role}.")
		if user_profile.domain:
			parts.append(f"Primary domain: {user_profile.domain}.")

	tone = (preferences.tone if preferences else None) or DEFAULT_TONE
	depth = (preferences.depth if preferences else None) or DEFAULT_DEPTH
	parts.append(f"Tone: {tone}. Level of detail: {depth}.")

	if task_manifest is not None:
		if task_manifest.intent:
			parts.append(f"Intent: {task_manifest.intent}.")
		constraints = [item.strip() for item in task_manifest.constraints if item and item.strip()]
		if constraints:
			parts.append(f"Constraints: {'; '.join(constraints)}.")
		if task_manifest.output_format:
			parts.append(f"Output format: {task_manifest.output_format}.")

	parts.append(STANDING_DIRECTIVE)
	result = " ".join(parts).strip() or EMPTY_INSTRUCTION
	logger.debug("system instruction composed: %s", result)
	return result
