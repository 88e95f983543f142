from unittest import TestCase

from app.gateway.services import model_registry


class ModelRegistryTests(TestCase):
	def test_allowlists_are_unique_and_prefixed(self) -> None:
		for engine, prefix in (("openai", r"^gpt-"), ("gemini", r"^gemini-")):
			models = model_registry.list_models(engine)
			self.assertEqual(len(models), len(set(models)), f"{engine} allow-list has duplicates")
			for model in models:
				self.assertRegex(model, prefix)

	def test_defaults_are_in_allowlists(self) -> None:
		for engine in model_registry.engines():
			self.assertIn(model_registry.default_model(engine), model_registry.list_models(engine))

	def test_normalize_keeps_supported_model(self) -> None:
		choice = model_registry.normalize("openai", "gpt-5")
		self.assertEqual(choice.model, "gpt-5")
		self.assertFalse(choice.is_fallback)

	def test_normalize_trims_requested_name(self) -> None:
		choice = model_registry.normalize("gemini", "  gemini-2.5-pro ")
		self.assertEqual(choice.model, "gemini-2.5-pro")
		self.assertFalse(choice.is_fallback)

	def test_normalize_unknown_or_blank_uses_engine_default(self) -> None:
		for requested in (None, "", "   ", "unsupported-model", "gemini-2.5-pro"):
			choice = model_registry.normalize("openai", requested)
			self.assertEqual(choice.model, "gpt-4o-mini")
			self.assertTrue(choice.is_fallback)
		self.assertEqual(model_registry.normalize("gemini", "gpt-4o").model, "gemini-2.5-flash")

	def test_fallback_toggles_between_two_models(self) -> None:
		self.assertEqual(model_registry.fallback_for("openai", "gpt-4o-mini"), "gpt-4o")
		self.assertEqual(model_registry.fallback_for("openai", "gpt-4o"), "gpt-4o-mini")
		self.assertEqual(model_registry.fallback_for("openai", "gpt-5"), "gpt-4o-mini")
		self.assertEqual(model_registry.fallback_for("gemini", "gemini-2.5-flash"), "gemini-2.5-pro")
		self.assertEqual(model_registry.fallback_for("gemini", "gemini-2.5-pro"), "gemini-2.5-flash")

	def test_unknown_engine_rejected(self) -> None:
		with self.assertRaises(ValueError):
			model_registry.normalize("claude", "anything")
		with self.assertRaises(ValueError):
			model_registry.fallback_for("claude", "anything")
		self.assertEqual(model_registry.fallback_for("gemini", "gpt-4o"), "gemini-2.5-flash")
