"""
Unit tests for provider registration and settings parsing.

WHAT: Test build_descriptors(), the router singleton and list-like settings
WHY: Misconfiguration must fail loudly; unconfigured cloud providers must not register
HOW: monkeypatch the settings singleton
"""

import pytest

from completion_backend.core.config import Settings, settings
from completion_backend.llm import provider_factory
from completion_backend.llm.provider_factory import build_descriptors, get_router, reset_router
from completion_backend.utils.exceptions import ConfigurationError


@pytest.fixture
def no_cloud_keys(monkeypatch):
    monkeypatch.setattr(settings, "PROVIDER_PRIORITY", "ollama,openai,gemini,anthropic")
    monkeypatch.setattr(settings, "LOCAL_AI_ENABLED", True)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
    return monkeypatch


@pytest.mark.unit
class TestBuildDescriptors:
    """Test which providers get registered."""

    def test_only_local_without_keys(self, no_cloud_keys):
        descriptors = build_descriptors()

        assert [(d.name, d.priority, d.is_local) for d in descriptors] == [("ollama", 0, True)]

    def test_cloud_providers_need_a_key(self, no_cloud_keys):
        no_cloud_keys.setattr(settings, "GEMINI_API_KEY", "g-key")
        no_cloud_keys.setattr(settings, "ANTHROPIC_API_KEY", "   ")

        names = [d.name for d in build_descriptors()]

        assert names == ["ollama", "gemini"]

    def test_priority_follows_setting_order(self, no_cloud_keys):
        no_cloud_keys.setattr(settings, "PROVIDER_PRIORITY", "anthropic,openai,ollama")
        no_cloud_keys.setattr(settings, "OPENAI_API_KEY", "sk-test")
        no_cloud_keys.setattr(settings, "ANTHROPIC_API_KEY", "a-key")

        descriptors = build_descriptors()

        assert [(d.name, d.priority) for d in descriptors] == [("anthropic", 0), ("openai", 1), ("ollama", 2)]

    def test_local_disabled(self, no_cloud_keys):
        no_cloud_keys.setattr(settings, "LOCAL_AI_ENABLED", False)

        assert build_descriptors() == []

    def test_unknown_provider_raises(self, no_cloud_keys):
        no_cloud_keys.setattr(settings, "PROVIDER_PRIORITY", "ollama,lm_studio")

        with pytest.raises(ConfigurationError) as exc_info:
            build_descriptors()

        assert exc_info.value.details == {"setting": "PROVIDER_PRIORITY"}


@pytest.mark.unit
class TestRouterSingleton:
    """Test the shared router."""

    def test_router_is_reused(self, no_cloud_keys):
        first = get_router()

        assert get_router() is first
        assert [d.name for d in first.providers] == ["ollama"]

    def test_reset_builds_a_new_router(self, no_cloud_keys):
        first = get_router()
        reset_router()

        assert get_router() is not first

    @pytest.mark.asyncio
    async def test_module_generate_complete_uses_singleton(self, no_cloud_keys):
        from completion_backend.llm.router import GenerationRouter
        from tests.fixtures.mock_llm import ScriptedAdapter, descriptor

        router = GenerationRouter([descriptor(ScriptedAdapter("ollama", ["4", "2"], is_local=True))])
        no_cloud_keys.setattr(provider_factory, "_router_instance", router)

        assert await provider_factory.generate_complete("6 * 7 =") == "42"
        assert [c.token async for c in provider_factory.stream_generate("6 * 7 =")] == ["4", "2"]


@pytest.mark.unit
class TestSettingsParsing:
    """Test comma-separated list settings."""

    def test_provider_priority_accepts_list(self):
        parsed = Settings(PROVIDER_PRIORITY=["Ollama", " Gemini "])

        assert parsed.get_provider_priority_list() == ["ollama", "gemini"]

    def test_cors_origins_from_string(self):
        parsed = Settings(CORS_ORIGINS="http://a.test, http://b.test,")

        assert parsed.get_cors_origins_list() == ["http://a.test", "http://b.test"]

    def test_log_module_levels(self):
        parsed = Settings(LOG_MODULE_LEVELS="completion_backend.llm=debug, httpx=WARNING,broken,=INFO")

        assert parsed.get_log_module_levels() == {"completion_backend.llm": "DEBUG", "httpx": "WARNING"}


@pytest.mark.unit
class TestLoggingSetup:
    """Test per-logger level overrides."""

    def test_apply_module_levels(self):
        import logging

        from completion_backend.utils.logger import apply_module_levels

        llm_logger = logging.getLogger("completion_backend.llm")
        previous = llm_logger.level
        try:
            applied = apply_module_levels({"completion_backend.llm": "DEBUG", "completion_backend.cache": "LOUD"})

            assert applied == {"completion_backend.llm": logging.DEBUG}
            assert llm_logger.level == logging.DEBUG
        finally:
            llm_logger.setLevel(previous)
