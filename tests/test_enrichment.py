"""Tests for description enrichment."""

from unittest.mock import AsyncMock, patch

import pytest

from form_mcp.adaptors import get_adaptor
from form_mcp.adaptors.openai import OpenAIAdaptor
from form_mcp.analyzer import ToolMetadata
from form_mcp.config import EnhancerSettings
from form_mcp.enrichment import DescriptionEnricher, build_prompt
from form_mcp.exceptions import EnrichmentError
from form_mcp.schema import JsonSchema, JsonSchemaProperty


# --- Test fixtures ---


def flight_metadata() -> ToolMetadata:
    schema = JsonSchema(
        properties={
            "origin": JsonSchemaProperty(type="string", title="Origin", description="IATA code"),
            "passengers": JsonSchemaProperty(type="number"),
        },
        required=["origin"],
    )
    return ToolMetadata(name="search_flights", description="Flights", input_schema=schema)


def enricher(reply=None, side_effect=None) -> tuple[DescriptionEnricher, AsyncMock]:
    adaptor = AsyncMock()
    adaptor.describe = AsyncMock(return_value=reply, side_effect=side_effect)
    return DescriptionEnricher(EnhancerSettings(provider="openai"), adaptor=adaptor), adaptor


# --- Prompt ---


class TestBuildPrompt:
    def test_prompt_lists_name_description_and_fields(self):
        prompt = build_prompt(flight_metadata())

        assert "Name: search_flights" in prompt
        assert "Current description: Flights" in prompt
        assert "- Origin (string): IATA code" in prompt
        assert "- passengers (number): " in prompt
        assert "1-2 sentence" in prompt


# --- Enrichment ---


class TestDescriptionEnricher:
    @pytest.mark.asyncio
    async def test_enrich_replaces_description_only(self):
        e, adaptor = enricher(reply="  Search flights between airports.  ")
        original = flight_metadata()

        result = await e.enrich(original)

        assert result.description == "Search flights between airports."
        assert result.name == original.name
        assert result.input_schema is original.input_schema
        assert original.description == "Flights"
        adaptor.describe.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_provider_error_keeps_original(self):
        e, _ = enricher(side_effect=ConnectionError("down"))
        original = flight_metadata()

        assert await e.enrich(original) is original

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", ["", "   ", None, 42])
    async def test_unusable_reply_keeps_original(self, reply):
        e, _ = enricher(reply=reply)
        original = flight_metadata()

        assert await e.enrich(original) is original

    @pytest.mark.asyncio
    async def test_describe_raises_on_empty_reply(self):
        e, _ = enricher(reply="")
        with pytest.raises(EnrichmentError, match="openai"):
            await e.describe(flight_metadata())

    @pytest.mark.asyncio
    async def test_adaptor_failure_at_construction_keeps_original(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        e = DescriptionEnricher(EnhancerSettings(provider="openai"))
        original = flight_metadata()

        assert await e.enrich(original) is original

    def test_adaptor_built_lazily_from_settings(self):
        e = DescriptionEnricher(
            EnhancerSettings(provider="openai", api_key="sk-test", model="gpt-x", base_url="http://proxy/v1")
        )
        adaptor = e._get_adaptor()

        assert isinstance(adaptor, OpenAIAdaptor)
        assert adaptor.model == "gpt-x"
        assert adaptor.base_url == "http://proxy/v1"
        assert e._get_adaptor() is adaptor


# --- Provider selection ---


class TestGetAdaptor:
    def test_openai(self):
        adaptor = get_adaptor("openai", api_key="sk-test")
        assert isinstance(adaptor, OpenAIAdaptor)
        assert adaptor.model == "gpt-5-mini"

    def test_claude(self):
        with patch("form_mcp.adaptors.anthropic.AsyncAnthropic"):
            adaptor = get_adaptor("claude", api_key="key", model="claude-x")
        assert adaptor.model == "claude-x"

    def test_gemini(self):
        with patch("form_mcp.adaptors.gemini.genai"):
            adaptor = get_adaptor("gemini", api_key="key")
        assert adaptor.model == "gemini-2.5-flash"

    def test_ollama_uses_base_url_as_host(self):
        with patch("form_mcp.adaptors.ollama.AsyncClient") as mock_cls:
            get_adaptor("ollama", base_url="http://gpu-box:11434")
        mock_cls.assert_called_once_with(host="http://gpu-box:11434")

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown description provider"):
            get_adaptor("mystery")
