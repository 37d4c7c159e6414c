"""Tests for the Anthropic adaptor."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch


# --- Test fixtures ---


def make_text_block(text):
    block = MagicMock()
    block.type = "text"
    block.text = text
    return block


def make_response(content_blocks):
    response = MagicMock()
    response.content = content_blocks
    return response


@pytest.fixture
def adaptor():
    with patch("form_mcp.adaptors.anthropic.AsyncAnthropic") as mock_cls:
        mock_client = MagicMock()
        mock_client.messages = MagicMock()
        mock_client.messages.create = AsyncMock()
        mock_cls.return_value = mock_client

        from form_mcp.adaptors.anthropic import AnthropicAdaptor

        a = AnthropicAdaptor(api_key="test-key")
        yield a, mock_client


# --- Constructor tests ---


class TestAnthropicAdaptorInit:
    def test_missing_api_key_raises(self):
        with patch.dict("os.environ", {}, clear=True):
            with patch("form_mcp.adaptors.anthropic.AsyncAnthropic"):
                from form_mcp.adaptors.anthropic import AnthropicAdaptor

                with pytest.raises(ValueError, match="Anthropic API key"):
                    AnthropicAdaptor()

    def test_defaults(self):
        with patch("form_mcp.adaptors.anthropic.AsyncAnthropic"):
            from form_mcp.adaptors.anthropic import AnthropicAdaptor

            a = AnthropicAdaptor(api_key="key")
            assert a.model == "claude-haiku-4-5-20251001"
            assert a.max_tokens == 150

    def test_custom_params(self):
        with patch("form_mcp.adaptors.anthropic.AsyncAnthropic"):
            from form_mcp.adaptors.anthropic import AnthropicAdaptor

            a = AnthropicAdaptor(api_key="key", model="claude-sonnet-4-5", max_tokens=300)
            assert a.model == "claude-sonnet-4-5"
            assert a.max_tokens == 300

    def test_env_var_fallback(self):
        with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "env-key"}):
            with patch("form_mcp.adaptors.anthropic.AsyncAnthropic") as mock_cls:
                from form_mcp.adaptors.anthropic import AnthropicAdaptor

                a = AnthropicAdaptor()
                assert a.api_key == "env-key"
                mock_cls.assert_called_once_with(api_key="env-key")


# --- describe() tests ---


class TestAnthropicDescribe:
    @pytest.mark.asyncio
    async def test_describe_returns_text(self, adaptor):
        a, client = adaptor
        client.messages.create.return_value = make_response([make_text_block(" Search flights. ")])

        result = await a.describe("Describe this form")

        assert result == "Search flights."
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-haiku-4-5-20251001"
        assert kwargs["max_tokens"] == 150
        assert kwargs["messages"] == [{"role": "user", "content": "Describe this form"}]

    @pytest.mark.asyncio
    async def test_describe_joins_text_blocks_and_skips_others(self, adaptor):
        a, client = adaptor
        other = MagicMock()
        other.type = "thinking"
        client.messages.create.return_value = make_response(
            [make_text_block("Books "), other, make_text_block("a table.")]
        )

        assert await a.describe("prompt") == "Books a table."

    @pytest.mark.asyncio
    async def test_describe_max_tokens_override(self, adaptor):
        a, client = adaptor
        client.messages.create.return_value = make_response([make_text_block("ok")])

        await a.describe("prompt", max_tokens=40)

        assert client.messages.create.call_args.kwargs["max_tokens"] == 40

    @pytest.mark.asyncio
    async def test_describe_propagates_api_errors(self, adaptor):
        a, client = adaptor
        client.messages.create.side_effect = RuntimeError("overloaded")

        with pytest.raises(RuntimeError, match="overloaded"):
            await a.describe("prompt")
