"""
Tests for the Gemini gateway and response helpers.

The genai client is replaced with a MagicMock whose async surface
(client.aio.models.generate_content) is an AsyncMock.
"""

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import types

from redset.config import Settings
from redset.errors import MissingApiKeyError, NoImageDataError, SchemaParseError
from redset.gemini import GeminiGateway, clean_json, extract_images, parse_structured, sniff_mime
from redset.schemas import ConceptOutput


def _response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """Provide a genai.Client stand-in with an async generate_content."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


@pytest.fixture
def real_gateway(mock_client: MagicMock) -> GeminiGateway:
    return GeminiGateway(Settings(api_key="k", image_size="2K"), client=mock_client)


class TestGatewayInit:
    def test_missing_api_key_fails_at_construction(self) -> None:
        with pytest.raises(MissingApiKeyError):
            GeminiGateway(Settings(api_key=None))

    def test_empty_api_key_fails_at_construction(self) -> None:
        with pytest.raises(MissingApiKeyError):
            GeminiGateway(Settings(api_key=""))


class TestGenerateImage:
    """Test suite for GeminiGateway.generate_image."""

    @pytest.mark.asyncio
    async def test_returns_first_inline_image(self, real_gateway, mock_client) -> None:
        mock_client.aio.models.generate_content.return_value = _response(
            types.Part.from_text(text="here you go"),
            types.Part.from_bytes(data=b"jpeg-bytes", mime_type="image/jpeg"),
        )

        data, mime = await real_gateway.generate_image([types.Part.from_text(text="draw")], "3:4")

        assert (data, mime) == (b"jpeg-bytes", "image/jpeg")

    @pytest.mark.asyncio
    async def test_sends_image_config(self, real_gateway, mock_client) -> None:
        mock_client.aio.models.generate_content.return_value = _response(
            types.Part.from_bytes(data=b"x", mime_type="image/png"),
        )

        await real_gateway.generate_image([types.Part.from_text(text="draw")], "16:9")

        kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        config = kwargs["config"]
        assert kwargs["model"] == real_gateway.settings.image_model
        assert config.response_modalities == ["IMAGE", "TEXT"]
        assert config.image_config.aspect_ratio == "16:9"
        assert config.image_config.image_size == "2K"

    @pytest.mark.asyncio
    async def test_text_only_response_raises_no_image_data(self, real_gateway, mock_client) -> None:
        mock_client.aio.models.generate_content.return_value = _response(
            types.Part.from_text(text='{"sorry": true}'),
        )

        with pytest.raises(NoImageDataError):
            await real_gateway.generate_image([types.Part.from_text(text="draw")], "3:4")


class TestGenerateJson:
    @pytest.mark.asyncio
    async def test_passes_schema_and_sampling(self, real_gateway, mock_client) -> None:
        mock_client.aio.models.generate_content.return_value = _response(
            types.Part.from_text(text='{"analysis": "a", "roles": [], "image_prompt": "p"}'),
        )

        raw = await real_gateway.generate_json(
            [types.Part.from_text(text="plan")], ConceptOutput, "system", temperature=1.0, max_output_tokens=8192
        )

        config = mock_client.aio.models.generate_content.call_args.kwargs["config"]
        assert raw.startswith('{"analysis"')
        assert config.response_mime_type == "application/json"
        assert config.response_schema is ConceptOutput
        assert config.system_instruction == "system"
        assert config.temperature == 1.0
        assert config.max_output_tokens == 8192


class TestResponseHelpers:
    def test_extract_images_decodes_base64_text(self) -> None:
        part = MagicMock()
        part.inline_data.data = base64.b64encode(b"raw-image").decode()
        part.inline_data.mime_type = "image/png"
        candidate = MagicMock()
        candidate.content.parts = [part]
        response = MagicMock()
        response.candidates = [candidate]

        assert extract_images(response) == [(b"raw-image", "image/png")]

    def test_extract_images_handles_empty_response(self) -> None:
        assert extract_images(types.GenerateContentResponse(candidates=[])) == []

    def test_sniff_mime(self, png_bytes) -> None:
        assert sniff_mime(png_bytes) == "image/png"
        assert sniff_mime(b"not an image") == "image/png"
        assert sniff_mime(b"not an image", default="image/jpeg") == "image/jpeg"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ('```json\n{"a": 1}\n```', '{"a": 1}'),
            ('Sure! {"a": {"b": 2}} hope this helps', '{"a": {"b": 2}}'),
            ("```\n[1, 2]\n```", "[1, 2]"),
            ("", "{}"),
        ],
    )
    def test_clean_json(self, raw, expected) -> None:
        assert clean_json(raw) == expected

    def test_parse_structured_valid(self) -> None:
        out = parse_structured('```json\n{"analysis": "a", "roles": ["r"], "image_prompt": "p"}\n```', ConceptOutput)

        assert out.roles == ["r"]

    def test_parse_structured_invalid_raises_and_logs_raw(self, caplog) -> None:
        with pytest.raises(SchemaParseError) as exc_info:
            parse_structured('{"analysis": "a"', ConceptOutput)

        assert exc_info.value.raw_text == '{"analysis": "a"'
        assert '{"analysis": "a"' in caplog.text
