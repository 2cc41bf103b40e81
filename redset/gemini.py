"""
gemini.py — Thin async gateway over the google-genai client.

Two calls cover the whole workflow:

  generate_json()   text model, structured output constrained by a pydantic schema
  generate_image()  image model, returns the first inline image of the response

Neither call retries. Retry and fallback policy belongs to the callers
(see generator.py); a schema failure is never retried at all.
"""

from __future__ import annotations

import base64
import io
import logging
import re
from typing import List, Optional, Sequence, Tuple, Type, TypeVar

from google import genai
from google.genai import types
from PIL import Image
from pydantic import BaseModel, ValidationError

from .config import Settings
from .errors import MissingApiKeyError, NoImageDataError, SchemaParseError
from .log_utils import describe_parts

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class GeminiGateway:
    """Owns one genai.Client. Construction fails immediately without an API key."""

    def __init__(self, settings: Settings, client: Optional[genai.Client] = None):
        if not settings.api_key:
            raise MissingApiKeyError()
        self.settings = settings
        self._client = client or genai.Client(api_key=settings.api_key)

    async def generate_json(
        self,
        parts: Sequence[types.Part],
        schema: Type[BaseModel],
        system_instruction: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        logger.debug(f"JSON request → {self.settings.text_model} ({schema.__name__}):\n{describe_parts(parts)}")
        response = await self._client.aio.models.generate_content(
            model=self.settings.text_model,
            contents=list(parts),
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=schema,
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            ),
        )
        return response.text or ""

    async def generate_image(
        self,
        parts: Sequence[types.Part],
        aspect_ratio: str,
    ) -> Tuple[bytes, str]:
        logger.debug(f"Image request → {self.settings.image_model} ({aspect_ratio}):\n{describe_parts(parts)}")
        response = await self._client.aio.models.generate_content(
            model=self.settings.image_model,
            contents=list(parts),
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE", "TEXT"],
                image_config=types.ImageConfig(
                    aspect_ratio=aspect_ratio,
                    image_size=self.settings.image_size,
                ),
            ),
        )
        images = extract_images(response)
        if not images:
            raise NoImageDataError("No image data received from API")
        return images[0]


# ── Response helpers ──────────────────────────────────────────────────────────

def sniff_mime(data: bytes, default: str = "image/png") -> str:
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "").lower()
    except Exception:
        return default
    if not fmt:
        return default
    return f"image/{'jpeg' if fmt == 'jpg' else fmt}"


def extract_images(response: types.GenerateContentResponse) -> List[Tuple[bytes, str]]:
    """Every inline image in the response, as (bytes, mime). Text parts are ignored."""
    images: List[Tuple[bytes, str]] = []
    for candidate in response.candidates or []:
        if candidate.content is None:
            continue
        for part in candidate.content.parts or []:
            if part.inline_data and part.inline_data.data:
                data = part.inline_data.data
                if isinstance(data, str):
                    data = base64.b64decode(data)
                images.append((data, part.inline_data.mime_type or sniff_mime(data)))
    return images


def clean_json(text: str) -> str:
    """Cut the outermost {...} out of a model reply, or strip ``` fences."""
    if not text:
        return "{}"
    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last != -1 and last > first:
        return text[first:last + 1]
    return _FENCE_RE.sub("", text.strip())


def parse_structured(raw: str, model: Type[M]) -> M:
    try:
        return model.model_validate_json(clean_json(raw))
    except ValidationError as exc:
        logger.error(f"{model.__name__} did not match its schema. Raw text:\n{raw}")
        raise SchemaParseError(f"Model output did not match {model.__name__}", raw_text=raw) from exc
