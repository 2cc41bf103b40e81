"""Shared pytest fixtures for RedSet tests."""

import io
import json
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import pytest
from google.genai import types
from PIL import Image

from redset.config import Settings
from redset.models import ReferenceImage
from redset.studio import Studio

ImageOutcome = Union[Tuple[bytes, str], Exception]
JsonOutcome = Union[str, Exception]


class FakeGateway:
    """
    Stands in for GeminiGateway. Queued outcomes are consumed in order;
    exceptions are raised. Every request is recorded for inspection.
    When the image queue is empty, each call returns fresh bytes.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings(api_key="test-key", backoff_seconds=2.0)
        self.json_outcomes: List[JsonOutcome] = []
        self.image_outcomes: List[ImageOutcome] = []
        self.json_calls: List[Dict] = []
        self.image_calls: List[Dict] = []

    async def generate_json(self, parts, schema, system_instruction, temperature=None, max_output_tokens=None):
        self.json_calls.append({
            "parts": list(parts),
            "schema": schema,
            "system": system_instruction,
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        })
        outcome = self.json_outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def generate_image(self, parts, aspect_ratio):
        self.image_calls.append({"parts": list(parts), "aspect_ratio": aspect_ratio})
        if not self.image_outcomes:
            return f"generated-{len(self.image_calls)}".encode(), "image/png"
        outcome = self.image_outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    # ── Inspection helpers ────────────────────────────────────────────────────

    @staticmethod
    def images_in(parts: Sequence[types.Part]) -> List[bytes]:
        return [p.inline_data.data for p in parts if p.inline_data is not None]

    @staticmethod
    def texts_in(parts: Sequence[types.Part]) -> List[str]:
        return [p.text for p in parts if p.text is not None]


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def gateway() -> FakeGateway:
    """Provide a fake gateway with default settings (3 attempts, 2s backoff)."""
    return FakeGateway()


@pytest.fixture
def gateway_factory() -> Callable[..., FakeGateway]:
    """Factory for fake gateways with custom settings."""

    def _make(**settings) -> FakeGateway:
        settings.setdefault("api_key", "test-key")
        return FakeGateway(Settings(**settings))

    return _make


@pytest.fixture
def sleeper() -> SleepRecorder:
    """Provide an awaitable that records requested sleeps instead of sleeping."""
    return SleepRecorder()


@pytest.fixture
def studio(gateway: FakeGateway, sleeper: SleepRecorder) -> Studio:
    """Provide a Studio wired to the fake gateway."""
    return Studio(gateway, sleep=sleeper)


@pytest.fixture
def make_ref() -> Callable[..., ReferenceImage]:
    """Factory for reference images with distinct bytes."""
    counter = {"n": 0}

    def _make(material: bool = True, style: bool = True, ref_id: Optional[str] = None) -> ReferenceImage:
        counter["n"] += 1
        kwargs = {"id": ref_id} if ref_id else {}
        return ReferenceImage(
            data=f"ref-bytes-{counter['n']}".encode(),
            mime_type="image/png",
            usable_as_material=material,
            usable_as_style=style,
            label=f"ref{counter['n']}.png",
            **kwargs,
        )

    return _make


@pytest.fixture
def plan_json() -> Callable[..., str]:
    """Factory for a plan response body as the model would return it."""

    def _make(roles: Sequence[str], best_index: Optional[int] = 0, orders: Optional[Sequence[int]] = None) -> str:
        orders = list(orders) if orders is not None else list(range(1, len(roles) + 1))
        return json.dumps({
            "analysis": {
                "keywords": ["tea", "spring"],
                "content_direction": "launch story",
                "style_analysis": "soft daylight, pastel green",
                "best_reference_index": best_index,
            },
            "items": [
                {
                    "order": order,
                    "role": role,
                    "description": f"scene for {role}",
                    "composition": "centered subject",
                    "copywriting": f"copy for {role}",
                    "layout_suggestion": "title top center",
                    "inheritance_focus": ["palette"],
                }
                for order, role in zip(orders, roles)
            ],
        }, ensure_ascii=False)

    return _make


@pytest.fixture
def concept_json() -> Callable[..., str]:
    """Factory for a concept analysis response body."""

    def _make(roles: Sequence[str] = ("Hero bottle", "Model"), art_direction: Optional[str] = None) -> str:
        body = {
            "analysis": "Pastel daylight applied to the tea bottle.",
            "roles": list(roles),
            "image_prompt": "A tea bottle on a marble plinth, soft morning light.",
        }
        if art_direction is not None:
            body["art_direction"] = art_direction
        return json.dumps(body)

    return _make


@pytest.fixture
def png_bytes() -> bytes:
    """A small real PNG image."""
    buf = io.BytesIO()
    Image.new("RGBA", (8, 12), (200, 40, 40, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def social_roles() -> List[str]:
    """A valid six-item social plan, cover first."""
    return ["Cover Hero", "Product Hero", "Selling Points Breakdown", "In Use", "Craft Detail", "Follow CTA"]
