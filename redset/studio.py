"""
studio.py — One user session: the gateway plus the context it accumulates.

Studio is the only place the session context lives. generate_plan() writes
it and edit() reads it; nothing else touches it.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence, Tuple

from .archetypes import ArchetypeProfile
from .concept import ConceptResult, generate_concept
from .config import Settings
from .gemini import GeminiGateway
from .generator import Sleep, edit_image, generate_image_from_plan
from .models import ImagePlanItem, PlanAnalysis, ReferenceImage
from .planner import PlanResult, generate_plan
from .session import SessionContext


class Studio:
    def __init__(
        self,
        gateway: GeminiGateway,
        session: Optional[SessionContext] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.gateway = gateway
        self.session = session or SessionContext()
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "Studio":
        return cls(GeminiGateway(settings))

    @property
    def settings(self) -> Settings:
        return self.gateway.settings

    async def concept(
        self,
        topic: str,
        references: Sequence[ReferenceImage],
        profile: ArchetypeProfile,
        aspect_ratio: str,
    ) -> ConceptResult:
        return await generate_concept(self.gateway, topic, references, profile, aspect_ratio)

    async def plan(
        self,
        topic: str,
        references: Sequence[ReferenceImage],
        profile: ArchetypeProfile,
        output_language: str,
        aspect_ratio: str,
        art_direction: str = "",
    ) -> PlanResult:
        return await generate_plan(
            self.gateway, self.session, topic, references, profile,
            output_language, aspect_ratio, art_direction,
        )

    async def image(
        self,
        item: ImagePlanItem,
        references: Sequence[ReferenceImage],
        previous: Optional[Tuple[bytes, str]],
        analysis: Optional[PlanAnalysis],
        profile: ArchetypeProfile,
        output_language: str,
        aspect_ratio: str,
    ) -> Tuple[bytes, str]:
        return await generate_image_from_plan(
            self.gateway, item, references, previous, analysis, profile,
            output_language, aspect_ratio, sleep=self._sleep,
        )

    async def edit(self, image_bytes: bytes, mime_type: str, instruction: str) -> Tuple[bytes, str]:
        return await edit_image(self.gateway, self.session, image_bytes, mime_type, instruction)

    def reset(self) -> None:
        self.session.clear()
