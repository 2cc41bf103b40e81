"""
concept.py — Concept stage: one analysis call, then two candidate master images.

The analysis call returns an image prompt plus the list of roles that must
share the frame. Both image calls run concurrently with the same prompt;
each successful one becomes a new reference tagged material + style.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .archetypes import ArchetypeProfile
from .composer import compose_concept_prompt, concept_analysis_request, concept_image_parts
from .errors import ConceptGenerationError
from .gemini import GeminiGateway, parse_structured
from .models import ReferenceImage

logger = logging.getLogger(__name__)

CANDIDATE_COUNT = 2


@dataclass
class ConceptResult:
    analysis_text: str
    candidates: List[ReferenceImage] = field(default_factory=list)
    art_direction: Optional[str] = None


async def generate_concept(
    gateway: GeminiGateway,
    topic: str,
    references: Sequence[ReferenceImage],
    profile: ArchetypeProfile,
    aspect_ratio: str,
) -> ConceptResult:
    """
    Raises ConceptGenerationError when the analysis call fails, or when
    none of the image calls yields bytes.
    """
    parts, system = concept_analysis_request(topic, references, profile, aspect_ratio)
    try:
        raw = await gateway.generate_json(parts, profile.concept_schema, system)
        result = parse_structured(raw, profile.concept_schema)
    except Exception as exc:
        logger.error(f"Concept analysis failed: {exc}")
        raise ConceptGenerationError("Failed to analyse the concept.") from exc

    image_prompt, analysis_text = compose_concept_prompt(result)
    art_direction = getattr(result, "art_direction", None) if profile.uses_art_direction else None

    image_request = concept_image_parts(topic, references, profile, image_prompt, aspect_ratio)
    outcomes = await asyncio.gather(
        *(gateway.generate_image(image_request, aspect_ratio) for _ in range(CANDIDATE_COUNT)),
        return_exceptions=True,
    )

    candidates: List[ReferenceImage] = []
    for n, outcome in enumerate(outcomes, 1):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.warning(f"Concept candidate {n} failed: {outcome}")
            continue
        data, mime = outcome
        candidates.append(ReferenceImage(
            data=data,
            mime_type=mime,
            usable_as_material=True,
            usable_as_style=True,
            source="concept",
            label=f"concept-{n}",
        ))

    if not candidates:
        raise ConceptGenerationError("Failed to generate concept images.")

    logger.info(f"Concept stage produced {len(candidates)} candidate(s)")
    return ConceptResult(analysis_text=analysis_text, candidates=candidates, art_direction=art_direction)
