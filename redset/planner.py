"""
planner.py — Plan stage: one structured call that returns the analysis and items.

The model answers with an index into the reference list it was shown. That
index is resolved to a reference id here, once, and discarded; everything
downstream works from the id. The reference list and analysis are then
stored on the session context for later edits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .arbitration import usable_references
from .archetypes import ArchetypeProfile
from .composer import plan_request
from .errors import PlanGenerationError
from .gemini import GeminiGateway, parse_structured
from .models import ImagePlanItem, PlanAnalysis, ReferenceImage, normalize_plan_items
from .session import SessionContext

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    analysis: PlanAnalysis
    items: List[ImagePlanItem] = field(default_factory=list)


def resolve_best_reference(index: Optional[int], references: Sequence[ReferenceImage]) -> Optional[str]:
    """Map the model's index onto the exact list it was shown. Out of range → None."""
    if index is None or not (0 <= index < len(references)):
        if index is not None:
            logger.warning(f"best_reference_index {index} is out of range for {len(references)} reference(s)")
        return None
    return references[index].id


async def generate_plan(
    gateway: GeminiGateway,
    session: SessionContext,
    topic: str,
    references: Sequence[ReferenceImage],
    profile: ArchetypeProfile,
    output_language: str,
    aspect_ratio: str,
    art_direction: str = "",
) -> PlanResult:
    usable = usable_references(references)
    parts, system = plan_request(topic, usable, profile, output_language, aspect_ratio, art_direction)

    try:
        raw = await gateway.generate_json(
            parts,
            profile.plan_schema,
            system,
            temperature=gateway.settings.plan_temperature,
            max_output_tokens=gateway.settings.plan_max_tokens,
        )
        result = parse_structured(raw, profile.plan_schema)
    except Exception as exc:
        logger.error(f"Plan generation error: {exc}")
        raise PlanGenerationError() from exc

    out = result.analysis
    analysis = PlanAnalysis(
        keywords=list(out.keywords),
        content_direction=out.content_direction,
        style_analysis=out.style_analysis,
        best_reference_id=resolve_best_reference(out.best_reference_index, usable),
        art_direction=art_direction if profile.uses_art_direction else "",
    )

    items = [
        ImagePlanItem(
            order=it.order,
            role=str(it.role),
            description=it.description,
            composition=it.composition,
            copywriting=it.copywriting,
            layout_suggestion=it.layout_suggestion,
            inheritance_focus=list(it.inheritance_focus),
        )
        for it in result.items
    ]
    if not items:
        logger.error("Plan response contained no items")
        raise PlanGenerationError()
    items = normalize_plan_items(items, profile.is_cover)

    lo, hi = profile.plan_size
    if not lo <= len(items) <= hi:
        logger.warning(f"Plan has {len(items)} items; expected {lo}-{hi}")

    session.store(usable, analysis, profile.archetype, output_language, aspect_ratio)
    logger.info(f"Plan ready: {len(items)} item(s), anchor={analysis.best_reference_id or 'none'}")
    return PlanResult(analysis=analysis, items=items)
