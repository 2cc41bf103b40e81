"""
generator.py — Per-image generation and single-image edits.

Each plan item is tried against an ordered list of attempt strategies:

    with previous image   × max_attempts   (backoff × attempt number between them)
    without previous image × 1             (immediately after the last failure)

The previous image only helps continuity; dropping it is the fallback when
the model keeps failing with it. Edits are a single attempt against the
session context stored by the last plan.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from .arbitration import auxiliary_references, select_primary, usable_references
from .archetypes import ArchetypeProfile
from .composer import edit_parts, image_parts
from .errors import EditFailedError, ImageGenerationError
from .gemini import GeminiGateway
from .models import ImagePlanItem, PlanAnalysis, ReferenceImage
from .session import SessionContext

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class AttemptStrategy:
    number: int                 # 1-based, across the whole plan
    include_previous: bool


def attempt_plan(max_attempts: int) -> List[AttemptStrategy]:
    plan = [AttemptStrategy(n, True) for n in range(1, max_attempts + 1)]
    plan.append(AttemptStrategy(max_attempts + 1, False))
    return plan


async def generate_image_from_plan(
    gateway: GeminiGateway,
    item: ImagePlanItem,
    references: Sequence[ReferenceImage],
    previous: Optional[Tuple[bytes, str]],
    analysis: Optional[PlanAnalysis],
    profile: ArchetypeProfile,
    output_language: str,
    aspect_ratio: str,
    sleep: Sleep = asyncio.sleep,
) -> Tuple[bytes, str]:
    """
    Generate one plan item and return (bytes, mime).

    Args:
        previous:   (bytes, mime) of the image before this one, or None.
                    Ignored for archetypes that forbid continuity.
        analysis:   plan analysis; its best_reference_id picks the anchor.
        sleep:      awaited between retries, injectable for tests.

    Raises:
        ImageGenerationError once every strategy has failed.
    """
    usable = usable_references(references)
    primary = select_primary(usable, analysis)
    auxiliaries = auxiliary_references(usable, primary)
    if previous is not None and not profile.allows_continuity:
        logger.debug(f"{profile.label}: previous image withheld for item {item.order}")
        previous = None

    logger.info(
        f"Image {item.order} ({item.role}): primary={primary.id if primary else 'none'}, "
        f"aux={len(auxiliaries)}, previous={'yes' if previous else 'no'}"
    )

    strategies = attempt_plan(gateway.settings.max_attempts)
    last_exc: Optional[Exception] = None
    for idx, strategy in enumerate(strategies):
        parts = image_parts(
            item,
            primary,
            auxiliaries,
            previous if strategy.include_previous else None,
            analysis,
            profile,
            output_language,
            aspect_ratio,
        )
        try:
            return await gateway.generate_image(parts, aspect_ratio)
        except Exception as exc:
            last_exc = exc
            mode = "with previous" if strategy.include_previous else "without previous"
            logger.warning(f"Image {item.order} attempt {strategy.number} ({mode}) failed: {exc}")
            following = strategies[idx + 1] if idx + 1 < len(strategies) else None
            if following is not None and following.include_previous:
                await sleep(gateway.settings.backoff_seconds * strategy.number)

    logger.error(f"Image {item.order} ({item.role}) failed after {len(strategies)} attempts")
    raise ImageGenerationError(attempts=len(strategies)) from last_exc


async def edit_image(
    gateway: GeminiGateway,
    session: SessionContext,
    image_bytes: bytes,
    mime_type: str,
    instruction: str,
) -> Tuple[bytes, str]:
    """Apply a free-text edit. One attempt; any failure raises EditFailedError."""
    refs = usable_references(session.references)
    primary = select_primary(refs, session.analysis)
    auxiliaries = auxiliary_references(refs, primary)
    parts = edit_parts(
        image_bytes,
        mime_type,
        instruction,
        primary,
        auxiliaries,
        session.analysis,
        session.output_language,
        session.aspect_ratio,
    )
    logger.info(f"Edit: primary={primary.id if primary else 'none'}, instruction={instruction!r}")
    try:
        return await gateway.generate_image(parts, session.aspect_ratio)
    except Exception as exc:
        logger.error(f"Edit failed: {exc}")
        raise EditFailedError(f"Failed to edit image: {exc}") from exc
