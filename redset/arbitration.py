"""
arbitration.py — Choose the primary reference (the style and identity anchor).

Resolution order, first match wins:
  1. analysis.best_reference_id, if that image is in the set
  2. the first image usable as material
  3. the first image
  4. nothing

Callers filter the set with usable_references() first; select_primary()
itself looks only at ids and flags, so the same inputs always give the
same anchor.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .models import PlanAnalysis, ReferenceImage

PRIMARY_TAG = (
    "[Primary reference] This is the style and identity anchor for the whole project. "
    "Every output must match its subject identity (face, hair, outfit, proportions, product shape) "
    "and its rendering (line style, colouring, palette, lighting) exactly."
)

_AUX_TAGS = {
    (True, False): (
        "[Auxiliary reference: material] Use only for subject content such as product details, props "
        "or scene elements. It must not override the primary reference's identity or style."
    ),
    (False, True): (
        "[Auxiliary reference: style] Use only for lighting, colour and material hints. "
        "It must not override the primary reference's identity or style."
    ),
    (True, True): (
        "[Auxiliary reference: material + style] Use for lighting, scene structure, props or local "
        "details. It must not change the subject identity or overall style set by the primary reference."
    ),
}

PREVIOUS_TAG = (
    "[Previous generated image] Use for shot continuity, scene layout and recurring details "
    "(room layout, prop positions). Identity and overall style still follow the primary reference; "
    "do not drift because of accidental changes in this image."
)

EDIT_TARGET_TAG = "[Image to edit] Apply the instruction below to this image."


def usable_references(references: Sequence[ReferenceImage]) -> List[ReferenceImage]:
    """References with at least one capability flag, in their original order."""
    return [r for r in references if r.is_usable]


def select_primary(
    references: Sequence[ReferenceImage],
    analysis: Optional[PlanAnalysis] = None,
) -> Optional[ReferenceImage]:
    if analysis is not None and analysis.best_reference_id:
        for ref in references:
            if ref.id == analysis.best_reference_id:
                return ref
    for ref in references:
        if ref.usable_as_material:
            return ref
    return references[0] if references else None


def auxiliary_references(
    references: Sequence[ReferenceImage],
    primary: Optional[ReferenceImage],
) -> List[ReferenceImage]:
    primary_id = primary.id if primary is not None else None
    return [r for r in usable_references(references) if r.id != primary_id]


def auxiliary_tag(ref: ReferenceImage) -> str:
    # Unflagged references never reach here; treat them as general purpose anyway
    key = (ref.usable_as_material, ref.usable_as_style)
    return _AUX_TAGS.get(key, _AUX_TAGS[(True, True)])


def usage_label(ref: ReferenceImage) -> str:
    """Capability label used when the model sees the full reference list (concept / plan)."""
    roles = []
    if ref.usable_as_material:
        roles.append("MATERIAL/SUBJECT (shape, identity, product content)")
    if ref.usable_as_style:
        roles.append("STYLE/AESTHETIC (lighting, colour, art style)")
    if not roles:
        roles.append("General reference (both style and material)")
    return " + ".join(roles)
