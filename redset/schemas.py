"""
schemas.py — Structured-output schemas for the concept and plan calls.

These pydantic models are passed to Gemini as `response_schema`, so field
descriptions double as instructions to the model. Role fields for social
posts and slide decks are closed Literals built from the role catalogs;
comic pages use a free-form role string.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .catalog import SLIDE_ROLES, SOCIAL_ROLES

SocialRoleName = Literal[tuple(SOCIAL_ROLES)]  # type: ignore[valid-type]
SlideRoleName = Literal[tuple(SLIDE_ROLES)]  # type: ignore[valid-type]


# ── Concept stage ─────────────────────────────────────────────────────────────

class ConceptOutput(BaseModel):
    analysis: str = Field(
        description="3-5 sentence reading of the topic and references: subject, mood, audience, visual opportunity"
    )
    roles: List[str] = Field(
        description="Short list of the image roles the final set will need, in order"
    )
    image_prompt: str = Field(
        description=(
            "One detailed English prompt for the master visual that anchors the whole set: "
            "subject, setting, lighting, lens, colour palette, rendering style. No on-image text."
        )
    )


class DeckConceptOutput(ConceptOutput):
    art_direction: str = Field(
        description=(
            "Art-direction guide that keeps every slide consistent: background treatment, "
            "colour palette with hex codes, typography pairing, grid and margins, "
            "recurring motifs, icon and chart style"
        )
    )


# ── Plan stage ────────────────────────────────────────────────────────────────

class AnalysisOutput(BaseModel):
    keywords: List[str] = Field(description="5-10 visual and content keywords")
    content_direction: str = Field(
        description="What the set says and in what sequence; the narrative across the items"
    )
    style_analysis: str = Field(
        description=(
            "Visual style of the chosen anchor reference: lighting, palette, rendering, texture. "
            "If the anchor is not reference #0, explain why here."
        )
    )
    best_reference_index: Optional[int] = Field(
        description="0-based index of the reference image that best anchors style and identity; null if none"
    )


class _PlanItemFields(BaseModel):
    order: int = Field(description="1-based position in the set")
    description: str = Field(description="What the image shows: subject, scene, action, props")
    composition: str = Field(description="Framing, camera angle, subject placement, negative space")
    copywriting: str = Field(
        description="Exact text to render on the image, in the output language; empty string for none"
    )
    layout_suggestion: str = Field(description="Where and how the text sits: position, hierarchy, type style")
    inheritance_focus: List[str] = Field(
        description="Visual elements this item must carry over from the anchor, e.g. 'colour palette', 'lighting'"
    )


class SocialPlanItem(_PlanItemFields):
    role: SocialRoleName = Field(description="Role from the catalog. 'Cover Hero' exactly once, first.")


class SlidePlanItem(_PlanItemFields):
    role: SlideRoleName = Field(description="Slide role from the catalog. 'Title Slide' exactly once, first.")


class ComicPlanItem(_PlanItemFields):
    role: str = Field(description="'Cover' for the first item, then 'Page 1', 'Page 2', ... in order")
    description: str = Field(
        description=(
            "For the cover: the full-page illustration and title. For a page: every panel in reading "
            "order with its action and dialogue; **bold** the key science terms."
        )
    )


class SocialPlanOutput(BaseModel):
    analysis: AnalysisOutput
    items: List[SocialPlanItem] = Field(description="6-9 images; the cover first")


class SlidePlanOutput(BaseModel):
    analysis: AnalysisOutput
    items: List[SlidePlanItem] = Field(description="6-12 slides; the title slide first")


class ComicPlanOutput(BaseModel):
    analysis: AnalysisOutput
    items: List[ComicPlanItem] = Field(description="A cover followed by 3-8 pages")
