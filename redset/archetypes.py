"""
archetypes.py — The three output formats RedSet can produce.

  social   vertical commercial post set (cover + selling points + scenes)
  deck     presentation slides sharing one art-direction guide
  comic    science comic: a cover followed by multi-panel pages

Every format-specific choice lives on one ArchetypeProfile so callers never
branch on the archetype name themselves. The one behavioural asymmetry is
`allows_continuity`: comic pages never see the previous page, because
small drifts compound over a long run of pages.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from .catalog import SLIDE_COVER_ROLE, SLIDE_ROLES, SOCIAL_COVER_ROLE, SOCIAL_ROLES, RoleTemplate
from .schemas import (
    ComicPlanOutput,
    ConceptOutput,
    DeckConceptOutput,
    SlidePlanOutput,
    SocialPlanOutput,
)


class Archetype(str, Enum):
    SOCIAL = "social"
    DECK = "deck"
    COMIC = "comic"


@dataclass(frozen=True)
class ArchetypeProfile:
    archetype: Archetype
    label: str

    # Concept stage
    concept_director: str           # system instruction for the concept analysis call
    concept_goal: str               # what the master image is, e.g. "commercial Key Visual"
    concept_rules: Tuple[str, ...]  # bullets appended to the concept image request

    # Plan stage
    planner_persona: str
    plan_rules: Tuple[str, ...]
    plan_size: Tuple[int, int]
    plan_schema: Type[BaseModel]
    concept_schema: Type[BaseModel]

    # Per-image stage
    persona: str
    cover_rules: str
    page_rules: str
    text_rules: str
    reference_note: str = ""

    allows_continuity: bool = True
    role_catalog: Optional[Dict[str, RoleTemplate]] = None
    cover_role: str = "Cover"
    cover_aliases: Tuple[str, ...] = ()
    default_aspect_ratio: str = "3:4"
    uses_art_direction: bool = False

    @property
    def role_names(self) -> Optional[List[str]]:
        return list(self.role_catalog) if self.role_catalog else None

    def is_cover(self, role: str) -> bool:
        r = role.strip().lower()
        return r == self.cover_role.lower() or r in (a.lower() for a in self.cover_aliases)

    def style_rules_for(self, role: str) -> str:
        return self.cover_rules if self.is_cover(role) else self.page_rules


# ── Profiles ──────────────────────────────────────────────────────────────────

_SOCIAL_STYLE = (
    "Style and materials (anchored on the primary reference):\n"
    "- Quality: high-end commercial render, crisp detail, minimal noise.\n"
    "- Aesthetic: premium, clean, structured.\n"
    "- The primary reference defines the project's style: light type and direction, "
    "colour temperature and saturation, and material rendering (metal, ceramic, glass, fabric).\n"
    "- This image keeps that style and changes only composition and content. Do not invent a new style."
)

SOCIAL = ArchetypeProfile(
    archetype=Archetype.SOCIAL,
    label="Social post set",
    concept_director=(
        "You are a world-class Visual Director defining the Master Visual Identity (KV) "
        "for a set of social media images.\n"
        "1. SUBJECT / CONTENT comes strictly from the user's topic and references labelled MATERIAL.\n"
        "2. STYLE / AESTHETICS comes strictly from references labelled STYLE.\n"
        "3. GOAL: show the subject (topic + material) rendered in the style (style references).\n"
        "4. COMPOSITE: identify every role the campaign needs (hero product, model, key prop) "
        "and stage all of them together in one frame.\n"
        "Do not simply describe a reference. Apply its lighting, palette and mood to the new subject."
    ),
    concept_goal="commercial Key Visual (KV)",
    concept_rules=(
        "Use MATERIAL images for shape and identity.",
        "Use STYLE images for lighting, colour and rendering.",
        "High quality professional photography or 3D render.",
        "Keep the top 30% of the frame clean for a later text overlay.",
    ),
    planner_persona=(
        "You are the creative director and layout designer for a set of premium commercial "
        "social media images. Plan layout first, style second: split every frame into "
        "background, props / stage, subject, and a real typeset text layer."
    ),
    plan_rules=(
        "Pick a role for every item from the role catalog; the role field must be one of its keys.",
        f"Item 1 must be '{SOCIAL_COVER_ROLE}' and it appears exactly once.",
        "Build a complete story across the set: cover, selling points, scenes, details, call to action.",
        "description: under 80 words, subject and scene.",
        "composition: framing and layout following the role's layout guidelines.",
        "inheritance_focus: which visual elements this image inherits (palette, light direction, pose, logo).",
    ),
    plan_size=(6, 9),
    plan_schema=SocialPlanOutput,
    concept_schema=ConceptOutput,
    persona="You are a world-class commercial product CGI artist and photographer.",
    cover_rules=_SOCIAL_STYLE,
    page_rules=_SOCIAL_STYLE,
    text_rules=(
        "Typeset the copy as real text: headline, subtitle and short selling-point lines placed "
        "in the reserved negative space."
    ),
    allows_continuity=True,
    role_catalog=SOCIAL_ROLES,
    cover_role=SOCIAL_COVER_ROLE,
    cover_aliases=("cover",),
    default_aspect_ratio="3:4",
)

DECK = ArchetypeProfile(
    archetype=Archetype.DECK,
    label="Slide deck",
    concept_director=(
        "You are a senior presentation designer defining the visual system for a slide deck.\n"
        "1. CONTENT comes from the user's topic and references labelled MATERIAL.\n"
        "2. VISUAL LANGUAGE comes from references labelled STYLE.\n"
        "3. GOAL: a title-slide key visual plus an art-direction guide that every later slide follows.\n"
        "4. The guide must be concrete: background treatment, palette with hex codes, typography "
        "pairing, grid and margins, recurring motifs, icon and chart style."
    ),
    concept_goal="title slide key visual",
    concept_rules=(
        "Use MATERIAL images for subject matter and imagery.",
        "Use STYLE images for palette, typography mood and rendering.",
        "Landscape presentation slide, flat and legible, no UI chrome or slide numbers.",
        "Leave a clear area for the deck title.",
    ),
    planner_persona=(
        "You are a presentation designer planning a slide deck. Each slide carries one idea, "
        "and every slide follows the deck's art-direction guide so the deck reads as one system."
    ),
    plan_rules=(
        "Pick a role for every slide from the role catalog; the role field must be one of its keys.",
        f"Slide 1 must be '{SLIDE_COVER_ROLE}' and it appears exactly once.",
        "Give the deck a clear arc: title, agenda, sections, evidence, summary, closing.",
        "description: the slide's visual content; composition: grid placement of title, body and visual.",
        "copywriting: the slide title and body text exactly as they should appear, short lines only.",
        "inheritance_focus: which elements of the art-direction guide this slide must show.",
    ),
    plan_size=(6, 12),
    plan_schema=SlidePlanOutput,
    concept_schema=DeckConceptOutput,
    persona="You are a senior presentation designer producing finished, presentation-ready slides.",
    cover_rules=(
        "Title slide rules:\n"
        "- Establish the deck's visual system: background, palette, type pairing, motif.\n"
        "- Title set large with strong hierarchy; subtitle below.\n"
        "- Match the primary reference's palette and rendering exactly."
    ),
    page_rules=(
        "Content slide rules:\n"
        "- Follow the art-direction guide exactly: same background treatment, palette, type, grid and margins.\n"
        "- One idea per slide; clear hierarchy between slide title, body and visual.\n"
        "- Charts and icons in the deck's style only; no stock clip-art look."
    ),
    text_rules=(
        "Render the slide title and body text legibly as real typography. Long body text may be "
        "shortened, never replaced with lorem ipsum or placeholder lines."
    ),
    allows_continuity=True,
    role_catalog=SLIDE_ROLES,
    cover_role=SLIDE_COVER_ROLE,
    cover_aliases=("cover", "title"),
    default_aspect_ratio="16:9",
    uses_art_direction=True,
)

COMIC = ArchetypeProfile(
    archetype=Archetype.COMIC,
    label="Science comic",
    concept_director=(
        "You are the lead character designer for a science comic, producing a Master Character "
        "& Style Sheet.\n"
        "1. CHARACTERS / OBJECTS come from the user's topic and references labelled MATERIAL.\n"
        "2. ART STYLE comes from references labelled STYLE.\n"
        "3. GOAL: characters that fit the topic, drawn in the style of the references.\n"
        "4. COMPOSITE: identify every character the lesson needs (presenter, students, mascot, tools) "
        "and draw all of them together on one sheet in one consistent style."
    ),
    concept_goal="Master Character Sheet",
    concept_rules=(
        "Use STYLE images for drawing style: line weight, colouring, shading.",
        "Full-body characters, neutral or welcoming poses, all on one sheet.",
        "Clean, simple background. No text, no panels.",
    ),
    planner_persona=(
        "You are an educational comic storyboard artist. Turn each knowledge point into one "
        "vertical comic page with a complete panel-by-panel script. Style: cartoon, bright, "
        "clean lines, suitable for middle-school readers. Science must be accurate, clear and fun."
    ),
    plan_rules=(
        "Item 1 has role 'Cover'; the following items are 'Page 1', 'Page 2', ... in order.",
        "Cover: big title, the main characters' debut, poster-like appeal.",
        "Each page: page layout plus at least 3 panels, each with composition, every line of dialogue "
        "or narration, and where its text boxes sit.",
        "Bold the key science terms with **double asterisks** in the copy.",
        "layout_suggestion: where speech bubbles and caption boxes sit so the page reads smoothly.",
    ),
    plan_size=(4, 9),
    plan_schema=ComicPlanOutput,
    concept_schema=ConceptOutput,
    persona=(
        "You are a professional educational comic artist creating clear, fun science comics "
        "for teenagers."
    ),
    cover_rules=(
        "Comic cover rules:\n"
        "- A single full-page vertical illustration, no panels.\n"
        "- The main characters centre stage with lively, exaggerated action.\n"
        "- A prominent title area at the top or bottom.\n"
        "- Line weight, colouring and palette identical to the primary reference, like the cover of "
        "the same serialised comic.\n"
        "- Energetic, playful, curious mood."
    ),
    page_rules=(
        "Comic page rules:\n"
        "- One vertical page containing several panels, split exactly as the description's panels.\n"
        "- Every panel has a clear subject and action, with room left for speech bubbles and captions.\n"
        "- Style consistency: line style, colouring method and palette must match the primary reference.\n"
        "- Characters' faces, hair and outfits match the primary reference exactly; composition, pose, "
        "expression and scene may change, the art style may not.\n"
        "- Do NOT draw 'Page 1', 'Panel 1', header, footer or any other meta text. The image contains "
        "only the story art plus speech bubbles and caption boxes."
    ),
    text_rules=(
        "Render the copy inside speech bubbles and caption boxes only. Do not add extra blocks of text."
    ),
    reference_note=(
        "If a reference is a real photograph, take only character features and scene ideas from it "
        "and draw them in the comic style of the primary reference."
    ),
    allows_continuity=False,
    role_catalog=None,
    cover_role="Cover",
    cover_aliases=("封面",),
    default_aspect_ratio="3:4",
)

PROFILES: Dict[Archetype, ArchetypeProfile] = {
    Archetype.SOCIAL: SOCIAL,
    Archetype.DECK: DECK,
    Archetype.COMIC: COMIC,
}


def get_profile(archetype) -> ArchetypeProfile:
    """Accept an Archetype or its string value ('social', 'deck', 'comic')."""
    try:
        return PROFILES[Archetype(archetype)]
    except ValueError:
        valid = ", ".join(a.value for a in Archetype)
        raise ValueError(f"Unknown template {archetype!r}; expected one of: {valid}") from None
