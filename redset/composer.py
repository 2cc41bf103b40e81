"""
composer.py — Builds the multimodal requests for every generation call.

Part order is fixed for the image calls:

    primary reference, tag
    auxiliary references, tag each
    previous generated image, tag      (only when continuity is allowed and requested)
    instruction text

Every image part is immediately followed by a one-sentence text tag. The
concept and plan calls see the whole usable reference list instead, each
image tagged with its 0-based index and usage.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from google.genai import types

from .arbitration import (
    EDIT_TARGET_TAG,
    PREVIOUS_TAG,
    PRIMARY_TAG,
    auxiliary_tag,
    usable_references,
    usage_label,
)
from .archetypes import ArchetypeProfile
from .catalog import catalog_json, role_guide_block
from .models import ImagePlanItem, PlanAnalysis, ReferenceImage
from .schemas import ConceptOutput

NEGATIVE_CONSTRAINTS = (
    "Negative constraints (mandatory):\n"
    "- Do NOT render meta labels into the image: no page numbers, no 'Page 1', no 'Panel 1:', "
    "no 'Slide 3', no section headers, no role names, no header or footer text.\n"
    "- Those labels structure the brief for you; they are never on-canvas content.\n"
    "- Do not add watermarks, UI elements or annotations."
)

PLAN_NEGATIVE_CONSTRAINTS = (
    "copywriting holds only the words that appear on the canvas. Never put structuring labels "
    "into it ('Headline:', 'Panel 1:', 'Page 2', 'Slide 3', role names); those are for you, not the reader."
)


def image_part(data: bytes, mime_type: str) -> types.Part:
    return types.Part.from_bytes(data=data, mime_type=mime_type)


def text_part(text: str) -> types.Part:
    return types.Part.from_text(text=text)


def language_instruction(language: str) -> str:
    return (
        f"Text rendering language: {language}. Use correct {language} glyphs and characters; "
        f"never substitute another script or garbled pseudo-text."
    )


def labelled_reference_parts(references: Sequence[ReferenceImage]) -> List[types.Part]:
    """Each usable reference followed by its index and usage. Indices are 0-based."""
    parts: List[types.Part] = []
    for idx, ref in enumerate(usable_references(references)):
        parts.append(image_part(ref.data, ref.mime_type))
        parts.append(text_part(f"[Reference image #{idx}] Usage: {usage_label(ref)}"))
    return parts


def _bullets(lines: Sequence[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


# ── Concept stage ─────────────────────────────────────────────────────────────

def concept_analysis_request(
    topic: str,
    references: Sequence[ReferenceImage],
    profile: ArchetypeProfile,
    aspect_ratio: str,
) -> Tuple[List[types.Part], str]:
    """Parts and system instruction for the concept analysis (JSON) call."""
    system = f"{profile.concept_director}\n\nThe user's topic is: \"{topic}\"."

    fields = [
        "analysis: a concise paragraph explaining how you blend the topic and MATERIAL references "
        "with the STYLE references.",
        f"roles: 2-4 short entries listing every role or subject that must appear together in the "
        f"{profile.concept_goal}.",
        f"image_prompt: a highly detailed prompt for the {profile.concept_goal} placing all roles "
        f"together in one {aspect_ratio} frame, with lighting, palette, texture and composition taken "
        f"from the STYLE references.",
    ]
    if profile.uses_art_direction:
        fields.append(
            "art_direction: the art-direction guide every later slide must follow "
            "(background, palette with hex codes, typography, grid, motifs, icon and chart style)."
        )
    task = (
        f"Task: analyse the topic \"{topic}\" and the labelled reference images, and define the "
        f"{profile.concept_goal} for the whole {profile.label.lower()}.\n\n"
        f"Return a JSON object with:\n{_bullets(fields)}"
    )

    parts = labelled_reference_parts(references)
    parts.append(text_part(task))
    return parts, system


def compose_concept_prompt(result: ConceptOutput) -> Tuple[str, str]:
    """Fold the role list into both the image prompt and the analysis shown to the user."""
    roles = [r for r in result.roles if r.strip()]
    if roles:
        roles_instruction = (
            f"Composite requirement: show ALL required roles together in one frame: {' | '.join(roles)}. "
            "Keep them visually distinct and harmonious."
        )
        analysis = f"{result.analysis}\n\nRoles: {' / '.join(roles)}"
    else:
        roles_instruction = (
            "Composite requirement: include every required role for the task together in one frame "
            "(do not omit characters)."
        )
        analysis = result.analysis
    return f"{result.image_prompt}\n\n{roles_instruction}", analysis


def concept_image_parts(
    topic: str,
    references: Sequence[ReferenceImage],
    profile: ArchetypeProfile,
    image_prompt: str,
    aspect_ratio: str,
) -> List[types.Part]:
    rules = [f"The subject MUST be about: {topic}."] + list(profile.concept_rules)
    parts = labelled_reference_parts(references)
    parts.append(text_part(
        f"Generate a {aspect_ratio} {profile.concept_goal} based on this description:\n"
        f"{image_prompt}\n\n"
        f"IMPORTANT:\n{_bullets(rules)}\n\n"
        f"{NEGATIVE_CONSTRAINTS}"
    ))
    return parts


# ── Plan stage ────────────────────────────────────────────────────────────────

def plan_request(
    topic: str,
    references: Sequence[ReferenceImage],
    profile: ArchetypeProfile,
    language: str,
    aspect_ratio: str,
    art_direction: str = "",
) -> Tuple[List[types.Part], str]:
    """Parts and system instruction for the plan (JSON) call."""
    lo, hi = profile.plan_size
    sections = [
        profile.planner_persona,
        "Master Style Anchor:\n"
        "- Reference image #0 is the confirmed anchor. It defines the global style (colour, lighting, "
        "materials, lens language) and the look of the main subject or characters.\n"
        "- Unless you have strong evidence otherwise, set analysis.best_reference_index to 0.\n"
        "- If you choose a different index, explain why in analysis.style_analysis.\n"
        "- If no reference images are supplied, set best_reference_index to null.",
    ]
    if profile.role_catalog:
        sections.append(f"Role catalog (role name -> template):\n{catalog_json(profile.role_catalog)}")
    if profile.uses_art_direction and art_direction:
        sections.append(f"Art-direction guide (binding for every slide):\n{art_direction}")
    sections.append(
        "Language and output:\n"
        f"- Every text field you write, especially copywriting, must be in {language}.\n"
        f"- {PLAN_NEGATIVE_CONSTRAINTS}\n"
        f"- Produce {lo}-{hi} items, numbered by order starting at 1.\n"
        f"- Output aspect ratio of every item: {aspect_ratio}.\n"
        "- Output valid JSON only."
    )
    system = "\n\n".join(sections)

    task = (
        f"Task: plan a {profile.label.lower()} of {lo}-{hi} items for the topic \"{topic}\".\n\n"
        f"Rules:\n{_bullets(profile.plan_rules)}\n\n"
        "analysis: extract keywords, the content direction across the set, and the visual style of the "
        "anchor. best_reference_index is the reference that best represents the global style "
        "(normally 0).\n\n"
        "Follow the JSON schema strictly."
    )

    parts = labelled_reference_parts(references)
    parts.append(text_part(task))
    return parts, system


# ── Per-image stage ───────────────────────────────────────────────────────────

def _global_direction(analysis: Optional[PlanAnalysis], profile: ArchetypeProfile) -> str:
    if analysis is None:
        return f"- Style: standard {profile.label.lower()} style, anchored on the primary reference"
    lines = [
        f"- Content direction: {analysis.content_direction or '(not provided)'}",
        f"- Style direction: {analysis.style_analysis or '(not provided)'}",
        f"- Keywords: {', '.join(analysis.keywords) if analysis.keywords else '(not provided)'}",
    ]
    if profile.uses_art_direction and analysis.art_direction:
        lines.append(f"- Art-direction guide (binding):\n{analysis.art_direction}")
    return "\n".join(lines)


def image_instruction(
    item: ImagePlanItem,
    analysis: Optional[PlanAnalysis],
    profile: ArchetypeProfile,
    language: str,
    aspect_ratio: str,
    with_previous: bool,
) -> str:
    task_lines = [
        f"- Number: {item.order}",
        f"- Role / page: {item.role}",
        f"- Scene / panels: {item.description}",
        f"- Composition: {item.composition}",
        f"- Layout notes: {item.layout_suggestion or 'none'}",
    ]
    if item.inheritance_focus:
        task_lines.append(f"- Carry over from the anchor: {', '.join(item.inheritance_focus)}")
    guide = role_guide_block(item.role, profile.role_catalog)

    reference_rules = [
        "Primary reference: defines the subject's looks, outfit and presence, and the overall "
        "rendering (line, colouring, palette). Every image must match it closely.",
        "Other references: only add lighting, material, scene or prop details. They must not change "
        "the identity or overall style defined by the primary reference.",
    ]
    if profile.reference_note:
        reference_rules.append(profile.reference_note)

    blocks = [
        profile.persona,
        f"Global visual direction:\n{_global_direction(analysis, profile)}",
        "This image:\n" + "\n".join(task_lines) + (f"\n{guide}" if guide else ""),
        f"Aspect ratio: {aspect_ratio}.",
        profile.style_rules_for(item.role),
        f"Reference rules:\n{_bullets(reference_rules)}",
    ]
    if with_previous:
        blocks.append(
            "Previous generated image:\n"
            "- Use it for scene continuity (background structure, camera angle, rough subject position) "
            "and recurring props.\n"
            "- Identity details and overall style still follow the primary reference first.\n"
            "- Do not drift from the primary reference because of accidental changes in the previous image."
        )
    blocks.append(
        "Text and typography:\n"
        f"- Planned copy: {item.copywriting or '(no copy)'}\n"
        f"- {language_instruction(language)}\n"
        f"- {profile.text_rules}\n"
        "- Strip explanatory prefixes such as 'Headline:', '主标题', 'Panel 1:' and render only the "
        "actual words."
    )
    blocks.append(NEGATIVE_CONSTRAINTS)
    return "\n\n".join(b for b in blocks if b)


def image_parts(
    item: ImagePlanItem,
    primary: Optional[ReferenceImage],
    auxiliaries: Sequence[ReferenceImage],
    previous: Optional[Tuple[bytes, str]],
    analysis: Optional[PlanAnalysis],
    profile: ArchetypeProfile,
    language: str,
    aspect_ratio: str,
) -> List[types.Part]:
    """
    Full request for one plan item. `previous` is (bytes, mime) of the image
    before this one; pass None to leave it out. The archetype's continuity
    flag is checked here as well, so a forbidden previous image is never sent.
    """
    parts: List[types.Part] = []
    if primary is not None:
        parts.append(image_part(primary.data, primary.mime_type))
        parts.append(text_part(PRIMARY_TAG))
    for ref in auxiliaries:
        parts.append(image_part(ref.data, ref.mime_type))
        parts.append(text_part(auxiliary_tag(ref)))

    with_previous = previous is not None and profile.allows_continuity
    if with_previous:
        prev_bytes, prev_mime = previous
        parts.append(image_part(prev_bytes, prev_mime))
        parts.append(text_part(PREVIOUS_TAG))

    parts.append(text_part(
        image_instruction(item, analysis, profile, language, aspect_ratio, with_previous)
    ))
    return parts


# ── Edit stage ────────────────────────────────────────────────────────────────

def edit_parts(
    image_bytes: bytes,
    mime_type: str,
    instruction: str,
    primary: Optional[ReferenceImage],
    auxiliaries: Sequence[ReferenceImage],
    analysis: Optional[PlanAnalysis],
    language: str,
    aspect_ratio: str,
) -> List[types.Part]:
    parts: List[types.Part] = []
    if primary is not None:
        parts.append(image_part(primary.data, primary.mime_type))
        parts.append(text_part(PRIMARY_TAG + " Treat its identity as a hard constraint for this edit."))
    for ref in auxiliaries:
        parts.append(image_part(ref.data, ref.mime_type))
        parts.append(text_part(auxiliary_tag(ref)))
    parts.append(image_part(image_bytes, mime_type))
    parts.append(text_part(EDIT_TARGET_TAG))

    constraints = [
        f"Keep the aspect ratio at {aspect_ratio}.",
        "Edit locally: change only what the instruction asks for. Do not redraw the whole subject "
        "or change the composition.",
    ]
    if primary is not None:
        constraints.append(
            "The subject's identity features (face, hair, outfit, product shape) must match the "
            "primary reference exactly."
        )
    if analysis is not None and analysis.style_analysis:
        constraints.append(f"Stay within the established style: {analysis.style_analysis}")
    constraints.append(
        f"Any text you add or change is in {language}, with correct {language} glyphs."
    )

    parts.append(text_part(
        f"Edit instruction:\n{instruction}\n\n"
        f"Hard constraints:\n{_bullets(constraints)}\n\n"
        f"{NEGATIVE_CONSTRAINTS}"
    ))
    return parts
