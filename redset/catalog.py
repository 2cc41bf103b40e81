"""
catalog.py — Role templates for plan items.

Each archetype with a closed role vocabulary (social posts, slide decks)
gets a catalog here. The plan schema restricts `role` to the catalog keys,
and the prompt composer injects the matching template when it builds the
request for an individual image.

Comic pages have no catalog: their roles are "Cover", "Page 1", "Page 2", ...
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class RoleTemplate:
    description: str
    creative_focus: str
    output_guide: List[str]


# ── Social post roles ─────────────────────────────────────────────────────────

SOCIAL_COVER_ROLE = "Cover Hero"

SOCIAL_ROLES: Dict[str, RoleTemplate] = {
    # Brand / premium product
    SOCIAL_COVER_ROLE: RoleTemplate(
        description="Key visual cover that sets the tone for the whole set.",
        creative_focus="Subject and brand personality readable at a glance; strong impact, minimal information.",
        output_guide=[
            "Keep the top 35-45% of the frame clean (sky, smooth gradient or plain wall)",
            "Product centred or slightly below centre, occupying 40-60% of the frame",
            "Reserve a clear area for one headline and one short subtitle; no clusters of small text",
        ],
    ),
    "Product Hero": RoleTemplate(
        description="The authoritative shot of a single product, showing form and finish.",
        creative_focus="The viewer recognises what the product looks like and how it feels within one second.",
        output_guide=[
            "Product centred or slightly low, occupying 50-70% of the frame",
            "Simple background structure; window frames, layered backdrops or soft depth of field must not compete",
            "Leave a small area at one side or the bottom for the product name or 1-2 key claims",
        ],
    ),
    "Collection Lineup": RoleTemplate(
        description="Several products in one frame, emphasising the family resemblance of a range.",
        creative_focus="The viewer reads a complete collection rather than unrelated single items.",
        output_guide=[
            "2-4 products arranged symmetrically or rhythmically with even spacing",
            "A simple geometric frame may unify the group; no heavy decoration",
            "Leave clear space at the top or centre for the collection name or claim",
        ],
    ),
    "Selling Points Breakdown": RoleTemplate(
        description="Information layout that breaks a core product down into its selling points.",
        creative_focus="3-5 key benefits understood quickly in a scannable structure.",
        output_guide=[
            "Product centred and static at a moderate scale (40-60%)",
            "Information columns on the left and right, 1-3 short labels per side, optional small icons",
            "Clean light gradient or subtle texture background, little decoration",
        ],
    ),
    "Craft Detail": RoleTemplate(
        description="Close-up that magnifies material, texture and workmanship.",
        creative_focus="Conveys fine craftsmanship and attention to detail.",
        output_guide=[
            "Crop the product boldly, keeping only the key detail at 60%+ of the frame",
            "Shallow depth of field with a soft background in neutral or theme colours",
            "Keep a narrow strip on one side for 1-2 lines of caption",
        ],
    ),
    "Buying Guide": RoleTemplate(
        description="Shopping-guide layout focused on how to choose or buy.",
        creative_focus="Helps the viewer decide by pairing products with price or offer information.",
        output_guide=[
            "Products in one or two rows with a clear hierarchy",
            "Bottom 25-35% reserved for a price / offer strip",
            "A short headline at the top such as 'Which one is for you'; no long paragraphs",
        ],
    ),
    "Brand Story": RoleTemplate(
        description="Atmospheric scene with props that tells the brand's culture and mood.",
        creative_focus="The viewer feels the brand's character, heritage or lifestyle.",
        output_guide=[
            "Product on the left or right third, clearly visible",
            "The other side keeps a vertical copy area for 2-4 lines of story text",
            "Few props on a single theme; lighting matches the brand tone",
        ],
    ),
    "Follow CTA": RoleTemplate(
        description="Closing card prompting the viewer to follow, add or visit.",
        creative_focus="The next action is obvious; the call to action is unambiguous.",
        output_guide=[
            "Solid or lightly textured background, as simple as possible",
            "Large CTA copy area in the centre or lower half (e.g. 'Follow for more')",
            "At most one small icon or product thumbnail",
        ],
    ),
    # People / lifestyle
    "Portrait": RoleTemplate(
        description="Half-body or bust shot emphasising face and upper body.",
        creative_focus="Personality, make-up, accessories or the person's relation to the product.",
        output_guide=[
            "Person centred or slightly off-centre, upper body about 50% of the frame",
            "Space on the other side or above for text",
            "Soft, blurred background layers",
        ],
    ),
    "Candid Motion": RoleTemplate(
        description="Snapshot with a sense of movement and real-life atmosphere.",
        creative_focus="A natural, unposed moment that feels close to the viewer.",
        output_guide=[
            "Subject off to one side, movement heading into the empty space",
            "Slight motion blur is acceptable",
            "Keep 20-30% of one side clean",
        ],
    ),
    "Full Look": RoleTemplate(
        description="Full-body or complete-outfit shot for styling, posture or space.",
        creative_focus="The viewer sees the overall effect, such as a whole outfit.",
        output_guide=["Whole figure visible", "Figure placed to one side", "Tidy background"],
    ),
    "Emotion Close-up": RoleTemplate(
        description="Tight close-up on an emotion: a face, a gesture, a hand.",
        creative_focus="Amplifies feeling and tension so the viewer resonates.",
        output_guide=[
            "Focus on the expression or key gesture",
            "Simple, soft background",
            "A small area for one short line of text",
        ],
    ),
    # Catalogue / food / electronics
    "Texture Backdrop": RoleTemplate(
        description="Large texture or material field used as an information background.",
        creative_focus="The viewer can almost feel the surface.",
        output_guide=[
            "Texture fills the frame",
            "A cleaner area at the top or centre",
            "Gentle colour layering",
            "No unrelated objects",
        ],
    ),
    "In Use": RoleTemplate(
        description="The product being used in a real or staged scene.",
        creative_focus="Helps the viewer imagine using it themselves.",
        output_guide=[
            "Product or set clearly visible",
            "A corner reserved for steps or notes",
            "Limited props",
        ],
    ),
    "Packaging": RoleTemplate(
        description="Dedicated shot of the box, bottle or other packaging.",
        creative_focus="Packaging design, opening structure and layering.",
        output_guide=[
            "Packaging in the lower half of the frame",
            "Title area at the top",
            "Neatly arranged supporting props",
        ],
    ),
    "Catalog Shot": RoleTemplate(
        description="Standard catalogue image for listings and detail pages.",
        creative_focus="Shows the whole product clearly and without distraction.",
        output_guide=[
            "Product centred or slightly high",
            "Solid colour or soft gradient background",
            "Space above and below",
            "Crisp outline",
        ],
    ),
    # Spaces / shops / architecture
    "Space Overview": RoleTemplate(
        description="Wide view of a space, introducing a shop or venue atmosphere.",
        creative_focus="The viewer understands what kind of place this is.",
        output_guide=[
            "Main building or room across the middle band",
            "Horizontal strips reserved above and below",
            "Clear structural lines",
        ],
    ),
    "Wide Panorama": RoleTemplate(
        description="Ultra-wide panorama stressing an open or spectacular view.",
        creative_focus="Blockbuster feel, suited to vlog covers or scene introductions.",
        output_guide=[
            "Level horizon",
            "Title band in the middle or upper area",
            "Subject need not be large but layers must read clearly",
        ],
    ),
    "Quiet Corner": RoleTemplate(
        description="Carefully composed small corner showing a delicate slice of life.",
        creative_focus="The feeling of discovering a small pleasure.",
        output_guide=[
            "Focus in one corner of the frame",
            "Empty space along the opposite diagonal",
            "Few, well-chosen elements",
        ],
    ),
    "Storefront": RoleTemplate(
        description="Frontal view of a shop or building entrance.",
        creative_focus="The viewer remembers the storefront and its sign.",
        output_guide=[
            "Frontal or slight perspective",
            "Space reserved above",
            "Sign lettering legible",
        ],
    ),
    # Infographics / tutorials / education
    "Step by Step": RoleTemplate(
        description="Process or how-to shown in steps.",
        creative_focus="Clear logic; the order is obvious at a glance.",
        output_guide=[
            "Hands or product in the upper middle",
            "Margins left free for step numbers",
            "One action per image",
        ],
    ),
    "Comparison": RoleTemplate(
        description="Split layout contrasting before/after, good/bad or sizes.",
        creative_focus="Sharpens the 'before vs after' or 'A vs B' difference.",
        output_guide=[
            "Symmetrical split screen",
            "A dividing line in the middle",
            "One core object per side",
        ],
    ),
    "Key Benefits": RoleTemplate(
        description="Single product surrounded by its 3-5 key benefits.",
        creative_focus="The viewer remembers why to buy it.",
        output_guide=[
            "Product large in frame",
            "Benefits distributed as callout points",
            "No more than 3-5 benefits",
        ],
    ),
    "Illustrated Guide": RoleTemplate(
        description="Text-heavy mixed layout for detailed explanations or tutorials.",
        creative_focus="Carries a lot of information while staying clean and ordered.",
        output_guide=[
            "Main picture tucked into one corner",
            "60%+ of the area used for typeset text",
            "Text arranged in groups",
            "Plain background",
        ],
    ),
}


# ── Slide deck roles ──────────────────────────────────────────────────────────

SLIDE_COVER_ROLE = "Title Slide"

SLIDE_ROLES: Dict[str, RoleTemplate] = {
    SLIDE_COVER_ROLE: RoleTemplate(
        description="Opening slide carrying the deck title and establishing its visual system.",
        creative_focus="Title, subtitle and one strong visual that defines the deck's look.",
        output_guide=[
            "Large title in the upper or left third, subtitle directly below",
            "One hero visual or abstract motif occupying the remaining area",
            "Generous margins; nothing within 5% of the slide edges",
        ],
    ),
    "Agenda": RoleTemplate(
        description="Overview of the sections the deck will cover.",
        creative_focus="The audience sees the structure of the talk in one glance.",
        output_guide=[
            "3-6 numbered entries in a single column or a row of cards",
            "Short slide title at the top left",
            "A small recurring motif from the title slide",
        ],
    ),
    "Section Divider": RoleTemplate(
        description="Transition slide introducing a new section.",
        creative_focus="A visual pause that signals a change of topic.",
        output_guide=[
            "Section name set large, centred or left aligned",
            "Bold use of the primary colour or a full-bleed image",
            "No body text",
        ],
    ),
    "Key Message": RoleTemplate(
        description="Slide built around one statement and its supporting visual.",
        creative_focus="A single takeaway the audience can repeat afterwards.",
        output_guide=[
            "Headline of at most 12 words",
            "Supporting visual on one half, 2-3 short bullets on the other",
            "Clear hierarchy between headline and body",
        ],
    ),
    "Data Highlight": RoleTemplate(
        description="Slide presenting a number, chart or metric.",
        creative_focus="The figure is the hero; context is secondary.",
        output_guide=[
            "One large figure or a simple chart with at most 5 series",
            "A one-line caption explaining the figure",
            "Chart colours drawn from the deck palette only",
        ],
    ),
    "Process": RoleTemplate(
        description="Sequence of steps, timeline or flow.",
        creative_focus="The order and direction of the steps read without explanation.",
        output_guide=[
            "3-6 steps connected left-to-right or top-to-bottom",
            "Each step: icon or small visual plus a 2-5 word label",
            "Consistent spacing and connector style",
        ],
    ),
    "Comparison": RoleTemplate(
        description="Two or three options side by side.",
        creative_focus="Differences are obvious; similarities recede.",
        output_guide=[
            "Equal-width columns with matching headings",
            "Aligned rows so attributes can be compared",
            "Highlight the recommended option with the accent colour",
        ],
    ),
    "Quote": RoleTemplate(
        description="A testimonial or memorable quotation.",
        creative_focus="The words carry the slide; attribution is clear.",
        output_guide=[
            "Quotation set large with generous line spacing",
            "Attribution in small text below",
            "Optional portrait or texture, kept subdued",
        ],
    ),
    "Summary": RoleTemplate(
        description="Recap of the main points.",
        creative_focus="The audience leaves with the three or four things that matter.",
        output_guide=[
            "3-4 takeaways as short lines or cards",
            "Slide title at the top left",
            "Reuse motifs from earlier slides",
        ],
    ),
    "Closing": RoleTemplate(
        description="Final slide with thanks, contact details or a call to action.",
        creative_focus="A clear ending and next step.",
        output_guide=[
            "Short closing line set large",
            "Contact or CTA line below",
            "Mirror the title slide's composition",
        ],
    ),
}


def role_guide_block(role: str, catalog: Optional[Dict[str, RoleTemplate]]) -> str:
    """Render the template for `role` as prompt text, or '' if unknown."""
    if not catalog or role not in catalog:
        return ""
    tpl = catalog[role]
    guide = "\n".join(f"  - {line}" for line in tpl.output_guide)
    return (
        f"Role template \"{role}\":\n"
        f"- Purpose: {tpl.description}\n"
        f"- Creative focus: {tpl.creative_focus}\n"
        f"- Layout guidelines:\n{guide}"
    )


def catalog_json(catalog: Dict[str, RoleTemplate]) -> str:
    return json.dumps({name: asdict(tpl) for name, tpl in catalog.items()}, indent=2, ensure_ascii=False)
