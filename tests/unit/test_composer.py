"""
Tests for request composition.

Verifies part ordering (primary → auxiliaries → previous → instruction),
that every image is followed by its tag, archetype-specific continuity,
and the mandatory negative constraints and language instructions.
"""

from redset.arbitration import PREVIOUS_TAG, PRIMARY_TAG
from redset.archetypes import COMIC, DECK, SOCIAL
from redset.composer import (
    NEGATIVE_CONSTRAINTS,
    compose_concept_prompt,
    concept_analysis_request,
    concept_image_parts,
    edit_parts,
    image_parts,
    plan_request,
)
from redset.models import ImagePlanItem, PlanAnalysis
from redset.schemas import ConceptOutput

PREVIOUS = (b"previous-image", "image/png")


def _assert_images_tagged(parts) -> None:
    """Every image part is immediately followed by a text part; the last part is text."""
    for i, part in enumerate(parts):
        if part.inline_data is not None:
            assert i + 1 < len(parts)
            assert parts[i + 1].text, f"image part {i} is not followed by a tag"
    assert parts[-1].text


def _item(role: str = "Product Hero", order: int = 2) -> ImagePlanItem:
    return ImagePlanItem(
        order=order,
        role=role,
        description="bottle on marble",
        composition="low angle",
        copywriting="主标题：春日新茶",
        layout_suggestion="title top",
        inheritance_focus=["palette", "lighting"],
    )


class TestImageParts:
    """Test suite for per-image requests."""

    def test_part_order_primary_aux_previous_text(self, gateway, make_ref) -> None:
        primary, aux1, aux2 = make_ref(), make_ref(style=False), make_ref(material=False)

        parts = image_parts(
            _item(), primary, [aux1, aux2], PREVIOUS, PlanAnalysis(), SOCIAL, "English", "3:4"
        )

        assert gateway.images_in(parts) == [primary.data, aux1.data, aux2.data, PREVIOUS[0]]
        assert parts[1].text == PRIMARY_TAG
        assert parts[7].text == PREVIOUS_TAG
        assert len(parts) == 9
        _assert_images_tagged(parts)

    def test_social_includes_previous_image(self, gateway, make_ref) -> None:
        parts = image_parts(_item(), make_ref(), [], PREVIOUS, None, SOCIAL, "English", "3:4")

        assert PREVIOUS[0] in gateway.images_in(parts)
        assert "Previous generated image" in parts[-1].text

    def test_comic_page_never_includes_previous_image(self, gateway, make_ref) -> None:
        item = _item(role="Page 2", order=3)

        parts = image_parts(item, make_ref(), [], PREVIOUS, None, COMIC, "English", "3:4")

        assert PREVIOUS[0] not in gateway.images_in(parts)
        assert PREVIOUS_TAG not in gateway.texts_in(parts)

    def test_comic_cover_and_page_rules_differ(self, make_ref) -> None:
        cover = image_parts(_item("Cover", 1), make_ref(), [], None, None, COMIC, "English", "3:4")[-1].text
        page = image_parts(_item("Page 1", 2), make_ref(), [], None, None, COMIC, "English", "3:4")[-1].text

        assert "Comic cover rules" in cover and "Comic page rules" not in cover
        assert "Comic page rules" in page
        assert "Do NOT draw 'Page 1', 'Panel 1'" in page

    def test_instruction_carries_negative_constraints_and_language(self, make_ref) -> None:
        text = image_parts(_item(), make_ref(), [], None, None, SOCIAL, "Japanese", "3:4")[-1].text

        assert NEGATIVE_CONSTRAINTS in text
        assert "Text rendering language: Japanese" in text
        assert "correct Japanese glyphs" in text
        assert "Aspect ratio: 3:4." in text

    def test_instruction_includes_item_and_role_template(self, make_ref) -> None:
        text = image_parts(_item(), make_ref(), [], None, None, SOCIAL, "English", "3:4")[-1].text

        assert "- Number: 2" in text
        assert "- Role / page: Product Hero" in text
        assert "bottle on marble" in text
        assert "palette, lighting" in text
        assert 'Role template "Product Hero"' in text

    def test_analysis_fields_reach_the_prompt(self, make_ref) -> None:
        analysis = PlanAnalysis(
            keywords=["jade", "dawn"],
            content_direction="launch story",
            style_analysis="soft daylight",
            art_direction="Navy background, Inter headings",
        )

        social = image_parts(_item(), make_ref(), [], None, analysis, SOCIAL, "English", "3:4")[-1].text
        deck = image_parts(_item("Agenda"), make_ref(), [], None, analysis, DECK, "English", "16:9")[-1].text

        assert "jade, dawn" in social and "soft daylight" in social
        assert "Navy background" not in social
        assert "Navy background, Inter headings" in deck

    def test_no_primary_means_no_primary_tag(self, gateway) -> None:
        parts = image_parts(_item(), None, [], None, None, SOCIAL, "English", "3:4")

        assert gateway.images_in(parts) == []
        assert len(parts) == 1


class TestConceptAndPlanParts:
    """Test suite for concept and plan requests."""

    def test_references_are_indexed_from_zero_and_unflagged_skipped(self, gateway, make_ref) -> None:
        refs = [make_ref(), make_ref(material=False, style=False), make_ref(material=False)]

        parts, system = plan_request("Spring tea", refs, SOCIAL, "English", "3:4")

        assert gateway.images_in(parts) == [refs[0].data, refs[2].data]
        assert parts[1].text.startswith("[Reference image #0]")
        assert parts[3].text.startswith("[Reference image #1]")
        assert "STYLE/AESTHETIC" in parts[3].text and "MATERIAL" not in parts[3].text
        _assert_images_tagged(parts)

    def test_plan_system_prefers_index_zero_and_requires_explanation(self, make_ref) -> None:
        _, system = plan_request("Spring tea", [make_ref()], SOCIAL, "French", "3:4")

        assert "best_reference_index to 0" in system
        assert "explain why in analysis.style_analysis" in system
        assert "must be in French" in system
        assert "Cover Hero" in system
        assert "6-9 items" in system

    def test_comic_plan_has_no_catalog(self, make_ref) -> None:
        _, system = plan_request("Photosynthesis", [make_ref()], COMIC, "English", "3:4")

        assert "Role catalog" not in system

    def test_deck_plan_carries_art_direction(self, make_ref) -> None:
        _, system = plan_request("Q3 review", [make_ref()], DECK, "English", "16:9", art_direction="Navy + coral")

        assert "Navy + coral" in system

    def test_concept_analysis_asks_for_art_direction_only_for_decks(self, make_ref) -> None:
        deck_parts, _ = concept_analysis_request("Q3 review", [make_ref()], DECK, "16:9")
        social_parts, _ = concept_analysis_request("Tea", [make_ref()], SOCIAL, "3:4")

        assert "art_direction" in deck_parts[-1].text
        assert "art_direction" not in social_parts[-1].text

    def test_concept_image_parts_end_with_prompt_and_constraints(self, gateway, make_ref) -> None:
        refs = [make_ref(), make_ref()]

        parts = concept_image_parts("Spring tea", refs, SOCIAL, "A bottle at dawn", "3:4")

        assert gateway.images_in(parts) == [refs[0].data, refs[1].data]
        assert "A bottle at dawn" in parts[-1].text
        assert "The subject MUST be about: Spring tea." in parts[-1].text
        assert NEGATIVE_CONSTRAINTS in parts[-1].text

    def test_compose_concept_prompt_appends_roles(self) -> None:
        result = ConceptOutput(analysis="Blend.", roles=["Hero bottle", "Model"], image_prompt="Bottle.")

        prompt, analysis = compose_concept_prompt(result)

        assert prompt.startswith("Bottle.")
        assert "Hero bottle | Model" in prompt
        assert analysis == "Blend.\n\nRoles: Hero bottle / Model"

    def test_compose_concept_prompt_without_roles(self) -> None:
        prompt, analysis = compose_concept_prompt(ConceptOutput(analysis="Blend.", roles=[], image_prompt="Bottle."))

        assert "do not omit characters" in prompt
        assert analysis == "Blend."


class TestEditParts:
    """Test suite for edit requests."""

    def test_edit_order_and_constraints(self, gateway, make_ref) -> None:
        primary, aux = make_ref(), make_ref(material=False)

        parts = edit_parts(b"target", "image/png", "make it dusk", primary, [aux], None, "English", "3:4")

        assert gateway.images_in(parts) == [primary.data, aux.data, b"target"]
        text = parts[-1].text
        assert "make it dusk" in text
        assert "Keep the aspect ratio at 3:4." in text
        assert "Edit locally" in text
        assert "match the primary reference exactly" in text
        _assert_images_tagged(parts)

    def test_edit_without_primary_drops_identity_constraint(self, gateway) -> None:
        parts = edit_parts(b"target", "image/png", "brighter", None, [], None, "English", "16:9")

        assert gateway.images_in(parts) == [b"target"]
        assert "primary reference exactly" not in parts[-1].text
        assert "16:9" in parts[-1].text
