"""
workflow.py — Step-by-step controller for one RedSet session.

    INPUT → CONCEPT → PLAN_REVIEW → GENERATING → EDITOR → EXPORT

The controller owns the working state (topic, references, plan, images)
and drives the Studio. It is UI-agnostic: the CLI in main.py is one
front end, tests are another.
"""

from __future__ import annotations

import dataclasses
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .archetypes import Archetype, ArchetypeProfile, get_profile
from .concept import ConceptResult
from .errors import InvalidStepError, PlanLockedError, WorkflowError
from .export import create_export_zip
from .gemini import sniff_mime
from .models import (
    GeneratedImage,
    ImagePlanItem,
    ImageStatus,
    PlanAnalysis,
    ReferenceImage,
    reorder_plan,
)
from .studio import Studio

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "Simplified Chinese"

ProgressCallback = Callable[[int, GeneratedImage], None]

_EDITABLE_FIELDS = {
    "role", "description", "composition", "copywriting", "layout_suggestion", "inheritance_focus",
}


class Step(str, Enum):
    INPUT = "input"
    CONCEPT = "concept"
    PLAN_REVIEW = "plan_review"
    GENERATING = "generating"
    EDITOR = "editor"
    EXPORT = "export"


_BACK = {
    Step.CONCEPT: Step.INPUT,
    Step.PLAN_REVIEW: Step.CONCEPT,
    Step.GENERATING: Step.PLAN_REVIEW,
    Step.EDITOR: Step.GENERATING,
    Step.EXPORT: Step.EDITOR,
}

# The working reference set is frozen into the session once a plan exists
_REFERENCE_STEPS = (Step.INPUT, Step.CONCEPT)


class Workflow:
    def __init__(
        self,
        studio: Studio,
        archetype=Archetype.SOCIAL,
        output_language: str = DEFAULT_LANGUAGE,
        aspect_ratio: Optional[str] = None,
    ):
        self.studio = studio
        self.profile: ArchetypeProfile = get_profile(archetype)
        self.output_language = output_language
        self._aspect_ratio = aspect_ratio
        self._init_state()

    def _init_state(self) -> None:
        self.step = Step.INPUT
        self.topic = ""
        self.references: List[ReferenceImage] = []
        self.concept: Optional[ConceptResult] = None
        self.analysis: Optional[PlanAnalysis] = None
        self.plan: List[ImagePlanItem] = []
        self.images: List[GeneratedImage] = []
        self.is_processing = False
        self._stop_requested = False

    @property
    def aspect_ratio(self) -> str:
        return self._aspect_ratio or self.profile.default_aspect_ratio

    @property
    def art_direction(self) -> str:
        if self.concept is not None and self.concept.art_direction:
            return self.concept.art_direction
        return ""

    def _require(self, *steps: Step) -> None:
        if self.step not in steps:
            allowed = ", ".join(s.value for s in steps)
            raise InvalidStepError(f"Not allowed in step '{self.step.value}' (needs: {allowed})")

    def _require_idle(self) -> None:
        if self.is_processing:
            raise WorkflowError("Another generation is still running")

    # ── Input ─────────────────────────────────────────────────────────────────

    def set_template(self, archetype) -> None:
        self._require(Step.INPUT)
        self.profile = get_profile(archetype)

    def add_reference(
        self,
        data: bytes,
        mime_type: Optional[str] = None,
        label: str = "",
        usable_as_material: bool = True,
        usable_as_style: bool = True,
    ) -> ReferenceImage:
        self._require(*_REFERENCE_STEPS)
        ref = ReferenceImage(
            data=data,
            mime_type=mime_type or sniff_mime(data),
            usable_as_material=usable_as_material,
            usable_as_style=usable_as_style,
            label=label,
        )
        self.references.append(ref)
        return ref

    def _find_reference(self, ref_id: str) -> ReferenceImage:
        for ref in self.references:
            if ref.id == ref_id:
                return ref
        raise KeyError(f"No reference with id {ref_id!r}")

    def remove_reference(self, ref_id: str) -> None:
        self._require(*_REFERENCE_STEPS)
        self.references.remove(self._find_reference(ref_id))

    def toggle_reference(
        self,
        ref_id: str,
        usable_as_material: Optional[bool] = None,
        usable_as_style: Optional[bool] = None,
    ) -> ReferenceImage:
        self._require(*_REFERENCE_STEPS)
        ref = self._find_reference(ref_id)
        if usable_as_material is not None:
            ref.usable_as_material = usable_as_material
        if usable_as_style is not None:
            ref.usable_as_style = usable_as_style
        return ref

    # ── Concept & plan ────────────────────────────────────────────────────────

    async def generate_concept(self) -> ConceptResult:
        self._require(Step.INPUT, Step.CONCEPT)
        self._require_idle()
        if not self.topic.strip():
            raise WorkflowError("Topic is empty")
        self.is_processing = True
        try:
            self.concept = await self.studio.concept(
                self.topic, self.references, self.profile, self.aspect_ratio
            )
        finally:
            self.is_processing = False
        self.step = Step.CONCEPT
        return self.concept

    async def confirm_concept(self, candidate_id: str) -> List[ImagePlanItem]:
        """Put the chosen candidate first in the reference set, then plan."""
        self._require(Step.CONCEPT)
        if self.concept is None:
            raise WorkflowError("No concept has been generated")
        chosen = next((c for c in self.concept.candidates if c.id == candidate_id), None)
        if chosen is None:
            raise KeyError(f"No concept candidate with id {candidate_id!r}")
        references = [chosen] + [r for r in self.references if r.id != chosen.id]
        await self._plan(references)
        self.references = references
        return self.plan

    async def generate_plan(self) -> List[ImagePlanItem]:
        """Plan straight from the input step, without a concept."""
        self._require(Step.INPUT)
        if not self.topic.strip():
            raise WorkflowError("Topic is empty")
        await self._plan(self.references)
        return self.plan

    async def regenerate_plan(self) -> List[ImagePlanItem]:
        self._require(Step.PLAN_REVIEW)
        await self._plan(self.references)
        return self.plan

    async def _plan(self, references: List[ReferenceImage]) -> None:
        self._require_idle()
        self.is_processing = True
        try:
            result = await self.studio.plan(
                self.topic, references, self.profile, self.output_language,
                self.aspect_ratio, self.art_direction,
            )
        finally:
            self.is_processing = False
        self.analysis = result.analysis
        self.plan = result.items
        self.images = []
        self.step = Step.PLAN_REVIEW

    def _item_started(self, item_id: str) -> bool:
        return any(img.id == item_id and img.status != ImageStatus.PENDING for img in self.images)

    def move_plan_item(self, from_index: int, to_index: int) -> None:
        if any(img.status != ImageStatus.PENDING for img in self.images):
            raise PlanLockedError("Plan order is fixed once image generation has started")
        self.plan = reorder_plan(self.plan, from_index, to_index)
        if self.images:
            # Nothing has started yet, so the pending slots just follow the new order
            self.images = [GeneratedImage(plan_item=item) for item in self.plan]

    def update_plan_item(self, index: int, **changes) -> ImagePlanItem:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit plan item field(s): {', '.join(sorted(unknown))}")
        item = self.plan[index]
        if self._item_started(item.id):
            raise PlanLockedError(f"Item {item.order} is already generated")
        updated = dataclasses.replace(item, **changes)
        self.plan[index] = updated
        if index < len(self.images):
            self.images[index].plan_item = updated
        return updated

    # ── Generation ────────────────────────────────────────────────────────────

    def stop(self) -> None:
        """Stop the batch after the call in flight returns."""
        self._stop_requested = True

    def _previous_for(self, index: int):
        if index <= 0 or index - 1 >= len(self.images):
            return None
        prev = self.images[index - 1]
        if not prev.is_completed:
            return None
        return prev.image_bytes, prev.mime_type

    async def generate_all(self, on_progress: Optional[ProgressCallback] = None) -> List[GeneratedImage]:
        """
        Generate every plan item in order. Item i+1 starts only after item i
        has finished, since it may use item i as its continuity image. A
        failed item stays pending and the loop moves on.
        """
        self._require(Step.PLAN_REVIEW, Step.GENERATING)
        self._require_idle()
        self.step = Step.GENERATING
        self.images = [GeneratedImage(plan_item=item) for item in self.plan]
        self._stop_requested = False
        self.is_processing = True
        try:
            for idx, image in enumerate(self.images):
                if self._stop_requested:
                    logger.info(f"Generation stopped before item {idx + 1}")
                    break
                image.status = ImageStatus.GENERATING
                try:
                    data, mime = await self.studio.image(
                        image.plan_item, self.studio.session.references, self._previous_for(idx),
                        self.analysis, self.profile, self.output_language, self.aspect_ratio,
                    )
                except Exception as exc:
                    logger.error(f"Error generating image {idx + 1}: {exc}")
                    image.status = ImageStatus.PENDING
                else:
                    image.complete(data, mime)
                if on_progress is not None:
                    on_progress(idx, image)
        finally:
            self.is_processing = False
        done = sum(1 for img in self.images if img.is_completed)
        logger.info(f"Batch finished: {done}/{len(self.images)} image(s) completed")
        return self.images

    def _image_at(self, index: int) -> GeneratedImage:
        if not 0 <= index < len(self.images):
            raise IndexError(f"No image {index + 1}; the set has {len(self.images)}")
        return self.images[index]

    async def regenerate_image(self, index: int) -> GeneratedImage:
        """
        Regenerate one image using whatever its neighbour looks like now.
        On failure the image keeps its previous bytes and status and the
        error propagates.
        """
        image = self._image_at(index)
        if image.status == ImageStatus.GENERATING:
            raise WorkflowError(f"Image {index + 1} is already being generated")
        prior = (image.status, image.image_bytes, image.mime_type, list(image.edit_history))
        image.status = ImageStatus.GENERATING
        try:
            data, mime = await self.studio.image(
                image.plan_item, self.studio.session.references, self._previous_for(index),
                self.analysis, self.profile, self.output_language, self.aspect_ratio,
            )
        except Exception:
            image.status, image.image_bytes, image.mime_type, image.edit_history = prior
            raise
        image.complete(data, mime)
        return image

    async def edit_image(self, index: int, instruction: str) -> GeneratedImage:
        image = self._image_at(index)
        if not image.is_completed:
            raise WorkflowError(f"Image {index + 1} has no completed output to edit")
        if not instruction.strip():
            raise WorkflowError("Edit instruction is empty")
        prior = (image.image_bytes, image.mime_type, list(image.edit_history))
        image.status = ImageStatus.GENERATING
        try:
            data, mime = await self.studio.edit(image.image_bytes, image.mime_type, instruction)
        except Exception:
            image.image_bytes, image.mime_type, image.edit_history = prior
            image.status = ImageStatus.COMPLETED
            raise
        image.apply_edit(instruction, data, mime)
        return image

    # ── Navigation & export ───────────────────────────────────────────────────

    def open_editor(self) -> None:
        self._require(Step.GENERATING)
        self.step = Step.EDITOR

    def finish(self) -> None:
        self._require(Step.EDITOR)
        self.step = Step.EXPORT

    def export(self, output_dir: Path) -> Path:
        completed = [img for img in self.images if img.is_completed]
        if not completed:
            raise WorkflowError("Nothing to export: no completed images")
        return create_export_zip(completed, output_dir)

    def back(self) -> Step:
        if self.is_processing:
            return self.step
        self.step = _BACK.get(self.step, self.step)
        return self.step

    def reset(self) -> None:
        self._init_state()
        self.studio.reset()
