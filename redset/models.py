"""
models.py — In-memory data model for one RedSet session.

  ReferenceImage   uploaded or concept-generated image usable as input
  PlanAnalysis     model's reading of the brief, with the resolved anchor id
  ImagePlanItem    one planned output (image / slide / comic page)
  GeneratedImage   the output for one plan item, plus its edit history
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


def new_id(prefix: str = "") -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"


@dataclass
class ReferenceImage:
    data: bytes
    mime_type: str = "image/png"
    usable_as_material: bool = True                 # subject / identity / content source
    usable_as_style: bool = True                    # lighting / colour / rendering source
    id: str = field(default_factory=lambda: new_id("ref-"))
    source: str = "upload"                          # "upload" | "concept"
    label: str = ""                                 # file name, for display only

    @property
    def is_usable(self) -> bool:
        return self.usable_as_material or self.usable_as_style

    def describe(self) -> str:
        flags = []
        if self.usable_as_material:
            flags.append("material")
        if self.usable_as_style:
            flags.append("style")
        return f"{self.label or self.id} ({' + '.join(flags) or 'unused'})"


@dataclass
class PlanAnalysis:
    keywords: List[str] = field(default_factory=list)
    content_direction: str = ""
    style_analysis: str = ""
    best_reference_id: Optional[str] = None         # resolved once at plan time; never an index
    art_direction: str = ""                         # slide decks only


@dataclass
class ImagePlanItem:
    order: int
    role: str
    description: str
    composition: str = ""
    copywriting: str = ""
    layout_suggestion: str = ""
    inheritance_focus: List[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: new_id("item-"))


class ImageStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"


@dataclass
class GeneratedImage:
    plan_item: ImagePlanItem
    image_bytes: Optional[bytes] = None
    mime_type: str = "image/png"
    status: ImageStatus = ImageStatus.PENDING
    edit_history: List[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.plan_item.id

    @property
    def is_completed(self) -> bool:
        return self.status == ImageStatus.COMPLETED and self.image_bytes is not None

    def complete(self, image_bytes: bytes, mime_type: str) -> None:
        """Store freshly generated bytes. History is cleared: this is a new image."""
        self.image_bytes = image_bytes
        self.mime_type = mime_type
        self.status = ImageStatus.COMPLETED
        self.edit_history = []

    def apply_edit(self, instruction: str, image_bytes: bytes, mime_type: str) -> None:
        self.image_bytes = image_bytes
        self.mime_type = mime_type
        self.status = ImageStatus.COMPLETED
        self.edit_history.append(instruction)


# ── Plan ordering ─────────────────────────────────────────────────────────────

def renumber(items: List[ImagePlanItem]) -> List[ImagePlanItem]:
    for idx, item in enumerate(items):
        item.order = idx + 1
    return items


def reorder_plan(items: List[ImagePlanItem], from_index: int, to_index: int) -> List[ImagePlanItem]:
    """
    Return a new list of copied items with one item moved; `order` becomes
    1..N in list order. The caller's items are left untouched.
    """
    n = len(items)
    if not (0 <= from_index < n and 0 <= to_index < n):
        raise IndexError(f"cannot move item {from_index} -> {to_index} in a plan of {n}")
    moved = [dataclasses.replace(it) for it in items]
    item = moved.pop(from_index)
    moved.insert(to_index, item)
    return renumber(moved)


def normalize_plan_items(
    items: List[ImagePlanItem],
    is_cover: Callable[[str], bool],
) -> List[ImagePlanItem]:
    """
    Put a freshly generated plan into canonical shape.

    Items are sorted by the model's `order`, the first cover-role item is
    moved to the front, and `order` is renumbered densely. A plan with no
    cover, or more than one, is kept as-is apart from that and logged.
    """
    ordered = sorted(items, key=lambda it: it.order)
    covers = [i for i, it in enumerate(ordered) if is_cover(it.role)]
    if not covers:
        logger.warning("Plan has no cover item; keeping model order")
    else:
        if len(covers) > 1:
            logger.warning(f"Plan has {len(covers)} cover items; only the first is treated as the cover")
        first = covers[0]
        if first != 0:
            logger.info(f"Moving cover '{ordered[first].role}' from position {first + 1} to the front")
            ordered.insert(0, ordered.pop(first))
    return renumber(ordered)
