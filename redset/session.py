"""
session.py — Snapshot of the context a plan was generated with.

Plan generation writes it; edits read it. The reference list is copied on
write, so later changes to the working reference set (toggles, uploads,
reordering) never leak into edits of images from that plan.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .archetypes import Archetype
from .models import PlanAnalysis, ReferenceImage

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    references: List[ReferenceImage] = field(default_factory=list)
    analysis: Optional[PlanAnalysis] = None
    archetype: Optional[Archetype] = None
    output_language: str = "Simplified Chinese"
    aspect_ratio: str = "3:4"

    @property
    def is_empty(self) -> bool:
        return self.analysis is None and not self.references

    def store(
        self,
        references: Sequence[ReferenceImage],
        analysis: PlanAnalysis,
        archetype: Archetype,
        output_language: str,
        aspect_ratio: str,
    ) -> None:
        self.references = [dataclasses.replace(r) for r in references]
        self.analysis = copy.deepcopy(analysis)
        self.archetype = archetype
        self.output_language = output_language
        self.aspect_ratio = aspect_ratio
        logger.debug(
            f"Session context stored: {len(self.references)} reference(s), "
            f"anchor={analysis.best_reference_id or 'none'}"
        )

    def clear(self) -> None:
        self.references = []
        self.analysis = None
        self.archetype = None
