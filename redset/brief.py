"""
Brief parser — reads a brief folder into a BriefData object.

    briefs/my_set/
      brief.md          ← topic + options
      hero.jpg          ← reference images in the root: material + style
      material/
        bottle.png      ← material only (subject / identity)
      style/
        mood.webp       ← style only (lighting / colour / rendering)

SECTIONS IN brief.md:
  ## Topic              → topic (multi-line; falls back to the whole file body)
  ## Template           → social | deck | comic
  ## Language           → output language for on-image text
  ## Aspect Ratio       → e.g. 3:4, 16:9

Command-line flags override the Template / Language / Aspect Ratio sections.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .models import ReferenceImage

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp"}


@dataclass
class BriefImage:
    path: Path
    usable_as_material: bool
    usable_as_style: bool


@dataclass
class BriefData:
    brief_text: str                 # raw content of brief.md
    topic: str
    template: str = ""              # "## Template", empty → CLI default
    language: str = ""              # "## Language"
    aspect_ratio: str = ""          # "## Aspect Ratio"
    images: List[BriefImage] = field(default_factory=list)

    def load_references(self) -> List[ReferenceImage]:
        """Read every brief image into a ReferenceImage, keeping folder order."""
        refs: List[ReferenceImage] = []
        for img in self.images:
            ext = img.path.suffix.lower().lstrip(".")
            mime = f"image/{'jpeg' if ext in ('jpg', 'jpeg') else ext or 'png'}"
            refs.append(ReferenceImage(
                data=img.path.read_bytes(),
                mime_type=mime,
                usable_as_material=img.usable_as_material,
                usable_as_style=img.usable_as_style,
                label=img.path.name,
            ))
        return refs


_HEADING_RE = re.compile(r"^#{1,6}\s")


def _section_lines(text: str, names: Sequence[str]) -> List[str]:
    """Lines under the first `## <name>` heading, up to the next heading."""
    wanted = {n.lower() for n in names}
    lines = text.splitlines()
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("##") and stripped.lstrip("#").strip().lower() in wanted:
            body = []
            for following in lines[i + 1:]:
                if _HEADING_RE.match(following):
                    break
                body.append(following)
            return body
    return []


def _first_line(text: str, *names: str) -> str:
    return next((ln.strip() for ln in _section_lines(text, names) if ln.strip()), "")


def _section_text(text: str, *names: str) -> str:
    return "\n".join(_section_lines(text, names)).strip()


def _body_without_headings(text: str) -> str:
    lines = [line for line in text.splitlines() if not line.lstrip().startswith("#")]
    return "\n".join(lines).strip()


def _scan_images(folder: Path, material: bool, style: bool) -> List[BriefImage]:
    if not folder.is_dir():
        return []
    return [
        BriefImage(path=p, usable_as_material=material, usable_as_style=style)
        for p in sorted(folder.iterdir())
        if p.is_file() and p.suffix.lower() in IMAGE_EXTS
    ]


def parse_brief(brief_dir: str, topic_override: Optional[str] = None) -> BriefData:
    """
    Parse a brief directory into BriefData.

    A folder without brief.md is accepted when `topic_override` is given,
    so a bare folder of images can be used with --topic.
    """
    root = Path(brief_dir)
    if not root.exists():
        raise FileNotFoundError(f"Brief directory not found: {brief_dir}")

    brief_file = root / "brief.md"
    if brief_file.exists():
        brief_text = brief_file.read_text(encoding="utf-8")
    elif topic_override:
        brief_text = ""
    else:
        raise FileNotFoundError(f"brief.md not found in {brief_dir}")

    topic = topic_override or _section_text(brief_text, "Topic", "Subject")
    if not topic:
        topic = _body_without_headings(brief_text)

    # ── Reference images ──────────────────────────────────────────────────────
    # Root images serve both purposes; subfolders narrow them down
    images = (
        _scan_images(root, material=True, style=True)
        + _scan_images(root / "material", material=True, style=False)
        + _scan_images(root / "style", material=False, style=True)
    )

    return BriefData(
        brief_text=brief_text,
        topic=topic,
        template=_first_line(brief_text, "Template", "Type").lower(),
        language=_first_line(brief_text, "Language", "Output Language"),
        aspect_ratio=_first_line(brief_text, "Aspect Ratio", "Ratio"),
        images=images,
    )
