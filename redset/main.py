"""
RedSet — Main Pipeline

Usage:
  python -m redset.main --brief briefs/example
  python -m redset.main --brief briefs/example --template comic --language English
  python -m redset.main --brief briefs/example --auto            # no prompts, first concept
  python -m redset.main --brief refs/ --topic "Spring tea launch" --skip-concept
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.rule import Rule
from rich.table import Table

from .archetypes import Archetype
from .brief import parse_brief
from .config import ASPECT_RATIOS, Settings
from .errors import RedsetError
from .export import export_filename
from .log_utils import setup_logging
from .models import GeneratedImage, ImagePlanItem
from .studio import Studio
from .workflow import DEFAULT_LANGUAGE, Workflow

console = Console()

_EXT = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


# ── CLI ───────────────────────────────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="RedSet — concept → plan → image set, powered by Gemini"
    )
    parser.add_argument(
        "--brief",
        required=True,
        help="Path to brief directory (brief.md + reference images)",
    )
    parser.add_argument(
        "--topic",
        default=None,
        help="Topic text; overrides the brief's ## Topic section",
    )
    parser.add_argument(
        "--template",
        choices=[a.value for a in Archetype],
        default=None,
        help="social = post set; deck = slides; comic = science comic (default: brief, then social)",
    )
    parser.add_argument(
        "--language",
        default=None,
        help=f"Language for on-image text (default: brief, then {DEFAULT_LANGUAGE})",
    )
    parser.add_argument(
        "--aspect-ratio",
        choices=ASPECT_RATIOS,
        default=None,
        help="Output aspect ratio (default: brief, then the template's own)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output directory (default: <REDSET_OUTPUT_DIR>/<timestamp>)",
    )
    parser.add_argument(
        "--auto",
        action="store_true",
        help="Run without prompts: first concept, plan as returned, no edits",
    )
    parser.add_argument(
        "--skip-concept",
        action="store_true",
        help="Plan directly from the uploaded references",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


# ── Output helpers ────────────────────────────────────────────────────────────

def _save_image(data: bytes, mime: str, path_stem: Path) -> Path:
    path = path_stem.with_suffix("." + _EXT.get(mime, "png"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def save_plan_json(wf: Workflow, output_dir: Path) -> Path:
    """Save the analysis and plan for later reference."""
    payload = {
        "topic": wf.topic,
        "template": wf.profile.archetype.value,
        "language": wf.output_language,
        "aspect_ratio": wf.aspect_ratio,
        "analysis": asdict(wf.analysis) if wf.analysis else None,
        "items": [asdict(item) for item in wf.plan],
    }
    json_path = output_dir / "plan.json"
    json_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return json_path


def save_images(images: List[GeneratedImage], output_dir: Path) -> None:
    for img in images:
        if img.is_completed:
            stem = Path(export_filename(img.plan_item.order, img.plan_item.role)).stem
            _save_image(img.image_bytes, img.mime_type, output_dir / "images" / stem)


def display_plan(wf: Workflow) -> None:
    if wf.analysis:
        a = wf.analysis
        console.print(Panel(
            f"[bold]Keywords:[/bold] {', '.join(a.keywords)}\n\n"
            f"[bold]Content:[/bold] {a.content_direction}\n\n"
            f"[bold]Style:[/bold] {a.style_analysis}\n\n"
            f"[dim]Anchor reference: {a.best_reference_id or 'none'}[/dim]",
            title="Plan Analysis",
            border_style="cyan",
        ))
    table = Table(show_lines=True)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Role", style="cyan")
    table.add_column("Description")
    table.add_column("Copy", style="green")
    for item in wf.plan:
        table.add_row(str(item.order), item.role, item.description, item.copywriting)
    console.print(table)


def _status_line(idx: int, img: GeneratedImage) -> str:
    mark = "[green]✓[/green]" if img.is_completed else "[yellow]✗[/yellow]"
    return f"  {mark} {idx + 1:02d} {img.plan_item.role}"


# ── Human-in-the-loop ─────────────────────────────────────────────────────────

async def concept_loop(wf: Workflow, output_dir: Path, auto: bool) -> None:
    """Generate concepts until the user picks one, then plan with it."""
    while True:
        t0 = time.time()
        console.print("\n[bold cyan]→ Generating concept candidates...[/bold cyan]")
        concept = await wf.generate_concept()
        console.print(f"  [green]✓ {len(concept.candidates)} candidate(s) in {time.time() - t0:.1f}s[/green]")
        console.print(Panel(concept.analysis_text, title="Concept", border_style="magenta"))
        if concept.art_direction:
            console.print(Panel(concept.art_direction, title="Art Direction", border_style="magenta"))
        for n, cand in enumerate(concept.candidates, 1):
            path = _save_image(cand.data, cand.mime_type, output_dir / "concepts" / f"concept_{n}")
            console.print(f"    {n}: {path}")

        if auto:
            choice = "1"
        else:
            choices = [str(n) for n in range(1, len(concept.candidates) + 1)] + ["r"]
            choice = Prompt.ask("Pick a concept (r = regenerate)", choices=choices, default="1")
        if choice == "r":
            continue

        chosen = concept.candidates[int(choice) - 1]
        console.print(f"\n[bold cyan]→ Planning with concept {choice} as the anchor...[/bold cyan]")
        await wf.confirm_concept(chosen.id)
        return


_EDIT_FIELDS = ("role", "description", "composition", "copywriting", "layout_suggestion")


async def plan_review_loop(wf: Workflow) -> bool:
    """
    Review the plan. Returns False if the user quit.

    Commands:
      go                 start generating
      move <i> <j>       move item i to position j (1-based)
      edit <i> <field>   rewrite one field of item i
      regen              regenerate the whole plan
      quit
    """
    while True:
        display_plan(wf)
        console.print(
            "  [dim]Commands: go | move <i> <j> | edit <i> <field> | regen | quit\n"
            f"  Fields: {', '.join(_EDIT_FIELDS)}[/dim]"
        )
        cmd = Prompt.ask("📋 Plan", default="go").strip().split()
        if not cmd:
            continue
        op = cmd[0].lower()

        if op == "go":
            return True
        if op in ("q", "quit", "exit"):
            return False

        try:
            if op == "move" and len(cmd) == 3:
                wf.move_plan_item(int(cmd[1]) - 1, int(cmd[2]) - 1)
            elif op == "edit" and len(cmd) == 3 and cmd[2] in _EDIT_FIELDS:
                item: ImagePlanItem = wf.plan[int(cmd[1]) - 1]
                value = Prompt.ask(f"New {cmd[2]}", default=getattr(item, cmd[2]))
                wf.update_plan_item(int(cmd[1]) - 1, **{cmd[2]: value})
            elif op == "regen":
                console.print("[bold cyan]→ Regenerating plan...[/bold cyan]")
                await wf.regenerate_plan()
            else:
                console.print("  [yellow]⚠ Unknown command[/yellow]")
        except (ValueError, IndexError) as e:
            console.print(f"  [yellow]⚠ {e}[/yellow]")
        except RedsetError as e:
            console.print(f"  [red]✗ {e}[/red]")


async def editor_loop(wf: Workflow, output_dir: Path) -> None:
    """
    Commands:
      edit <n> <instruction>   apply a free-text edit to image n
      regen <n>                regenerate image n from its plan item
      done
    """
    while True:
        for idx, img in enumerate(wf.images):
            history = f" [dim]({len(img.edit_history)} edit(s))[/dim]" if img.edit_history else ""
            console.print(_status_line(idx, img) + history)
        raw = Prompt.ask("🖌  Editor (edit <n> <instruction> | regen <n> | done)", default="done").strip()
        parts = raw.split(maxsplit=2)
        if not parts or parts[0].lower() == "done":
            return
        try:
            index = int(parts[1]) - 1
            if parts[0].lower() == "edit" and len(parts) == 3:
                console.print(f"[bold cyan]→ Editing image {index + 1}...[/bold cyan]")
                await wf.edit_image(index, parts[2])
            elif parts[0].lower() == "regen":
                console.print(f"[bold cyan]→ Regenerating image {index + 1}...[/bold cyan]")
                await wf.regenerate_image(index)
            else:
                console.print("  [yellow]⚠ Unknown command[/yellow]")
                continue
            console.print("  [green]✓ Done[/green]")
            save_images(wf.images, output_dir)
        except (ValueError, IndexError) as e:
            console.print(f"  [yellow]⚠ {e}[/yellow]")
        except RedsetError as e:
            console.print(f"  [red]✗ {e} — image kept as it was[/red]")


# ── Main ──────────────────────────────────────────────────────────────────────

async def run(args: argparse.Namespace, settings: Settings) -> int:
    pipeline_start = time.time()

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(args.output) if args.output else settings.output_dir / timestamp
    output_dir.mkdir(parents=True, exist_ok=True)

    # ── Step 1: Parse brief ──────────────────────────────────────────────────
    console.print("\n[bold]Step 1/5 — Parsing brief[/bold]")
    brief = parse_brief(args.brief, topic_override=args.topic)
    template = args.template or brief.template or Archetype.SOCIAL.value
    language = args.language or brief.language or DEFAULT_LANGUAGE
    aspect_ratio = args.aspect_ratio or brief.aspect_ratio or None

    wf = Workflow(Studio.from_settings(settings), template, language, aspect_ratio)
    wf.topic = brief.topic
    for ref in brief.load_references():
        wf.add_reference(ref.data, ref.mime_type, ref.label, ref.usable_as_material, ref.usable_as_style)
    console.print(
        f"  [green]✓[/green] {wf.profile.label} | {language} | {wf.aspect_ratio} | "
        f"{len(wf.references)} reference image(s)"
    )
    for ref in wf.references:
        console.print(f"    [dim]{ref.describe()}[/dim]")
    console.print(f"  Output: [bold]{output_dir}[/bold]")

    # ── Step 2: Concept ──────────────────────────────────────────────────────
    console.print("\n[bold]Step 2/5 — Concept & plan[/bold]")
    if args.skip_concept:
        console.print("[bold cyan]→ Planning from references...[/bold cyan]")
        await wf.generate_plan()
    else:
        await concept_loop(wf, output_dir, args.auto)
    console.print(f"  [green]✓ Plan with {len(wf.plan)} item(s)[/green]")

    # ── Step 3: Plan review ──────────────────────────────────────────────────
    if args.auto:
        display_plan(wf)
    elif not await plan_review_loop(wf):
        console.print("[dim]Exiting without generating.[/dim]")
        return 0
    save_plan_json(wf, output_dir)

    # ── Step 4: Generate ─────────────────────────────────────────────────────
    console.print(f"\n[bold]Step 3/5 — Generating {len(wf.plan)} image(s) (Gemini)[/bold]")
    t0 = time.time()
    await wf.generate_all(on_progress=lambda idx, img: console.print(_status_line(idx, img)))
    done = sum(1 for img in wf.images if img.is_completed)
    console.print(f"  [green]✓ {done}/{len(wf.images)} image(s) — {time.time() - t0:.1f}s[/green]")
    save_images(wf.images, output_dir)

    # ── Step 5: Edit ─────────────────────────────────────────────────────────
    wf.open_editor()
    if not args.auto:
        console.print("\n[bold]Step 4/5 — Editor[/bold]")
        await editor_loop(wf, output_dir)

    # ── Step 6: Export ───────────────────────────────────────────────────────
    wf.finish()
    console.print("\n[bold]Step 5/5 — Export[/bold]")
    done = sum(1 for img in wf.images if img.is_completed)
    if not done:
        console.print("  [red]✗ No images were generated; nothing to export.[/red]")
        return 1
    zip_path = wf.export(output_dir)

    console.print(
        Panel(
            f"{done} image(s) in [bold]{time.time() - pipeline_start:.0f}s[/bold]\n"
            f"ZIP: [bold]{zip_path}[/bold]",
            title="[bold green]RedSet Complete[/bold green]",
            border_style="green",
        )
    )
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)
    settings = _check_env()

    console.print(Rule("[bold red]RedSet[/bold red]"))
    try:
        code = asyncio.run(run(args, settings))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        code = 1
    except RedsetError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        code = 1
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")
        code = 130
    sys.exit(code)


def _check_env() -> Settings:
    """Load settings and check required environment variables."""
    settings = Settings.from_env()
    if not settings.api_key:
        console.print("[bold red]Error:[/bold red] GEMINI_API_KEY not set.")
        console.print("Create a .env file from .env.example and add your keys.")
        sys.exit(1)
    return settings


if __name__ == "__main__":
    main()
