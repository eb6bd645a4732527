"""CLI interface for flowaudit."""

import base64
import json
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from PIL import Image
from rich.console import Console

from . import __version__
from .annotations import annotations_from_list
from .api_utils import APIError
from .audit import AuditError, analyze_report, run_audit
from .categories import CategoryTable, save_default_categories
from .compositor import composite
from .config import FlowAuditConfig
from .flow import (
    Flow,
    ImagePayload,
    build_graph,
    ingest_images,
    set_screen_annotations,
    update_screen,
)
from .image_utils import get_media_type
from .prompts import AnalysisOptions
from .render import render_risk_overlay
from .report import print_report, save_json_report
from .service import ResponsesReportService

console = Console()
app = typer.Typer(
    name="flowaudit",
    help="UX flow audits - annotate screenshots, generate a report, extract scores and risks.",
    add_completion=False,
)


def _load_annotations(path: Path) -> dict[str, list[dict]]:
    """Annotation file: either a list (single image) or {image filename: list}."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        return {"*": data}
    if isinstance(data, dict):
        return {str(k): v for k, v in data.items() if isinstance(v, list)}
    raise typer.BadParameter(f"Unsupported annotations file format: {path}")


@app.command("composite")
def composite_command(
    image: Annotated[
        Path,
        typer.Argument(help="Screenshot to annotate", exists=True, dir_okay=False),
    ],
    annotations: Annotated[
        Path,
        typer.Option(
            "--annotations",
            "-a",
            help="JSON file with annotations in image pixel coordinates",
            exists=True,
            dir_okay=False,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Where to write the composited image"),
    ] = None,
) -> None:
    """Burn annotations into a screenshot, as sent for analysis."""
    cfg = FlowAuditConfig.load()
    mapping = _load_annotations(annotations)
    items = mapping.get(image.name, mapping.get("*", []))

    try:
        anns = annotations_from_list(items)
    except ValueError as e:
        console.print(f"[red]Invalid annotations:[/] {e}")
        raise typer.Exit(1) from e

    media_type = get_media_type(image)
    flow = Flow(name=image.stem)
    flow = ingest_images(
        flow,
        [ImagePayload(data=image.read_bytes(), filename=image.name, media_type=media_type)],
    )
    flow = set_screen_annotations(flow, 0, anns)

    result = composite(flow.screens[0], timeout=cfg.compose_timeout)
    suffix = ".png" if result.composited else image.suffix
    output = output or image.with_name(f"{image.stem}_annotated{suffix}")
    output.write_bytes(base64.b64decode(result.data))

    if result.composited:
        console.print(f"[green]Composited {len(anns)} annotations:[/] {output}")
    else:
        console.print(f"[yellow]Nothing burned in, original copied:[/] {output}")


@app.command()
def inspect(
    report: Annotated[
        Path,
        typer.Argument(help="Report text (Markdown) to inspect", exists=True, dir_okay=False),
    ],
    json_output: Annotated[
        Path | None,
        typer.Option("--json", help="Save extracted data as JSON"),
    ] = None,
    categories: Annotated[
        Path | None,
        typer.Option("--categories", help="Custom categories YAML file"),
    ] = None,
    risk_image: Annotated[
        Path | None,
        typer.Option("--risk-image", help="Screenshot to draw the report's risk boxes on"),
    ] = None,
    screen: Annotated[
        int,
        typer.Option("--screen", help="Screen number (1-based) the risk image belongs to"),
    ] = 1,
) -> None:
    """Extract scores, severity counts, risks and screen names from a report."""
    cfg = FlowAuditConfig.load()
    if categories is None and cfg.categories_file:
        categories = Path(cfg.categories_file)
    table = CategoryTable.load(categories)

    text = report.read_text(encoding="utf-8")
    analysis = analyze_report(text, table)
    print_report(analysis, report.name, table)

    if json_output:
        save_json_report(analysis, text, json_output)

    if risk_image:
        with Image.open(risk_image) as img:
            overlay = render_risk_overlay(img, analysis.risks, screen_index=screen - 1)
        out = risk_image.with_name(f"{risk_image.stem}_risks.png")
        overlay.save(out)
        console.print(f"[green]Risk overlay saved:[/] {out}")


@app.command()
def audit(
    images: Annotated[
        list[Path],
        typer.Argument(help="Screenshots in flow order", exists=True, dir_okay=False),
    ],
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Flow name"),
    ] = "Untitled flow",
    description: Annotated[
        list[str] | None,
        typer.Option("--description", "-d", help="Screen description (repeat, in order)"),
    ] = None,
    annotations: Annotated[
        Path | None,
        typer.Option(
            "--annotations",
            "-a",
            help="JSON file mapping image file names to annotation lists",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    only: Annotated[
        str | None,
        typer.Option(
            "--only",
            help=(
                "Comma-separated sections: "
                "heuristics,wcag,efficiency,risks,conversion,ia,hierarchy"
            ),
        ),
    ] = None,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output directory for the report"),
    ] = Path("."),
) -> None:
    """Composite screenshots, run the audit and save the report."""
    cfg = FlowAuditConfig.load()
    table = CategoryTable.load(Path(cfg.categories_file) if cfg.categories_file else None)

    try:
        options = (
            AnalysisOptions.only(*[s.strip() for s in only.split(",") if s.strip()])
            if only
            else AnalysisOptions()
        )
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1) from e

    flow = ingest_images(
        Flow(name=name),
        [
            ImagePayload(data=p.read_bytes(), filename=p.name, media_type=get_media_type(p))
            for p in images
        ],
    )

    descriptions = description or []
    mapping = _load_annotations(annotations) if annotations else {}
    for idx, path in enumerate(images):
        if idx < len(descriptions):
            flow = update_screen(flow, idx, description=descriptions[idx])
        items = mapping.get(path.name)
        if items is None and len(images) == 1:
            items = mapping.get("*")
        if items is not None:
            try:
                flow = set_screen_annotations(flow, idx, annotations_from_list(items))
            except ValueError as e:
                console.print(f"[yellow]Skipping annotations for {path.name}: {e}[/]")

    flow = replace(flow, graph=build_graph(flow.screens))

    try:
        result = run_audit(flow, ResponsesReportService(cfg), options, cfg, table)
    except (AuditError, APIError) as e:
        console.print(f"[red]Audit failed:[/] {e}")
        raise typer.Exit(1) from e

    output.mkdir(parents=True, exist_ok=True)
    report_path = output / "audit_report.md"
    report_path.write_text(result.report, encoding="utf-8")
    console.print(f"[green]Report saved:[/] {report_path}")
    save_json_report(result.analysis, result.report, output / "audit_report.json", result.flow)

    print_report(result.analysis, name, table)
    for screen in result.flow.screens:
        console.print(f"  [dim]{screen.order + 1}.[/] {screen.name}")


@app.command()
def config(
    show: Annotated[
        bool,
        typer.Option("--show", help="Show current configuration"),
    ] = False,
    init: Annotated[
        bool,
        typer.Option("--init", help="Create default config file"),
    ] = False,
    init_categories: Annotated[
        bool,
        typer.Option(
            "--init-categories",
            help="Create categories.yaml in current directory for customization",
        ),
    ] = False,
    set_key: Annotated[
        str | None,
        typer.Option("--set-key", help="Set API key in config"),
    ] = None,
) -> None:
    """
    Manage flowaudit configuration.

    Config is stored in ~/.config/flowaudit/config.env
    """
    cfg = FlowAuditConfig.load()

    if set_key:
        cfg.api_key = set_key
        path = cfg.save_default_config()
        console.print(f"[green]API key saved to:[/] {path}")
        return

    if init:
        path = cfg.save_default_config()
        console.print(f"[green]Config created:[/] {path}")
        console.print("[dim]Edit this file to customize settings[/]")
        return

    if init_categories:
        categories_path = Path.cwd() / "categories.yaml"
        if categories_path.exists():
            console.print(f"[yellow]Categories file already exists:[/] {categories_path}")
            console.print("[dim]Delete it first if you want to reset to defaults[/]")
            return
        save_default_categories(categories_path)
        console.print("[dim]Edit this file to customize report categories[/]")
        return

    if show:
        console.print("[bold]Current Configuration:[/]\n")
        console.print(f"API Base: {cfg.api_base}")
        console.print(
            f"API Key: {'*' * 20 + cfg.api_key[-8:] if cfg.api_key else '[red]NOT SET[/]'}"
        )
        console.print(f"Report Endpoint: {cfg.report_endpoint}")
        console.print(f"Model: {cfg.model}")
        console.print(f"Compose Timeout: {cfg.compose_timeout}s")
        console.print(f"Categories File: {cfg.categories_file or '(embedded defaults)'}")
        return

    console.print(
        "Use --show to view config, --init to create, --init-categories for custom categories, "
        "or --set-key to set API key"
    )


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]flowaudit v{__version__}[/]")


if __name__ == "__main__":
    app()
