"""Console and JSON output for audit results."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .audit import ReportAnalysis
from .categories import CategoryTable
from .flow import Flow

console = Console()


def _score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def print_report(analysis: ReportAnalysis, title: str, table: CategoryTable | None = None) -> None:
    """Print a rich console summary of an analysed report."""
    table = table or CategoryTable.defaults()
    metrics = analysis.metrics

    console.print()
    console.print(
        Panel(
            f"[bold]UX Audit Report[/]\n{title}",
            subtitle=f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        )
    )
    console.print()

    scores = Table(title="Scores")
    scores.add_column("Category", style="cyan")
    scores.add_column("Score", justify="right")
    for category in table.categories:
        if not metrics.has_section.get(category.key):
            continue
        score = metrics.scores.get(category.key, 0)
        shown = f"[{_score_style(score)}]{score}[/]" if score else "[dim]n/a[/]"
        scores.add_row(category.label, shown)
    console.print(scores)
    console.print()

    issues = Table(title="Detected Issues by Severity")
    issues.add_column("Severity", style="cyan")
    issues.add_column("Count", justify="right")
    issues.add_row("[red]High[/]", str(metrics.issues.high))
    issues.add_row("[yellow]Medium[/]", str(metrics.issues.medium))
    issues.add_row("[blue]Low[/]", str(metrics.issues.low))
    issues.add_row("[bold]Total[/]", f"[bold]{metrics.issues.total}[/]")
    console.print(issues)
    console.print()

    for i, risk in enumerate(analysis.risks, 1):
        location = f"screen {risk.screen_index + 1}" if risk.screen_index is not None else "flow"
        console.print(
            Panel(
                f"[bold]Why it matters:[/] {risk.why_it_matters}\n\n"
                f"[bold]Potential impact:[/] {risk.potential_impact}",
                title=f"[red]Risk #{i}[/] {risk.title} [dim]({location})[/]",
                border_style="red",
            )
        )
        console.print()

    if analysis.screen_names:
        names = ", ".join(f"{n.index + 1}: {n.name}" for n in analysis.screen_names)
        console.print(f"[dim]Inferred screen names: {names}[/]")


def save_json_report(
    analysis: ReportAnalysis, report: str, output_path: Path, flow: Flow | None = None
) -> Path:
    """Save extracted results (and the raw report) as JSON."""
    data: dict[str, Any] = {
        "generated_at": datetime.now().isoformat(),
        "scores": analysis.metrics.scores,
        "has_section": analysis.metrics.has_section,
        "issues": {
            "high": analysis.metrics.issues.high,
            "medium": analysis.metrics.issues.medium,
            "low": analysis.metrics.issues.low,
        },
        "uxRisks": [risk.to_dict() for risk in analysis.risks],
        "screenNames": [{"index": n.index, "name": n.name} for n in analysis.screen_names],
        "report": report,
    }
    if flow is not None:
        data["flow"] = {
            "id": flow.id,
            "name": flow.name,
            "screens": [
                {"id": s.id, "name": s.name, "order": s.order, "description": s.description}
                for s in flow.screens
            ],
        }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    console.print(f"[green]Report saved:[/] {output_path}")
    return output_path
