"""Audit pipeline: composite screens, request the report, extract results."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace

from rich.console import Console

from .categories import CategoryTable
from .compositor import CompositeResult, composite_all
from .config import FlowAuditConfig
from .extract import (
    ReportMetrics,
    ScreenName,
    UXRisk,
    get_report_metrics,
    get_risks_from_report,
    get_screen_names_from_report,
)
from .flow import Flow, rename_flow_screens
from .prompts import AnalysisOptions
from .service import ReportService

console = Console()


class AuditError(Exception):
    """Raised when an audit cannot be started."""


@dataclass
class AuditInputs:
    """What gets sent to the report service, one entry per screen."""

    composites: list[CompositeResult]
    descriptions: list[str]

    @property
    def images(self) -> list[str]:
        return [c.data_uri for c in self.composites]


@dataclass
class ReportAnalysis:
    """Everything recovered from one report text."""

    metrics: ReportMetrics
    risks: list[UXRisk] = field(default_factory=list)
    screen_names: list[ScreenName] = field(default_factory=list)


@dataclass
class AuditResult:
    flow: Flow
    report: str
    analysis: ReportAnalysis


def prepare_audit_inputs(flow: Flow, timeout: float) -> AuditInputs:
    """Composite every screen and collect descriptions, in screen order."""
    composites = composite_all(flow.screens, timeout=timeout)
    descriptions = [screen.description or "" for screen in flow.screens]
    return AuditInputs(composites=composites, descriptions=descriptions)


def analyze_report(report: str, table: CategoryTable | None = None) -> ReportAnalysis:
    """Run all extractors over ``report``; each scans the full text on its own."""
    return ReportAnalysis(
        metrics=get_report_metrics(report, table),
        risks=get_risks_from_report(report),
        screen_names=get_screen_names_from_report(report),
    )


def run_audit(
    flow: Flow,
    service: ReportService,
    options: AnalysisOptions | None = None,
    config: FlowAuditConfig | None = None,
    table: CategoryTable | None = None,
) -> AuditResult:
    """
    Audit a flow end to end.

    Screen names inferred by the model are applied by position in the flow
    as it was sent, and graph labels follow.

    Args:
        flow: Flow to audit
        service: Report generation service
        options: Sections to request (all by default)
        config: Configuration (compositing timeout)
        table: Category table for metrics

    Returns:
        AuditResult with the updated flow, raw report and extracted data

    Raises:
        AuditError: If the flow has no screens or no section is selected
    """
    options = options or AnalysisOptions()
    config = config or FlowAuditConfig()

    if not flow.screens:
        raise AuditError("Please add at least one screenshot.")
    if not options.any_enabled():
        raise AuditError("Please select at least one analysis type.")

    console.print(f"[blue]Preparing {len(flow.screens)} screens for '{flow.name}'...[/]")
    inputs = prepare_audit_inputs(flow, config.compose_timeout)

    console.print("[blue]Requesting audit report...[/]")
    report = service.generate(flow.name, inputs.images, inputs.descriptions, options)

    analysis = analyze_report(report, table)
    updated = rename_flow_screens(flow, analysis.screen_names)
    updated = replace(updated, report=report, last_updated=time.time())

    console.print(
        f"[green]Audit complete:[/] {len(analysis.risks)} risks, "
        f"{analysis.metrics.issues.total} severity markers"
    )
    return AuditResult(flow=updated, report=report, analysis=analysis)
