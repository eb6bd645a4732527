"""Tests for the end-to-end audit pipeline."""

from dataclasses import replace

import pytest

from flowaudit.annotations import RectAnnotation
from flowaudit.audit import AuditError, analyze_report, prepare_audit_inputs, run_audit
from flowaudit.categories import CategoryTable
from flowaudit.flow import Flow, Screen, build_graph
from flowaudit.prompts import AnalysisOptions

REPORT = """# WCAG
Accessibility Score: 75
Severity: High

# Risks
```json
{"uxRisks": [{"title": "Hidden CTA", "screenIndex": 1, "boundingBox": [0, 0, 500, 500]}]}
```

```json
{"screenNames": [{"index": 0, "name": "Login"}, {"index": 1, "name": "Checkout"}]}
```
"""


class FakeService:
    """Records calls and returns a canned report."""

    def __init__(self, report: str = REPORT) -> None:
        self.report = report
        self.calls: list[tuple] = []

    def generate(self, flow_name, images, descriptions, options) -> str:
        self.calls.append((flow_name, images, descriptions, options))
        return self.report


@pytest.fixture
def flow(png_data_uri: str) -> Flow:
    """Two-screen flow; the first screen carries a rectangle."""
    screens = (
        Screen(
            image_url=png_data_uri,
            name="a.png",
            order=0,
            description="Sign in",
            annotations=(RectAnnotation(x=5, y=5, width=10, height=10),),
        ),
        Screen(image_url=png_data_uri, name="b.png", order=1),
    )
    return Flow(name="Checkout flow", screens=screens, graph=build_graph(screens))


class TestRunAudit:
    """Tests for run_audit."""

    def test_full_pipeline(self, flow: Flow, png_data_uri: str, table: CategoryTable) -> None:
        service = FakeService()

        result = run_audit(flow, service, table=table)

        ((name, images, descriptions, _options),) = service.calls
        assert name == "Checkout flow"
        assert len(images) == 2
        assert images[0] != png_data_uri
        assert images[0].startswith("data:image/png;base64,")
        assert images[1] == png_data_uri
        assert descriptions == ["Sign in", ""]

        assert result.report == REPORT
        assert result.analysis.metrics.scores["wcag"] == 75
        assert result.analysis.metrics.issues.high == 1
        assert [r.title for r in result.analysis.risks] == ["Hidden CTA"]

        assert [s.name for s in result.flow.screens] == ["Login", "Checkout"]
        assert result.flow.graph is not None
        assert [n.label for n in result.flow.graph.nodes] == ["Login", "Checkout"]
        assert result.flow.report == REPORT
        assert result.flow.last_updated > 0

    def test_input_flow_is_untouched(self, flow: Flow, table: CategoryTable) -> None:
        run_audit(flow, FakeService(), table=table)

        assert [s.name for s in flow.screens] == ["a.png", "b.png"]
        assert flow.report is None

    def test_no_screens(self) -> None:
        service = FakeService()

        with pytest.raises(AuditError, match="at least one screenshot"):
            run_audit(Flow(name="empty"), service)

        assert service.calls == []

    def test_no_sections(self, flow: Flow) -> None:
        service = FakeService()

        with pytest.raises(AuditError, match="at least one analysis type"):
            run_audit(flow, service, AnalysisOptions.only())

        assert service.calls == []

    def test_report_without_names_keeps_names(self, flow: Flow, table: CategoryTable) -> None:
        result = run_audit(flow, FakeService("# WCAG\nAll fine."), table=table)

        assert [s.name for s in result.flow.screens] == ["a.png", "b.png"]
        assert result.analysis.risks == []


class TestHelpers:
    def test_prepare_inputs_in_screen_order(self, flow: Flow) -> None:
        inputs = prepare_audit_inputs(replace(flow, screens=flow.screens[::-1]), timeout=5.0)

        assert [c.composited for c in inputs.composites] == [False, True]
        assert inputs.descriptions == ["", "Sign in"]

    def test_analyze_report_empty(self, table: CategoryTable) -> None:
        analysis = analyze_report("", table)

        assert analysis.risks == []
        assert analysis.screen_names == []
        assert analysis.metrics.issues.total == 0
