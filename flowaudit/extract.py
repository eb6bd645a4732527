"""Structured data recovered from a generated audit report.

The report is free-form text written by a model: headings, prose, and a
couple of fenced JSON blocks. Everything here is heuristic and forgiving.
Missing or malformed data yields zeros and empty lists, never an exception.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console

from .categories import CategoryTable

console = Console()

# Fenced code blocks; the tag (if any) is captured separately from the body
FENCE_PATTERN = re.compile(r"```([A-Za-z0-9_+-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)

SEVERITY_LEVELS = ("High", "Medium", "Low")

# Normalized bounding boxes use a fixed 0-1000 scale
BOX_SCALE = 1000.0

# Global category table (lazy loaded)
_category_table: CategoryTable | None = None


def get_category_table() -> CategoryTable:
    """Get or load the category table."""
    global _category_table
    if _category_table is None:
        _category_table = CategoryTable.load()
    return _category_table


def reset_category_table() -> None:
    """Reset category table (useful for testing)."""
    global _category_table
    _category_table = None


@dataclass
class SeverityCounts:
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.high + self.medium + self.low


@dataclass
class ReportMetrics:
    """Scores, section flags and severity counts for one report."""

    scores: dict[str, int] = field(default_factory=dict)
    has_section: dict[str, bool] = field(default_factory=dict)
    issues: SeverityCounts = field(default_factory=SeverityCounts)

    def present_categories(self) -> list[str]:
        return [key for key, present in self.has_section.items() if present and key != "risks"]


@dataclass(frozen=True)
class NormalizedBox:
    """Bounding box on the 0-1000 scale, ``[ymin, xmin, ymax, xmax]``."""

    ymin: float
    xmin: float
    ymax: float
    xmax: float

    @classmethod
    def from_list(cls, value: Any) -> NormalizedBox | None:
        if not isinstance(value, (list, tuple)) or len(value) != 4:
            return None
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
            return None
        return cls(*(float(v) for v in value))

    def to_list(self) -> list[float]:
        return [self.ymin, self.xmin, self.ymax, self.xmax]

    def to_pixels(self, width: float, height: float) -> tuple[float, float, float, float]:
        """Scale back onto an image; returns ``(left, top, right, bottom)``."""
        left = min(self.xmin, self.xmax) * width / BOX_SCALE
        right = max(self.xmin, self.xmax) * width / BOX_SCALE
        top = min(self.ymin, self.ymax) * height / BOX_SCALE
        bottom = max(self.ymin, self.ymax) * height / BOX_SCALE
        return left, top, right, bottom

    def to_percent(self) -> dict[str, float]:
        """CSS-style placement in percent of the image size."""
        return {
            "top": self.ymin / 10,
            "left": self.xmin / 10,
            "height": (self.ymax - self.ymin) / 10,
            "width": (self.xmax - self.xmin) / 10,
        }


@dataclass(frozen=True)
class UXRisk:
    """A risk called out by the model, optionally pinned to a screen region."""

    title: str
    why_it_matters: str = ""
    potential_impact: str = ""
    screen_index: int | None = None
    bounding_box: NormalizedBox | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UXRisk:
        screen_index = data.get("screenIndex")
        if not isinstance(screen_index, int) or isinstance(screen_index, bool):
            screen_index = None
        return cls(
            title=str(data.get("title", "")),
            why_it_matters=str(data.get("whyItMatters", "")),
            potential_impact=str(data.get("potentialImpact", "")),
            screen_index=screen_index,
            bounding_box=NormalizedBox.from_list(data.get("boundingBox")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "whyItMatters": self.why_it_matters,
            "potentialImpact": self.potential_impact,
        }
        if self.screen_index is not None:
            data["screenIndex"] = self.screen_index
        if self.bounding_box is not None:
            data["boundingBox"] = self.bounding_box.to_list()
        return data


@dataclass(frozen=True)
class ScreenName:
    """Model-inferred display name for the screen at ``index``."""

    index: int
    name: str


def _extract_score(text: str, aliases: tuple[str, ...]) -> int:
    """First alias that yields a nonzero score wins."""
    for alias in aliases:
        match = re.search(rf"{alias}[^0-9\n]*Score[^0-9\n]*(\d+)", text, re.IGNORECASE)
        if match:
            score = int(match.group(1))
            if score:
                return score
    return 0


def _count_severity(text: str, level: str) -> int:
    return len(re.findall(rf"Severity[:\s-]*\**{level}", text, re.IGNORECASE))


def get_report_metrics(text: str, table: CategoryTable | None = None) -> ReportMetrics:
    """
    Recover per-category scores, section flags and severity counts.

    A category is flagged present when its heading appears OR its score is
    nonzero, so a category can be present with a score of 0.

    Args:
        text: Report text
        table: Category table (defaults to the loaded one)

    Returns:
        ReportMetrics; all zero/false for empty text
    """
    table = table or get_category_table()
    metrics = ReportMetrics(
        scores={c.key: 0 for c in table.categories},
        has_section={**{c.key: False for c in table.categories}, "risks": False},
    )
    if not text:
        return metrics

    for category in table.categories:
        score = _extract_score(text, category.aliases)
        heading_found = bool(category.heading) and (
            re.search(re.escape(category.heading), text, re.IGNORECASE) is not None
        )
        metrics.scores[category.key] = score
        metrics.has_section[category.key] = heading_found or score > 0

    metrics.has_section["risks"] = (
        re.search(re.escape(table.risks_heading), text, re.IGNORECASE) is not None
    )

    metrics.issues = SeverityCounts(
        high=_count_severity(text, "High"),
        medium=_count_severity(text, "Medium"),
        low=_count_severity(text, "Low"),
    )
    return metrics


def find_json_block(text: str, key: str) -> str | None:
    """
    Body of the first fenced JSON block mentioning ``"key"``.

    Blocks tagged with another language are skipped, as are JSON blocks for
    other keys, so unrelated code fences in the report do not interfere.
    """
    if not text:
        return None
    needle = f'"{key}"'
    for match in FENCE_PATTERN.finditer(text):
        tag, body = match.group(1).lower(), match.group(2).strip()
        if tag not in ("", "json"):
            continue
        if body.startswith("{") and needle in body:
            return body
    return None


def _load_json_list(text: str, key: str) -> list[Any]:
    body = find_json_block(text, key)
    if body is None:
        return []
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, RecursionError) as e:
        console.print(f"[dim]Could not parse {key} block: {e}[/]")
        return []
    if not isinstance(data, dict):
        return []
    items = data.get(key)
    return items if isinstance(items, list) else []


def get_risks_from_report(text: str) -> list[UXRisk]:
    """Risks from the ``uxRisks`` block, or an empty list."""
    items = _load_json_list(text, "uxRisks")
    return [UXRisk.from_dict(item) for item in items if isinstance(item, dict)]


def get_screen_names_from_report(text: str) -> list[ScreenName]:
    """Inferred screen names from the ``screenNames`` block, or an empty list."""
    names = []
    for item in _load_json_list(text, "screenNames"):
        if not isinstance(item, dict):
            continue
        index, name = item.get("index"), item.get("name")
        if isinstance(index, bool) or not isinstance(index, int):
            continue
        if isinstance(name, str) and name:
            names.append(ScreenName(index=index, name=name))
    return names
