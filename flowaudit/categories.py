"""Report category table loading and management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

import yaml
from rich.console import Console

console = Console()

# Path to embedded default categories
DEFAULT_CATEGORIES_PATH = Path(__file__).parent / "default_categories.yaml"


@dataclass(frozen=True)
class Category:
    """One scored analysis category."""

    key: str
    label: str
    aliases: tuple[str, ...]
    heading: str


@dataclass
class CategoryTable:
    """Scored categories and the risk heading used by the extractor."""

    categories: list[Category] = field(default_factory=list)
    risks_heading: str = "# Risks"

    # Search paths for categories file (in order of priority)
    SEARCH_PATHS: ClassVar[list[str]] = [
        "categories.yaml",
        "flowaudit_categories.yaml",
        ".flowaudit/categories.yaml",
    ]

    @classmethod
    def load(cls, categories_file: Path | None = None) -> CategoryTable:
        """
        Load the category table.

        Priority:
        1. Explicit categories_file parameter
        2. categories.yaml in current directory
        3. Embedded defaults

        Args:
            categories_file: Optional explicit path to categories file

        Returns:
            CategoryTable with loaded categories
        """
        if categories_file:
            if categories_file.exists():
                return cls._load_from_file(categories_file)
            console.print(f"[yellow]Categories file not found: {categories_file}[/]")
            console.print("[dim]Falling back to defaults[/]")

        for search_path in cls.SEARCH_PATHS:
            path = Path.cwd() / search_path
            if path.exists():
                console.print(f"[dim]Using categories from: {path}[/]")
                return cls._load_from_file(path)

        return cls.defaults()

    @classmethod
    def defaults(cls) -> CategoryTable:
        """Load embedded default categories."""
        return cls._load_from_file(DEFAULT_CATEGORIES_PATH)

    @classmethod
    def _load_from_file(cls, path: Path) -> CategoryTable:
        """Load categories from YAML file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)

            if not isinstance(data, dict) or not isinstance(data.get("categories"), list):
                console.print(f"[yellow]Invalid categories file format: {path}[/]")
                return cls._fallback(path)

            return cls.from_dict(data)

        except yaml.YAMLError as e:
            console.print(f"[yellow]Error parsing categories file: {e}[/]")
            return cls._fallback(path)
        except OSError as e:
            console.print(f"[yellow]Error reading categories file: {e}[/]")
            return cls._fallback(path)

    @classmethod
    def _fallback(cls, path: Path) -> CategoryTable:
        if path == DEFAULT_CATEGORIES_PATH:
            return cls()
        return cls.defaults()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CategoryTable:
        categories = []
        for item in data.get("categories", []):
            if not isinstance(item, dict) or not item.get("key"):
                continue
            key = str(item["key"])
            categories.append(
                Category(
                    key=key,
                    label=str(item.get("label", key)),
                    aliases=tuple(str(a) for a in item.get("aliases", [])),
                    heading=str(item.get("heading", "")),
                )
            )
        return cls(
            categories=categories,
            risks_heading=str(data.get("risks_heading", "# Risks")),
        )

    @property
    def keys(self) -> list[str]:
        return [c.key for c in self.categories]

    def get(self, key: str) -> Category | None:
        for category in self.categories:
            if category.key == key:
                return category
        return None

    def summary(self) -> str:
        """Return a summary of loaded categories."""
        return f"Categories: {', '.join(self.keys)}"


def save_default_categories(path: Path) -> None:
    """
    Save default categories to a file for user customization.

    Args:
        path: Path to save categories file
    """
    import shutil

    shutil.copy(DEFAULT_CATEGORIES_PATH, path)
    console.print(f"[green]Default categories saved to: {path}[/]")
