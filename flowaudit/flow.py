"""Flows and screens.

Everything here is immutable: adding a screen, renaming one, or drawing on
it produces a new ``Flow``/``Screen`` and a new tuple. Readers holding an
older value (a render in progress, a running audit) keep a consistent view.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .annotations import Annotation, annotations_from_list, annotations_to_list, generate_id
from .image_utils import get_media_type, sniff_media_type, to_data_uri

if TYPE_CHECKING:
    from .extract import ScreenName


@dataclass(frozen=True)
class Screen:
    """One screenshot in a flow, with its annotations."""

    image_url: str  # data:image/...;base64,... or a remote URL
    name: str
    order: int
    description: str = ""
    annotations: tuple[Annotation, ...] = ()
    flow_id: str = ""
    id: str = field(default_factory=generate_id)

    def with_annotations(self, annotations: Iterable[Annotation]) -> Screen:
        return replace(self, annotations=tuple(annotations))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "flowId": self.flow_id,
            "originalImageUrl": self.image_url,
            "name": self.name,
            "description": self.description,
            "order": self.order,
            "annotations": annotations_to_list(self.annotations),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Screen:
        return cls(
            id=str(data.get("id") or generate_id()),
            flow_id=str(data.get("flowId", "")),
            image_url=str(data["originalImageUrl"]),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            order=int(data.get("order", 0)),
            annotations=annotations_from_list(data.get("annotations") or []),
        )


@dataclass(frozen=True)
class GraphNode:
    """Node of the flow diagram; mirrors a screen's name in ``label``."""

    id: str
    label: str
    image_url: str = ""
    description: str = ""
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    label: str = ""


@dataclass(frozen=True)
class FlowGraph:
    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()


@dataclass(frozen=True)
class Flow:
    """An ordered set of screens analysed together."""

    name: str
    screens: tuple[Screen, ...] = ()
    description: str = ""
    report: str | None = None
    graph: FlowGraph | None = None
    last_updated: float = 0.0
    id: str = field(default_factory=generate_id)


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes handed over by a file picker or the clipboard."""

    data: bytes
    filename: str | None = None
    media_type: str | None = None


def ingest_images(flow: Flow, payloads: Iterable[ImagePayload], *, pasted: bool = False) -> Flow:
    """
    Append one screen per payload, in payload order.

    Orders continue from the current screen count with no gaps. If an
    earlier deletion left a higher order in place, numbering continues past
    it so an order is never handed out twice.

    Args:
        flow: Flow to extend
        payloads: Images to add
        pasted: Clipboard images have no file name; they get a generated one

    Returns:
        New Flow with the screens appended
    """
    payloads = list(payloads)
    start_order = max([len(flow.screens), *(s.order + 1 for s in flow.screens)])
    stamp = int(time.time() * 1000)

    new_screens = []
    for i, payload in enumerate(payloads):
        media_type = payload.media_type
        if not media_type:
            media_type = (
                get_media_type(Path(payload.filename))
                if payload.filename
                else sniff_media_type(payload.data)
            )
        if pasted or not payload.filename:
            name = f"Pasted Image {stamp}-{i}"
        else:
            name = payload.filename
        new_screens.append(
            Screen(
                image_url=to_data_uri(payload.data, media_type),
                name=name,
                order=start_order + i,
                flow_id=flow.id,
            )
        )

    return replace(flow, screens=(*flow.screens, *new_screens), last_updated=time.time())


def update_screen(flow: Flow, index: int, **changes: Any) -> Flow:
    """Replace fields of the screen at ``index``."""
    screens = list(flow.screens)
    screens[index] = replace(screens[index], **changes)
    return replace(flow, screens=tuple(screens))


def set_screen_annotations(flow: Flow, index: int, annotations: Iterable[Annotation]) -> Flow:
    return update_screen(flow, index, annotations=tuple(annotations))


def remove_screen(flow: Flow, screen_id: str) -> Flow:
    """Drop a whole screen, and its graph node if there is one."""
    screens = tuple(s for s in flow.screens if s.id != screen_id)
    graph = flow.graph
    if graph is not None:
        graph = FlowGraph(
            nodes=tuple(n for n in graph.nodes if n.id != screen_id),
            edges=tuple(e for e in graph.edges if screen_id not in (e.source, e.target)),
        )
    return replace(flow, screens=screens, graph=graph)


def apply_screen_names(
    screens: tuple[Screen, ...], names: Iterable[ScreenName]
) -> tuple[Screen, ...]:
    """
    Rename screens from model-inferred names.

    A name applies to the screen whose current position equals its
    ``index``; the first name for an index wins. Screens without a match
    keep their name.
    """
    by_index: dict[int, str] = {}
    for entry in names:
        by_index.setdefault(entry.index, entry.name)

    return tuple(
        replace(screen, name=by_index[idx]) if idx in by_index else screen
        for idx, screen in enumerate(screens)
    )


def build_graph(screens: tuple[Screen, ...], spacing: float = 250.0) -> FlowGraph:
    """Initial diagram: one node per screen in a horizontal row."""
    nodes = tuple(
        GraphNode(
            id=screen.id,
            label=screen.name,
            image_url=screen.image_url,
            description=screen.description,
            x=index * spacing,
            y=100.0,
        )
        for index, screen in enumerate(screens)
    )
    return FlowGraph(nodes=nodes)


def sync_graph_labels(graph: FlowGraph, screens: tuple[Screen, ...]) -> FlowGraph:
    """Copy screen names onto the graph nodes that mirror them."""
    names = {screen.id: screen.name for screen in screens}
    nodes = tuple(
        replace(node, label=names[node.id])
        if node.id in names and names[node.id] != node.label
        else node
        for node in graph.nodes
    )
    return replace(graph, nodes=nodes)


def rename_flow_screens(flow: Flow, names: Iterable[ScreenName]) -> Flow:
    """Apply inferred names to a flow and keep its graph labels in step."""
    names = list(names)
    if not names:
        return flow
    screens = apply_screen_names(flow.screens, names)
    graph = sync_graph_labels(flow.graph, screens) if flow.graph is not None else None
    return replace(flow, screens=screens, graph=graph)
