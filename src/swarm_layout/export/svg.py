"""
SVG export for topology layouts.

Generates a static SVG of a layout result: one rectangle per placed entity,
edges drawn as straight lines between their handle anchors, dashed VXLAN
edges and entity labels.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from xml.sax.saxutils import escape

from ..metrics import edge_anchors
from ..types import ContainerRecord, EdgeKind, EntityKind, HostRecord, NetworkRecord

if TYPE_CHECKING:
    from ..result import LayoutResult
    from ..types import Edge, PlacedEntity

DEFAULT_FILLS = {
    EntityKind.HOST: "#e8eef7",
    EntityKind.CONTAINER: "#4a90d9",
    EntityKind.NETWORK: "#f4d58d",
}

DEFAULT_EDGE_COLORS = {
    EdgeKind.DEFAULT: "#666666",
    EdgeKind.VXLAN: "#2c5aa0",
    EdgeKind.INGRESS: "#c0392b",
}


def to_svg(
    result: LayoutResult,
    *,
    stroke: str = "#2c3e50",
    stroke_width: float = 1.5,
    edge_width: float = 1.5,
    show_labels: bool = True,
    show_edge_labels: bool = True,
    label_color: str = "#000000",
    font_size: float = 12.0,
    font_family: str = "sans-serif",
    padding: float = 40.0,
    background: Optional[str] = None,
) -> str:
    """
    Export a topology layout to SVG format.

    Args:
        result: Output of layout()
        stroke: Outline color of entity boxes
        stroke_width: Outline width of entity boxes
        edge_width: Width for edges (default 1.5)
        show_labels: Whether to show entity labels (default True)
        show_edge_labels: Whether to show edge labels such as "VXLAN"
        label_color: Color for labels (default black)
        font_size: Font size for labels (default 12)
        font_family: Font family for labels (default sans-serif)
        padding: Padding around the diagram (default 40)
        background: Background color (default None for transparent)

    Returns:
        SVG string representation of the topology
    """
    if result.is_empty:
        return _empty_svg(100, 100, background)

    min_x = min(e.x for e in result.entities)
    max_x = max(e.right for e in result.entities)
    min_y = min(e.y for e in result.entities)
    max_y = max(e.bottom for e in result.entities)

    width = max_x - min_x + 2 * padding
    height = max_y - min_y + 2 * padding
    offset_x = padding - min_x
    offset_y = padding - min_y

    svg_parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{width:.1f}" height="{height:.1f}" '
        f'viewBox="0 0 {width:.1f} {height:.1f}">'
    ]

    if background:
        svg_parts.append(f'  <rect width="100%" height="100%" fill="{escape(background)}"/>')

    # Hosts first so containers and networks are drawn on top of them
    svg_parts.append('  <g class="entities">')
    ordered = sorted(result.entities, key=lambda e: e.kind is not EntityKind.HOST)
    for entity in ordered:
        svg_parts.append(_render_entity(entity, offset_x, offset_y, stroke, stroke_width))
    svg_parts.append("  </g>")

    svg_parts.append('  <g class="edges">')
    for edge in result.edges:
        svg_parts.append(
            _render_edge(
                result,
                edge,
                offset_x,
                offset_y,
                edge_width,
                show_edge_labels,
                font_size,
                font_family,
            )
        )
    svg_parts.append("  </g>")

    if show_labels:
        svg_parts.append('  <g class="labels">')
        for entity in result.entities:
            svg_parts.append(
                _render_label(entity, offset_x, offset_y, label_color, font_size, font_family)
            )
        svg_parts.append("  </g>")

    svg_parts.append("</svg>")

    return "\n".join(svg_parts)


def _empty_svg(width: float, height: float, background: Optional[str]) -> str:
    """Create an empty SVG."""
    bg = ""
    if background:
        bg = f'\n  <rect width="100%" height="100%" fill="{escape(background)}"/>'
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{width:.1f}" height="{height:.1f}" '
        f'viewBox="0 0 {width:.1f} {height:.1f}">{bg}\n</svg>'
    )


def entity_label(entity: PlacedEntity) -> str:
    """Display text of an entity."""
    ref = entity.ref
    if isinstance(ref, HostRecord):
        return ref.hostname or ref.id
    if isinstance(ref, ContainerRecord):
        return ref.service_name or ref.id
    if isinstance(ref, NetworkRecord):
        return ref.name
    return entity.id


def _render_entity(
    entity: PlacedEntity,
    offset_x: float,
    offset_y: float,
    stroke: str,
    stroke_width: float,
) -> str:
    """Render a placed entity as a rectangle."""
    return (
        f'    <rect id="{escape(entity.id)}" class="{entity.kind.value}" '
        f'x="{entity.x + offset_x:.1f}" y="{entity.y + offset_y:.1f}" '
        f'width="{entity.width:.1f}" height="{entity.height:.1f}" '
        f'fill="{DEFAULT_FILLS[entity.kind]}" stroke="{escape(stroke)}" '
        f'stroke-width="{stroke_width}" rx="4"/>'
    )


def _render_edge(
    result: LayoutResult,
    edge: Edge,
    offset_x: float,
    offset_y: float,
    width: float,
    show_label: bool,
    font_size: float,
    font_family: str,
) -> str:
    """Render an edge between its two anchors."""
    (x1, y1), (x2, y2) = edge_anchors(result, edge)
    x1 += offset_x
    x2 += offset_x
    y1 += offset_y
    y2 += offset_y
    color = DEFAULT_EDGE_COLORS[edge.kind]
    dash = ' stroke-dasharray="5,5"' if edge.dashed else ""

    line = (
        f'    <line class="{edge.kind.value}" x1="{x1:.1f}" y1="{y1:.1f}" '
        f'x2="{x2:.1f}" y2="{y2:.1f}" '
        f'stroke="{color}" stroke-width="{width}"{dash}/>'
    )
    if not (show_label and edge.label):
        return line
    return line + (
        f'\n    <text x="{(x1 + x2) / 2:.1f}" y="{(y1 + y2) / 2:.1f}" '
        f'fill="{color}" font-size="{font_size * 0.8:.1f}" '
        f'font-family="{escape(font_family)}" '
        f'text-anchor="start" dominant-baseline="central">'
        f"{escape(edge.label)}</text>"
    )


def _render_label(
    entity: PlacedEntity,
    offset_x: float,
    offset_y: float,
    color: str,
    font_size: float,
    font_family: str,
) -> str:
    """Render an entity label at the entity center."""
    return (
        f'    <text x="{entity.center_x + offset_x:.1f}" y="{entity.center_y + offset_y:.1f}" '
        f'fill="{escape(color)}" font-size="{font_size}" '
        f'font-family="{escape(font_family)}" '
        f'text-anchor="middle" dominant-baseline="central">'
        f"{escape(entity_label(entity))}</text>"
    )


__all__ = ["to_svg", "entity_label"]
