"""
Layout quality metrics.

Provides quantitative measures of a topology layout:
- Edge lengths: distance between the two anchors of every edge
- Edge slant: horizontal drift of every edge (0 = perfectly vertical)
- Overlapping pairs: entities of one layer whose boxes intersect
- Bounds: bounding box of all placed entities

All metrics work with the LayoutResult returned by the engine.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from .handles import facing_side
from .result import LayoutResult
from .types import Edge, EntityKind, HandleRef, PlacedEntity


def _anchor(
    entity: PlacedEntity, handle: Optional[HandleRef], other: PlacedEntity
) -> tuple[float, float]:
    if handle is not None:
        return entity.anchor(handle.side, handle.offset)
    return entity.anchor(facing_side(entity, other))


def edge_anchors(
    result: LayoutResult, edge: Edge
) -> tuple[tuple[float, float], tuple[float, float]]:
    """
    Absolute (source, target) anchor points of an edge.

    Edges without a handle on one end attach at the center of the side
    facing the other entity.
    """
    source = result.entity(edge.source_id)
    target = result.entity(edge.target_id)
    return (
        _anchor(source, edge.source_handle, target),
        _anchor(target, edge.target_handle, source),
    )


def edge_segments(result: LayoutResult) -> np.ndarray:
    """
    Anchor coordinates of all edges.

    Returns:
        Array of shape (m, 2, 2): [edge][source/target][x/y]
    """
    if not result.edges:
        return np.zeros((0, 2, 2))
    return np.array([edge_anchors(result, e) for e in result.edges], dtype=float)


def edge_lengths(result: LayoutResult) -> np.ndarray:
    """Euclidean length of every edge, in edge order."""
    segments = edge_segments(result)
    if len(segments) == 0:
        return np.zeros(0)
    return np.linalg.norm(segments[:, 1, :] - segments[:, 0, :], axis=1)


def edge_slant(result: LayoutResult) -> np.ndarray:
    """Absolute horizontal distance between the anchors of every edge."""
    segments = edge_segments(result)
    if len(segments) == 0:
        return np.zeros(0)
    return np.abs(segments[:, 1, 0] - segments[:, 0, 0])


def overlapping_pairs(
    result: LayoutResult, kind: Optional[EntityKind] = None
) -> list[tuple[str, str]]:
    """
    Pairs of entities in the same layer whose boxes overlap.

    Touching edges do not count as overlap.

    Args:
        result: Layout result
        kind: Restrict the check to one entity kind

    Returns:
        List of (entity_id, entity_id) pairs
    """
    pairs: list[tuple[str, str]] = []
    by_layer: dict[Any, list[PlacedEntity]] = {}
    for entity in result.entities:
        if kind is None or entity.kind is kind:
            by_layer.setdefault(entity.layer, []).append(entity)

    for entities in by_layer.values():
        if len(entities) < 2:
            continue
        boxes = np.array([(e.x, e.y, e.right, e.bottom) for e in entities], dtype=float)
        left, top, right, bottom = boxes.T
        x_overlap = (left[:, None] < right[None, :]) & (left[None, :] < right[:, None])
        y_overlap = (top[:, None] < bottom[None, :]) & (top[None, :] < bottom[:, None])
        overlap = np.triu(x_overlap & y_overlap, k=1)
        for i, j in zip(*np.nonzero(overlap)):
            pairs.append((entities[i].id, entities[j].id))
    return pairs


def layout_bounds(result: LayoutResult) -> tuple[float, float, float, float]:
    """
    Bounding box of all entities.

    Returns:
        (min_x, min_y, max_x, max_y); all zeros for an empty result
    """
    if not result.entities:
        return (0.0, 0.0, 0.0, 0.0)
    boxes = np.array([(e.x, e.y, e.right, e.bottom) for e in result.entities], dtype=float)
    return (
        float(boxes[:, 0].min()),
        float(boxes[:, 1].min()),
        float(boxes[:, 2].max()),
        float(boxes[:, 3].max()),
    )


def layout_quality_summary(result: LayoutResult) -> dict[str, Any]:
    """
    Compute all metrics at once.

    Returns:
        Dictionary with entity/edge counts, edge length statistics,
        slant statistics, overlap count and bounds.
    """
    lengths = edge_lengths(result)
    slant = edge_slant(result)
    return {
        "entities": len(result.entities),
        "edges": len(result.edges),
        "mean_edge_length": float(lengths.mean()) if len(lengths) else 0.0,
        "max_edge_length": float(lengths.max()) if len(lengths) else 0.0,
        "mean_edge_slant": float(slant.mean()) if len(slant) else 0.0,
        "max_edge_slant": float(slant.max()) if len(slant) else 0.0,
        "overlaps": len(overlapping_pairs(result)),
        "bounds": layout_bounds(result),
    }


__all__ = [
    "edge_anchors",
    "edge_segments",
    "edge_lengths",
    "edge_slant",
    "overlapping_pairs",
    "layout_bounds",
    "layout_quality_summary",
]
