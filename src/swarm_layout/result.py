"""
Layout result assembly.

Packages placed entities, handles and edges into the LayoutResult handed
to the rendering layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from .handles import HandleTable
from .placer import Placement
from .planner import LayerBand
from .types import Edge, EdgeKind, EntityKind, HandleRef, Layer, PlacedEntity


@dataclass(frozen=True)
class LayoutResult:
    """
    Complete output of one layout call.

    Attributes:
        entities: Placed hosts, containers and networks in stacking order
        edges: Rule-derived edges in rule order
        handles: Every allocated handle, in allocation order
        total_width: Horizontal extent of all hosts
        total_height: Vertical extent of the layer stack
        layers: Layer bands in stacking order
    """

    entities: tuple[PlacedEntity, ...] = ()
    edges: tuple[Edge, ...] = ()
    handles: tuple[HandleRef, ...] = ()
    total_width: float = 0.0
    total_height: float = 0.0
    layers: tuple[LayerBand, ...] = ()
    _index: Mapping[str, PlacedEntity] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {e.id: e for e in self.entities})

    @property
    def is_empty(self) -> bool:
        return not self.entities

    def get(self, entity_id: str) -> Optional[PlacedEntity]:
        return self._index.get(entity_id)

    def entity(self, entity_id: str) -> PlacedEntity:
        return self._index[entity_id]

    def of_kind(self, kind: EntityKind) -> list[PlacedEntity]:
        return [e for e in self.entities if e.kind is kind]

    def in_layer(self, layer: Layer) -> list[PlacedEntity]:
        return [e for e in self.entities if e.layer is layer]

    def edges_of_kind(self, kind: EdgeKind) -> list[Edge]:
        return [e for e in self.edges if e.kind is kind]

    def edges_from_rule(self, rule: str) -> list[Edge]:
        return [e for e in self.edges if e.rule == rule]

    def handles_on(self, entity_id: str) -> list[HandleRef]:
        return [h for h in self.handles if h.owner_id == entity_id]


EMPTY_RESULT = LayoutResult()


def assemble_result(placement: Placement, handles: HandleTable, edges: list[Edge]) -> LayoutResult:
    """Package a placement, its handles and its edges into a LayoutResult."""
    if not placement.entities:
        return EMPTY_RESULT
    return LayoutResult(
        entities=placement.entities,
        edges=tuple(edges),
        handles=tuple(handles),
        total_width=placement.plan.total_width,
        total_height=placement.plan.total_height,
        layers=placement.plan.bands,
    )


__all__ = ["LayoutResult", "EMPTY_RESULT", "assemble_result"]
