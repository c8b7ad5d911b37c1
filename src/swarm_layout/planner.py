"""
Layer planner.

Decides the fixed vertical stacking order of entity classes and the
horizontal extent of every host. The stack, first layer at the top in the
default top-to-bottom orientation, is:

1. overlay networks
2. ingress network
3. containers
4. per-host gwbridge networks
5. hosts
6. external network

Each layer starts one layer gap below the end of the previous one. Hosts
are laid out left to right, separated by the horizontal gap; a host is as
wide as its containers side by side, never narrower than the minimum host
width.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .config import LayoutConfig
from .types import HostRecord, Layer, NetworkRecord

INGRESS_NAME = "ingress"
EXTERNAL_TYPE = "external"
OVERLAY_DRIVER = "overlay"


def network_layer(network: NetworkRecord) -> Optional[Layer]:
    """
    Classify a global network into its layer.

    - name == "ingress" -> INGRESS
    - type == "external" -> EXTERNAL
    - driver == "overlay" (and not ingress) -> OVERLAY

    Returns None for networks that are not global layers (gwbridge
    candidates, host networks, ...).
    """
    if network.name == INGRESS_NAME:
        return Layer.INGRESS
    if network.type == EXTERNAL_TYPE:
        return Layer.EXTERNAL
    if network.driver == OVERLAY_DRIVER:
        return Layer.OVERLAY
    return None


@dataclass(frozen=True)
class HostSpan:
    """Horizontal extent of one host."""

    host_id: str
    x: float
    width: float
    container_count: int

    @property
    def right(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class LayerBand:
    """Vertical extent of one layer."""

    layer: Layer
    y: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class LayerPlan:
    """
    Output of the layer planner.

    Attributes:
        spans: Host spans in input order
        bands: Layer bands in stacking order (empty when there are no hosts)
        origin_x: Left edge of the leftmost host
        total_width: Sum of host widths plus the gaps between them
        total_height: Distance from the top of the first band to the bottom of the last
    """

    spans: tuple[HostSpan, ...]
    bands: tuple[LayerBand, ...]
    origin_x: float
    total_width: float
    total_height: float

    @property
    def is_empty(self) -> bool:
        return not self.spans

    def span(self, host_id: str) -> HostSpan:
        for span in self.spans:
            if span.host_id == host_id:
                return span
        raise KeyError(host_id)

    def band(self, layer: Layer) -> LayerBand:
        for band in self.bands:
            if band.layer is layer:
                return band
        raise KeyError(layer)


def compute_host_spans(
    hosts: Sequence[HostRecord], config: LayoutConfig
) -> tuple[tuple[HostSpan, ...], float]:
    """
    Compute host widths and x-offsets by sequential left-to-right placement.

    Returns:
        (spans, total_width) where
        total_width = sum(width_i) + (host_count - 1) * horizontal_gap
    """
    spans: list[HostSpan] = []
    current_x = config.start_x
    for host in hosts:
        width = config.host_width(host.container_count)
        spans.append(HostSpan(host.id, current_x, width, host.container_count))
        current_x += width + config.horizontal_gap

    if not spans:
        return (), 0.0
    total_width = spans[-1].right - config.start_x
    return tuple(spans), total_width


def layer_heights(config: LayoutConfig, overlay_count: int) -> dict[Layer, float]:
    """
    Height of every layer band.

    The overlay band holds all overlay networks stacked with the overlay
    stack gap and is at least one overlay network high.
    """
    k = max(1, overlay_count)
    return {
        Layer.OVERLAY: k * config.overlay_network_height + (k - 1) * config.overlay_stack_gap,
        Layer.INGRESS: config.ingress_network_height,
        Layer.CONTAINERS: config.container_height,
        Layer.GWBRIDGE: config.gwbridge_network_height,
        Layer.HOSTS: config.host_height,
        Layer.EXTERNAL: config.external_network_height,
    }


def stack_layers(config: LayoutConfig, overlay_count: int) -> tuple[tuple[LayerBand, ...], float]:
    """
    Stack the layer bands vertically.

    Each band's y = previous y + previous height + layer_gap. In
    bottom-to-top orientation the stack is mirrored so the external
    network ends up at the top; relative order is unchanged.

    Returns:
        (bands in stacking order, total_height)
    """
    heights = layer_heights(config, overlay_count)
    layers = sorted(heights)

    offsets: dict[Layer, float] = {}
    offset = 0.0
    for layer in layers:
        offsets[layer] = offset
        offset += heights[layer] + config.layer_gap
    total_height = offset - config.layer_gap

    bands = []
    for layer in layers:
        if config.orientation == "top-to-bottom":
            y = config.start_y + offsets[layer]
        else:
            y = config.start_y + total_height - offsets[layer] - heights[layer]
        bands.append(LayerBand(layer, y, heights[layer]))
    return tuple(bands), total_height


def plan_layers(
    hosts: Sequence[HostRecord],
    networks: Sequence[NetworkRecord],
    config: LayoutConfig,
) -> LayerPlan:
    """
    Plan host extents and layer bands.

    Zero hosts yields an empty plan with total_width 0 and no bands.
    """
    spans, total_width = compute_host_spans(hosts, config)
    if not spans:
        return LayerPlan((), (), config.start_x, 0.0, 0.0)

    overlay_count = sum(1 for n in networks if network_layer(n) is Layer.OVERLAY)
    bands, total_height = stack_layers(config, overlay_count)
    return LayerPlan(spans, bands, config.start_x, total_width, total_height)


__all__ = [
    "INGRESS_NAME",
    "EXTERNAL_TYPE",
    "OVERLAY_DRIVER",
    "network_layer",
    "HostSpan",
    "LayerBand",
    "LayerPlan",
    "compute_host_spans",
    "layer_heights",
    "stack_layers",
    "plan_layers",
]
