#!/usr/bin/env python3
"""
Visualization script for swarm topology layouts.

Generates images of sample topologies into ./build/

Usage:
    uv run python scripts/visualize.py
"""

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from swarm_layout import EdgeKind, EntityKind, LayoutConfig, layout, layout_quality_summary
from swarm_layout.export import to_svg
from swarm_layout.export.svg import entity_label
from swarm_layout.metrics import edge_anchors

# Output directory
BUILD_DIR = Path(__file__).parent.parent / "build"

FILLS = {
    EntityKind.HOST: "#e8eef7",
    EntityKind.CONTAINER: "steelblue",
    EntityKind.NETWORK: "#f4d58d",
}

EDGE_STYLES = {
    EdgeKind.DEFAULT: ("gray", "-"),
    EdgeKind.VXLAN: ("#2c5aa0", "--"),
    EdgeKind.INGRESS: ("#c0392b", "-"),
}


def ensure_build_dir():
    """Create build directory if it doesn't exist."""
    BUILD_DIR.mkdir(exist_ok=True)


def visualize(result, title="Swarm Topology", ax=None):
    """Draw a layout result on an axis."""
    # Hosts behind everything else
    ordered = sorted(result.entities, key=lambda e: e.kind is not EntityKind.HOST)
    for entity in ordered:
        ax.add_patch(
            Rectangle(
                (entity.x, entity.y),
                entity.width,
                entity.height,
                facecolor=FILLS[entity.kind],
                edgecolor="#2c3e50",
                linewidth=1,
                zorder=1 if entity.kind is EntityKind.HOST else 2,
            )
        )
        ax.annotate(
            entity_label(entity),
            (entity.center_x, entity.center_y),
            ha="center",
            va="center",
            fontsize=7,
            color="white" if entity.kind is EntityKind.CONTAINER else "black",
            zorder=4,
        )

    for edge in result.edges:
        (x1, y1), (x2, y2) = edge_anchors(result, edge)
        color, style = EDGE_STYLES[edge.kind]
        ax.plot([x1, x2], [y1, y2], color=color, linestyle=style, linewidth=1, zorder=3)

    ax.set_xlim(0, result.total_width + 100)
    ax.set_ylim(0, result.total_height + 200)
    ax.invert_yaxis()
    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.set_aspect("equal")
    ax.axis("off")


def save_topology(snapshot, name, filename, config=None):
    """Lay out a snapshot and save it as PNG and SVG."""
    result = layout(snapshot, config)

    fig, ax = plt.subplots(figsize=(12, 9))
    visualize(result, name, ax=ax)
    plt.tight_layout()

    filepath = BUILD_DIR / filename
    fig.savefig(filepath, dpi=150, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"  Saved: {filepath}")

    svg_path = filepath.with_suffix(".svg")
    svg_path.write_text(to_svg(result, background="white"))
    print(f"  Saved: {svg_path}")

    summary = layout_quality_summary(result)
    print(
        f"    {summary['entities']} entities, {summary['edges']} edges, "
        f"mean slant {summary['mean_edge_slant']:.1f}, overlaps {summary['overlaps']}"
    )


def create_sample_topology():
    """Three hosts, a web overlay, ingress and an external network."""
    hosts = [
        {"id": "node-1", "hostname": "manager-1", "role": "manager"},
        {"id": "node-2", "hostname": "worker-1", "role": "worker"},
        {"id": "node-3", "hostname": "worker-2", "role": "worker"},
    ]
    for i, host in enumerate(hosts):
        host["containers"] = [
            {
                "id": f"container-{host['id']}-{j}",
                "serviceName": f"web.{i + 1}.{j}" if j == 0 else f"api.{i + 1}.{j}",
                "image": "nginx:latest" if j == 0 else "api:1.4",
                "status": "running",
                "networkAttachments": [{"networkRef": "web"}]
                + ([{"networkRef": "backend"}] if j > 0 else []),
            }
            for j in range(i + 1)
        ]

    networks = [
        {"id": "net-web", "name": "web", "driver": "overlay", "peers": ["node-1"]},
        {"id": "net-backend", "name": "backend", "driver": "overlay"},
        {"id": "net-ingress", "name": "ingress", "driver": "overlay"},
        {"id": "net-external", "name": "external", "driver": "bridge", "type": "external"},
    ]
    for host in hosts:
        networks.append(
            {
                "id": f"network-gwbridge-{host['id']}",
                "name": "docker_gwbridge",
                "driver": "bridge",
                "scope": "local",
                "ingressLink": True,
            }
        )
    return {"hosts": hosts, "networks": networks}


def create_single_host_topology():
    """One host with three containers and its gwbridge."""
    return {
        "hosts": [
            {
                "id": "node-1",
                "hostname": "standalone",
                "role": "manager",
                "containers": [
                    {"id": f"c{i}", "serviceName": f"svc-{i}", "image": "alpine"}
                    for i in range(3)
                ],
            }
        ],
        "networks": [{"id": "gwbridge-node-1", "name": "docker_gwbridge", "driver": "bridge"}],
    }


def generate_all():
    """Generate all visualization images."""
    ensure_build_dir()

    print("Generating topology images...")
    save_topology(create_single_host_topology(), "Single Host", "single_host.png")
    save_topology(create_sample_topology(), "Swarm Cluster", "swarm_cluster.png")
    save_topology(
        create_sample_topology(),
        "Swarm Cluster (bottom-to-top)",
        "swarm_cluster_bottom_to_top.png",
        LayoutConfig(orientation="bottom-to-top"),
    )

    print(f"\nAll images saved to {BUILD_DIR}/")


if __name__ == "__main__":
    generate_all()
