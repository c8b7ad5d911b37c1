"""Tests for the edge rule engine."""

import pytest

from swarm_layout.config import LayoutConfig
from swarm_layout.edges import (
    RULES,
    VXLAN_LABEL,
    container_gwbridge_edges,
    edge_id,
    external_edges,
    generate_edges,
    gwbridge_ingress_edges,
    host_gwbridge_edges,
    host_overlay_edges,
    overlay_container_edges,
)
from swarm_layout.handles import allocate_handles
from swarm_layout.placer import place_entities
from swarm_layout.planner import plan_layers
from swarm_layout.types import (
    ContainerRecord,
    EdgeKind,
    HostRecord,
    NetworkAttachment,
    NetworkRecord,
)


def create_cluster():
    """Two hosts, gwbridges, a shared overlay, ingress and an external network."""
    hosts = [
        HostRecord(
            id="node-1",
            containers=(
                ContainerRecord(id="c1", network_attachments=(NetworkAttachment("web"),)),
                ContainerRecord(id="c2"),
            ),
        ),
        HostRecord(
            id="node-2",
            containers=(
                ContainerRecord(id="c3", network_attachments=(NetworkAttachment("net-web"),)),
            ),
        ),
    ]
    networks = [
        NetworkRecord(id="net-web", name="web", driver="overlay", peers=("node-2",)),
        NetworkRecord(id="net-ingress", name="ingress", driver="overlay"),
        NetworkRecord(id="net-ext", name="public", driver="bridge", type="external"),
        NetworkRecord(id="gw-node-1", name="docker_gwbridge", driver="bridge", ingress_link=True),
        NetworkRecord(id="gw-node-2", name="docker_gwbridge", driver="bridge"),
    ]
    return hosts, networks


def prepare(hosts, networks):
    config = LayoutConfig()
    plan = plan_layers(hosts, networks, config)
    placement = place_entities(hosts, networks, plan, config)
    return placement, allocate_handles(placement, networks)


@pytest.fixture
def cluster():
    return prepare(*create_cluster())


class TestEdgeId:
    """Tests for edge identifiers."""

    def test_format(self):
        assert edge_id("node-1", "gw-node-1") == "edge-node-1-to-gw-node-1"


class TestRules:
    """Tests for each connectivity rule."""

    def test_host_gwbridge(self, cluster):
        """R1: one default edge per host with a gwbridge."""
        edges = host_gwbridge_edges(*cluster)
        assert [(e.source_id, e.target_id) for e in edges] == [
            ("node-1", "gw-node-1"),
            ("node-2", "gw-node-2"),
        ]
        assert all(e.kind is EdgeKind.DEFAULT for e in edges)
        assert edges[0].target_handle.offset == 0.5

    def test_container_gwbridge(self, cluster):
        """R2: dashed VXLAN edges from every container."""
        edges = container_gwbridge_edges(*cluster)
        assert [e.source_id for e in edges] == ["c1", "c2", "c3"]
        for edge in edges:
            assert edge.kind is EdgeKind.VXLAN
            assert edge.label == VXLAN_LABEL
            assert edge.dashed
            assert edge.source_handle is None
            assert edge.target_handle.owner_id == edge.target_id

    def test_overlay_container(self, cluster):
        """R3: one ingress-kind edge per resolved overlay attachment."""
        edges = overlay_container_edges(*cluster)
        assert [(e.source_id, e.target_id) for e in edges] == [("net-web", "c1"), ("net-web", "c3")]
        for edge in edges:
            assert edge.kind is EdgeKind.INGRESS
            assert edge.source_handle is not None
            assert edge.target_handle.counterpart_id == "web"

    def test_overlay_container_shared_names(self):
        """R3 edges to overlays of one name land on distinct container handles."""
        hosts = [
            HostRecord(
                id="node-1",
                containers=(
                    ContainerRecord(
                        id="c1",
                        network_attachments=(NetworkAttachment("a"), NetworkAttachment("b")),
                    ),
                ),
            )
        ]
        networks = [
            NetworkRecord(id="a", name="web", driver="overlay"),
            NetworkRecord(id="b", name="web", driver="overlay"),
        ]
        edges = overlay_container_edges(*prepare(hosts, networks))
        handles = [e.target_handle for e in edges]
        assert [h.handle_id for h in handles] == ["handle-a", "handle-b"]
        assert handles[0].offset != handles[1].offset

    def test_gwbridge_ingress(self, cluster):
        """R4: only gwbridges carrying the ingress link."""
        edges = gwbridge_ingress_edges(*cluster)
        assert [(e.source_id, e.target_id) for e in edges] == [("gw-node-1", "net-ingress")]
        assert edges[0].kind is EdgeKind.INGRESS

    def test_gwbridge_ingress_without_ingress_network(self):
        hosts, networks = create_cluster()
        networks = [n for n in networks if n.name != "ingress"]
        assert gwbridge_ingress_edges(*prepare(hosts, networks)) == []

    def test_host_overlay(self, cluster):
        """R5: one edge per declared overlay peer."""
        edges = host_overlay_edges(*cluster)
        assert [(e.source_id, e.target_id) for e in edges] == [("net-web", "node-2")]
        assert edges[0].kind is EdgeKind.DEFAULT

    def test_external(self, cluster):
        edges = external_edges(*cluster)
        assert [(e.source_id, e.target_id) for e in edges] == [
            ("node-1", "net-ext"),
            ("node-2", "net-ext"),
        ]

    def test_external_requires_network(self):
        hosts, networks = create_cluster()
        networks = [n for n in networks if n.type != "external"]
        assert external_edges(*prepare(hosts, networks)) == []


class TestGenerateEdges:
    """Tests for the ordered rule application."""

    def test_rule_order(self, cluster):
        edges = generate_edges(*cluster)
        rules = [e.rule for e in edges]
        names = [name for name, _ in RULES]
        assert rules == sorted(rules, key=names.index)
        assert len(edges) == 2 + 3 + 2 + 1 + 1 + 2

    def test_referential_integrity(self, cluster):
        """Every endpoint refers to a placed entity."""
        placement, table = cluster
        for edge in generate_edges(placement, table):
            assert edge.source_id in placement
            assert edge.target_id in placement

    def test_ids_unique_per_endpoint_pair(self, cluster):
        edges = generate_edges(*cluster)
        assert len({e.id for e in edges}) == len({(e.source_id, e.target_id) for e in edges})
        assert len({e.id for e in edges}) == len(edges)

    def test_fresh_list_per_call(self, cluster):
        first = generate_edges(*cluster)
        second = generate_edges(*cluster)
        assert first == second
        assert first is not second
