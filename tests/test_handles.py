"""Tests for handle allocation."""

import pytest

from swarm_layout.config import LayoutConfig
from swarm_layout.handles import (
    CENTER,
    HandleTable,
    allocate_handles,
    claim_offset,
    relative_offset,
    spread_offsets,
)
from swarm_layout.placer import place_entities
from swarm_layout.planner import plan_layers
from swarm_layout.types import (
    ContainerRecord,
    EntityKind,
    HandleRef,
    HostRecord,
    Layer,
    NetworkAttachment,
    NetworkRecord,
    PlacedEntity,
    Side,
)


def create_container(container_id, *refs):
    return ContainerRecord(
        id=container_id,
        network_attachments=tuple(NetworkAttachment(network_ref=r) for r in refs),
    )


def allocate(hosts, networks):
    """Run planner, placer and allocator on records."""
    config = LayoutConfig()
    plan = plan_layers(hosts, networks, config)
    placement = place_entities(hosts, networks, plan, config)
    return placement, allocate_handles(placement, networks)


@pytest.fixture
def gwbridge_cluster():
    """One host with three containers and its gwbridge."""
    hosts = [
        HostRecord(
            id="node-1",
            containers=tuple(ContainerRecord(id=f"c{i}") for i in range(3)),
        )
    ]
    networks = [NetworkRecord(id="gw-node-1", name="docker_gwbridge", driver="bridge")]
    return allocate(hosts, networks)


class TestOffsetHelpers:
    """Tests for offset arithmetic."""

    def test_spread_offsets(self):
        assert spread_offsets(1) == [0.5]
        assert spread_offsets(3) == [0.25, 0.5, 0.75]
        assert spread_offsets(0) == []

    def test_relative_offset_clamped(self):
        entity = PlacedEntity("e", EntityKind.NETWORK, Layer.INGRESS, 100, 0, 200, 40, None)
        assert relative_offset(entity, 200) == 0.5
        assert relative_offset(entity, 0) == 0.0
        assert relative_offset(entity, 1000) == 1.0

    def test_claim_preferred_when_free(self):
        assert claim_offset([0.25, 0.75], 0.5) == 0.5

    def test_claim_preferred_collision_moves_right(self):
        assert claim_offset([0.5], 0.5) == 0.75

    def test_claim_preferred_collision_at_border(self):
        """A taken offset at 1.0 moves the claim left instead."""
        assert claim_offset([0.5, 1.0], 1.0) == 0.75

    def test_claim_widest_gap(self):
        assert claim_offset([0.5]) == 0.25
        assert claim_offset([0.1, 0.2]) == pytest.approx(0.6)
        assert claim_offset([]) == 0.5

    def test_claim_never_returns_taken(self):
        taken = [0.5]
        for _ in range(20):
            offset = claim_offset(taken)
            assert offset not in taken
            assert 0 < offset < 1
            taken.append(offset)


class TestHandleTable:
    """Tests for the handle container."""

    def test_add_and_get(self):
        table = HandleTable()
        handle = table.add(HandleRef("a", "b", 0.3))
        assert table.get("a", "b") is handle
        assert table.get("b", "a") is None
        assert len(table) == 1

    def test_for_owner_keeps_order(self):
        table = HandleTable()
        table.add(HandleRef("a", "x", 0.2))
        table.add(HandleRef("b", "x", 0.5))
        table.add(HandleRef("a", "y", 0.8))
        assert table.offsets("a") == [0.2, 0.8]

    def test_handle_id(self):
        assert HandleRef("gw", "c1", 0.5).handle_id == "handle-c1"


class TestGwbridgeHandles:
    """Tests for gwbridge/container and gwbridge/host handles."""

    def test_container_offsets(self, gwbridge_cluster):
        """Offsets are the container centers projected onto the gwbridge."""
        _, table = gwbridge_cluster
        offsets = [table.get("gw-node-1", f"c{i}").offset for i in range(3)]
        assert offsets == pytest.approx([60 / 380, 190 / 380, 320 / 380])

    def test_offsets_distinct_and_inside(self, gwbridge_cluster):
        _, table = gwbridge_cluster
        offsets = [table.get("gw-node-1", f"c{i}").offset for i in range(3)]
        assert len(set(offsets)) == 3
        assert all(0 < o < 1 for o in offsets)

    def test_host_link_at_center(self, gwbridge_cluster):
        _, table = gwbridge_cluster
        assert table.get("gw-node-1", "node-1").offset == CENTER
        assert table.get("node-1", "gw-node-1").offset == CENTER

    def test_sides_face_counterpart(self, gwbridge_cluster):
        """The gwbridge sits between containers (above) and its host (below)."""
        _, table = gwbridge_cluster
        assert table.get("gw-node-1", "c0").side is Side.NORTH
        assert table.get("gw-node-1", "node-1").side is Side.SOUTH
        assert table.get("node-1", "gw-node-1").side is Side.NORTH

    def test_no_gwbridge_no_handles(self):
        hosts = [HostRecord(id="node-1", containers=(ContainerRecord(id="c0"),))]
        _, table = allocate(hosts, [])
        assert len(table) == 0


class TestOverlayHandles:
    """Tests for overlay/container handles."""

    def test_container_keyed_by_network_name(self):
        hosts = [HostRecord(id="h1", containers=(create_container("c0", "net-web"),))]
        networks = [NetworkRecord(id="net-web", name="web", driver="overlay")]
        _, table = allocate(hosts, networks)
        assert table.get("net-web", "c0") is not None
        handle = table.get("c0", "web")
        assert handle.offset == 0.5
        assert handle.side is Side.NORTH
        assert table.overlay_links == [("net-web", "c0")]

    def test_reference_by_name(self):
        hosts = [HostRecord(id="h1", containers=(create_container("c0", "web"),))]
        networks = [NetworkRecord(id="net-web", name="web", driver="overlay")]
        _, table = allocate(hosts, networks)
        assert table.overlay_links == [("net-web", "c0")]

    def test_dangling_reference_dropped(self):
        hosts = [HostRecord(id="h1", containers=(create_container("c0", "missing"),))]
        _, table = allocate(hosts, [])
        assert table.overlay_links == []
        assert table.for_owner("c0") == []

    def test_duplicate_attachment_collapses(self):
        hosts = [HostRecord(id="h1", containers=(create_container("c0", "web", "net-web"),))]
        networks = [NetworkRecord(id="net-web", name="web", driver="overlay")]
        _, table = allocate(hosts, networks)
        assert table.overlay_links == [("net-web", "c0")]

    def test_container_offsets_spread_in_stack_order(self):
        """Attachment order does not matter; stacking order does."""
        hosts = [HostRecord(id="h1", containers=(create_container("c0", "db", "web"),))]
        networks = [
            NetworkRecord(id="net-web", name="web", driver="overlay"),
            NetworkRecord(id="net-db", name="db", driver="overlay"),
        ]
        _, table = allocate(hosts, networks)
        assert table.get("c0", "web").offset == pytest.approx(1 / 3)
        assert table.get("c0", "db").offset == pytest.approx(2 / 3)

    def test_ingress_attachment_is_not_overlay(self):
        hosts = [HostRecord(id="h1", containers=(create_container("c0", "ingress"),))]
        networks = [NetworkRecord(id="ing", name="ingress", driver="overlay")]
        _, table = allocate(hosts, networks)
        assert table.overlay_links == []

    def test_shared_name_keyed_by_id(self):
        """Two overlays with one name keep separate handles on the container."""
        hosts = [HostRecord(id="h1", containers=(create_container("c0", "net-a", "net-b"),))]
        networks = [
            NetworkRecord(id="net-a", name="web", driver="overlay"),
            NetworkRecord(id="net-b", name="web", driver="overlay"),
        ]
        _, table = allocate(hosts, networks)
        assert table.get("c0", "web") is None
        assert table.get("c0", "net-a").offset == pytest.approx(1 / 3)
        assert table.get("c0", "net-b").offset == pytest.approx(2 / 3)
        assert len(table.for_owner("c0")) == 2
        assert table.container_handle("net-a", "c0") is table.get("c0", "net-a")

    def test_unique_name_key_kept_beside_shared(self):
        hosts = [
            HostRecord(id="h1", containers=(create_container("c0", "net-a", "net-b", "db"),))
        ]
        networks = [
            NetworkRecord(id="net-a", name="web", driver="overlay"),
            NetworkRecord(id="net-b", name="web", driver="overlay"),
            NetworkRecord(id="net-db", name="db", driver="overlay"),
        ]
        _, table = allocate(hosts, networks)
        assert table.container_handle("net-db", "c0") is table.get("c0", "db")
        assert len(set(table.offsets("c0"))) == 3


class TestIngressAndPeerHandles:
    """Tests for gwbridge/ingress, overlay/host and external/host handles."""

    def test_ingress_link(self):
        hosts = [HostRecord(id="node-1", containers=(ContainerRecord(id="c0"),))]
        networks = [
            NetworkRecord(id="ing", name="ingress", driver="overlay"),
            NetworkRecord(
                id="gw-node-1", name="docker_gwbridge", driver="bridge", ingress_link=True
            ),
        ]
        _, table = allocate(hosts, networks)
        assert table.ingress_links == ["gw-node-1"]
        gw_offsets = table.offsets("gw-node-1")
        assert len(set(gw_offsets)) == len(gw_offsets)
        ingress_side = table.get("gw-node-1", "ing")
        assert ingress_side.side is Side.NORTH
        assert ingress_side.offset not in (CENTER, table.get("gw-node-1", "c0").offset)

    def test_ingress_link_requires_metadata(self):
        hosts = [HostRecord(id="node-1")]
        networks = [
            NetworkRecord(id="ing", name="ingress", driver="overlay"),
            NetworkRecord(id="gw-node-1", name="docker_gwbridge", driver="bridge"),
        ]
        _, table = allocate(hosts, networks)
        assert table.ingress_links == []

    def test_overlay_peers(self):
        hosts = [HostRecord(id="h1"), HostRecord(id="h2")]
        networks = [
            NetworkRecord(id="web", name="web", driver="overlay", peers=("h1", "h2", "h9")),
        ]
        _, table = allocate(hosts, networks)
        assert table.host_overlay_links == [("web", "h1"), ("web", "h2")]
        host_handle = table.get("h1", "web")
        assert host_handle.offset != CENTER
        assert host_handle.side is Side.NORTH

    def test_external_handles(self):
        hosts = [HostRecord(id="h1"), HostRecord(id="h2")]
        networks = [NetworkRecord(id="ext", name="pub", driver="bridge", type="external")]
        _, table = allocate(hosts, networks)
        offsets = table.offsets("ext")
        assert len(offsets) == 2
        assert offsets[0] < offsets[1]
        assert table.get("ext", "h1").side is Side.NORTH
